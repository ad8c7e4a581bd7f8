"""행동 이벤트 / 프로필 저장소 단위 테스트"""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from app.domains.behavior.events import (
    Click,
    PageView,
    SearchQuery,
    behavior_event_adapter,
    event_from_interaction,
)
from app.domains.behavior.profile import JsonFileProfileStore, UserProfile


class TestBehaviorEvents:
    """태그드 유니온 이벤트"""

    def test_events_are_immutable(self):
        """이벤트는 생성 후 변경 불가"""
        event = PageView(path="/")

        with pytest.raises(ValidationError):
            event.path = "/other"

    def test_adapter_dispatches_on_kind(self):
        """kind 필드로 이벤트 타입 결정"""
        event = behavior_event_adapter.validate_python(
            {"kind": "search", "text": "coffee"}
        )

        assert isinstance(event, SearchQuery)


class TestEventFromInteraction:
    """저장된 상호작용 → 이벤트 변환"""

    def test_click_accepts_camel_case(self):
        """클라이언트 camelCase 키 허용"""
        event = event_from_interaction(
            "click",
            {"href": "/biz/1", "text": "Pizza Place", "elementId": "card-1"},
        )

        assert isinstance(event, Click)
        assert event.label == "Pizza Place"
        assert event.element_id == "card-1"

    def test_search_uses_query_key(self):
        """검색어는 query 키에서 읽음"""
        at = datetime(2024, 1, 1, tzinfo=timezone.utc)

        event = event_from_interaction("search", {"query": "sushi"}, at)

        assert event.text == "sushi"
        assert event.occurred_at == at

    def test_client_timestamp_is_used_when_missing(self):
        """발생 시각이 없으면 클라이언트 timestamp를 UTC로 사용"""
        event = event_from_interaction(
            "page_view", {"path": "/", "timestamp": "2024-03-01T09:30:00"}
        )

        assert event.occurred_at == datetime(
            2024, 3, 1, 9, 30, tzinfo=timezone.utc
        )

    @pytest.mark.parametrize(
        "data",
        [{"y": [1]}, {"offset": {"top": 1}}, {"y": 10, "velocity": True}],
    )
    def test_non_numeric_scroll_values_raise_value_error(self, data):
        """숫자가 아닌 스크롤 값은 ValueError"""
        with pytest.raises(ValueError):
            event_from_interaction("scroll", data)

    def test_numeric_strings_are_accepted(self):
        """숫자 문자열과 빈 값은 허용"""
        event = event_from_interaction(
            "scroll", {"y": "1200", "velocity": "", "direction": "up"}
        )

        assert event.offset == 1200.0
        assert event.velocity == 0.0
        assert event.direction == "up"

    def test_page_view_without_path_is_skipped(self):
        """경로 없는 페이지 조회는 None"""
        assert event_from_interaction("page_view", {}) is None

    def test_unknown_type_is_skipped(self):
        """알 수 없는 종류는 None"""
        assert event_from_interaction("purchase", {"amount": 3}) is None


class TestJsonFileProfileStore:
    """파일 프로필 저장소"""

    def test_round_trip_uses_camel_case_file(self, tmp_path):
        """camelCase JSON으로 저장하고 다시 읽음"""
        store = JsonFileProfileStore(tmp_path)
        store.set("user/../1", UserProfile(frequent_paths=["/"]))

        files = list(tmp_path.glob("*.json"))
        assert len(files) == 1
        assert "frequentPaths" in files[0].read_text("utf-8")
        assert store.get("user/../1").frequent_paths == ["/"]

    def test_missing_key(self, tmp_path):
        """없는 키는 None"""
        assert JsonFileProfileStore(tmp_path).get("nobody") is None
