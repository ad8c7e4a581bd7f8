"""행동 기록기

페이지 조회, 검색, 클릭, 호버, 스크롤 신호를 세션 로그와 장기 프로필에 기록합니다.

- 네트워크 호출 없음 (부수효과는 프로필 저장소에 한정)
- 기록 순서 = 이벤트 발생 순서 (동기 append)
- 저장 실패는 로그만 남기고 메모리 상태는 그대로 유지
- 어떤 경우에도 호출자에게 예외를 던지지 않음
"""

import asyncio
from typing import Any, Callable, Optional

from pydantic import ValidationError

from app.core.config import settings
from app.core.logging import get_logger
from app.core.utils.datetime import now_utc
from app.domains.behavior.events import (
    BaseEvent,
    BehaviorEvent,
    Click,
    ElementRef,
    HoverSample,
    PageView,
    ScrollDirection,
    ScrollSample,
    SearchQuery,
)
from app.domains.behavior.exceptions import RecorderPersistenceError
from app.domains.behavior.profile import (
    PROFILE_LIST_FIELDS,
    ProfileStore,
    UserProfile,
)

logger = get_logger(__name__)

CATEGORY_PATH_PREFIX = "/categories/"


class BehaviorRecorder:
    """세션 행동 기록기

    프로필 저장은 디바운스됩니다. 첫 변경 후 save_debounce_seconds가 지나면
    그 사이 누적된 변경을 한 번에 저장합니다. 실행 중인 이벤트 루프가 없거나
    지연이 0이면 즉시 저장합니다.
    """

    def __init__(
        self,
        store: ProfileStore,
        profile_key: str,
        max_entries: int = settings.profile_max_entries,
        trim_to: int = settings.profile_trim_to,
        save_debounce_seconds: float = settings.profile_save_debounce_seconds,
        clock: Callable[[], Any] = now_utc,
    ):
        """
        Args:
            store: 프로필 저장소
            profile_key: 프로필 키 (익명 세션 ID 또는 사용자 ID)
            max_entries: 목록 최대 길이 (초과 시 트리밍)
            trim_to: 트리밍 후 남길 최근 항목 수
            save_debounce_seconds: 저장 지연 (초)
            clock: 현재 시각 함수
        """
        self.store = store
        self.profile_key = profile_key
        self.max_entries = max_entries
        self.trim_to = trim_to
        self.save_debounce_seconds = save_debounce_seconds
        self._clock = clock

        self.session_log: list[BehaviorEvent] = []
        self.profile = self._load_profile()

        self._dirty = False
        self._save_handle: Optional[asyncio.TimerHandle] = None
        self.save_count = 0

    def _load_profile(self) -> UserProfile:
        try:
            stored = self.store.get(self.profile_key)
        except Exception as e:
            logger.warning(
                f"Failed to load profile '{self.profile_key}': {e}"
            )
            return UserProfile()
        return stored or UserProfile()

    # 세션

    def start_session(self) -> None:
        """새 세션 시작 (세션 수 증가, 마지막 방문 갱신)"""
        self.profile.session_count += 1
        self.profile.last_visit = self._clock()
        self._mark_dirty()

    # 기록

    def record_page_view(self, path: str) -> Optional[PageView]:
        event = self._append(PageView, path=path)
        if event is None:
            return None

        self.update_profile("frequent_paths", path)
        if path.startswith(CATEGORY_PATH_PREFIX):
            slug = path[len(CATEGORY_PATH_PREFIX):].split("/")[0]
            if slug:
                self.update_profile("preferred_categories", slug)
        return event

    def record_search_query(
        self, query: str, filters: Optional[dict[str, Any]] = None
    ) -> Optional[SearchQuery]:
        normalized = query.strip().lower() if isinstance(query, str) else ""
        if not normalized:
            return None

        event = self._append(
            SearchQuery, text=normalized, filters=filters or {}
        )
        if event is not None:
            self.update_profile("search_patterns", normalized)
        return event

    def record_click(
        self,
        href: str = "",
        label: str = "",
        element_id: Optional[str] = None,
    ) -> Optional[Click]:
        return self._append(
            Click, href=href or "", label=label or "", element_id=element_id
        )

    def record_hover_pattern(
        self, element: Optional[ElementRef]
    ) -> Optional[HoverSample]:
        if element is None:
            return None
        return self._append(
            HoverSample,
            tag=element.tag,
            href=element.href,
            business_id=element.business_id,
        )

    def record_scroll_pattern(
        self,
        offset: float,
        direction: ScrollDirection,
        velocity: float = 0.0,
    ) -> Optional[ScrollSample]:
        return self._append(
            ScrollSample,
            offset=offset,
            direction=direction,
            velocity=abs(velocity),
        )

    def _append(self, event_cls: type[BaseEvent], **fields: Any) -> Any:
        try:
            event = event_cls(occurred_at=self._clock(), **fields)
        except ValidationError as e:
            logger.warning(
                f"Dropped malformed {event_cls.__name__} event: "
                f"{e.error_count()} errors"
            )
            return None

        self.session_log.append(event)  # type: ignore[arg-type]
        return event

    # 조회

    def events_of(self, kind: str) -> list[BehaviorEvent]:
        return [event for event in self.session_log if event.kind == kind]

    def session_snapshot(
        self, limit_per_kind: int = 25
    ) -> dict[str, list[BehaviorEvent]]:
        """종류별 최근 이벤트 스냅샷 (종류마다 최대 limit_per_kind개)"""
        snapshot: dict[str, list[BehaviorEvent]] = {}
        for event in self.session_log:
            snapshot.setdefault(event.kind, []).append(event)
        return {
            kind: events[-limit_per_kind:]
            for kind, events in snapshot.items()
        }

    # 프로필

    def update_profile(self, key: str, value: str) -> None:
        """프로필 목록에 값 추가

        목록이 max_entries를 넘으면 최근 trim_to개만 남깁니다.
        매 추가마다 잘라내지 않도록 두 값 사이에 여유를 둡니다.
        """
        if key not in PROFILE_LIST_FIELDS:
            logger.warning(f"Ignored unknown profile field: {key}")
            return

        values: list[str] = getattr(self.profile, key)
        values.append(value)
        if len(values) > self.max_entries:
            del values[: len(values) - self.trim_to]

        self._mark_dirty()

    def _mark_dirty(self) -> None:
        self._dirty = True
        self._schedule_save()

    def _schedule_save(self) -> None:
        if self._save_handle is not None:
            return

        if self.save_debounce_seconds <= 0:
            self.flush()
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.flush()
            return

        self._save_handle = loop.call_later(
            self.save_debounce_seconds, self.flush
        )

    @property
    def has_pending_save(self) -> bool:
        return self._dirty

    def flush(self) -> bool:
        """대기 중인 프로필 변경을 즉시 저장

        Returns:
            저장 성공 여부 (저장할 변경이 없으면 True)
        """
        if self._save_handle is not None:
            self._save_handle.cancel()
            self._save_handle = None

        if not self._dirty:
            return True

        try:
            self._persist()
        except RecorderPersistenceError as e:
            # 다음 flush에서 다시 시도하도록 dirty 상태 유지
            logger.warning(str(e))
            return False

        self._dirty = False
        self.save_count += 1
        return True

    def _persist(self) -> None:
        try:
            snapshot = self.profile.model_copy(deep=True)
            self.store.set(self.profile_key, snapshot)
        except Exception as e:
            raise RecorderPersistenceError(self.profile_key, e) from e
