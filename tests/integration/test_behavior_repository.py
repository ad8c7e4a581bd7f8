"""행동 데이터 리포지토리 통합 테스트 (PostgreSQL)"""

from datetime import timedelta

import pytest

from app.core.utils.datetime import now_utc
from app.domains.behavior.models import UserInteraction
from app.domains.behavior.repository import BehaviorRepository

pytestmark = pytest.mark.integration


class TestInteractions:
    """상호작용 기록"""

    @pytest.mark.asyncio
    async def test_add_and_count(self, db_session):
        """세션별 개수 집계"""
        # Given
        repository = BehaviorRepository(db_session)
        await repository.add_interaction(
            "s-1", "search", {"query": "pizza"}, user_id="u-1"
        )
        await repository.add_interaction("s-1", "page_view", {"path": "/"})
        await repository.add_interaction("s-2", "search", {"query": "tacos"})

        # When / Then
        assert await repository.count_interactions("s-1") == 2
        assert await repository.count_interactions("s-2") == 1
        assert await repository.count_interactions("s-3") == 0

    @pytest.mark.asyncio
    async def test_recent_interactions_newest_first(self, db_session):
        """최신순 정렬과 개수 제한"""
        # Given
        base = now_utc()
        db_session.add_all(
            [
                UserInteraction(
                    session_id="s-1",
                    interaction_type="search",
                    interaction_data={"query": f"q{i}"},
                    created_at=base - timedelta(minutes=10 - i),
                )
                for i in range(5)
            ]
        )
        await db_session.flush()
        repository = BehaviorRepository(db_session)

        # When
        recent = await repository.get_recent_interactions("s-1", limit=3)

        # Then
        assert [i.interaction_data["query"] for i in recent] == [
            "q4",
            "q3",
            "q2",
        ]


class TestPatterns:
    """행동 패턴 Upsert"""

    @pytest.mark.asyncio
    async def test_upsert_keeps_single_row_per_session(self, db_session):
        """같은 세션은 한 행만 유지, 사용자 ID는 보존"""
        # Given
        repository = BehaviorRepository(db_session)
        await repository.upsert_pattern(
            "s-1", {"businessTypes": ["restaurants"]}, 5, user_id="u-1"
        )

        # When
        await repository.upsert_pattern(
            "s-1", {"businessTypes": ["cafes"]}, 6
        )
        pattern = await repository.get_latest_pattern("s-1")

        # Then
        assert pattern is not None
        assert pattern.patterns == {"businessTypes": ["cafes"]}
        assert pattern.interaction_count == 6
        assert pattern.user_id == "u-1"

    @pytest.mark.asyncio
    async def test_missing_pattern(self, db_session):
        repository = BehaviorRepository(db_session)

        assert await repository.get_latest_pattern("unknown") is None


class TestPreferences:
    """명시적 선호도"""

    @pytest.mark.asyncio
    async def test_replace_user_preferences(self, db_session):
        """기존 선호도를 모두 교체"""
        # Given
        repository = BehaviorRepository(db_session)
        await repository.replace_user_preferences(
            "u-1", [("category", "cafes", 1.0)]
        )

        # When
        saved = await repository.replace_user_preferences(
            "u-1",
            [("category", "restaurants", 2.0), ("location", "Austin", 1.0)],
        )
        preferences = await repository.get_user_preferences("u-1")

        # Then
        assert saved == 2
        assert [
            (p.preference_type, p.preference_value, p.weight)
            for p in preferences
        ] == [("category", "restaurants", 2.0), ("location", "Austin", 1.0)]
