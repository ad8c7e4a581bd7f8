"""Behavior 도메인 리포지토리

상호작용 기록, 행동 패턴, 명시적 선호도에 대한 데이터 접근 계층입니다.
"""

from typing import Any, Optional, Sequence, cast

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.utils.datetime import now_utc
from app.domains.behavior.models import (
    UserBehaviorPattern,
    UserInteraction,
    UserPreference,
)


class BehaviorRepository:
    """행동 데이터 리포지토리"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_recent_interactions(
        self, session_id: str, limit: int = 50
    ) -> Sequence[UserInteraction]:
        """세션의 최근 상호작용 조회 (최신순)

        Args:
            session_id: 세션 ID
            limit: 조회할 최대 개수

        Returns:
            상호작용 목록
        """
        query = (
            select(UserInteraction)
            .where(UserInteraction.session_id == session_id)
            .order_by(UserInteraction.created_at.desc())
            .limit(limit)
        )
        result = await self.session.execute(query)
        return cast(Sequence[UserInteraction], result.scalars().all())

    async def count_interactions(self, session_id: str) -> int:
        query = select(func.count(UserInteraction.id)).where(
            UserInteraction.session_id == session_id
        )
        result = await self.session.execute(query)
        return int(result.scalar_one())

    async def add_interaction(
        self,
        session_id: str,
        interaction_type: str,
        interaction_data: dict[str, Any],
        user_id: Optional[str] = None,
    ) -> UserInteraction:
        """상호작용 기록 추가"""
        interaction = UserInteraction(
            session_id=session_id,
            user_id=user_id,
            interaction_type=interaction_type,
            interaction_data=interaction_data,
        )
        self.session.add(interaction)
        await self.session.flush()
        return interaction

    async def get_latest_pattern(
        self, session_id: str
    ) -> Optional[UserBehaviorPattern]:
        query = select(UserBehaviorPattern).where(
            UserBehaviorPattern.session_id == session_id
        )
        result = await self.session.execute(query)
        return cast(Optional[UserBehaviorPattern], result.scalar_one_or_none())

    async def upsert_pattern(
        self,
        session_id: str,
        patterns: dict[str, Any],
        interaction_count: int,
        user_id: Optional[str] = None,
    ) -> None:
        """세션 행동 패턴 Upsert"""
        stmt = insert(UserBehaviorPattern).values(
            session_id=session_id,
            user_id=user_id,
            patterns=patterns,
            interaction_count=interaction_count,
            updated_at=now_utc(),
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[UserBehaviorPattern.session_id],
            set_={
                "patterns": stmt.excluded.patterns,
                "interaction_count": stmt.excluded.interaction_count,
                "user_id": func.coalesce(
                    stmt.excluded.user_id, UserBehaviorPattern.user_id
                ),
                "updated_at": stmt.excluded.updated_at,
            },
        )
        await self.session.execute(stmt)

    async def get_user_preferences(
        self, user_id: str
    ) -> Sequence[UserPreference]:
        query = (
            select(UserPreference)
            .where(UserPreference.user_id == user_id)
            .order_by(UserPreference.id)
        )
        result = await self.session.execute(query)
        return cast(Sequence[UserPreference], result.scalars().all())

    async def replace_user_preferences(
        self, user_id: str, preferences: list[tuple[str, str, float]]
    ) -> int:
        """사용자 선호도 전체 교체

        Args:
            user_id: 사용자 ID
            preferences: (preference_type, preference_value, weight) 목록

        Returns:
            저장된 선호도 수
        """
        await self.session.execute(
            delete(UserPreference).where(UserPreference.user_id == user_id)
        )
        self.session.add_all(
            [
                UserPreference(
                    user_id=user_id,
                    preference_type=preference_type,
                    preference_value=preference_value,
                    weight=weight,
                )
                for preference_type, preference_value, weight in preferences
            ]
        )
        await self.session.flush()
        return len(preferences)
