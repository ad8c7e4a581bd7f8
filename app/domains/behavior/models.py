"""Behavior 도메인 모델 정의

서버 측에 저장되는 사용자 상호작용, 행동 패턴, 명시적 선호도 테이블입니다.
사용자 ID는 인증 서비스에서 발급된 문자열 ID를 그대로 저장합니다.
"""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import (
    BigInteger,
    DateTime,
    Float,
    Integer,
    String,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class UserInteraction(Base):
    """사용자 상호작용 (검색, 클릭, 페이지 조회 등)"""

    __tablename__ = "user_interactions"

    id: Mapped[int] = mapped_column(
        BigInteger, primary_key=True, autoincrement=True
    )
    session_id: Mapped[str] = mapped_column(
        String(100), index=True, nullable=False, comment="익명 세션 ID"
    )
    user_id: Mapped[Optional[str]] = mapped_column(
        String(64), index=True, nullable=True, comment="인증 사용자 ID"
    )
    interaction_type: Mapped[str] = mapped_column(
        String(50), nullable=False, comment="search, click, page_view 등"
    )
    interaction_data: Mapped[dict[str, Any]] = mapped_column(
        JSONB, nullable=False, default=dict, comment="상호작용 상세 데이터"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        comment="생성 일시",
    )

    def __repr__(self) -> str:
        return (
            f"<UserInteraction(id={self.id}, session_id={self.session_id}, "
            f"type={self.interaction_type})>"
        )


class UserBehaviorPattern(Base):
    """세션별 누적 행동 패턴

    patterns 예시::

        {"businessTypes": ["restaurants"], "locations": ["Austin"],
         "priceRanges": ["budget"]}
    """

    __tablename__ = "user_behavior_patterns"

    id: Mapped[int] = mapped_column(
        BigInteger, primary_key=True, autoincrement=True
    )
    session_id: Mapped[str] = mapped_column(
        String(100), unique=True, nullable=False, comment="익명 세션 ID"
    )
    user_id: Mapped[Optional[str]] = mapped_column(
        String(64), nullable=True, comment="인증 사용자 ID"
    )
    patterns: Mapped[dict[str, Any]] = mapped_column(
        JSONB, nullable=False, default=dict, comment="상위 선호 패턴"
    )
    interaction_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, comment="분석에 사용된 상호작용 수"
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
        comment="수정 일시",
    )


class UserPreference(Base):
    """사용자가 직접 설정한 선호도"""

    __tablename__ = "user_preferences"

    id: Mapped[int] = mapped_column(
        BigInteger, primary_key=True, autoincrement=True
    )
    user_id: Mapped[str] = mapped_column(
        String(64), index=True, nullable=False, comment="인증 사용자 ID"
    )
    preference_type: Mapped[str] = mapped_column(
        String(50), nullable=False, comment="category 또는 location"
    )
    preference_value: Mapped[str] = mapped_column(
        String(255), nullable=False, comment="선호 값 (카테고리 slug, 지역명)"
    )
    weight: Mapped[float] = mapped_column(
        Float, nullable=False, default=1.0, comment="가중치"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        comment="생성 일시",
    )
