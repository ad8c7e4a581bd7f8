"""Personalization 도메인 모델 정의

홈페이지 섹션이 조회하는 업체/카테고리 디렉터리 테이블입니다.
업체 데이터는 디렉터리 관리 서비스가 소유하며 이 서비스는 읽기만 합니다.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base


class BusinessStatus(str, Enum):
    """업체 게시 상태"""

    DRAFT = "draft"
    PUBLISHED = "published"
    SUSPENDED = "suspended"


class BusinessCategory(Base):
    """업체-카테고리 연결 테이블"""

    __tablename__ = "business_categories"

    business_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("businesses.id", ondelete="CASCADE"),
        primary_key=True,
    )
    category_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("categories.id", ondelete="CASCADE"),
        primary_key=True,
    )


class Category(Base):
    """업종 카테고리"""

    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True, comment="카테고리 ID"
    )
    name: Mapped[str] = mapped_column(
        String(100), nullable=False, comment="카테고리 이름"
    )
    slug: Mapped[str] = mapped_column(
        String(100), unique=True, nullable=False, comment="URL slug"
    )
    description: Mapped[Optional[str]] = mapped_column(
        Text, nullable=True, comment="설명"
    )
    icon: Mapped[Optional[str]] = mapped_column(
        String(100), nullable=True, comment="아이콘 이름"
    )
    business_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, comment="소속 업체 수"
    )

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, slug={self.slug})>"


class Business(Base):
    """로컬 업체"""

    __tablename__ = "businesses"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True, comment="업체 ID"
    )
    name: Mapped[str] = mapped_column(
        String(255), nullable=False, comment="업체 이름"
    )
    description: Mapped[Optional[str]] = mapped_column(
        Text, nullable=True, comment="설명"
    )
    rating: Mapped[float] = mapped_column(
        Float, nullable=False, default=0.0, comment="평균 평점 (0~5)"
    )
    review_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, comment="리뷰 수"
    )
    primary_image: Mapped[Optional[str]] = mapped_column(
        String(2048), nullable=True, comment="대표 이미지 URL"
    )
    address: Mapped[Optional[str]] = mapped_column(
        String(500), nullable=True, comment="주소"
    )
    phone: Mapped[Optional[str]] = mapped_column(
        String(50), nullable=True, comment="전화번호"
    )
    website: Mapped[Optional[str]] = mapped_column(
        String(2048), nullable=True, comment="웹사이트"
    )
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=BusinessStatus.PUBLISHED.value,
        comment="게시 상태",
    )
    featured: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, comment="추천 업체 여부"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        comment="등록 일시",
    )

    categories: Mapped[list[Category]] = relationship(
        secondary="business_categories", lazy="selectin"
    )

    __table_args__ = (
        Index("idx_businesses_status_rating", "status", "rating"),
        Index("idx_businesses_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Business(id={self.id}, name={self.name})>"
