"""Personalization 도메인 리포지토리

업체 디렉터리 테이블에 대한 읽기 전용 데이터 접근 계층입니다.
게시(published) 상태 업체만 조회합니다.
"""

from datetime import datetime
from typing import Any, Optional, Sequence

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.domains.personalization.models import (
    Business,
    BusinessCategory,
    BusinessStatus,
    Category,
)
from app.domains.personalization.store import Record


def business_to_record(business: Business) -> Record:
    return {
        "id": business.id,
        "name": business.name,
        "description": business.description,
        "rating": business.rating,
        "review_count": business.review_count,
        "primary_image": business.primary_image,
        "address": business.address,
        "phone": business.phone,
        "website": business.website,
        "categories": [
            {"name": category.name, "slug": category.slug}
            for category in business.categories
        ],
    }


def category_to_record(category: Category) -> Record:
    return {
        "id": category.id,
        "name": category.name,
        "slug": category.slug,
        "description": category.description,
        "icon": category.icon,
        "business_count": category.business_count,
    }


class BusinessRepository:
    """업체/카테고리 리포지토리 (BusinessStore 구현)"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _published(self) -> Select[tuple[Business]]:
        return select(Business).where(
            Business.status == BusinessStatus.PUBLISHED.value
        )

    def _in_location(
        self, query: Select[tuple[Business]], location: Optional[str]
    ) -> Select[tuple[Business]]:
        if location:
            query = query.where(Business.address.ilike(f"%{location}%"))
        return query

    async def _fetch_businesses(
        self, query: Select[tuple[Business]]
    ) -> list[Record]:
        result = await self.session.execute(query)
        businesses: Sequence[Business] = result.scalars().unique().all()
        return [business_to_record(b) for b in businesses]

    async def get_businesses_by_category(
        self,
        categories: list[str],
        location: Optional[str],
        limit: int,
        featured_only: bool = False,
        min_rating: Optional[float] = None,
    ) -> list[Record]:
        """카테고리 slug에 속한 업체 조회 (평점순)

        Args:
            categories: 카테고리 slug 목록
            location: 주소 부분 일치 필터
            limit: 최대 개수
            featured_only: 추천 업체만 조회
            min_rating: 최소 평점
        """
        if not categories:
            return []

        in_categories = (
            select(BusinessCategory.business_id)
            .join(Category, Category.id == BusinessCategory.category_id)
            .where(Category.slug.in_(categories))
        )
        query = self._published().where(Business.id.in_(in_categories))
        if featured_only:
            query = query.where(Business.featured.is_(True))
        if min_rating is not None:
            query = query.where(Business.rating >= min_rating)
        query = self._in_location(query, location)
        query = query.order_by(Business.rating.desc(), Business.id).limit(limit)
        return await self._fetch_businesses(query)

    async def get_featured_businesses(
        self, location: Optional[str], limit: int
    ) -> list[Record]:
        """추천 업체 조회 (카테고리 무관, 평점순)"""
        query = self._published().where(Business.featured.is_(True))
        query = self._in_location(query, location)
        query = query.order_by(Business.rating.desc(), Business.id).limit(limit)
        return await self._fetch_businesses(query)

    async def get_local_businesses(
        self, location: str, min_rating: float, limit: int
    ) -> list[Record]:
        """지역 인기 업체 조회 (리뷰 수순)"""
        query = self._published().where(Business.rating >= min_rating)
        query = self._in_location(query, location)
        query = query.order_by(
            Business.review_count.desc(), Business.id
        ).limit(limit)
        return await self._fetch_businesses(query)

    async def get_trending_businesses(
        self, location: Optional[str], since: datetime, limit: int
    ) -> list[Record]:
        """최근 등록된 업체 중 리뷰가 많은 순으로 조회"""
        query = self._published().where(Business.created_at >= since)
        query = self._in_location(query, location)
        query = query.order_by(
            Business.review_count.desc(), Business.id
        ).limit(limit)
        return await self._fetch_businesses(query)

    async def get_categories_by_slug(self, slugs: list[str]) -> list[Record]:
        if not slugs:
            return []
        query = (
            select(Category)
            .where(Category.slug.in_(slugs))
            .order_by(Category.business_count.desc(), Category.id)
        )
        result = await self.session.execute(query)
        return [category_to_record(c) for c in result.scalars().all()]

    async def get_popular_categories(self, limit: int) -> list[Record]:
        query = (
            select(Category)
            .order_by(Category.business_count.desc(), Category.id)
            .limit(limit)
        )
        result = await self.session.execute(query)
        return [category_to_record(c) for c in result.scalars().all()]

    async def add_business(
        self, business: Business, category_slugs: Optional[list[str]] = None
    ) -> Business:
        """업체 등록 (시드/테스트 데이터용)"""
        if category_slugs:
            result = await self.session.execute(
                select(Category).where(Category.slug.in_(category_slugs))
            )
            business.categories = list(result.scalars().all())
        self.session.add(business)
        await self.session.flush()
        return business

    async def add_category(self, **fields: Any) -> Category:
        category = Category(**fields)
        self.session.add(category)
        await self.session.flush()
        return category
