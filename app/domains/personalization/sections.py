"""홈페이지 섹션 생성기

선호도 분석 결과와 지역 힌트로 홈페이지 섹션 목록을 만듭니다.

섹션 생성기는 섹션 종류마다 하나씩 있으며 각각 독립적으로 실패할 수 있습니다.
실패하거나 항목이 없는 섹션은 생략되고, 아무 섹션도 남지 않으면
기본 히어로 섹션 하나를 돌려줍니다. generate_sections는 예외를 던지지 않습니다.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field

from app.core.config import settings
from app.core.logging import get_logger
from app.core.utils.datetime import days_ago, now_utc
from app.domains.personalization.analyzer import (
    get_top_preference,
    get_top_preferences,
)
from app.domains.personalization.exceptions import SectionQueryError
from app.domains.personalization.store import BusinessStore, Record
from app.domains.personalization.types import PreferenceAnalysis

logger = get_logger(__name__)

T = TypeVar("T")

HERO_CONFIDENCE_THRESHOLD = 0.3
RECOMMENDED_CONFIDENCE_THRESHOLD = 0.3
MIN_SPOTLIGHT_RATING = 4.0
MIN_RECOMMENDED_RATING = 4.0


class SectionType(str, Enum):
    HERO = "hero"
    FEATURED_BUSINESSES = "featured_businesses"
    CATEGORY_RECOMMENDATIONS = "category_recommendations"
    LOCAL_SPOTLIGHT = "local_spotlight"
    TRENDING = "trending"
    RECOMMENDED = "recommended"


class HeroCTA(BaseModel):
    model_config = ConfigDict(frozen=True)

    primary: str = "Start Exploring"
    secondary: str = "Browse Categories"


class HeroContent(BaseModel):
    """히어로 섹션 문구"""

    model_config = ConfigDict(frozen=True)

    title: str
    subtitle: str
    search_placeholder: str
    background_category: str
    cta: Optional[HeroCTA] = None


class SectionContent(BaseModel):
    """목록형 섹션 내용"""

    model_config = ConfigDict(frozen=True)

    layout: str
    items: list[dict[str, Any]] = Field(default_factory=list)


class SectionMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    based_on: list[str] = Field(default_factory=list)


class Section(BaseModel):
    """홈페이지 섹션 (생성 후 변경 불가)"""

    model_config = ConfigDict(frozen=True)

    type: SectionType
    priority: int = Field(..., description="낮을수록 먼저 표시")
    personalized: bool
    title: Optional[str] = None
    subtitle: Optional[str] = None
    content: Union[HeroContent, SectionContent]
    metadata: Optional[SectionMetadata] = None

    @property
    def has_content(self) -> bool:
        if isinstance(self.content, HeroContent):
            return True
        return len(self.content.items) > 0


DEFAULT_HERO_CONTENT = HeroContent(
    title="Discover Local Businesses",
    subtitle="Find the best places near you",
    search_placeholder="Search for businesses...",
    background_category="general",
)

# 업종별 히어로 문구 (title, subtitle, search_placeholder)
HERO_COPY: dict[str, tuple[str, str, str]] = {
    "restaurants": (
        "Discover Amazing Restaurants",
        "Find your next favorite dining spot",
        "Search for restaurants...",
    ),
    "retail": (
        "Shop Local Businesses",
        "Support local shops and boutiques",
        "Search for shops...",
    ),
    "services": (
        "Find Quality Services",
        "Professional services you can trust",
        "Search for services...",
    ),
}


def default_hero_section() -> Section:
    """모든 섹션이 실패했을 때 사용하는 비개인화 히어로"""
    return Section(
        type=SectionType.HERO,
        priority=1,
        personalized=False,
        content=DEFAULT_HERO_CONTENT,
    )


def format_business_type(business_type: str) -> str:
    return business_type[:1].upper() + business_type[1:]


class SectionGenerator:
    """홈페이지 섹션 생성기"""

    def __init__(
        self,
        store: BusinessStore,
        trending_window_days: int = settings.trending_window_days,
        clock: Callable[[], datetime] = now_utc,
    ):
        """
        Args:
            store: 업체/카테고리 조회 저장소
            trending_window_days: 트렌딩 집계 기간 (일)
            clock: 현재 시각 함수
        """
        self.store = store
        self.trending_window_days = trending_window_days
        self._clock = clock

    async def generate_sections(
        self, preferences: PreferenceAnalysis, location: Optional[str] = None
    ) -> list[Section]:
        """섹션 목록 생성 (priority 순)

        Args:
            preferences: 선호도 분석 결과
            location: 지역 힌트 (없으면 local_spotlight 생략)

        Returns:
            섹션 목록 (최소 1개)
        """
        builders: list[
            tuple[SectionType, Callable[[], Awaitable[Optional[Section]]]]
        ] = [
            (SectionType.HERO, lambda: self.hero(preferences, location)),
            (
                SectionType.FEATURED_BUSINESSES,
                lambda: self.featured_businesses(preferences, location),
            ),
            (
                SectionType.CATEGORY_RECOMMENDATIONS,
                lambda: self.category_recommendations(preferences),
            ),
            (
                SectionType.LOCAL_SPOTLIGHT,
                lambda: self.local_spotlight(preferences, location),
            ),
            (SectionType.TRENDING, lambda: self.trending(location)),
            (
                SectionType.RECOMMENDED,
                lambda: self.recommended(preferences, location),
            ),
        ]

        # 저장소가 단일 DB 세션을 쓰므로 순차 실행
        sections: list[Section] = []
        for section_type, build in builders:
            try:
                section = await build()
            except Exception as e:
                logger.warning(
                    f"Section '{section_type.value}' omitted: {e}"
                )
                continue
            if section is not None and section.has_content:
                sections.append(section)

        if not sections:
            logger.warning("All sections failed, using default hero")
            return [default_hero_section()]
        return sections

    async def _query(
        self, section_type: SectionType, query: Awaitable[T]
    ) -> T:
        try:
            return await query
        except Exception as e:
            raise SectionQueryError(section_type.value, e) from e

    async def hero(
        self, preferences: PreferenceAnalysis, location: Optional[str]
    ) -> Section:
        top_type = get_top_preference(preferences.business_types)
        preferred_location = location or get_top_preference(
            preferences.locations
        )

        title = DEFAULT_HERO_CONTENT.title
        subtitle = DEFAULT_HERO_CONTENT.subtitle
        placeholder = DEFAULT_HERO_CONTENT.search_placeholder
        background = DEFAULT_HERO_CONTENT.background_category

        if (
            top_type in HERO_COPY
            and preferences.confidence > HERO_CONFIDENCE_THRESHOLD
        ):
            title, subtitle, placeholder = HERO_COPY[top_type]
            background = top_type

        if preferred_location:
            subtitle = f"{subtitle} in {preferred_location}"

        return Section(
            type=SectionType.HERO,
            priority=1,
            personalized=True,
            content=HeroContent(
                title=title,
                subtitle=subtitle,
                search_placeholder=placeholder,
                background_category=background,
                cta=HeroCTA(),
            ),
            metadata=SectionMetadata(
                confidence=preferences.confidence,
                based_on=["searchHistory", "location"],
            ),
        )

    async def featured_businesses(
        self, preferences: PreferenceAnalysis, location: Optional[str]
    ) -> Optional[Section]:
        """선호 업종 추천 업체 (결과가 없거나 실패하면 일반 추천 업체)"""
        top_types = get_top_preferences(preferences.business_types, 3)

        if top_types:
            try:
                businesses = await self._query(
                    SectionType.FEATURED_BUSINESSES,
                    self.store.get_businesses_by_category(
                        top_types, location, 12, featured_only=True
                    ),
                )
            except SectionQueryError as e:
                logger.warning(f"{e}, falling back to general featured")
                businesses = []

            if businesses:
                return Section(
                    type=SectionType.FEATURED_BUSINESSES,
                    priority=2,
                    personalized=True,
                    title=f"Featured {format_business_type(top_types[0])}",
                    subtitle="Hand-picked businesses based on your interests",
                    content=SectionContent(layout="grid", items=businesses),
                    metadata=SectionMetadata(
                        confidence=preferences.confidence,
                        based_on=["businessTypePreferences", "ratings"],
                    ),
                )

        return await self.general_featured_businesses(location)

    async def general_featured_businesses(
        self, location: Optional[str]
    ) -> Optional[Section]:
        businesses = await self._query(
            SectionType.FEATURED_BUSINESSES,
            self.store.get_featured_businesses(location, 8),
        )
        if not businesses:
            return None

        return Section(
            type=SectionType.FEATURED_BUSINESSES,
            priority=2,
            personalized=False,
            title="Featured Businesses",
            subtitle="Highly rated local businesses",
            content=SectionContent(layout="grid", items=businesses),
            metadata=SectionMetadata(confidence=0.0, based_on=["ratings"]),
        )

    async def category_recommendations(
        self, preferences: PreferenceAnalysis
    ) -> Optional[Section]:
        slugs = get_top_preferences(preferences.business_types, 6)

        if slugs:
            try:
                categories = await self._query(
                    SectionType.CATEGORY_RECOMMENDATIONS,
                    self.store.get_categories_by_slug(slugs),
                )
            except SectionQueryError as e:
                logger.warning(f"{e}, falling back to popular categories")
                categories = []

            if categories:
                return Section(
                    type=SectionType.CATEGORY_RECOMMENDATIONS,
                    priority=3,
                    personalized=True,
                    title="Categories You Might Like",
                    subtitle="Based on your browsing history",
                    content=SectionContent(layout="cards", items=categories),
                    metadata=SectionMetadata(
                        confidence=preferences.confidence,
                        based_on=["searchHistory", "clickHistory"],
                    ),
                )

        popular = await self._query(
            SectionType.CATEGORY_RECOMMENDATIONS,
            self.store.get_popular_categories(6),
        )
        if not popular:
            return None

        return Section(
            type=SectionType.CATEGORY_RECOMMENDATIONS,
            priority=3,
            personalized=False,
            title="Popular Categories",
            subtitle="Explore what locals love",
            content=SectionContent(layout="cards", items=popular),
            metadata=SectionMetadata(confidence=0.0, based_on=["popularity"]),
        )

    async def local_spotlight(
        self, preferences: PreferenceAnalysis, location: Optional[str]
    ) -> Optional[Section]:
        if not location:
            return None

        businesses = await self._query(
            SectionType.LOCAL_SPOTLIGHT,
            self.store.get_local_businesses(location, MIN_SPOTLIGHT_RATING, 8),
        )
        if not businesses:
            return None

        return Section(
            type=SectionType.LOCAL_SPOTLIGHT,
            priority=4,
            personalized=True,
            title=f"Popular in {location}",
            subtitle="Highly rated businesses in your area",
            content=SectionContent(layout="carousel", items=businesses),
            metadata=SectionMetadata(
                confidence=0.8, based_on=["location", "ratings"]
            ),
        )

    async def trending(self, location: Optional[str]) -> Optional[Section]:
        since = days_ago(self.trending_window_days, self._clock())
        businesses: list[Record] = await self._query(
            SectionType.TRENDING,
            self.store.get_trending_businesses(location, since, 6),
        )
        if not businesses:
            return None

        return Section(
            type=SectionType.TRENDING,
            priority=5,
            personalized=False,
            title="Trending Now",
            subtitle="Recently popular businesses",
            content=SectionContent(layout="list", items=businesses),
            metadata=SectionMetadata(
                confidence=0.6, based_on=["recentActivity", "popularity"]
            ),
        )

    async def recommended(
        self, preferences: PreferenceAnalysis, location: Optional[str]
    ) -> Optional[Section]:
        top_types = get_top_preferences(preferences.business_types, 2)
        if (
            not top_types
            or preferences.confidence < RECOMMENDED_CONFIDENCE_THRESHOLD
        ):
            return None

        businesses = await self._query(
            SectionType.RECOMMENDED,
            self.store.get_businesses_by_category(
                top_types, location, 8, min_rating=MIN_RECOMMENDED_RATING
            ),
        )
        if not businesses:
            return None

        return Section(
            type=SectionType.RECOMMENDED,
            priority=6,
            personalized=True,
            title="Recommended for You",
            subtitle="Based on your preferences and activity",
            content=SectionContent(layout="grid", items=businesses),
            metadata=SectionMetadata(
                confidence=preferences.confidence,
                based_on=["personalizedRecommendations"],
            ),
        )
