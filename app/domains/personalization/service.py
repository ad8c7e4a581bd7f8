"""홈페이지 개인화 서비스

행동 데이터 조회 → 선호도 분석 → 섹션 생성 → A/B 변형 적용 순서로
개인화 홈페이지를 만들고, (사용자|세션, 지역) 단위로 짧게 캐시합니다.

캐시 미스가 동시에 여러 번 발생해도 같은 키의 생성 작업은 하나만 실행됩니다.
"""

from functools import lru_cache
from typing import AsyncContextManager, Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.cache import LRUCache
from app.core.config import settings
from app.core.logging import get_logger
from app.core.middlewares.context import get_log_context
from app.core.utils.singleflight import SingleFlight
from app.core.utils.time import measure_time
from app.domains.behavior.events import BehaviorEvent, event_from_interaction
from app.domains.behavior.models import UserInteraction
from app.domains.behavior.repository import BehaviorRepository
from app.domains.personalization.analyzer import (
    PreferenceAnalyzer,
    get_top_preferences,
)
from app.domains.personalization.exceptions import (
    InteractionTypeRequiredException,
    InvalidPreferencesException,
    SessionIdRequiredException,
)
from app.domains.personalization.experiments import (
    ANONYMOUS_IDENTIFIER,
    apply_variant,
    select_variant,
)
from app.domains.personalization.repository import BusinessRepository
from app.domains.personalization.schemas import (
    Homepage,
    HomepageMetadata,
    HomepagePerformance,
    PreferenceItem,
    TrackInteractionRequest,
    TrackInteractionResponse,
)
from app.domains.personalization.sections import (
    SectionGenerator,
    default_hero_section,
)
from app.domains.personalization.types import (
    BehaviorData,
    ExplicitPreference,
    StoredPatterns,
)

logger = get_logger(__name__)

SessionFactory = Callable[[], AsyncContextManager[AsyncSession]]

RECENT_INTERACTION_LIMIT = 50
PATTERN_ANALYSIS_THRESHOLD = 5
PREFERENCE_TYPES = ("category", "location")


@lru_cache
def get_homepage_cache() -> LRUCache[Homepage]:
    """프로세스 공용 홈페이지 캐시 (캐시됨)"""
    return LRUCache(
        ttl_seconds=settings.homepage_cache_ttl_seconds,
        max_entries=settings.homepage_cache_max_entries,
        name="homepage",
    )


@lru_cache
def get_homepage_flight() -> SingleFlight[Homepage]:
    return SingleFlight()


def homepage_cache_key(
    user_id: Optional[str], session_id: str, location: Optional[str]
) -> str:
    return f"homepage_{user_id or session_id}_{location or ''}"


def default_homepage(
    session_id: Optional[str] = None,
    user_id: Optional[str] = None,
    location: Optional[str] = None,
    generation_time_ms: float = 0.0,
) -> Homepage:
    """개인화에 실패했을 때 사용하는 기본 홈페이지"""
    return Homepage(
        sections=[default_hero_section()],
        metadata=HomepageMetadata(
            personalization_score=0.0,
            user_id=user_id or ANONYMOUS_IDENTIFIER,
            session_id=session_id,
            location=location,
            fallback=True,
        ),
        performance=HomepagePerformance(
            generation_time_ms=generation_time_ms
        ),
    )


def interactions_to_events(
    interactions: list[UserInteraction],
) -> list[BehaviorEvent]:
    events: list[BehaviorEvent] = []
    for interaction in interactions:
        try:
            event = event_from_interaction(
                interaction.interaction_type,
                interaction.interaction_data,
                occurred_at=interaction.created_at,
            )
        except ValueError as e:
            logger.debug(
                f"Skipped malformed interaction {interaction.id}: {e}"
            )
            continue
        if event is not None:
            events.append(event)
    return events


class HomepagePersonalizationService:
    """홈페이지 개인화 서비스"""

    def __init__(
        self,
        session: AsyncSession,
        cache: Optional[LRUCache[Homepage]] = None,
        flight: Optional[SingleFlight[Homepage]] = None,
        analyzer: Optional[PreferenceAnalyzer] = None,
        generator: Optional[SectionGenerator] = None,
        session_factory: Optional[SessionFactory] = None,
    ):
        """
        Args:
            session: 요청 세션 (기록, 선호도 갱신용)
            cache: 홈페이지 캐시 (None이면 프로세스 공용 캐시)
            flight: 생성 작업 공유 가드 (None이면 프로세스 공용)
            analyzer: 선호도 분석기
            generator: 섹션 생성기 (None이면 업체 리포지토리 기반)
            session_factory: 홈페이지 생성 전용 세션 팩토리
                (None이면 요청 세션으로 생성)
        """
        self.session = session
        self.session_factory = session_factory
        self._generator_override = generator
        self.behavior_repository = BehaviorRepository(session)
        self.business_repository = BusinessRepository(session)
        self.cache = cache if cache is not None else get_homepage_cache()
        self.flight = flight if flight is not None else get_homepage_flight()
        self.analyzer = analyzer or PreferenceAnalyzer()
        self.generator = generator or SectionGenerator(
            self.business_repository
        )

    async def generate_homepage(
        self,
        session_id: Optional[str],
        user_id: Optional[str] = None,
        location: Optional[str] = None,
        force_refresh: bool = False,
    ) -> Homepage:
        """개인화 홈페이지 조회 (캐시 우선)

        Args:
            session_id: 세션 ID (필수)
            user_id: 사용자 ID
            location: 지역 힌트
            force_refresh: 캐시를 무시하고 다시 생성

        Returns:
            홈페이지 (생성 실패 시 fallback=True인 기본 홈페이지)

        Raises:
            SessionIdRequiredException: 세션 ID가 없는 경우
        """
        if not session_id:
            raise SessionIdRequiredException()

        key = homepage_cache_key(user_id, session_id, location)

        if not force_refresh:
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug(f"Homepage cache hit: {key}")
                return cached.model_copy(
                    update={
                        "performance": HomepagePerformance(
                            generation_time_ms=0.0, cache_status="hit"
                        )
                    }
                )

        with measure_time() as timer:
            try:
                return await self.flight.do(
                    key,
                    lambda: self._build_homepage(
                        key, session_id, user_id, location
                    ),
                )
            except Exception as e:
                logger.error(
                    f"Failed to generate personalized homepage: {e}",
                    extra=get_log_context(session_id=session_id),
                )
        return default_homepage(
            session_id, user_id, location, timer.elapsed_ms
        )

    async def _build_homepage(
        self,
        key: str,
        session_id: str,
        user_id: Optional[str],
        location: Optional[str],
    ) -> Homepage:
        """공유 생성 작업

        여러 요청이 같은 작업을 기다리므로 session_factory가 있으면
        처음 요청한 호출자의 세션 대신 작업 전용 세션으로 조회합니다.
        """
        if self.session_factory is None:
            return await self._compose_homepage(
                key,
                session_id,
                user_id,
                location,
                self.behavior_repository,
                self.generator,
            )

        async with self.session_factory() as session:
            generator = self._generator_override or SectionGenerator(
                BusinessRepository(session)
            )
            return await self._compose_homepage(
                key,
                session_id,
                user_id,
                location,
                BehaviorRepository(session),
                generator,
            )

    async def _compose_homepage(
        self,
        key: str,
        session_id: str,
        user_id: Optional[str],
        location: Optional[str],
        repository: BehaviorRepository,
        generator: SectionGenerator,
    ) -> Homepage:
        with measure_time() as timer:
            data = await self.load_behavior_data(
                session_id, user_id, repository
            )
            preferences = self.analyzer.analyze(data)
            sections = await generator.generate_sections(
                preferences, location
            )
            variant = select_variant(user_id or session_id)
            sections = apply_variant(sections, variant)

        homepage = Homepage(
            sections=sections,
            metadata=HomepageMetadata(
                personalization_score=preferences.confidence,
                user_id=user_id or ANONYMOUS_IDENTIFIER,
                session_id=session_id,
                location=location,
                variant=variant.value,
            ),
            performance=HomepagePerformance(
                generation_time_ms=timer.elapsed_ms, cache_status="miss"
            ),
        )
        self.cache.set(key, homepage)

        logger.info(
            f"Personalized homepage generated in {timer.elapsed_ms:.2f}ms "
            f"(sections={len(sections)}, "
            f"score={preferences.confidence:.2f}, variant={variant.value})",
            extra=get_log_context(session_id=session_id, cache_key=key),
        )
        return homepage

    async def load_behavior_data(
        self,
        session_id: str,
        user_id: Optional[str] = None,
        repository: Optional[BehaviorRepository] = None,
    ) -> BehaviorData:
        """세션 상호작용, 저장 패턴, 명시적 선호도 조회

        조회에 실패하면 빈 행동 데이터를 돌려줍니다.
        """
        repository = repository or self.behavior_repository
        try:
            interactions = await repository.get_recent_interactions(
                session_id, RECENT_INTERACTION_LIMIT
            )
            pattern = await repository.get_latest_pattern(session_id)
            preferences = (
                await repository.get_user_preferences(user_id)
                if user_id
                else []
            )
        except SQLAlchemyError as e:
            logger.error(f"Error fetching user behavior data: {e}")
            return BehaviorData()

        return BehaviorData(
            events=interactions_to_events(list(interactions)),
            patterns=StoredPatterns.from_dict(
                pattern.patterns if pattern else None
            ),
            preferences=[
                ExplicitPreference(
                    preference_type=p.preference_type,
                    value=p.preference_value,
                    weight=p.weight,
                )
                for p in preferences
            ],
        )

    async def track_interaction(
        self, request: TrackInteractionRequest
    ) -> TrackInteractionResponse:
        """상호작용 기록

        세션의 상호작용이 일정 수 이상 쌓이면 행동 패턴을 다시 계산합니다.

        Raises:
            SessionIdRequiredException: 세션 ID가 없는 경우
            InteractionTypeRequiredException: 상호작용 종류가 없는 경우
        """
        if not request.session_id:
            raise SessionIdRequiredException()
        if not request.interaction_type:
            raise InteractionTypeRequiredException()

        await self.behavior_repository.add_interaction(
            session_id=request.session_id,
            interaction_type=request.interaction_type,
            interaction_data=request.interaction_data,
            user_id=request.user_id,
        )
        count = await self.behavior_repository.count_interactions(
            request.session_id
        )

        patterns_updated = False
        if count >= PATTERN_ANALYSIS_THRESHOLD:
            patterns_updated = await self.refresh_patterns(
                request.session_id, request.user_id, count
            )

        return TrackInteractionResponse(
            interaction_count=count, patterns_updated=patterns_updated
        )

    async def refresh_patterns(
        self, session_id: str, user_id: Optional[str], interaction_count: int
    ) -> bool:
        """최근 상호작용으로 세션 행동 패턴 재계산

        Returns:
            저장 성공 여부 (실패는 로그만 남김)
        """
        try:
            async with self.session.begin_nested():
                interactions = (
                    await self.behavior_repository.get_recent_interactions(
                        session_id, RECENT_INTERACTION_LIMIT
                    )
                )
                analysis = self.analyzer.analyze(
                    BehaviorData(
                        events=interactions_to_events(list(interactions))
                    )
                )
                patterns = StoredPatterns(
                    business_types=get_top_preferences(
                        analysis.business_types, 3
                    ),
                    locations=get_top_preferences(analysis.locations, 3),
                    price_ranges=get_top_preferences(analysis.price_ranges, 2),
                )
                await self.behavior_repository.upsert_pattern(
                    session_id=session_id,
                    patterns=patterns.to_dict(),
                    interaction_count=interaction_count,
                    user_id=user_id,
                )
        except SQLAlchemyError as e:
            logger.error(f"Failed to analyze behavior patterns: {e}")
            return False

        self.invalidate(session_id=session_id)
        return True

    async def update_preferences(
        self, user_id: Optional[str], items: list[PreferenceItem]
    ) -> tuple[int, int]:
        """명시적 선호도 교체 후 사용자 홈페이지 캐시 무효화

        Returns:
            (저장된 선호도 수, 무효화된 캐시 항목 수)

        Raises:
            InvalidPreferencesException: 사용자 ID가 없거나 종류가 잘못된 경우
        """
        if not user_id:
            raise InvalidPreferencesException("user_id is required")

        invalid = [i.type for i in items if i.type not in PREFERENCE_TYPES]
        if invalid:
            raise InvalidPreferencesException(
                f"unsupported preference types: {', '.join(invalid)}",
                user_id=user_id,
            )

        saved = await self.behavior_repository.replace_user_preferences(
            user_id, [(i.type, i.value, i.weight) for i in items]
        )
        cleared = self.invalidate(user_id=user_id)

        logger.info(
            f"User preferences updated: user={user_id}, count={saved}, "
            f"cache_cleared={cleared}",
            extra=get_log_context(user_id=user_id),
        )
        return saved, cleared

    def invalidate(
        self, user_id: Optional[str] = None, session_id: Optional[str] = None
    ) -> int:
        """사용자 또는 세션의 캐시된 홈페이지 제거

        Returns:
            제거된 항목 수
        """
        if user_id:
            return self.cache.delete_where(
                lambda _, homepage: homepage.metadata.user_id == user_id
            )
        if session_id:
            return self.cache.delete_where(
                lambda _, homepage: homepage.metadata.session_id == session_id
            )
        return 0

    def clear_cache(
        self,
        user_id: Optional[str] = None,
        session_id: Optional[str] = None,
        clear_all: bool = False,
    ) -> tuple[str, int]:
        """캐시 정리

        사용자, 세션 순으로 범위를 정하고 둘 다 없으면 만료 항목만
        정리합니다 (clear_all이면 전체 삭제).

        Returns:
            (범위, 제거된 항목 수)
        """
        if user_id:
            scope, cleared = "user", self.invalidate(user_id=user_id)
        elif session_id:
            scope, cleared = "session", self.invalidate(session_id=session_id)
        elif clear_all:
            scope, cleared = "all", len(self.cache)
            self.cache.clear()
        else:
            scope, cleared = "expired", self.cache.purge_expired()

        logger.info(f"Personalization cache cleared: scope={scope}, count={cleared}")
        return scope, cleared
