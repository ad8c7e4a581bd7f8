"""Personalization 도메인 라우터

개인화 홈페이지 조회, 상호작용 추적, 선호도 갱신, 캐시 관리 엔드포인트입니다.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.database import get_db, get_session_factory
from app.core.dependencies import verify_internal_api_key
from app.core.schemas import APIResponse, create_response
from app.core.utils.time import measure_time
from app.domains.personalization.schemas import (
    ClearCacheResponse,
    Homepage,
    TrackInteractionRequest,
    TrackInteractionResponse,
    UpdatePreferencesRequest,
    UpdatePreferencesResponse,
)
from app.domains.personalization.service import HomepagePersonalizationService

router = APIRouter()

HOMEPAGE_CACHE_CONTROL = "public, max-age=300, stale-while-revalidate=600"


def get_personalization_service(
    session: AsyncSession = Depends(get_db),
    session_factory: async_sessionmaker[AsyncSession] = Depends(
        get_session_factory
    ),
) -> HomepagePersonalizationService:
    """HomepagePersonalizationService 의존성"""
    return HomepagePersonalizationService(
        session, session_factory=session_factory
    )


@router.get("", response_model=APIResponse[Homepage])
async def get_personalized_homepage(
    response: Response,
    session_id: Optional[str] = None,
    user_id: Optional[str] = None,
    location: Optional[str] = None,
    refresh: bool = False,
    service: HomepagePersonalizationService = Depends(
        get_personalization_service
    ),
):
    """개인화 홈페이지 조회"""
    with measure_time() as timer:
        homepage = await service.generate_homepage(
            session_id=session_id,
            user_id=user_id,
            location=location,
            force_refresh=refresh,
        )

    response.headers["Cache-Control"] = HOMEPAGE_CACHE_CONTROL
    response.headers["Vary"] = "Accept-Encoding, User-Agent, Authorization"
    response.headers["X-Personalization-Score"] = str(
        homepage.metadata.personalization_score
    )
    response.headers["X-Section-Count"] = str(len(homepage.sections))
    response.headers["X-Response-Time"] = f"{timer.elapsed_ms:.2f}"
    if homepage.metadata.fallback:
        response.headers["X-Fallback"] = "true"

    return create_response(
        data=homepage, message="개인화 홈페이지를 조회했습니다."
    )


@router.post("/track", response_model=APIResponse[TrackInteractionResponse])
async def track_interaction(
    request: TrackInteractionRequest,
    response: Response,
    service: HomepagePersonalizationService = Depends(
        get_personalization_service
    ),
):
    """상호작용 추적"""
    result = await service.track_interaction(request)
    response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"
    return create_response(data=result, message="상호작용이 기록되었습니다.")


@router.put(
    "/preferences", response_model=APIResponse[UpdatePreferencesResponse]
)
async def update_preferences(
    request: UpdatePreferencesRequest,
    service: HomepagePersonalizationService = Depends(
        get_personalization_service
    ),
):
    """명시적 선호도 교체"""
    saved, cleared = await service.update_preferences(
        request.user_id, request.preferences
    )
    return create_response(
        data=UpdatePreferencesResponse(
            preferences_updated=saved, cache_entries_cleared=cleared
        ),
        message="선호도가 갱신되었습니다.",
    )


@router.delete(
    "/cache",
    response_model=APIResponse[ClearCacheResponse],
    dependencies=[Depends(verify_internal_api_key)],
)
async def clear_cache(
    user_id: Optional[str] = None,
    session_id: Optional[str] = None,
    clear_all: bool = Query(default=False, alias="all"),
    service: HomepagePersonalizationService = Depends(
        get_personalization_service
    ),
):
    """개인화 캐시 정리 (관리자 전용)"""
    scope, cleared = service.clear_cache(
        user_id=user_id, session_id=session_id, clear_all=clear_all
    )
    return create_response(
        data=ClearCacheResponse(scope=scope, cleared=cleared),
        message="개인화 캐시를 정리했습니다.",
    )
