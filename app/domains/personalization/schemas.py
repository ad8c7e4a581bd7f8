"""Personalization 도메인 스키마 정의

요청 본문은 브라우저 추적기가 보내는 camelCase 키(sessionId 등)와
snake_case 키를 모두 허용합니다.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.core.utils.datetime import now_utc
from app.domains.personalization.sections import Section

HOMEPAGE_VERSION = "2.0"


class CamelRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class HomepageMetadata(BaseModel):
    """홈페이지 메타 정보"""

    personalization_score: float = Field(..., ge=0.0, le=1.0)
    generated_at: datetime = Field(default_factory=now_utc)
    user_id: str = "anonymous"
    session_id: Optional[str] = None
    location: Optional[str] = None
    variant: Optional[str] = Field(default=None, description="A/B 변형")
    version: str = HOMEPAGE_VERSION
    fallback: bool = False


class HomepagePerformance(BaseModel):
    generation_time_ms: float = 0.0
    cache_status: str = Field(default="miss", description="hit 또는 miss")


class Homepage(BaseModel):
    """개인화 홈페이지"""

    sections: list[Section]
    metadata: HomepageMetadata
    performance: HomepagePerformance = Field(
        default_factory=HomepagePerformance
    )


class TrackInteractionRequest(CamelRequest):
    """상호작용 추적 요청"""

    session_id: Optional[str] = Field(default=None, max_length=100)
    user_id: Optional[str] = Field(default=None, max_length=64)
    interaction_type: Optional[str] = Field(default=None, max_length=50)
    interaction_data: dict[str, Any] = Field(default_factory=dict)


class TrackInteractionResponse(BaseModel):
    interaction_count: int
    patterns_updated: bool = False


class PreferenceItem(CamelRequest):
    type: str = Field(..., description="category 또는 location")
    value: str = Field(..., min_length=1, max_length=255)
    weight: float = Field(default=1.0, ge=0.0)


class UpdatePreferencesRequest(CamelRequest):
    """명시적 선호도 교체 요청"""

    user_id: Optional[str] = Field(default=None, max_length=64)
    preferences: list[PreferenceItem] = Field(default_factory=list)


class UpdatePreferencesResponse(BaseModel):
    preferences_updated: int
    cache_entries_cleared: int


class ClearCacheResponse(BaseModel):
    scope: str = Field(..., description="user, session, all, expired")
    cleared: int
