"""개인화 도메인 타입 정의"""

from dataclasses import dataclass, field
from typing import Any, Optional

from app.domains.behavior.events import BehaviorEvent

# 라벨 → 누적 가중치 (삽입 순서 유지)
PreferenceScore = dict[str, float]


@dataclass
class StoredPatterns:
    """세션에 저장된 상위 선호 패턴

    Attributes:
        business_types: 자주 관심을 보인 업종
        locations: 자주 검색한 지역
        price_ranges: 선호 가격대 (budget, premium)
    """

    business_types: list[str] = field(default_factory=list)
    locations: list[str] = field(default_factory=list)
    price_ranges: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "StoredPatterns":
        """JSONB 패턴 레코드 변환 (camelCase/snake_case 모두 허용)"""
        data = data or {}

        def _list(*keys: str) -> list[str]:
            for key in keys:
                value = data.get(key)
                if isinstance(value, list):
                    return [str(v) for v in value if v]
            return []

        return cls(
            business_types=_list("businessTypes", "business_types"),
            locations=_list("locations"),
            price_ranges=_list("priceRanges", "price_ranges"),
        )

    def to_dict(self) -> dict[str, list[str]]:
        return {
            "businessTypes": list(self.business_types),
            "locations": list(self.locations),
            "priceRanges": list(self.price_ranges),
        }


@dataclass(frozen=True)
class ExplicitPreference:
    """사용자가 직접 설정한 선호도

    Attributes:
        preference_type: category 또는 location
        value: 선호 값
        weight: 저장된 가중치 (분석 가중치와는 별개)
    """

    preference_type: str
    value: str
    weight: float = 1.0


@dataclass
class BehaviorData:
    """선호도 분석 입력

    Attributes:
        events: 최근 상호작용 이벤트 (최신순)
        patterns: 저장된 행동 패턴
        preferences: 명시적 선호도 목록
    """

    events: list[BehaviorEvent] = field(default_factory=list)
    patterns: StoredPatterns = field(default_factory=StoredPatterns)
    preferences: list[ExplicitPreference] = field(default_factory=list)


@dataclass
class PreferenceAnalysis:
    """선호도 분석 결과

    confidence는 손으로 조정한 가중합이며 보정된 확률이 아닙니다.
    "개인화에 쓸 만한 신호가 어느 정도 쌓였는가"의 지표로만 사용하세요.
    """

    business_types: PreferenceScore = field(default_factory=dict)
    locations: PreferenceScore = field(default_factory=dict)
    price_ranges: PreferenceScore = field(default_factory=dict)
    features: PreferenceScore = field(default_factory=dict)
    confidence: float = 0.0
