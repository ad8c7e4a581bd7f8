"""선호도 분석기

행동 로그를 업종, 지역, 가격대, 기능별 가중치 점수로 변환합니다.

가중치:
    - 검색 키워드 매칭: 2 (키워드마다)
    - 클릭 매칭: 1
    - 저장된 패턴: 3
    - 명시적 선호도: 5

순수 함수로만 구성되어 있어 같은 입력이면 항상 같은 결과를 돌려줍니다.
"""

from typing import Iterable, Optional

from app.core.logging import get_logger
from app.domains.behavior.events import Click, SearchQuery
from app.domains.personalization.types import (
    BehaviorData,
    ExplicitPreference,
    PreferenceAnalysis,
    PreferenceScore,
    StoredPatterns,
)

logger = get_logger(__name__)

CATEGORY_KEYWORDS: dict[str, list[str]] = {
    "restaurants": [
        "restaurant",
        "cafe",
        "bar",
        "food",
        "dining",
        "pizza",
        "sushi",
        "burger",
        "bakery",
    ],
    "retail": ["shop", "store", "boutique", "mall", "shopping"],
    "services": ["salon", "spa", "clinic", "gym", "fitness"],
    "automotive": ["mechanic", "car", "auto", "repair"],
    "professional": ["lawyer", "dentist", "doctor", "accountant"],
}

PRICE_WORDS: dict[str, list[str]] = {
    "budget": ["cheap", "budget", "affordable"],
    "premium": ["expensive", "luxury", "premium", "upscale"],
}

FEATURE_INDICATORS: dict[str, list[str]] = {
    "directions": ["directions", "map", "location"],
    "phone": ["call", "phone", "tel:"],
    "website": ["website", "visit"],
    "reviews": ["review", "rating"],
}

BUSINESS_LINK_MARKERS = ("/business/", "/biz/")

SEARCH_KEYWORD_WEIGHT = 2.0
SEARCH_LOCATION_WEIGHT = 1.0
SEARCH_PRICE_WEIGHT = 1.0
CLICK_WEIGHT = 1.0
STORED_PATTERN_WEIGHT = 3.0
EXPLICIT_PREFERENCE_WEIGHT = 5.0


def _add(scores: PreferenceScore, label: str, weight: float) -> None:
    scores[label] = scores.get(label, 0.0) + weight


class PreferenceAnalyzer:
    """행동 데이터 기반 선호도 분석기"""

    def __init__(
        self,
        category_keywords: Optional[dict[str, list[str]]] = None,
    ):
        self.category_keywords = category_keywords or CATEGORY_KEYWORDS

    def analyze(self, data: Optional[BehaviorData]) -> PreferenceAnalysis:
        """선호도 분석

        Args:
            data: 행동 데이터 (None이면 빈 분석 결과)

        Returns:
            선호도 분석 결과
        """
        analysis = PreferenceAnalysis()
        if data is None:
            return analysis

        for event in data.events:
            if isinstance(event, SearchQuery):
                self._apply_search(event, analysis)
            elif isinstance(event, Click):
                self._apply_click(event, analysis)

        self._apply_stored_patterns(data.patterns, analysis)
        self._apply_explicit_preferences(data.preferences, analysis)

        analysis.confidence = self.calculate_confidence(
            analysis, len(data.events)
        )

        logger.debug(
            f"Preference analysis completed: confidence={analysis.confidence:.2f}, "
            f"top_types={get_top_preferences(analysis.business_types, 3)}"
        )
        return analysis

    def _apply_search(
        self, event: SearchQuery, analysis: PreferenceAnalysis
    ) -> None:
        query = event.text.lower()

        for category, keywords in self.category_keywords.items():
            for keyword in keywords:
                if keyword in query:
                    _add(
                        analysis.business_types,
                        category,
                        SEARCH_KEYWORD_WEIGHT,
                    )

        location = event.filters.get("location")
        if location:
            _add(analysis.locations, str(location), SEARCH_LOCATION_WEIGHT)

        for price_range, words in PRICE_WORDS.items():
            if any(word in query for word in words):
                _add(analysis.price_ranges, price_range, SEARCH_PRICE_WEIGHT)

    def _apply_click(self, event: Click, analysis: PreferenceAnalysis) -> None:
        text = event.label.lower()
        href = event.href

        is_business_link = any(
            marker in href for marker in BUSINESS_LINK_MARKERS
        ) or ("business" in (event.element_id or ""))

        if is_business_link:
            for category, keywords in self.category_keywords.items():
                if any(keyword in text for keyword in keywords):
                    _add(analysis.business_types, category, CLICK_WEIGHT)

        for feature, indicators in FEATURE_INDICATORS.items():
            if any(
                indicator in text or indicator in href
                for indicator in indicators
            ):
                _add(analysis.features, feature, CLICK_WEIGHT)

    def _apply_stored_patterns(
        self, patterns: Optional[StoredPatterns], analysis: PreferenceAnalysis
    ) -> None:
        if patterns is None:
            return

        for business_type in patterns.business_types:
            _add(analysis.business_types, business_type, STORED_PATTERN_WEIGHT)
        for location in patterns.locations:
            _add(analysis.locations, location, STORED_PATTERN_WEIGHT)
        for price_range in patterns.price_ranges:
            _add(analysis.price_ranges, price_range, STORED_PATTERN_WEIGHT)

    def _apply_explicit_preferences(
        self,
        preferences: Iterable[ExplicitPreference],
        analysis: PreferenceAnalysis,
    ) -> None:
        for preference in preferences:
            if not preference.value:
                continue
            if preference.preference_type == "category":
                _add(
                    analysis.business_types,
                    preference.value,
                    EXPLICIT_PREFERENCE_WEIGHT,
                )
            elif preference.preference_type == "location":
                _add(
                    analysis.locations,
                    preference.value,
                    EXPLICIT_PREFERENCE_WEIGHT,
                )

    @staticmethod
    def calculate_confidence(
        analysis: PreferenceAnalysis, interaction_count: int
    ) -> float:
        """개인화 신뢰도 계산 (0.0~1.0)

        상호작용 수, 선호 항목 다양성, 최상위 업종 점수의 가중합입니다.
        """
        score = min(max(interaction_count, 0) * 0.05, 0.3)

        distinct = (
            len(analysis.business_types)
            + len(analysis.locations)
            + len(analysis.price_ranges)
        )
        score += min(distinct * 0.1, 0.4)

        max_type_score = max(analysis.business_types.values(), default=0.0)
        score += min(max(max_type_score, 0.0) * 0.05, 0.3)

        return min(max(score, 0.0), 1.0)


def get_top_preferences(scores: Optional[PreferenceScore], n: int) -> list[str]:
    """가중치 상위 n개 라벨 (동점이면 먼저 추가된 라벨 우선)"""
    if not scores or n <= 0:
        return []
    # sorted는 안정 정렬이므로 동점은 삽입 순서를 유지
    ranked = sorted(scores.items(), key=lambda item: item[1], reverse=True)
    return [label for label, _ in ranked[:n]]


def get_top_preference(scores: Optional[PreferenceScore]) -> Optional[str]:
    top = get_top_preferences(scores, 1)
    return top[0] if top else None

