"""PreferenceAnalyzer 단위 테스트"""

import pytest

from app.domains.behavior.events import Click, PageView, SearchQuery
from app.domains.personalization.analyzer import (
    PreferenceAnalyzer,
    get_top_preference,
    get_top_preferences,
)
from app.domains.personalization.types import (
    BehaviorData,
    ExplicitPreference,
    PreferenceAnalysis,
    StoredPatterns,
)


def pizza_lover() -> BehaviorData:
    """피자 검색 3회 + 식당 링크 클릭 2회"""
    return BehaviorData(
        events=[
            SearchQuery(text="pizza"),
            SearchQuery(text="pizza"),
            SearchQuery(text="pizza"),
            Click(href="/biz/1", label="Tony's Pizza"),
            Click(href="/biz/2", label="Napoli Pizza"),
        ]
    )


class TestAnalyze:
    """선호도 분석"""

    def test_pizza_searches_and_clicks_rank_restaurants_first(self):
        """검색 2점 x3 + 클릭 1점 x2 = restaurants 8점"""
        # Given
        analyzer = PreferenceAnalyzer()

        # When
        analysis = analyzer.analyze(pizza_lover())

        # Then
        assert get_top_preference(analysis.business_types) == "restaurants"
        assert analysis.business_types["restaurants"] >= 8
        assert analysis.confidence > 0

    def test_none_input_yields_empty_analysis(self):
        """입력이 없으면 빈 결과와 0 신뢰도"""
        analysis = PreferenceAnalyzer().analyze(None)

        assert analysis.business_types == {}
        assert analysis.confidence == 0.0

    def test_empty_data_yields_zero_confidence(self):
        """이벤트/패턴/선호도가 모두 없으면 신뢰도 0"""
        analysis = PreferenceAnalyzer().analyze(BehaviorData())

        assert analysis.confidence == 0.0

    def test_click_on_non_business_link_does_not_score_category(self):
        """업체 링크가 아니면 업종 점수 없음"""
        data = BehaviorData(
            events=[Click(href="/blog/pizza-history", label="Pizza history")]
        )

        analysis = PreferenceAnalyzer().analyze(data)

        assert "restaurants" not in analysis.business_types

    def test_click_feature_indicators(self):
        """클릭 텍스트/링크의 기능 지표 집계"""
        data = BehaviorData(
            events=[
                Click(href="tel:5551234", label="Call now"),
                Click(href="/biz/3#map", label="Get directions"),
            ]
        )

        analysis = PreferenceAnalyzer().analyze(data)

        assert analysis.features["phone"] == 1.0
        assert analysis.features["directions"] == 1.0

    def test_search_location_and_price(self):
        """검색 필터 지역과 가격대 단어"""
        data = BehaviorData(
            events=[
                SearchQuery(
                    text="cheap sushi", filters={"location": "Austin"}
                )
            ]
        )

        analysis = PreferenceAnalyzer().analyze(data)

        assert analysis.locations == {"Austin": 1.0}
        assert analysis.price_ranges == {"budget": 1.0}
        assert analysis.business_types == {"restaurants": 2.0}

    def test_stored_patterns_and_explicit_preferences(self):
        """저장 패턴 3점, 명시적 선호도 5점"""
        data = BehaviorData(
            patterns=StoredPatterns(
                business_types=["retail"], locations=["Denver"]
            ),
            preferences=[
                ExplicitPreference("category", "services"),
                ExplicitPreference("location", "Denver"),
                ExplicitPreference("unknown", "ignored"),
            ],
        )

        analysis = PreferenceAnalyzer().analyze(data)

        assert analysis.business_types == {"retail": 3.0, "services": 5.0}
        assert analysis.locations == {"Denver": 8.0}

    def test_explicit_preference_ignores_stored_weight(self):
        """명시적 선호도는 저장 가중치와 무관하게 5점"""
        data = BehaviorData(
            preferences=[
                ExplicitPreference("category", "cafes", weight=3.0),
                ExplicitPreference("location", "Austin", weight=0.5),
            ],
        )

        analysis = PreferenceAnalyzer().analyze(data)

        assert analysis.business_types == {"cafes": 5.0}
        assert analysis.locations == {"Austin": 5.0}

    def test_page_views_are_not_scored(self):
        """페이지 조회는 점수에 반영하지 않음"""
        data = BehaviorData(events=[PageView(path="/categories/retail")])

        analysis = PreferenceAnalyzer().analyze(data)

        assert analysis.business_types == {}

    def test_analysis_is_deterministic(self):
        """같은 입력이면 같은 결과"""
        analyzer = PreferenceAnalyzer()

        assert analyzer.analyze(pizza_lover()) == analyzer.analyze(
            pizza_lover()
        )


class TestConfidence:
    """신뢰도 계산"""

    def test_confidence_is_clamped_to_one(self):
        """신호가 많아도 1.0을 넘지 않음"""
        analysis = PreferenceAnalysis(
            business_types={f"t{i}": 100.0 for i in range(10)},
            locations={"a": 1.0},
        )

        confidence = PreferenceAnalyzer.calculate_confidence(analysis, 500)

        assert confidence <= 1.0
        assert confidence == pytest.approx(1.0)

    def test_confidence_components(self):
        """상호작용 5회, 항목 1개, 최대 점수 2"""
        analysis = PreferenceAnalysis(business_types={"retail": 2.0})

        confidence = PreferenceAnalyzer.calculate_confidence(analysis, 5)

        assert abs(confidence - (0.25 + 0.1 + 0.1)) < 1e-9

    def test_negative_count_treated_as_zero(self):
        """음수 상호작용 수는 0으로 취급"""
        assert (
            PreferenceAnalyzer.calculate_confidence(PreferenceAnalysis(), -3)
            == 0.0
        )


class TestTopPreferences:
    """상위 선호도 추출"""

    def test_orders_by_weight(self):
        """가중치 내림차순"""
        scores = {"a": 1.0, "b": 3.0, "c": 2.0}

        assert get_top_preferences(scores, 2) == ["b", "c"]

    def test_ties_keep_insertion_order(self):
        """동점이면 먼저 추가된 라벨 우선"""
        scores = {"first": 2.0, "second": 2.0, "third": 1.0}

        assert get_top_preferences(scores, 2) == ["first", "second"]

    def test_empty_and_zero(self):
        """빈 점수 또는 n=0"""
        assert get_top_preferences({}, 3) == []
        assert get_top_preferences({"a": 1.0}, 0) == []
        assert get_top_preference(None) is None
