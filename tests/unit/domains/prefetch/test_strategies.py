"""프리페치 후보 생성기 단위 테스트"""

from app.domains.behavior.events import ElementRef
from app.domains.prefetch.models import CachedResponse, PrefetchCandidate
from app.domains.prefetch.strategies import (
    ContentPriority,
    Strategy,
    behavioral_candidates,
    hover_candidates,
    idle_candidates,
    immediate_candidates,
    popular_candidates,
    priority_for_path,
    same_origin_path,
    scroll_candidates,
    search_candidates,
    viewport_candidates,
)

ORIGIN = "https://localhub.test"


def urls(targets) -> list[str]:
    return [t.url for t in targets]


class TestPriorities:
    """우선순위 값"""

    def test_strategy_and_content_values(self):
        """전략/콘텐츠 우선순위 정수값"""
        assert Strategy.IMMEDIATE == 1
        assert Strategy.SCROLL_PREDICTION == 2
        assert Strategy.NEARBY_CONTENT == 3
        assert Strategy.IDLE_PRELOAD == 5
        assert ContentPriority.CATEGORY_PAGES == 2
        assert ContentPriority.REVIEWS == 4

    def test_candidate_priority_is_sum(self):
        """후보 priority = strategy + content_priority"""
        candidate = PrefetchCandidate(
            url="/biz/1", strategy=2, content_priority=1, queued_at=0.0
        )

        assert candidate.priority == 3

    def test_priority_for_path(self):
        """경로별 콘텐츠 우선순위"""
        assert priority_for_path("/biz/1") == ContentPriority.BUSINESS_PAGES
        assert priority_for_path("/search?q=a") == ContentPriority.SEARCH_RESULTS
        assert priority_for_path("/about") == ContentPriority.STATIC_ASSETS


class TestImmediate:
    """현재 페이지 즉시 프리페치"""

    def test_home(self):
        assert urls(immediate_candidates("/")) == [
            "/api/business/featured",
            "/api/business/popular",
            "/api/categories/popular",
        ]

    def test_business_page(self):
        targets = immediate_candidates("/biz/42/photos")

        assert urls(targets) == [
            "/api/business/42/related",
            "/api/business/42/photos",
            "/api/business/42/menu",
        ]
        assert all(t.strategy == Strategy.IMMEDIATE for t in targets)

    def test_unknown_path(self):
        assert immediate_candidates("/about") == []


class TestHoverAndViewport:
    """호버/뷰포트 후보"""

    def test_same_origin_only(self):
        """다른 오리진 링크는 무시"""
        assert same_origin_path("https://evil.test/biz/1", ORIGIN) is None
        assert same_origin_path("/biz/1", ORIGIN) == "/biz/1"
        assert (
            same_origin_path(f"{ORIGIN}/search?q=pho", ORIGIN)
            == "/search?q=pho"
        )
        assert same_origin_path(None, ORIGIN) is None

    def test_hover_search_link_adds_results(self):
        """검색 링크 호버는 검색 결과 API까지"""
        targets = hover_candidates(
            ElementRef(tag="a", href="/search?q=pho"), ORIGIN
        )

        assert urls(targets) == [
            "/search?q=pho",
            "/api/business/search?q=pho&limit=5",
        ]

    def test_hover_data_prefetch(self):
        """data-prefetch 대상"""
        targets = hover_candidates(
            ElementRef(tag="BUTTON", prefetch_url="/api/deals"), ORIGIN
        )

        assert urls(targets) == ["/api/deals"]

    def test_hover_external_link(self):
        """외부 링크 호버는 후보 없음"""
        element = ElementRef(tag="A", href="https://elsewhere.test/")

        assert hover_candidates(element, ORIGIN) == []

    def test_viewport_business_card(self):
        """뷰포트 업체 카드는 NEARBY_CONTENT"""
        targets = viewport_candidates(
            ElementRef(tag="DIV", business_id="3"), ORIGIN
        )

        assert urls(targets) == ["/biz/3", "/api/business/3"]
        assert {t.strategy for t in targets} == {Strategy.NEARBY_CONTENT}


class TestPredictions:
    """스크롤/검색/행동/유휴 예측"""

    def test_scroll_up_has_no_candidates(self):
        assert scroll_candidates("/", 500, "up", 300) == []

    def test_fast_scroll_fetches_two_pages(self):
        """빠른 스크롤은 다음 두 페이지"""
        targets = scroll_candidates("/search?q=a", 100, "down", 150)

        assert urls(targets) == [
            "/api/business/search?page=2",
            "/api/business/search?page=3",
        ]

    def test_search_requires_two_characters(self):
        assert search_candidates("a") == []
        assert search_candidates("  ") == []

    def test_search_encodes_query(self):
        """검색어는 URL 인코딩"""
        targets = search_candidates("thai food")

        assert targets[0].url == "/api/search/suggestions?q=thai%20food"
        assert targets[-1].strategy == Strategy.POPULAR_CONTENT

    def test_behavioral_windows(self):
        """최근 페이지 5건, 검색 3건만 사용"""
        views = [f"/biz/{i}" for i in range(7)]
        searches = ["aa", "bb", "cc", "dd"]

        result = urls(behavioral_candidates(views, searches))

        assert "/api/business/1/similar" not in result
        assert "/api/business/2/similar" in result
        assert "/api/search/suggestions?q=aa" not in result
        assert len(result) == 8

    def test_idle_limits_frequent_paths(self):
        """자주 방문한 경로는 앞 3개만"""
        frequent = ["/f1", "/f2", "/f3", "/f4"]

        result = urls(idle_candidates("/about", frequent))

        assert result == ["/f1", "/f2", "/f3"]

    def test_popular(self):
        assert len(popular_candidates()) == 3


class TestCachedResponse:
    """캐시 응답 크기"""

    def test_size_prefers_content_length(self):
        cached = CachedResponse(
            status_code=200, headers={"content-length": "2048"}, body=b"x"
        )

        assert cached.size == 2048

    def test_size_falls_back_to_body(self):
        assert CachedResponse(status_code=200, body=b"abcd").size == 4
