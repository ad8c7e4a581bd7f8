"""프리페치 전략과 후보 생성기

각 생성기는 현재 경로, 대상 요소, 입력값으로부터 프리페치 후보 목록을
만드는 순수 함수입니다. 입력이 없거나 형식이 맞지 않으면 빈 목록을 돌려주며
예외를 던지지 않습니다.

우선순위는 strategy + content_priority 이며 낮을수록 먼저 실행됩니다.
"""

from enum import IntEnum
from typing import Iterable, NamedTuple, Optional
from urllib.parse import quote

import httpx

from app.domains.behavior.events import ElementRef

BUSINESS_PATH_PREFIX = "/biz/"
CATEGORY_PATH_PREFIX = "/categories/"
SEARCH_PATH_PREFIX = "/search"

MIN_SEARCH_QUERY_LENGTH = 2
RECENT_PAGE_VIEW_WINDOW = 5
RECENT_SEARCH_WINDOW = 3
IDLE_FREQUENT_PATH_LIMIT = 3

# 스크롤 예측: 한 페이지 분량의 높이(px)와 빠른 스크롤 기준 속도(px/샘플)
SCROLL_PAGE_HEIGHT = 2000
FAST_SCROLL_VELOCITY = 100


class Strategy(IntEnum):
    """후보를 제안한 전략 (1 = 가장 급함)"""

    IMMEDIATE = 1
    HOVER_FAST = 2
    SCROLL_PREDICTION = 2
    SEARCH_AUTOCOMPLETE = 2
    BEHAVIORAL_PREDICTION = 3
    NEARBY_CONTENT = 3
    POPULAR_CONTENT = 4
    IDLE_PRELOAD = 5


class ContentPriority(IntEnum):
    """콘텐츠 종류별 우선순위"""

    BUSINESS_PAGES = 1
    SEARCH_RESULTS = 2
    CATEGORY_PAGES = 2
    IMAGES = 3
    MENU_DATA = 3
    REVIEWS = 4
    STATIC_ASSETS = 5


class PrefetchTarget(NamedTuple):
    url: str
    strategy: int
    content_priority: int


def priority_for_path(path: str) -> ContentPriority:
    if path.startswith(BUSINESS_PATH_PREFIX):
        return ContentPriority.BUSINESS_PAGES
    if path.startswith(SEARCH_PATH_PREFIX):
        return ContentPriority.SEARCH_RESULTS
    if path.startswith(CATEGORY_PATH_PREFIX):
        return ContentPriority.CATEGORY_PAGES
    return ContentPriority.STATIC_ASSETS


def _segment_after(path: str, prefix: str) -> Optional[str]:
    """prefix 다음 첫 경로 세그먼트 ("/biz/42/photos" → "42")"""
    if not path.startswith(prefix):
        return None
    segment = path[len(prefix):].split("/")[0].split("?")[0]
    return segment or None


def _q(value: str) -> str:
    return quote(value, safe="")


def immediate_candidates(path: str) -> list[PrefetchTarget]:
    """현재 페이지에서 곧바로 필요한 데이터"""
    s = Strategy.IMMEDIATE
    c = ContentPriority

    if path in ("/", SEARCH_PATH_PREFIX):
        return [
            PrefetchTarget("/api/business/featured", s, c.BUSINESS_PAGES),
            PrefetchTarget("/api/business/popular", s, c.BUSINESS_PAGES),
            PrefetchTarget("/api/categories/popular", s, c.CATEGORY_PAGES),
        ]

    business_id = _segment_after(path, BUSINESS_PATH_PREFIX)
    if business_id:
        base = f"/api/business/{business_id}"
        return [
            PrefetchTarget(f"{base}/related", s, c.BUSINESS_PAGES),
            PrefetchTarget(f"{base}/photos", s, c.IMAGES),
            PrefetchTarget(f"{base}/menu", s, c.MENU_DATA),
        ]

    category = _segment_after(path, CATEGORY_PATH_PREFIX)
    if category:
        base = f"/api/categories/{category}"
        return [
            PrefetchTarget(f"{base}/businesses", s, c.BUSINESS_PAGES),
            PrefetchTarget(f"{base}/subcategories", s, c.CATEGORY_PAGES),
        ]

    return []


def same_origin_path(href: Optional[str], origin: str) -> Optional[str]:
    """같은 오리진 링크면 경로(+쿼리) 반환, 아니면 None"""
    if not href:
        return None
    try:
        base = httpx.URL(origin)
        url = base.join(href)
    except (httpx.InvalidURL, TypeError, ValueError):
        return None

    if (url.scheme, url.host, url.port) != (base.scheme, base.host, base.port):
        return None

    path = url.path or "/"
    query = url.query.decode("ascii", errors="ignore")
    return f"{path}?{query}" if query else path


def _link_related(path: str, strategy: int) -> list[PrefetchTarget]:
    if path.startswith(SEARCH_PATH_PREFIX):
        query = httpx.URL(path).params.get("q")
        if query:
            return [
                PrefetchTarget(
                    f"/api/business/search?q={_q(query)}&limit=5",
                    strategy,
                    ContentPriority.SEARCH_RESULTS,
                )
            ]
        return []

    category = _segment_after(path, CATEGORY_PATH_PREFIX)
    if category:
        return [
            PrefetchTarget(
                f"/api/categories/{category}/businesses",
                strategy,
                ContentPriority.CATEGORY_PAGES,
            )
        ]
    return []


def hover_candidates(
    element: Optional[ElementRef], origin: str
) -> list[PrefetchTarget]:
    """호버 대상 요소 (업체 카드, 같은 오리진 링크, data-prefetch 대상)"""
    if element is None:
        return []

    if element.business_id:
        business_id = element.business_id
        return [
            PrefetchTarget(
                f"/biz/{business_id}",
                Strategy.HOVER_FAST,
                ContentPriority.BUSINESS_PAGES,
            ),
            PrefetchTarget(
                f"/api/business/{business_id}",
                Strategy.HOVER_FAST,
                ContentPriority.BUSINESS_PAGES,
            ),
            PrefetchTarget(
                f"/api/business/{business_id}/photos",
                Strategy.NEARBY_CONTENT,
                ContentPriority.IMAGES,
            ),
        ]

    if element.tag.upper() == "A" and element.href:
        path = same_origin_path(element.href, origin)
        if path is None:
            return []
        bare_path = path.split("?")[0]
        return [
            PrefetchTarget(
                path, Strategy.HOVER_FAST, priority_for_path(bare_path)
            ),
            *_link_related(path, Strategy.HOVER_FAST),
        ]

    if element.prefetch_url:
        return [
            PrefetchTarget(
                element.prefetch_url,
                Strategy.HOVER_FAST,
                ContentPriority.BUSINESS_PAGES,
            )
        ]

    return []


def viewport_candidates(
    element: Optional[ElementRef], origin: str
) -> list[PrefetchTarget]:
    """뷰포트에 가까워진 요소 (업체 카드, 같은 오리진 링크)"""
    if element is None:
        return []

    targets: list[PrefetchTarget] = []
    if element.business_id:
        targets += [
            PrefetchTarget(
                f"/biz/{element.business_id}",
                Strategy.NEARBY_CONTENT,
                ContentPriority.BUSINESS_PAGES,
            ),
            PrefetchTarget(
                f"/api/business/{element.business_id}",
                Strategy.NEARBY_CONTENT,
                ContentPriority.BUSINESS_PAGES,
            ),
        ]

    if element.tag.upper() == "A" and element.href:
        path = same_origin_path(element.href, origin)
        if path is not None:
            targets.append(
                PrefetchTarget(
                    path,
                    Strategy.NEARBY_CONTENT,
                    priority_for_path(path.split("?")[0]),
                )
            )

    if element.prefetch_url and not targets:
        targets.append(
            PrefetchTarget(
                element.prefetch_url,
                Strategy.NEARBY_CONTENT,
                ContentPriority.BUSINESS_PAGES,
            )
        )
    return targets


def scroll_candidates(
    path: str, offset: float, direction: str, velocity: float
) -> list[PrefetchTarget]:
    """아래로 스크롤 중인 목록 페이지의 다음 페이지 예측

    빠르게 스크롤하면 그다음 페이지까지 미리 가져옵니다.
    """
    if direction != "down" or offset < 0:
        return []

    if path == "/":
        endpoint = "/api/business/featured"
        content = ContentPriority.BUSINESS_PAGES
    elif path.startswith(SEARCH_PATH_PREFIX):
        endpoint = "/api/business/search"
        content = ContentPriority.SEARCH_RESULTS
    else:
        category = _segment_after(path, CATEGORY_PATH_PREFIX)
        if not category:
            return []
        endpoint = f"/api/categories/{category}/businesses"
        content = ContentPriority.CATEGORY_PAGES

    next_page = int(offset // SCROLL_PAGE_HEIGHT) + 2
    pages = [next_page]
    if velocity >= FAST_SCROLL_VELOCITY:
        pages.append(next_page + 1)

    return [
        PrefetchTarget(
            f"{endpoint}?page={page}", Strategy.SCROLL_PREDICTION, content
        )
        for page in pages
    ]


def search_candidates(query: str) -> list[PrefetchTarget]:
    """검색어 자동완성 (두 글자 이상)"""
    query = (query or "").strip()
    if len(query) < MIN_SEARCH_QUERY_LENGTH:
        return []

    q = _q(query)
    return [
        PrefetchTarget(
            f"/api/search/suggestions?q={q}",
            Strategy.SEARCH_AUTOCOMPLETE,
            ContentPriority.SEARCH_RESULTS,
        ),
        PrefetchTarget(
            f"/api/business/search?q={q}&limit=5",
            Strategy.SEARCH_AUTOCOMPLETE,
            ContentPriority.SEARCH_RESULTS,
        ),
        PrefetchTarget(
            f"/api/business/popular?q={q}",
            Strategy.POPULAR_CONTENT,
            ContentPriority.BUSINESS_PAGES,
        ),
    ]


def behavioral_candidates(
    page_views: Iterable[str], searches: Iterable[str]
) -> list[PrefetchTarget]:
    """최근 행동 기반 예측

    최근 페이지 조회 5건과 검색 3건을 봅니다.
    - 업체 페이지 → 비슷한 업체
    - 카테고리 페이지 → 하위 카테고리
    - 검색 → 검색어 추천
    """
    recent_views = list(page_views)[-RECENT_PAGE_VIEW_WINDOW:]
    recent_searches = list(searches)[-RECENT_SEARCH_WINDOW:]

    targets: list[PrefetchTarget] = []
    for path in recent_views:
        business_id = _segment_after(path, BUSINESS_PATH_PREFIX)
        if business_id:
            targets.append(
                PrefetchTarget(
                    f"/api/business/{business_id}/similar",
                    Strategy.BEHAVIORAL_PREDICTION,
                    ContentPriority.BUSINESS_PAGES,
                )
            )
            continue

        category = _segment_after(path, CATEGORY_PATH_PREFIX)
        if category:
            targets.append(
                PrefetchTarget(
                    f"/api/categories/{category}/subcategories",
                    Strategy.BEHAVIORAL_PREDICTION,
                    ContentPriority.CATEGORY_PAGES,
                )
            )

    for query in recent_searches:
        if len(query.strip()) >= MIN_SEARCH_QUERY_LENGTH:
            targets.append(
                PrefetchTarget(
                    f"/api/search/suggestions?q={_q(query.strip())}",
                    Strategy.BEHAVIORAL_PREDICTION,
                    ContentPriority.SEARCH_RESULTS,
                )
            )
    return targets


def popular_candidates() -> list[PrefetchTarget]:
    s = Strategy.POPULAR_CONTENT
    return [
        PrefetchTarget(
            "/api/business/trending", s, ContentPriority.BUSINESS_PAGES
        ),
        PrefetchTarget(
            "/api/categories/trending", s, ContentPriority.CATEGORY_PAGES
        ),
        PrefetchTarget("/api/search/popular", s, ContentPriority.SEARCH_RESULTS),
    ]


def idle_candidates(
    path: str, frequent_paths: Iterable[str] = ()
) -> list[PrefetchTarget]:
    """유휴 시간 예측 (현재 경로 + 자주 방문한 경로 앞 3개)"""
    s = Strategy.IDLE_PRELOAD
    c = ContentPriority
    targets: list[PrefetchTarget] = []

    if path == "/":
        targets += [
            PrefetchTarget("/search", s, c.SEARCH_RESULTS),
            PrefetchTarget("/categories", s, c.CATEGORY_PAGES),
            PrefetchTarget("/explore-business", s, c.BUSINESS_PAGES),
        ]

    business_id = _segment_after(path, BUSINESS_PATH_PREFIX)
    if business_id:
        base = f"/api/business/{business_id}"
        targets += [
            PrefetchTarget(f"{base}/similar", s, c.BUSINESS_PAGES),
            PrefetchTarget(f"{base}/reviews", s, c.REVIEWS),
            PrefetchTarget("/search", s, c.SEARCH_RESULTS),
        ]

    for frequent in list(frequent_paths)[:IDLE_FREQUENT_PATH_LIMIT]:
        if frequent:
            targets.append(PrefetchTarget(frequent, s, c.BUSINESS_PAGES))
    return targets
