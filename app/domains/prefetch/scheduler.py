"""프리페치 스케줄러

여러 전략이 제안한 후보 URL을 우선순위 대기열에 모으고, 고정 주기 tick마다
비어 있는 동시 실행 슬롯만큼 꺼내 백그라운드로 가져온 뒤 응답을 캐시합니다.

- 같은 URL은 한 번만 대기 (먼저 등록된 후보 유지)
- tick마다 priority 오름차순 (동률은 등록 순서)
- 동시에 진행 중인 요청은 max_concurrent 이하
- 요청마다 타임아웃, 실패는 재시도 없이 버림
- 캐시는 바이트 예산을 넘으면 LRU 순으로 제거

모든 상태는 하나의 이벤트 루프에서만 변경되므로 락을 사용하지 않습니다.
"""

import asyncio
import time
from collections import Counter
from typing import Any, Callable, Iterable, Optional

import httpx

from app.core.cache import LRUCache
from app.core.config import settings
from app.core.logging import get_logger
from app.core.telemetry import BeaconSink, create_beacon_sink
from app.core.utils.time import measure_time
from app.domains.behavior.events import (
    ElementRef,
    PageView,
    ScrollDirection,
    SearchQuery,
)
from app.domains.behavior.recorder import BehaviorRecorder
from app.domains.prefetch.exceptions import PrefetchFetchError
from app.domains.prefetch.models import (
    CachedResponse,
    PrefetchCandidate,
    PrefetchState,
)
from app.domains.prefetch.strategies import (
    PrefetchTarget,
    behavioral_candidates,
    hover_candidates,
    idle_candidates,
    immediate_candidates,
    popular_candidates,
    scroll_candidates,
    search_candidates,
    viewport_candidates,
)

logger = get_logger(__name__)

PREFETCH_HEADERS = {
    "X-Prefetch": "true",
    "Cache-Control": "max-age=300",
}

# 종료 상태(CACHED/FAILED) 기록을 보관할 최대 URL 수
MAX_TRACKED_STATES = 1000

CACHE_CLEANUP_INTERVAL_MS = 30_000
METRICS_REPORT_INTERVAL_MS = 60_000


class PrefetchScheduler:
    """프리페치 스케줄러

    Example::

        scheduler = PrefetchScheduler(recorder=recorder)
        await scheduler.start()
        scheduler.on_navigate("/biz/42")
        ...
        await scheduler.aclose()
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        base_url: str = settings.prefetch_base_url,
        max_concurrent: int = settings.prefetch_max_concurrent,
        tick_interval_ms: int = settings.prefetch_tick_interval_ms,
        timeout_seconds: float = settings.prefetch_timeout_seconds,
        max_queue_size: int = settings.prefetch_max_queue_size,
        cache: Optional[LRUCache[CachedResponse]] = None,
        recorder: Optional[BehaviorRecorder] = None,
        beacon: Optional[BeaconSink] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            client: HTTP 클라이언트 (None이면 base_url로 생성하고 직접 닫음)
            base_url: 프리페치 대상 오리진
            max_concurrent: 최대 동시 요청 수
            tick_interval_ms: 대기열 처리 주기 (밀리초)
            timeout_seconds: 요청별 타임아웃 (초)
            max_queue_size: 대기열 최대 길이
            cache: 응답 캐시 (None이면 설정값으로 생성)
            recorder: 행동 기록기 (훅에서 행동을 함께 기록)
            beacon: 지표 전송기 (None이면 설정 기반 전송기를 생성하고 직접 닫음)
            clock: 현재 시각 함수
        """
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")

        self.base_url = base_url
        self.max_concurrent = max_concurrent
        self.tick_interval_ms = tick_interval_ms
        self.timeout_seconds = timeout_seconds
        self.max_queue_size = max_queue_size
        self.recorder = recorder
        self.beacon = beacon if beacon is not None else create_beacon_sink()
        self._owns_beacon = beacon is None
        self._clock = clock

        self._client = client or httpx.AsyncClient(base_url=base_url)
        self._owns_client = client is None

        self.cache: LRUCache[CachedResponse] = (
            cache
            if cache is not None
            else LRUCache(
                ttl_seconds=settings.prefetch_cache_ttl_seconds,
                max_bytes=settings.prefetch_cache_max_bytes,
                name="prefetch",
            )
        )

        self._queue: dict[str, PrefetchCandidate] = {}
        self._active: dict[str, asyncio.Task[None]] = {}
        self._states: dict[str, PrefetchState] = {}
        self._sequence = 0
        self._runner: Optional[asyncio.Task[None]] = None
        self._ticks = 0

        self.current_path = "/"
        self.completed = 0
        self.failed = 0
        self.dropped = 0

    # 대기열

    @property
    def queue_size(self) -> int:
        return len(self._queue)

    @property
    def active_count(self) -> int:
        return len(self._active)

    @property
    def is_running(self) -> bool:
        return self._runner is not None and not self._runner.done()

    def is_queued(self, url: str) -> bool:
        return url in self._queue

    def queued(self) -> list[PrefetchCandidate]:
        """대기 중인 후보 (실행 순서대로)"""
        return sorted(self._queue.values(), key=lambda c: c.sort_key)

    def state(self, url: str) -> Optional[PrefetchState]:
        return self._states.get(url)

    def queue_prefetch(
        self, url: str, strategy: int, content_priority: int
    ) -> bool:
        """프리페치 후보 등록

        이미 대기 중이거나 가져오는 중인 URL은 무시합니다 (먼저 등록된 후보 유지).
        대기열이 가득 차면 가장 덜 급한 후보보다 급할 때만 그 자리를 차지합니다.

        Returns:
            등록 여부
        """
        if not url or url in self._queue or url in self._active:
            return False

        self._sequence += 1
        candidate = PrefetchCandidate(
            url=url,
            strategy=int(strategy),
            content_priority=int(content_priority),
            queued_at=self._clock(),
            sequence=self._sequence,
        )

        if len(self._queue) >= self.max_queue_size:
            worst = max(self._queue.values(), key=lambda c: c.sort_key)
            if candidate.priority >= worst.priority:
                self.dropped += 1
                logger.debug(
                    f"Prefetch queue full, rejected: {url} "
                    f"(priority: {candidate.priority})"
                )
                return False
            del self._queue[worst.url]
            self._states.pop(worst.url, None)
            self.dropped += 1
            logger.debug(
                f"Prefetch queue full, dropped: {worst.url} "
                f"(priority: {worst.priority})"
            )

        self._queue[url] = candidate
        self._set_state(url, PrefetchState.QUEUED)
        logger.debug(f"Queued prefetch: {url} (priority: {candidate.priority})")
        return True

    def queue_targets(self, targets: Iterable[PrefetchTarget]) -> int:
        """생성기 결과를 대기열에 등록

        Returns:
            새로 등록된 후보 수
        """
        return sum(
            self.queue_prefetch(t.url, t.strategy, t.content_priority)
            for t in targets
        )

    # 실행

    def tick(self) -> list["asyncio.Task[None]"]:
        """대기열 한 번 처리

        비어 있는 슬롯 수만큼 가장 급한 후보를 꺼내 각각 독립 Task로 시작합니다.
        실행 중인 이벤트 루프 안에서 호출해야 합니다.

        Returns:
            이번 tick에 시작한 Task 목록
        """
        slots = self.max_concurrent - len(self._active)
        if slots <= 0 or not self._queue:
            return []

        started: list[asyncio.Task[None]] = []
        for candidate in self.queued()[:slots]:
            del self._queue[candidate.url]
            self._set_state(candidate.url, PrefetchState.FETCHING)
            task = asyncio.create_task(self._execute(candidate))
            self._active[candidate.url] = task
            started.append(task)
        return started

    async def fetch(self, candidate: PrefetchCandidate) -> CachedResponse:
        """후보 URL GET 요청

        Raises:
            PrefetchFetchError: 타임아웃, 네트워크 오류, 잘못된 URL, 2xx 이외 응답
        """
        headers = {**PREFETCH_HEADERS, "X-Priority": str(candidate.strategy)}
        try:
            response = await asyncio.wait_for(
                self._client.get(candidate.url, headers=headers),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise PrefetchFetchError(
                candidate.url, f"timeout after {self.timeout_seconds}s"
            ) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            reason = str(e) or type(e).__name__
            raise PrefetchFetchError(candidate.url, reason) from e

        if not response.is_success:
            raise PrefetchFetchError(
                candidate.url,
                f"status {response.status_code}",
                status_code=response.status_code,
            )
        return CachedResponse.from_httpx(response)

    async def _execute(self, candidate: PrefetchCandidate) -> None:
        url = candidate.url
        try:
            with measure_time() as timer:
                cached = await self.fetch(candidate)
        except PrefetchFetchError as e:
            self.failed += 1
            self._set_state(url, PrefetchState.FAILED)
            logger.warning(str(e))
            return
        except Exception as e:
            # 예상하지 못한 오류도 해당 후보만 FAILED
            self.failed += 1
            self._set_state(url, PrefetchState.FAILED)
            logger.exception(f"Unexpected prefetch error: {url} ({e})")
            return
        finally:
            self._active.pop(url, None)

        if self.cache.set(url, cached, size=cached.size):
            self.completed += 1
            self._set_state(url, PrefetchState.CACHED)
            logger.debug(
                f"Prefetched: {url} in {timer.elapsed_ms:.2f}ms "
                f"({cached.size / 1024:.1f}KB)"
            )
        else:
            self.failed += 1
            self._set_state(url, PrefetchState.FAILED)

    def _set_state(self, url: str, state: PrefetchState) -> None:
        self._states.pop(url, None)
        self._states[url] = state

        if len(self._states) <= MAX_TRACKED_STATES:
            return
        # 가장 오래된 종료 상태부터 정리
        for old_url, old_state in list(self._states.items()):
            if len(self._states) <= MAX_TRACKED_STATES:
                break
            if old_state in (PrefetchState.CACHED, PrefetchState.FAILED):
                del self._states[old_url]

    def get_cached(self, url: str) -> Optional[CachedResponse]:
        return self.cache.get(url)

    async def wait_idle(self) -> None:
        """진행 중인 요청이 모두 끝날 때까지 대기"""
        while self._active:
            await asyncio.gather(
                *list(self._active.values()), return_exceptions=True
            )

    # 수명 주기

    async def start(self) -> None:
        """tick 루프 시작 (이미 실행 중이면 무시)"""
        if self.is_running:
            return
        self._runner = asyncio.create_task(self._run())
        logger.info(
            f"Prefetch scheduler started (max_concurrent={self.max_concurrent}, "
            f"tick={self.tick_interval_ms}ms)"
        )

    async def stop(self) -> None:
        """tick 루프 중지 및 대기열 비우기

        이미 시작된 요청은 취소하지 않습니다.
        """
        if self._runner is not None:
            self._runner.cancel()
            try:
                await self._runner
            except asyncio.CancelledError:
                pass
            self._runner = None

        for url in self._queue:
            self._states.pop(url, None)
        self._queue.clear()
        logger.info("Prefetch scheduler stopped")

    async def aclose(self) -> None:
        """중지 후 진행 중인 요청을 기다리고 소유한 클라이언트를 닫음"""
        await self.stop()
        await self.wait_idle()
        if self._owns_client:
            await self._client.aclose()
        if self._owns_beacon:
            await self.beacon.aclose()

    async def _run(self) -> None:
        interval = self.tick_interval_ms / 1000
        cleanup_every = max(1, CACHE_CLEANUP_INTERVAL_MS // self.tick_interval_ms)
        report_every = max(1, METRICS_REPORT_INTERVAL_MS // self.tick_interval_ms)

        while True:
            self.tick()
            self._ticks += 1

            if self._ticks % cleanup_every == 0:
                purged = self.cache.purge_expired()
                if purged:
                    logger.debug(f"Purged {purged} expired prefetch entries")
            if self._ticks % report_every == 0:
                self.report_metrics()

            await asyncio.sleep(interval)

    # 생성기 훅 (요소가 없거나 값이 비어 있어도 예외 없음)

    def on_navigate(self, path: str) -> int:
        """페이지 이동: 행동 기록 + 현재 페이지 즉시 프리페치"""
        if not path:
            return 0
        self.current_path = path
        if self.recorder is not None:
            self.recorder.record_page_view(path)
        return self.queue_targets(immediate_candidates(path))

    def on_hover(self, element: Optional[ElementRef]) -> int:
        if element is None:
            return 0
        if self.recorder is not None:
            self.recorder.record_hover_pattern(element)
        return self.queue_targets(hover_candidates(element, self.base_url))

    def on_viewport_enter(self, element: Optional[ElementRef]) -> int:
        return self.queue_targets(viewport_candidates(element, self.base_url))

    def on_scroll(
        self,
        offset: float,
        direction: ScrollDirection,
        velocity: float = 0.0,
    ) -> int:
        if self.recorder is not None:
            self.recorder.record_scroll_pattern(offset, direction, velocity)
        return self.queue_targets(
            scroll_candidates(self.current_path, offset, direction, velocity)
        )

    def on_search_input(self, query: str) -> int:
        """검색창 입력: 자동완성 후보 프리페치"""
        return self.queue_targets(search_candidates(query))

    def on_search(
        self, query: str, filters: Optional[dict[str, Any]] = None
    ) -> int:
        """검색 실행: 검색어 기록 + 자동완성 후보 프리페치"""
        if self.recorder is not None:
            self.recorder.record_search_query(query, filters)
        return self.on_search_input(query)

    def on_idle(self) -> int:
        """유휴 시간 프리페치 (슬롯이 모두 차 있으면 건너뜀)"""
        if len(self._active) >= self.max_concurrent:
            return 0
        frequent_paths = (
            self.recorder.profile.frequent_paths
            if self.recorder is not None
            else []
        )
        return self.queue_targets(
            idle_candidates(self.current_path, frequent_paths)
        )

    def analyze_behavior(self) -> int:
        """최근 세션 행동으로 다음 행동 예측"""
        if self.recorder is None:
            return 0
        events = self.recorder.session_log
        page_views = [e.path for e in events if isinstance(e, PageView)]
        searches = [e.text for e in events if isinstance(e, SearchQuery)]
        return self.queue_targets(behavioral_candidates(page_views, searches))

    def prefetch_popular(self) -> int:
        return self.queue_targets(popular_candidates())

    # 지표

    def get_performance_metrics(self) -> dict[str, Any]:
        cache_stats = self.cache.stats()
        metrics: dict[str, Any] = {
            "queue_size": len(self._queue),
            "active_prefetches": len(self._active),
            "completed": self.completed,
            "failed": self.failed,
            "dropped": self.dropped,
            "cache": {
                **cache_stats,
                "size_mb": round(cache_stats["total_size"] / 1024 / 1024, 2),
                "budget_bytes": self.cache.max_bytes,
            },
            "states": dict(Counter(s.value for s in self._states.values())),
        }
        if self.recorder is not None:
            metrics["session"] = {
                "page_views": len(self.recorder.events_of("page_view")),
                "search_queries": len(self.recorder.events_of("search")),
                "hover_patterns": len(self.recorder.events_of("hover")),
                "scroll_patterns": len(self.recorder.events_of("scroll")),
            }
        return metrics

    def report_metrics(self) -> dict[str, Any]:
        """지표를 로그로 남기고 비콘으로 전송"""
        metrics = self.get_performance_metrics()
        logger.info(
            f"Prefetch metrics: queue={metrics['queue_size']}, "
            f"active={metrics['active_prefetches']}, "
            f"cache={metrics['cache']['size_mb']}MB"
        )
        self.beacon.send("prefetch_metrics", metrics)
        return metrics
