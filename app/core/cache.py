"""인메모리 LRU 캐시

TTL과 용량 예산(바이트 또는 항목 수)을 함께 적용하는 LRU 캐시입니다.
프리페치 응답 캐시와 홈페이지 캐시가 같은 구현을 사용합니다.

예산을 초과하면 가장 오래 사용되지 않은 항목부터 제거하여
``total_size <= max_bytes`` 가 항상 유지됩니다.
"""

import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Generic, Iterator, Optional, TypeVar

from app.core.logging import get_logger

logger = get_logger(__name__)

V = TypeVar("V")


@dataclass(frozen=True)
class CacheEntry(Generic[V]):
    """캐시 항목

    Attributes:
        value: 캐시된 값
        size: 항목 크기 (바이트, 크기 개념이 없으면 1)
        inserted_at: 저장 시각 (clock 기준)
        expires_at: 만료 시각 (clock 기준)
    """

    value: V
    size: int
    inserted_at: float
    expires_at: float


class LRUCache(Generic[V]):
    """TTL + 용량 제한 LRU 캐시

    단일 이벤트 루프에서만 접근한다고 가정하므로 락을 사용하지 않습니다.
    """

    def __init__(
        self,
        ttl_seconds: float,
        max_bytes: Optional[int] = None,
        max_entries: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
        name: str = "cache",
    ):
        """
        Args:
            ttl_seconds: 항목 유효 시간 (초)
            max_bytes: 전체 크기 예산 (None이면 제한 없음)
            max_entries: 최대 항목 수 (None이면 제한 없음)
            clock: 현재 시각 함수 (테스트에서 교체 가능)
            name: 로그에 표시할 캐시 이름
        """
        self.ttl_seconds = ttl_seconds
        self.max_bytes = max_bytes
        self.max_entries = max_entries
        self.name = name
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry[V]] = OrderedDict()
        self._total_size = 0
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    @property
    def total_size(self) -> int:
        return self._total_size

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        entry = self._entries.get(key)
        return entry is not None and entry.expires_at > self._clock()

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries.keys()))

    def get_entry(self, key: str) -> Optional[CacheEntry[V]]:
        """항목 조회 (조회 시 최근 사용으로 갱신)

        만료된 항목은 조회 시점에 제거됩니다.
        """
        entry = self._entries.get(key)
        if entry is None:
            self.misses += 1
            return None

        if entry.expires_at <= self._clock():
            self._remove(key)
            self.misses += 1
            return None

        self._entries.move_to_end(key)
        self.hits += 1
        return entry

    def get(self, key: str) -> Optional[V]:
        entry = self.get_entry(key)
        return entry.value if entry else None

    def set(self, key: str, value: V, size: int = 1) -> bool:
        """항목 저장

        Args:
            key: 캐시 키
            value: 저장할 값
            size: 항목 크기 (바이트)

        Returns:
            저장 여부 (항목 하나가 전체 예산보다 크면 저장하지 않음)
        """
        size = max(size, 0)
        if self.max_bytes is not None and size > self.max_bytes:
            logger.debug(
                f"[{self.name}] Entry too large to cache: {key} "
                f"({size} > {self.max_bytes} bytes)"
            )
            return False

        if key in self._entries:
            self._remove(key)

        now = self._clock()
        self._entries[key] = CacheEntry(
            value=value,
            size=size,
            inserted_at=now,
            expires_at=now + self.ttl_seconds,
        )
        self._total_size += size
        self._evict_over_budget()
        return True

    def delete(self, key: str) -> bool:
        if key not in self._entries:
            return False
        self._remove(key)
        return True

    def delete_where(self, predicate: Callable[[str, V], bool]) -> int:
        """조건(키, 값)에 맞는 항목을 모두 제거

        Returns:
            제거된 항목 수
        """
        keys = [
            key
            for key, entry in self._entries.items()
            if predicate(key, entry.value)
        ]
        for key in keys:
            self._remove(key)
        return len(keys)

    def purge_expired(self) -> int:
        """만료된 항목 정리

        Returns:
            제거된 항목 수
        """
        now = self._clock()
        return self.delete_where(
            lambda key, _: self._entries[key].expires_at <= now
        )

    def clear(self) -> None:
        self._entries.clear()
        self._total_size = 0

    def stats(self) -> dict[str, int]:
        return {
            "entries": len(self._entries),
            "total_size": self._total_size,
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
        }

    def _remove(self, key: str) -> None:
        entry = self._entries.pop(key)
        self._total_size -= entry.size

    def _over_budget(self) -> bool:
        if self.max_bytes is not None and self._total_size > self.max_bytes:
            return True
        if (
            self.max_entries is not None
            and len(self._entries) > self.max_entries
        ):
            return True
        return False

    def _evict_over_budget(self) -> None:
        if not self._over_budget():
            return

        evicted = 0
        while self._entries and self._over_budget():
            key, entry = self._entries.popitem(last=False)
            self._total_size -= entry.size
            evicted += 1

        self.evictions += evicted
        logger.debug(
            f"[{self.name}] Cache overflow: evicted {evicted} entries "
            f"(size={self._total_size}, entries={len(self._entries)})"
        )
