"""LRU 캐시 단위 테스트"""

from app.core.cache import LRUCache


class FakeClock:
    """수동으로 진행하는 시계"""

    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class TestLRUCacheBasics:
    """기본 저장/조회"""

    def test_set_and_get(self):
        """저장한 값 조회"""
        cache: LRUCache[str] = LRUCache(ttl_seconds=60)

        cache.set("a", "value")

        assert cache.get("a") == "value"
        assert "a" in cache
        assert cache.hits == 1

    def test_missing_key(self):
        """없는 키는 None, miss 집계"""
        cache: LRUCache[str] = LRUCache(ttl_seconds=60)

        assert cache.get("missing") is None
        assert cache.misses == 1

    def test_overwrite_replaces_size(self):
        """같은 키 재저장 시 크기 재계산"""
        cache: LRUCache[str] = LRUCache(ttl_seconds=60, max_bytes=100)

        cache.set("a", "x", size=40)
        cache.set("a", "y", size=10)

        assert cache.total_size == 10
        assert cache.get("a") == "y"


class TestLRUCacheExpiry:
    """TTL 만료"""

    def test_expired_entry_is_removed_on_read(self):
        """만료 항목은 조회 시 제거"""
        clock = FakeClock()
        cache: LRUCache[str] = LRUCache(ttl_seconds=10, clock=clock)
        cache.set("a", "value", size=5)

        clock.advance(10)

        assert cache.get("a") is None
        assert len(cache) == 0
        assert cache.total_size == 0

    def test_purge_expired(self):
        """만료 항목만 일괄 정리"""
        clock = FakeClock()
        cache: LRUCache[str] = LRUCache(ttl_seconds=10, clock=clock)
        cache.set("old", "1")
        clock.advance(5)
        cache.set("new", "2")
        clock.advance(6)

        removed = cache.purge_expired()

        assert removed == 1
        assert list(cache) == ["new"]


class TestLRUCacheBudget:
    """용량 예산과 LRU 제거"""

    def test_evicts_least_recently_used(self):
        """예산 초과 시 가장 오래 사용하지 않은 항목 제거"""
        # Given
        cache: LRUCache[str] = LRUCache(ttl_seconds=60, max_bytes=100)
        cache.set("a", "a", size=40)
        cache.set("b", "b", size=40)
        cache.get("a")

        # When
        cache.set("c", "c", size=40)

        # Then
        assert "b" not in cache
        assert "a" in cache
        assert "c" in cache
        assert cache.total_size <= 100
        assert cache.evictions == 1

    def test_entry_larger_than_budget_is_rejected(self):
        """예산보다 큰 항목은 저장하지 않음"""
        cache: LRUCache[str] = LRUCache(ttl_seconds=60, max_bytes=100)
        cache.set("a", "a", size=50)

        stored = cache.set("huge", "x", size=101)

        assert stored is False
        assert "huge" not in cache
        assert "a" in cache

    def test_max_entries(self):
        """항목 수 제한"""
        cache: LRUCache[int] = LRUCache(ttl_seconds=60, max_entries=2)

        for i in range(3):
            cache.set(str(i), i)

        assert len(cache) == 2
        assert "0" not in cache

    def test_delete_where_by_value(self):
        """값 조건으로 삭제"""
        cache: LRUCache[dict] = LRUCache(ttl_seconds=60)
        cache.set("k1", {"user": "u1"})
        cache.set("k2", {"user": "u2"})
        cache.set("k3", {"user": "u1"})

        removed = cache.delete_where(lambda _, value: value["user"] == "u1")

        assert removed == 2
        assert list(cache) == ["k2"]

    def test_stats(self):
        """통계 집계"""
        cache: LRUCache[str] = LRUCache(ttl_seconds=60)
        cache.set("a", "1", size=3)
        cache.get("a")
        cache.get("b")

        assert cache.stats() == {
            "entries": 1,
            "total_size": 3,
            "hits": 1,
            "misses": 1,
            "evictions": 0,
        }
