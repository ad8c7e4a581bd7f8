"""Personalization 단위 테스트 공용 픽스처"""

from datetime import datetime, timezone
from typing import Any, Optional

import pytest


class FakeBusinessStore:
    """메모리 업체 저장소

    각 조회의 반환값과 실패 여부를 테스트에서 지정합니다.
    호출 인자는 calls에 기록됩니다.
    """

    def __init__(self):
        self.by_category: list[dict[str, Any]] = []
        self.featured: list[dict[str, Any]] = []
        self.categories: list[dict[str, Any]] = []
        self.popular: list[dict[str, Any]] = []
        self.local: list[dict[str, Any]] = []
        self.trending: list[dict[str, Any]] = []
        self.failing: set[str] = set()
        self.calls: list[tuple[str, tuple]] = []

    def _result(self, name: str, args: tuple, value):
        self.calls.append((name, args))
        if name in self.failing:
            raise RuntimeError(f"{name} failed")
        return list(value)

    async def get_businesses_by_category(
        self,
        categories: list[str],
        location: Optional[str],
        limit: int,
        featured_only: bool = False,
        min_rating: Optional[float] = None,
    ):
        return self._result(
            "get_businesses_by_category",
            (tuple(categories), location, limit, featured_only, min_rating),
            self.by_category,
        )

    async def get_featured_businesses(self, location, limit):
        return self._result(
            "get_featured_businesses", (location, limit), self.featured
        )

    async def get_categories_by_slug(self, slugs):
        return self._result(
            "get_categories_by_slug", (tuple(slugs),), self.categories
        )

    async def get_popular_categories(self, limit):
        return self._result("get_popular_categories", (limit,), self.popular)

    async def get_local_businesses(self, location, min_rating, limit):
        return self._result(
            "get_local_businesses", (location, min_rating, limit), self.local
        )

    async def get_trending_businesses(self, location, since, limit):
        return self._result(
            "get_trending_businesses", (location, since, limit), self.trending
        )

    def called(self, name: str) -> list[tuple]:
        return [args for call, args in self.calls if call == name]


@pytest.fixture
def fake_store() -> FakeBusinessStore:
    return FakeBusinessStore()


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2024, 6, 30, 12, 0, tzinfo=timezone.utc)
