"""업체/카테고리 조회 인터페이스

섹션 생성기가 사용하는 읽기 전용 조회 연산입니다.
결과는 응답에 그대로 담을 수 있는 dict 목록입니다.
"""

from datetime import datetime
from typing import Any, Optional, Protocol

Record = dict[str, Any]


class BusinessStore(Protocol):
    async def get_businesses_by_category(
        self,
        categories: list[str],
        location: Optional[str],
        limit: int,
        featured_only: bool = False,
        min_rating: Optional[float] = None,
    ) -> list[Record]:
        ...

    async def get_featured_businesses(
        self, location: Optional[str], limit: int
    ) -> list[Record]:
        ...

    async def get_categories_by_slug(self, slugs: list[str]) -> list[Record]:
        ...

    async def get_popular_categories(self, limit: int) -> list[Record]:
        ...

    async def get_local_businesses(
        self, location: str, min_rating: float, limit: int
    ) -> list[Record]:
        ...

    async def get_trending_businesses(
        self, location: Optional[str], since: datetime, limit: int
    ) -> list[Record]:
        ...
