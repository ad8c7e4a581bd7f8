"""프리페치 도메인 값 객체"""

from dataclasses import dataclass, field
from enum import Enum

import httpx


class PrefetchState(str, Enum):
    """URL별 프리페치 상태

    QUEUED → FETCHING → {CACHED, FAILED}, 재시도 없음
    """

    QUEUED = "queued"
    FETCHING = "fetching"
    CACHED = "cached"
    FAILED = "failed"


@dataclass(frozen=True)
class PrefetchCandidate:
    """대기열의 프리페치 후보

    Attributes:
        url: 가져올 URL (대기열 키)
        strategy: 후보를 제안한 전략 우선순위
        content_priority: 콘텐츠 종류 우선순위
        queued_at: 대기열 등록 시각 (clock 기준)
        sequence: 등록 순번 (같은 시각 동률 정렬용)
    """

    url: str
    strategy: int
    content_priority: int
    queued_at: float
    sequence: int = 0

    @property
    def priority(self) -> int:
        return self.strategy + self.content_priority

    @property
    def sort_key(self) -> tuple[int, float, int]:
        return (self.priority, self.queued_at, self.sequence)


@dataclass(frozen=True)
class CachedResponse:
    """캐시된 프리페치 응답"""

    status_code: int
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @classmethod
    def from_httpx(cls, response: httpx.Response) -> "CachedResponse":
        return cls(
            status_code=response.status_code,
            headers=dict(response.headers),
            body=response.content,
        )

    @property
    def size(self) -> int:
        """Content-Length 헤더가 있으면 그 값, 없으면 본문 길이"""
        content_length = self.headers.get("content-length")
        if content_length and content_length.isdigit():
            return int(content_length)
        return len(self.body)
