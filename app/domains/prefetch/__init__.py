"""Prefetch 도메인 모듈

다음에 필요할 리소스를 예측해 미리 가져오는 도메인입니다.

구조:
    - strategies.py: 전략/콘텐츠 우선순위와 후보 생성기
    - models.py: 후보, 캐시 응답, 상태 값 객체
    - scheduler.py: 우선순위 대기열 + 동시 실행 제한 스케줄러
    - exceptions.py: 도메인 예외
"""

from app.domains.prefetch.exceptions import PrefetchFetchError
from app.domains.prefetch.models import (
    CachedResponse,
    PrefetchCandidate,
    PrefetchState,
)
from app.domains.prefetch.scheduler import PrefetchScheduler
from app.domains.prefetch.strategies import (
    ContentPriority,
    PrefetchTarget,
    Strategy,
    priority_for_path,
)

__all__ = [
    "PrefetchScheduler",
    "PrefetchCandidate",
    "PrefetchState",
    "PrefetchTarget",
    "CachedResponse",
    "PrefetchFetchError",
    "Strategy",
    "ContentPriority",
    "priority_for_path",
]
