"""시간 측정 유틸리티"""

import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Generator


def calculate_elapsed_time_ms(start_time: float) -> float:
    """시작 시간으로부터 경과 시간을 밀리초로 계산

    Args:
        start_time: perf_counter() 시작 시간

    Returns:
        float: 경과 시간 (밀리초)
    """
    return (time.perf_counter() - start_time) * 1000


@dataclass
class Stopwatch:
    """경과 시간 기록기"""

    started_at: float = field(default_factory=time.perf_counter)
    elapsed_ms: float = 0.0

    def stop(self) -> float:
        self.elapsed_ms = calculate_elapsed_time_ms(self.started_at)
        return self.elapsed_ms


@contextmanager
def measure_time() -> Generator[Stopwatch, None, None]:
    """처리 시간을 측정하는 컨텍스트 매니저

    Usage:
        with measure_time() as timer:
            ...
        elapsed_ms = timer.elapsed_ms

    Yields:
        Stopwatch: 블록 종료 시 elapsed_ms가 채워짐 (예외 발생 시에도)
    """
    timer = Stopwatch()
    try:
        yield timer
    finally:
        timer.stop()
