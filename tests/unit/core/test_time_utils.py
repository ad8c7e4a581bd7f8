"""시간 측정 유틸리티 테스트"""

import time
from datetime import datetime, timezone

import pytest

from app.core.utils.datetime import days_ago, ensure_utc, parse_iso
from app.core.utils.time import (
    Stopwatch,
    calculate_elapsed_time_ms,
    measure_time,
)


def test_calculate_elapsed_time_ms():
    """경과 시간 계산 테스트"""
    start_time = time.perf_counter()
    time.sleep(0.02)
    elapsed = calculate_elapsed_time_ms(start_time)

    assert elapsed >= 20


def test_measure_time_context_manager():
    """measure_time 컨텍스트 매니저 테스트"""
    with measure_time() as timer:
        assert isinstance(timer, Stopwatch)
        assert timer.elapsed_ms == 0.0
        time.sleep(0.03)

    assert timer.elapsed_ms >= 30


def test_measure_time_with_exception():
    """예외 발생 시에도 시간이 측정되는지 테스트"""
    with pytest.raises(ValueError):
        with measure_time() as timer:
            time.sleep(0.02)
            raise ValueError("Test error")

    assert timer.elapsed_ms >= 20


def test_days_ago_uses_given_now():
    """기준 시각에서 n일 전"""
    now = datetime(2024, 3, 31, tzinfo=timezone.utc)

    assert days_ago(30, now) == datetime(2024, 3, 1, tzinfo=timezone.utc)


def test_ensure_utc_naive():
    """naive datetime은 UTC로 간주"""
    naive = datetime(2024, 1, 1, 12, 0)

    assert ensure_utc(naive).tzinfo == timezone.utc


def test_parse_iso_invalid():
    """잘못된 ISO 문자열은 None"""
    assert parse_iso("not-a-date") is None
