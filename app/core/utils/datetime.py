"""날짜/시간 유틸리티"""

from datetime import datetime, timedelta, timezone
from typing import Optional

UTC = timezone.utc


def now_utc() -> datetime:
    """현재 UTC 시간 반환"""
    return datetime.now(UTC)


def ensure_utc(dt: datetime) -> datetime:
    """naive datetime은 UTC로 간주하여 tz 정보를 부여"""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def format_iso(dt: datetime) -> str:
    """ISO 8601 형식으로 포맷"""
    return dt.isoformat()


def parse_iso(date_str: str) -> Optional[datetime]:
    """ISO 8601 형식 문자열 파싱"""
    try:
        return datetime.fromisoformat(date_str)
    except ValueError:
        return None


def days_ago(days: int, now: Optional[datetime] = None) -> datetime:
    """n일 전 시간 반환"""
    return (now or now_utc()) - timedelta(days=days)
