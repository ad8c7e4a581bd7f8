"""A/B 변형 선택

식별자 해시로 사용자를 결정적으로 실험 변형에 배정합니다.
같은 식별자는 배포가 바뀌지 않는 한 항상 같은 변형을 받습니다.

- A: 섹션 순서 유지
- B: local_spotlight를 맨 앞으로, 나머지는 priority 순
"""

from enum import Enum
from typing import Optional

from app.core.config import settings
from app.domains.personalization.sections import Section, SectionType

ANONYMOUS_IDENTIFIER = "anonymous"


class Variant(str, Enum):
    A = "A"
    B = "B"


def _to_int32(value: int) -> int:
    return (value + 2**31) % 2**32 - 2**31


def hash_identifier(identifier: str) -> int:
    """32비트 문자열 해시 (h = h * 31 + code, UTF-16 코드 단위 기준)

    브라우저 클라이언트와 같은 버킷을 받도록 JavaScript 문자열 해시와
    동일한 결과를 냅니다.
    """
    encoded = identifier.encode("utf-16-le")
    h = 0
    for i in range(0, len(encoded), 2):
        code = int.from_bytes(encoded[i:i + 2], "little")
        h = _to_int32((h << 5) - h + code)
    return abs(h)


def bucket_for(identifier: Optional[str]) -> int:
    return hash_identifier(identifier or ANONYMOUS_IDENTIFIER) % 100


def select_variant(
    identifier: Optional[str], split: int = settings.ab_test_split
) -> Variant:
    """식별자의 실험 변형 (버킷 < split 이면 A)

    Args:
        identifier: 사용자 ID, 익명이면 세션 ID
            (둘 다 없으면 "anonymous"로 해시)
        split: A 변형 버킷 비율 (0~100)
    """
    return Variant.A if bucket_for(identifier) < split else Variant.B


def apply_variant(sections: list[Section], variant: Variant) -> list[Section]:
    """변형에 따라 섹션 순서 결정 (입력 목록은 변경하지 않음)"""
    if variant == Variant.A:
        return list(sections)

    return sorted(
        sections,
        key=lambda s: (s.type != SectionType.LOCAL_SPOTLIGHT, s.priority),
    )
