"""Personalization 도메인 예외 정의"""

from enum import Enum
from typing import Optional

from app.core.exceptions import BadRequestException


class PersonalizationErrorCode(str, Enum):
    """개인화 도메인 에러 코드"""

    SESSION_ID_REQUIRED = "SESSION_ID_REQUIRED"
    INTERACTION_TYPE_REQUIRED = "INTERACTION_TYPE_REQUIRED"
    INVALID_PREFERENCES = "INVALID_PREFERENCES"


class SessionIdRequiredException(BadRequestException):
    """세션 ID가 없는 요청"""

    def __init__(self) -> None:
        super().__init__(
            message="세션 ID가 필요합니다.",
            error_code=PersonalizationErrorCode.SESSION_ID_REQUIRED,
        )


class InteractionTypeRequiredException(BadRequestException):
    """상호작용 종류가 없는 추적 요청"""

    def __init__(self) -> None:
        super().__init__(
            message="상호작용 종류가 필요합니다.",
            error_code=PersonalizationErrorCode.INTERACTION_TYPE_REQUIRED,
        )


class InvalidPreferencesException(BadRequestException):
    """선호도 갱신 요청이 올바르지 않은 경우"""

    def __init__(self, reason: str, user_id: Optional[str] = None):
        detail = {"reason": reason}
        if user_id:
            detail["user_id"] = user_id
        super().__init__(
            message="선호도 요청이 올바르지 않습니다.",
            error_code=PersonalizationErrorCode.INVALID_PREFERENCES,
            detail=detail,
        )


class SectionQueryError(Exception):
    """섹션 데이터 조회 실패

    섹션 생성기 내부에서만 사용되며 해당 섹션을 생략하는 것으로 처리됩니다.
    """

    def __init__(self, section_type: str, cause: Exception):
        self.section_type = section_type
        self.cause = cause
        super().__init__(f"Section query failed ({section_type}): {cause}")
