"""공통 API 응답 스키마

모든 엔드포인트는 ``{"success", "message", "data"}`` 봉투로 응답하고,
에러는 ``{"success": false, "message", "error": {...}}`` 형태를 사용합니다.

Usage::

    from app.core.schemas import APIResponse, create_response
    return create_response(data=homepage, message="개인화 홈페이지를 조회했습니다.")

Note:
    Generic 타입의 classmethod는 Pydantic에서 제한이 있으므로
    팩토리 함수(create_response)를 사용하거나 직접 생성자를 호출하세요.
"""

from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, Field

DataT = TypeVar("DataT")

DEFAULT_SUCCESS_MESSAGE = "요청이 성공적으로 처리되었습니다."


class APIResponse(BaseModel, Generic[DataT]):
    """단일 데이터 API 응답"""

    success: bool = True
    message: str = DEFAULT_SUCCESS_MESSAGE
    data: Optional[DataT] = None


def create_response(
    data: Optional[DataT] = None,
    message: str = DEFAULT_SUCCESS_MESSAGE,
    success: bool = True,
) -> APIResponse[DataT]:
    """API 응답 생성 팩토리 함수"""
    return APIResponse(success=success, message=message, data=data)


class ErrorDetail(BaseModel):
    """에러 상세 정보"""

    code: str = Field(..., description="에러 코드")
    message: str = Field(..., description="에러 메시지")
    detail: Optional[dict[str, Any]] = Field(default=None, description="추가 정보")


class ErrorResponse(BaseModel):
    """에러 API 응답

    Example::

        {
            "success": false,
            "message": "세션 ID가 필요합니다.",
            "error": {
                "code": "SESSION_ID_REQUIRED",
                "message": "세션 ID가 필요합니다.",
                "detail": {}
            }
        }
    """

    success: bool = False
    message: str
    error: ErrorDetail
