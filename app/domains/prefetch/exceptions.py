"""Prefetch 도메인 예외 정의"""

from typing import Optional


class PrefetchFetchError(Exception):
    """프리페치 요청 실패 (타임아웃, 네트워크 오류, 2xx 이외 응답)

    스케줄러 내부에서 후보별로 처리되며 해당 후보만 FAILED로 끝납니다.
    """

    def __init__(
        self,
        url: str,
        reason: str,
        status_code: Optional[int] = None,
    ):
        self.url = url
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"Prefetch failed: {url} ({reason})")
