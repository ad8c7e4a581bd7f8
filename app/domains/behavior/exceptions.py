"""Behavior 도메인 예외 정의"""


class RecorderPersistenceError(Exception):
    """프로필 저장 실패

    기록기 내부에서만 발생하며 호출자에게 전파되지 않습니다.
    """

    def __init__(self, profile_key: str, cause: Exception):
        self.profile_key = profile_key
        self.cause = cause
        super().__init__(
            f"Failed to persist profile '{profile_key}': {cause}"
        )
