"""요청 컨텍스트 테스트"""

import contextvars

from app.core.middlewares.context import (
    get_log_context,
    get_request_id,
    is_prefetch_request,
    set_prefetch_request,
    set_request_id,
)


class TestRequestContext:
    """요청 ID, 프리페치 컨텍스트"""

    def test_set_request_id_generates_uuid(self):
        """ID 없이 설정하면 UUID 생성"""
        def run():
            request_id = set_request_id()
            return request_id, get_request_id()

        request_id, current = contextvars.copy_context().run(run)

        assert len(request_id) == 36
        assert current == request_id

    def test_log_context_includes_request_and_extra(self):
        """로그 extra에 요청 ID, 프리페치 여부, 추가 필드 포함"""
        def run():
            set_request_id("req-1")
            set_prefetch_request(True)
            return get_log_context(session_id="s-1")

        context = contextvars.copy_context().run(run)

        assert context == {
            "request_id": "req-1",
            "prefetch": True,
            "session_id": "s-1",
        }

    def test_prefetch_defaults_to_false(self):
        """기본값은 프리페치 아님"""
        assert contextvars.Context().run(is_prefetch_request) is False
