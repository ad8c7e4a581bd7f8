"""Telemetry 비콘 전송

집계된 성능/행동 지표를 fire-and-forget 방식으로 POST 합니다.
응답은 확인하지 않으며, 전송 실패는 DEBUG 로그만 남깁니다.
"""

import asyncio
from typing import Any, Optional

import httpx

from app.core.config import settings
from app.core.logging import get_logger
from app.core.utils.datetime import format_iso, now_utc

logger = get_logger(__name__)


class BeaconSink:
    """sendBeacon 스타일 지표 전송기"""

    def __init__(
        self,
        endpoint: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 2.0,
    ):
        """
        Args:
            endpoint: 수집 엔드포인트 URL (None이면 전송하지 않음)
            client: 공유 HTTP 클라이언트 (None이면 직접 생성)
            timeout: 요청 타임아웃 (초)
        """
        self.endpoint = endpoint
        self._client = client
        self._owns_client = client is None
        self._timeout = timeout
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def enabled(self) -> bool:
        return bool(self.endpoint)

    def send(
        self, event: str, payload: dict[str, Any]
    ) -> Optional["asyncio.Task[None]"]:
        """지표 전송 예약

        Args:
            event: 이벤트 이름
            payload: 전송할 지표

        Returns:
            전송 Task (비활성 상태이거나 이벤트 루프가 없으면 None)
        """
        if not self.endpoint:
            return None

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug(f"No running loop; telemetry '{event}' dropped")
            return None

        body = {
            "event": event,
            "payload": payload,
            "sent_at": format_iso(now_utc()),
        }
        task = loop.create_task(self._post(body))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _post(self, body: dict[str, Any]) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        try:
            await self._client.post(str(self.endpoint), json=body)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.debug(f"Telemetry beacon failed: {e}")

    async def aclose(self) -> None:
        """대기 중인 전송을 마무리하고 클라이언트 종료"""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None


def create_beacon_sink(
    client: Optional[httpx.AsyncClient] = None,
) -> BeaconSink:
    """설정 기반 BeaconSink 생성"""
    return BeaconSink(endpoint=settings.telemetry_endpoint, client=client)
