"""Telemetry 비콘 단위 테스트"""

import json

import httpx
import pytest

from app.core.config import settings
from app.core.telemetry import BeaconSink, create_beacon_sink


class TestBeaconSink:
    """지표 전송"""

    def test_disabled_without_endpoint(self):
        """엔드포인트가 없으면 전송하지 않음"""
        sink = BeaconSink(endpoint=None)

        assert sink.enabled is False
        assert sink.send("prefetch_metrics", {"queue_size": 0}) is None

    @pytest.mark.asyncio
    async def test_posts_event_payload(self):
        """이벤트와 지표를 JSON으로 POST"""
        # Given
        received: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            received.append(json.loads(request.content))
            return httpx.Response(204)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        sink = BeaconSink(endpoint="http://collector.test/beacon", client=client)

        # When
        task = sink.send("prefetch_metrics", {"queue_size": 3})
        await task
        await sink.aclose()

        # Then
        assert received[0]["event"] == "prefetch_metrics"
        assert received[0]["payload"] == {"queue_size": 3}
        assert "sent_at" in received[0]
        await client.aclose()

    @pytest.mark.asyncio
    async def test_network_error_is_swallowed(self):
        """전송 실패는 호출자에게 전파되지 않음"""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        sink = BeaconSink(endpoint="http://collector.test/beacon", client=client)

        task = sink.send("behavior", {"events": 1})
        await task

        assert task.exception() is None
        await client.aclose()


class TestCreateBeaconSink:
    """설정 기반 전송기 생성"""

    def test_uses_configured_endpoint(self, monkeypatch):
        """설정의 수집 엔드포인트 사용"""
        monkeypatch.setattr(
            settings, "telemetry_endpoint", "http://collector.test/beacon"
        )

        sink = create_beacon_sink()

        assert sink.enabled is True
        assert sink.endpoint == "http://collector.test/beacon"

    def test_disabled_when_not_configured(self, monkeypatch):
        """엔드포인트 설정이 없으면 비활성"""
        monkeypatch.setattr(settings, "telemetry_endpoint", None)

        assert create_beacon_sink().enabled is False
