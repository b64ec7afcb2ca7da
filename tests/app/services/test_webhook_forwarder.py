"""Testes do WebhookForwarder com httpx.MockTransport."""

from __future__ import annotations

import httpx
import pytest

from app.infra.http import HttpClient, HttpClientConfig
from app.infra.stores import MemoryTransactionStore
from app.services.webhook_forwarder import WebhookForwarder
from app.services.webhook_router import PeerDeployment
from utils.errors import ForwardingFailure

RAW_BODY = b'{"qrId":"qr-peer","status":"depix_sent","blockchainTxID":"tx-9"}'
PEER = PeerDeployment(
    name="testnet",
    webhook_url="https://testnet.test/webhooks/depix_payment",
    reader=MemoryTransactionStore(),
)


def _forwarder(handler) -> WebhookForwarder:
    http_client = HttpClient(
        HttpClientConfig(max_retries=0, backoff_base_seconds=0.0),
        transport=httpx.MockTransport(handler),
    )
    return WebhookForwarder(http_client)


class TestWebhookForwarder:
    """Testes do encaminhamento ao peer."""

    @pytest.mark.asyncio
    async def test_forwards_body_and_authorization_verbatim(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, text="OK: Webhook processed.")

        response = await _forwarder(handler).forward(
            PEER, RAW_BODY, "Basic c2VjcmV0", correlation_id="corr-1"
        )

        request = seen[0]
        assert str(request.url) == PEER.webhook_url
        assert request.read() == RAW_BODY
        assert request.headers["Authorization"] == "Basic c2VjcmV0"
        assert request.headers["X-Correlation-Id"] == "corr-1"
        assert response.status_code == 200
        assert response.body == b"OK: Webhook processed."
        assert response.media_type == "text/plain"

    @pytest.mark.asyncio
    async def test_peer_rejection_raises_forwarding_failure(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, text="Unauthorized")

        with pytest.raises(ForwardingFailure) as exc_info:
            await _forwarder(handler).forward(PEER, RAW_BODY, "Basic x")

        assert exc_info.value.status_code == 401
        assert exc_info.value.peer_name == "testnet"

    @pytest.mark.asyncio
    async def test_unreachable_peer_raises_forwarding_failure(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timeout", request=request)

        with pytest.raises(ForwardingFailure) as exc_info:
            await _forwarder(handler).forward(PEER, RAW_BODY, "Basic x")

        assert exc_info.value.status_code is None

    @pytest.mark.asyncio
    async def test_peer_server_error_raises_forwarding_failure(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500)

        with pytest.raises(ForwardingFailure) as exc_info:
            await _forwarder(handler).forward(PEER, RAW_BODY, "Basic x")

        assert exc_info.value.status_code == 500
