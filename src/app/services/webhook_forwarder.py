"""Encaminhamento verbatim do webhook para o deployment par."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from app.infra.http import HttpError
from app.observability import CORRELATION_ID_HEADER, record_latency
from utils.errors import ForwardingFailure

if TYPE_CHECKING:
    from app.infra.http import HttpClient
    from app.services.webhook_router import PeerDeployment

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ForwardedResponse:
    """Resposta do peer, repassada sem alteração ao processador."""

    status_code: int
    body: bytes
    media_type: str = "text/plain"


class WebhookForwarder:
    """POST do corpo bruto e do header Authorization originais ao peer.

    Qualquer resposta 2xx é repassada como veio. Falha de conexão,
    timeout ou status não-2xx viram ForwardingFailure (502 no webhook).
    Retentativas ficam a cargo do HttpClient configurado.
    """

    def __init__(self, http_client: HttpClient) -> None:
        self._http = http_client

    async def forward(
        self,
        peer: PeerDeployment,
        raw_body: bytes,
        authorization: str,
        correlation_id: str = "",
    ) -> ForwardedResponse:
        headers = {
            "Content-Type": "application/json",
            "Authorization": authorization,
        }
        if correlation_id:
            headers[CORRELATION_ID_HEADER] = correlation_id

        started = time.perf_counter()
        try:
            response = await self._http.post(peer.webhook_url, content=raw_body, headers=headers)
        except HttpError as exc:
            logger.warning(
                "webhook_forward_failed",
                extra={"peer": peer.name, "status_code": exc.status_code, "reason": str(exc)},
            )
            raise ForwardingFailure(
                "peer_unreachable", peer_name=peer.name, status_code=exc.status_code
            ) from exc
        finally:
            record_latency(
                "webhook_forwarder",
                "forward",
                (time.perf_counter() - started) * 1000,
                correlation_id or None,
            )

        if not 200 <= response.status_code < 300:
            logger.warning(
                "webhook_forward_rejected",
                extra={"peer": peer.name, "status_code": response.status_code},
            )
            raise ForwardingFailure(
                "peer_rejected", peer_name=peer.name, status_code=response.status_code
            )

        logger.info(
            "webhook_forwarded",
            extra={"peer": peer.name, "status_code": response.status_code},
        )
        media_type = response.headers.get("content-type", "text/plain").split(";")[0].strip()
        return ForwardedResponse(
            status_code=response.status_code,
            body=response.content,
            media_type=media_type or "text/plain",
        )
