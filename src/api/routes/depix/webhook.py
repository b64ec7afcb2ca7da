"""Endpoint de webhook da DePix (status de pagamento Pix).

Endpoint:
- POST <DEPIX_WEBHOOK_PATH> (default /webhooks/depix_payment)

Fluxo:
1. Autentica o header Authorization (tempo constante)
2. Valida o corpo (qrId e status obrigatórios)
3. Roteia: local -> reconcilia; peer -> encaminha verbatim; nenhum -> 404
4. Responde texto puro; a DePix reenvia em qualquer status não-2xx

Respostas: 200, 400, 401, 404, 500, 502, 504 (orçamento da requisição).
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING

from fastapi import APIRouter, Request, Response, status

from api.connectors.depix.webhook.receive import parse_webhook_request
from app.bootstrap import get_reconcile_use_case, get_webhook_forwarder, get_webhook_router
from app.observability import (
    CORRELATION_ID_HEADER,
    bind_log_context,
    get_correlation_id,
    record_latency,
    reset_correlation_id,
    reset_log_context,
    set_correlation_id,
)
from app.services.webhook_router import LocalRoute, RemoteRoute
from config.settings import get_depix_settings
from utils.errors import (
    AuthenticationFailure,
    ForwardingFailure,
    NotFoundFailure,
    ValidationFailure,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

    from app.domain.payment_event import PaymentEvent

logger = logging.getLogger(__name__)


def _text(content: str, status_code: int) -> Response:
    return Response(content=content, media_type="text/plain", status_code=status_code)


async def receive_depix_webhook(request: Request) -> Response:
    """Recebe o webhook da DePix e devolve o desfecho em texto."""
    token = set_correlation_id(request.headers.get(CORRELATION_ID_HEADER.lower()))
    started = time.perf_counter()
    try:
        settings = get_depix_settings()
        raw_body = await request.body()
        try:
            async with asyncio.timeout(settings.webhook_timeout_seconds):
                return await _handle_webhook(raw_body, request.headers, settings.webhook_secret)
        except TimeoutError:
            logger.error(
                "depix_webhook_timeout",
                extra={"timeout_seconds": settings.webhook_timeout_seconds},
            )
            return _text("Gateway Timeout", status.HTTP_504_GATEWAY_TIMEOUT)
        except Exception as exc:
            logger.exception(
                "depix_webhook_failed",
                extra={"error_type": type(exc).__name__},
            )
            return _text("internal_error", status.HTTP_500_INTERNAL_SERVER_ERROR)
    finally:
        record_latency(
            "depix_webhook",
            "receive",
            (time.perf_counter() - started) * 1000,
            get_correlation_id(),
        )
        reset_correlation_id(token)


async def _handle_webhook(
    raw_body: bytes,
    headers: Mapping[str, str],
    secret: str,
) -> Response:
    try:
        event = parse_webhook_request(raw_body=raw_body, headers=headers, secret=secret)
    except AuthenticationFailure:
        logger.warning("depix_webhook_unauthorized", extra={"payload_size": len(raw_body)})
        return _text("Unauthorized", status.HTTP_401_UNAUTHORIZED)
    except ValidationFailure as exc:
        logger.warning("depix_webhook_invalid", extra={"error": str(exc)})
        return _text("Bad Request", status.HTTP_400_BAD_REQUEST)

    logger.info(
        "depix_webhook_received",
        extra={
            "external_entry_id": event.external_entry_id,
            "processor_status": event.terminal_signal,
        },
    )

    context_token = bind_log_context(external_entry_id=event.external_entry_id)
    try:
        return await _dispatch_event(event, raw_body, headers)
    finally:
        reset_log_context(context_token)


async def _dispatch_event(
    event: PaymentEvent,
    raw_body: bytes,
    headers: Mapping[str, str],
) -> Response:
    route = await get_webhook_router().route(event.external_entry_id)

    if isinstance(route, LocalRoute):
        try:
            result = await get_reconcile_use_case().execute(event)
        except NotFoundFailure:
            return _text("Not Found", status.HTTP_404_NOT_FOUND)
        return _text(result.message, status.HTTP_200_OK)

    if isinstance(route, RemoteRoute):
        try:
            forwarded = await get_webhook_forwarder().forward(
                route.peer,
                raw_body,
                headers.get("authorization", ""),
                get_correlation_id(),
            )
        except ForwardingFailure as exc:
            logger.error(
                "depix_webhook_forward_failed",
                extra={
                    "peer": exc.peer_name,
                    "status_code": exc.status_code,
                    "external_entry_id": event.external_entry_id,
                },
            )
            return _text("Bad Gateway", status.HTTP_502_BAD_GATEWAY)
        return Response(
            content=forwarded.body,
            media_type=forwarded.media_type,
            status_code=forwarded.status_code,
        )

    logger.warning(
        "depix_webhook_unknown_transaction",
        extra={"external_entry_id": event.external_entry_id},
    )
    return _text("Not Found", status.HTTP_404_NOT_FOUND)


def create_depix_router() -> APIRouter:
    """Router com o webhook no caminho configurado."""
    router = APIRouter()
    router.add_api_route(
        get_depix_settings().webhook_path,
        receive_depix_webhook,
        methods=["POST"],
        response_model=None,
        name="depix_webhook",
    )
    return router
