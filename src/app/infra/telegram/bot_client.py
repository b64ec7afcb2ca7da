"""Cliente Telegram Bot API (sendMessage / deleteMessage).

Implementa ChatTransportProtocol. Toda falha vira TransientDeliveryFailure;
quem chama decide se registra e segue.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from app.infra.http import HttpClient, HttpClientConfig, HttpError
from utils.errors import TransientDeliveryFailure

if TYPE_CHECKING:
    import httpx

    from config.settings import TelegramSettings

logger = logging.getLogger(__name__)

# Mensagem já apagada (ou antiga demais) não é falha de entrega
_ALREADY_GONE_MARKERS = ("message to delete not found", "message can't be deleted")


class TelegramBotClient:
    """Adapter de saída para a Telegram Bot API.

    Args:
        settings: TelegramSettings (token, base URL, timeouts)
        http_client: HttpClient opcional (injetável em testes)
    """

    def __init__(
        self,
        settings: TelegramSettings,
        http_client: HttpClient | None = None,
    ) -> None:
        self._settings = settings
        self._http = http_client or HttpClient(
            HttpClientConfig(
                timeout_seconds=settings.request_timeout_seconds,
                max_retries=settings.max_retries,
                backoff_base_seconds=1.0,
                backoff_max_seconds=5.0,
            )
        )

    async def send_message(self, owner_id: str, text: str) -> int:
        payload = {"chat_id": owner_id, "text": text}
        body = await self._call("sendMessage", payload, operation="send")
        message_id = (body.get("result") or {}).get("message_id")
        if not isinstance(message_id, int):
            raise TransientDeliveryFailure("send", "missing_message_id")
        return message_id

    async def delete_message(self, owner_id: str, message_id: int) -> None:
        payload = {"chat_id": owner_id, "message_id": message_id}
        try:
            await self._call("deleteMessage", payload, operation="delete")
        except TransientDeliveryFailure as exc:
            if any(marker in exc.reason for marker in _ALREADY_GONE_MARKERS):
                logger.debug("telegram_message_already_gone", extra={"message_id": message_id})
                return
            raise

    async def _call(
        self,
        method: str,
        payload: dict[str, Any],
        *,
        operation: str,
    ) -> dict[str, Any]:
        try:
            url = f"{self._settings.api_endpoint}/{method}"
        except ValueError as exc:
            raise TransientDeliveryFailure(operation, "bot_token_missing") from exc

        try:
            response = await self._http.post(url, json=payload)
        except HttpError as exc:
            raise TransientDeliveryFailure(
                operation, f"http_error:{exc.status_code or 'connection'}"
            ) from exc

        body = _safe_json(response)
        if response.status_code >= 400 or not body.get("ok", False):
            description = str(body.get("description", "")).lower()
            logger.warning(
                "telegram_api_error",
                extra={
                    "method": method,
                    "status_code": response.status_code,
                    "description": description[:120],
                },
            )
            raise TransientDeliveryFailure(operation, description or f"status_{response.status_code}")
        return body


def _safe_json(response: httpx.Response) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}
