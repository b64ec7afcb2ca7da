"""Parse e validação inicial do webhook DePix (sem PII)."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from api.connectors.depix.webhook.auth import authenticate
from app.domain.payment_event import PaymentEvent
from utils.errors import AuthenticationFailure, ValidationFailure

if TYPE_CHECKING:
    from collections.abc import Mapping


class DepixWebhookPayload(BaseModel):
    """Corpo do webhook; aceita os nomes da DePix e os nomes internos."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    external_entry_id: str = Field(
        ..., validation_alias=AliasChoices("qrId", "externalEntryId")
    )
    terminal_signal: str = Field(
        ..., validation_alias=AliasChoices("status", "terminalSignal")
    )
    settlement_reference: str | None = Field(
        default=None,
        validation_alias=AliasChoices("blockchainTxID", "settlementReference"),
    )
    value_in_cents: int | None = Field(default=None, validation_alias="valueInCents")

    @field_validator("external_entry_id", "terminal_signal")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("campo obrigatório vazio")
        return value

    @field_validator("settlement_reference")
    @classmethod
    def _blank_as_none(cls, value: str | None) -> str | None:
        return (value.strip() or None) if value else None

    def to_event(self) -> PaymentEvent:
        return PaymentEvent(
            external_entry_id=self.external_entry_id,
            terminal_signal=self.terminal_signal,
            settlement_reference=self.settlement_reference,
            value_in_cents=self.value_in_cents,
        )


def parse_webhook_request(
    raw_body: bytes,
    headers: Mapping[str, str],
    secret: str | None,
) -> PaymentEvent:
    """Autentica e parseia o webhook.

    Args:
        raw_body: Corpo bruto do request
        headers: Headers recebidos (chaves em minúsculas, como no Starlette)
        secret: Segredo configurado

    Raises:
        AuthenticationFailure: Header ausente ou segredo inválido
        ValidationFailure: JSON inválido ou sem qrId/status

    Returns:
        PaymentEvent pronto para roteamento.
    """
    if not authenticate(headers.get("authorization"), secret):
        raise AuthenticationFailure("invalid_credentials")

    try:
        data = json.loads(raw_body or b"{}")
    except json.JSONDecodeError as exc:
        raise ValidationFailure("invalid_json") from exc

    if not isinstance(data, dict):
        raise ValidationFailure("payload_not_object")

    try:
        payload = DepixWebhookPayload.model_validate(data)
    except ValidationError as exc:
        fields = sorted({str(error["loc"][0]) for error in exc.errors() if error.get("loc")})
        raise ValidationFailure(f"invalid_fields:{','.join(fields) or 'unknown'}") from exc

    return payload.to_event()
