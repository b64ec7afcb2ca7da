"""Modelo de domínio da transação Pix → DePix.

Uma transação nasce PENDING e sai desse estado uma única vez, para
PAID, FAILED ou EXPIRED. Quem garante a unicidade da transição é o
store (compare-and-transition atômico), nunca o chamador.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from decimal import Decimal
from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

MessageSlot = Literal["qr_message_id", "reminder_message_id"]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TransactionStatus(StrEnum):
    """Estados do ciclo de vida de uma transação."""

    PENDING = "PENDING"
    PAID = "PAID"
    FAILED = "FAILED"
    EXPIRED = "EXPIRED"

    def __str__(self) -> str:
        return self.value


TERMINAL_STATUSES: frozenset[TransactionStatus] = frozenset({
    TransactionStatus.PAID,
    TransactionStatus.FAILED,
    TransactionStatus.EXPIRED,
})


def is_terminal(status: TransactionStatus) -> bool:
    """Retorna True se o status não admite nova transição."""
    return status in TERMINAL_STATUSES


class EphemeralMessages(BaseModel):
    """Mensagens do chat que devem sumir quando a transação finaliza."""

    model_config = ConfigDict(extra="ignore")

    qr_message_id: int | None = None
    reminder_message_id: int | None = None

    def ids(self) -> list[int]:
        return [
            message_id
            for message_id in (self.qr_message_id, self.reminder_message_id)
            if message_id is not None
        ]

    @property
    def is_empty(self) -> bool:
        return not self.ids()


class Transaction(BaseModel):
    """Tentativa de pagamento Pix vinculada a um usuário do bot."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    owner_id: str = Field(..., min_length=1, description="ID do usuário no Telegram.")
    requested_amount: Decimal = Field(..., description="Valor do Pix em BRL.")
    expected_payout_amount: Decimal = Field(..., description="DePix esperado na carteira.")
    external_entry_id: str = Field(..., min_length=1, description="qrId emitido pela DePix.")
    status: TransactionStatus = TransactionStatus.PENDING
    settlement_reference: str | None = None
    ephemeral_messages: EphemeralMessages = Field(default_factory=EphemeralMessages)
    processor_status: str | None = None
    webhook_received_at: datetime | None = None
    webhook_delivery_count: int = 0
    expired_at: datetime | None = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @property
    def is_pending(self) -> bool:
        return self.status == TransactionStatus.PENDING

    def to_firestore_dict(self) -> dict[str, Any]:
        """Converte para dict compatível com Firestore.

        Decimais viram string para não perder precisão em float.
        """
        data = self.model_dump(mode="python")
        data["requested_amount"] = str(self.requested_amount)
        data["expected_payout_amount"] = str(self.expected_payout_amount)
        data["status"] = self.status.value
        return data

    @classmethod
    def from_firestore_dict(cls, data: dict[str, Any]) -> Transaction:
        return cls.model_validate(data)

    def to_log_dict(self) -> dict[str, Any]:
        """Campos seguros para log (sem owner_id)."""
        return {
            "transaction_id": self.id,
            "external_entry_id": self.external_entry_id,
            "status": self.status.value,
        }


__all__ = [
    "TERMINAL_STATUSES",
    "EphemeralMessages",
    "MessageSlot",
    "Transaction",
    "TransactionStatus",
    "is_terminal",
]
