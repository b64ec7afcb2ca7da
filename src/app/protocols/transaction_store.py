"""Protocolos de domínio para o store de transações.

O store é a única fonte de verdade do status. Toda mudança de status
passa por `compare_and_transition`, que é uma atualização condicional
única: dois caminhos concorrentes (webhook e job de expiração) nunca
aplicam ambos uma transição terminal.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from app.domain.transaction import EphemeralMessages, MessageSlot, Transaction, TransactionStatus

if TYPE_CHECKING:
    from collections.abc import Mapping

# Campos que podem acompanhar uma transição de status
TRANSITION_EXTRA_FIELDS = frozenset({
    "settlement_reference",
    "processor_status",
    "webhook_received_at",
    "expired_at",
})


class TransitionResult(StrEnum):
    SUCCESS = "success"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"


@dataclass(frozen=True, slots=True)
class TransitionOutcome:
    """Resultado de compare_and_transition.

    Attributes:
        result: SUCCESS, CONFLICT ou NOT_FOUND
        transaction: Estado após a operação (None se NOT_FOUND). Em CONFLICT
            é o estado atual, já terminal.
        released_messages: Mensagens efêmeras liberadas pela transição
            (limpas no store no mesmo update). Vazio fora de SUCCESS.
    """

    result: TransitionResult
    transaction: Transaction | None = None
    released_messages: EphemeralMessages = field(default_factory=EphemeralMessages)

    @property
    def succeeded(self) -> bool:
        return self.result == TransitionResult.SUCCESS


def validate_extra_fields(extra_fields: Mapping[str, Any] | None) -> dict[str, Any]:
    """Rejeita campos fora da allowlist (status só muda pelo store)."""
    fields = dict(extra_fields or {})
    unknown = set(fields) - TRANSITION_EXTRA_FIELDS
    if unknown:
        msg = f"Campos não permitidos na transição: {sorted(unknown)}"
        raise ValueError(msg)
    return fields


class TransactionReaderProtocol(ABC):
    """Contrato somente-leitura (usado também para stores de peers)."""

    @abstractmethod
    async def get_by_external_entry_id(self, external_entry_id: str) -> Transaction | None:
        """Busca transação pelo ID da DePix (qrId)."""


class TransactionStoreProtocol(TransactionReaderProtocol):
    """Contrato completo do store de transações."""

    @abstractmethod
    async def create(self, transaction: Transaction) -> None:
        """Persiste transação nova.

        Raises:
            ValueError: Se já existe transação com o mesmo external_entry_id.
        """

    @abstractmethod
    async def compare_and_transition(
        self,
        external_entry_id: str,
        expected_status: TransactionStatus,
        new_status: TransactionStatus,
        extra_fields: Mapping[str, Any] | None = None,
    ) -> TransitionOutcome:
        """Aplica a transição somente se o status atual for `expected_status`.

        Em sucesso, limpa as mensagens efêmeras no mesmo update e as devolve
        em `released_messages`.
        """

    @abstractmethod
    async def attach_message(
        self,
        external_entry_id: str,
        slot: MessageSlot,
        message_id: int,
        expected_status: TransactionStatus = TransactionStatus.PENDING,
    ) -> bool:
        """Registra mensagem efêmera se o status ainda for `expected_status`.

        Returns:
            True se gravou; False se a transação não existe ou já mudou de status.
        """

    @abstractmethod
    async def record_webhook_delivery(
        self,
        external_entry_id: str,
        processor_status: str,
    ) -> None:
        """Incrementa contador de entregas do webhook e guarda o status bruto."""
