"""Stores em memória — apenas para desenvolvimento e testes.

ATENÇÃO: Não usar em staging/production. Sem persistência entre reinícios.
"""

from __future__ import annotations

import threading
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from app.domain.transaction import (
    EphemeralMessages,
    MessageSlot,
    Transaction,
    TransactionStatus,
)
from app.protocols.processing_log import ProcessingLogProtocol
from app.protocols.transaction_store import (
    TransactionStoreProtocol,
    TransitionOutcome,
    TransitionResult,
    validate_extra_fields,
)

if TYPE_CHECKING:
    from collections.abc import Mapping


class MemoryTransactionStore(TransactionStoreProtocol):
    """Store de transações em memória — apenas para dev/test.

    Leitura e escrita de cada operação acontecem sob o mesmo lock, o que
    dá a mesma garantia do update condicional do Firestore.
    """

    def __init__(self) -> None:
        self._store: dict[str, Transaction] = {}  # external_entry_id -> Transaction
        self._lock = threading.Lock()

    async def create(self, transaction: Transaction) -> None:
        """Persiste transação nova."""
        with self._lock:
            if transaction.external_entry_id in self._store:
                msg = f"external_entry_id duplicado: {transaction.external_entry_id}"
                raise ValueError(msg)
            self._store[transaction.external_entry_id] = transaction.model_copy(deep=True)

    async def get_by_external_entry_id(self, external_entry_id: str) -> Transaction | None:
        with self._lock:
            current = self._store.get(external_entry_id)
            return current.model_copy(deep=True) if current else None

    async def compare_and_transition(
        self,
        external_entry_id: str,
        expected_status: TransactionStatus,
        new_status: TransactionStatus,
        extra_fields: Mapping[str, Any] | None = None,
    ) -> TransitionOutcome:
        fields = validate_extra_fields(extra_fields)
        with self._lock:
            current = self._store.get(external_entry_id)
            if current is None:
                return TransitionOutcome(result=TransitionResult.NOT_FOUND)
            if current.status != expected_status:
                return TransitionOutcome(
                    result=TransitionResult.CONFLICT,
                    transaction=current.model_copy(deep=True),
                )

            released = current.ephemeral_messages.model_copy()
            updated = current.model_copy(
                update={
                    **fields,
                    "status": new_status,
                    "ephemeral_messages": EphemeralMessages(),
                    "updated_at": datetime.now(UTC),
                },
                deep=True,
            )
            self._store[external_entry_id] = updated
            return TransitionOutcome(
                result=TransitionResult.SUCCESS,
                transaction=updated.model_copy(deep=True),
                released_messages=released,
            )

    async def attach_message(
        self,
        external_entry_id: str,
        slot: MessageSlot,
        message_id: int,
        expected_status: TransactionStatus = TransactionStatus.PENDING,
    ) -> bool:
        with self._lock:
            current = self._store.get(external_entry_id)
            if current is None or current.status != expected_status:
                return False
            messages = current.ephemeral_messages.model_copy(update={slot: message_id})
            self._store[external_entry_id] = current.model_copy(
                update={"ephemeral_messages": messages, "updated_at": datetime.now(UTC)}
            )
            return True

    async def record_webhook_delivery(
        self,
        external_entry_id: str,
        processor_status: str,
    ) -> None:
        with self._lock:
            current = self._store.get(external_entry_id)
            if current is None:
                return
            self._store[external_entry_id] = current.model_copy(
                update={
                    "webhook_delivery_count": current.webhook_delivery_count + 1,
                    "processor_status": processor_status,
                    "webhook_received_at": datetime.now(UTC),
                }
            )


class MemoryProcessingLog(ProcessingLogProtocol):
    """Log de processamento em memória — apenas para dev/test."""

    def __init__(self, max_records: int = 10000) -> None:
        self._records: list[dict[str, Any]] = []
        self._max_records = max_records

    async def append(self, record: dict[str, Any]) -> None:
        """Append de registro de processamento."""
        self._records.append({**record, "created_at": datetime.now(UTC).isoformat()})
        # Limita tamanho para evitar memory leak em dev
        if len(self._records) > self._max_records:
            self._records = self._records[-self._max_records:]

    def get_records(self) -> list[dict[str, Any]]:
        """Retorna todos os registros (apenas para testes)."""
        return list(self._records)
