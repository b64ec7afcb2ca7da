"""Firestore Transaction Store — fonte de verdade das transações Pix.

Documentos ficam em `<collection>/<external_entry_id>`; o qrId da DePix
é o document ID, então a busca por chave de junção é um `get` direto.

Mudanças de status usam transações do Firestore: leitura e escrita
condicional no mesmo commit. Dois caminhos concorrentes nunca aplicam
ambos uma transição terminal; o perdedor recebe CONFLICT.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from app.domain.transaction import (
    EphemeralMessages,
    MessageSlot,
    Transaction,
    TransactionStatus,
)
from app.protocols.transaction_store import (
    TransactionStoreProtocol,
    TransitionOutcome,
    TransitionResult,
    validate_extra_fields,
)
from utils.errors import FirestoreUnavailableError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from google.cloud.firestore import Client as FirestoreClient
    from google.cloud.firestore import DocumentReference

logger = logging.getLogger(__name__)

TRANSACTIONS_COLLECTION = "pix_transactions"


class FirestoreTransactionStore(TransactionStoreProtocol):
    """Store de transações usando Firestore.

    Também serve como leitor somente-leitura do store de um peer
    (mesmo formato, outra collection ou projeto).

    Args:
        firestore_client: Cliente Firestore síncrono
        collection_name: Nome da collection (default: pix_transactions)
    """

    def __init__(
        self,
        firestore_client: FirestoreClient,
        collection_name: str = TRANSACTIONS_COLLECTION,
    ) -> None:
        self._db = firestore_client
        self._collection = collection_name

    def _document(self, external_entry_id: str) -> DocumentReference:
        if not external_entry_id or "/" in external_entry_id:
            msg = f"external_entry_id inválido para document ID: {external_entry_id!r}"
            raise ValueError(msg)
        return self._db.collection(self._collection).document(external_entry_id)

    # ──────────────────────────────────────────────────────────────
    # Async API (TransactionStoreProtocol)
    # ──────────────────────────────────────────────────────────────

    async def create(self, transaction: Transaction) -> None:
        await asyncio.to_thread(self._create_sync, transaction)

    async def get_by_external_entry_id(self, external_entry_id: str) -> Transaction | None:
        return await asyncio.to_thread(self._get_sync, external_entry_id)

    async def compare_and_transition(
        self,
        external_entry_id: str,
        expected_status: TransactionStatus,
        new_status: TransactionStatus,
        extra_fields: Mapping[str, Any] | None = None,
    ) -> TransitionOutcome:
        fields = validate_extra_fields(extra_fields)
        return await asyncio.to_thread(
            self._compare_and_transition_sync,
            external_entry_id,
            expected_status,
            new_status,
            fields,
        )

    async def attach_message(
        self,
        external_entry_id: str,
        slot: MessageSlot,
        message_id: int,
        expected_status: TransactionStatus = TransactionStatus.PENDING,
    ) -> bool:
        return await asyncio.to_thread(
            self._attach_message_sync,
            external_entry_id,
            slot,
            message_id,
            expected_status,
        )

    async def record_webhook_delivery(
        self,
        external_entry_id: str,
        processor_status: str,
    ) -> None:
        await asyncio.to_thread(
            self._record_webhook_delivery_sync,
            external_entry_id,
            processor_status,
        )

    # ──────────────────────────────────────────────────────────────
    # Sync backend (executado em thread)
    # ──────────────────────────────────────────────────────────────

    def _create_sync(self, transaction: Transaction) -> None:
        from google.api_core.exceptions import AlreadyExists

        ref = self._document(transaction.external_entry_id)
        try:
            ref.create(transaction.to_firestore_dict())
        except AlreadyExists as exc:
            msg = f"external_entry_id duplicado: {transaction.external_entry_id}"
            raise ValueError(msg) from exc
        except Exception as exc:
            raise FirestoreUnavailableError("Falha ao criar transação no Firestore") from exc
        logger.debug("transaction_created", extra=transaction.to_log_dict())

    def _get_sync(self, external_entry_id: str) -> Transaction | None:
        try:
            snapshot = self._document(external_entry_id).get()
        except ValueError:
            return None
        except Exception as exc:
            raise FirestoreUnavailableError("Falha ao ler transação no Firestore") from exc
        if not snapshot.exists:
            return None
        return Transaction.from_firestore_dict(snapshot.to_dict() or {})

    def _compare_and_transition_sync(
        self,
        external_entry_id: str,
        expected_status: TransactionStatus,
        new_status: TransactionStatus,
        fields: dict[str, Any],
    ) -> TransitionOutcome:
        from google.cloud import firestore

        try:
            ref = self._document(external_entry_id)
        except ValueError:
            return TransitionOutcome(result=TransitionResult.NOT_FOUND)

        @firestore.transactional
        def _apply(transaction: Any) -> TransitionOutcome:
            snapshot = ref.get(transaction=transaction)
            if not snapshot.exists:
                return TransitionOutcome(result=TransitionResult.NOT_FOUND)
            current = Transaction.from_firestore_dict(snapshot.to_dict() or {})
            if current.status != expected_status:
                return TransitionOutcome(result=TransitionResult.CONFLICT, transaction=current)

            now = datetime.now(UTC)
            transaction.update(
                ref,
                {
                    **fields,
                    "status": new_status.value,
                    "ephemeral_messages": EphemeralMessages().model_dump(),
                    "updated_at": now,
                },
            )
            updated = current.model_copy(
                update={
                    **fields,
                    "status": new_status,
                    "ephemeral_messages": EphemeralMessages(),
                    "updated_at": now,
                }
            )
            return TransitionOutcome(
                result=TransitionResult.SUCCESS,
                transaction=updated,
                released_messages=current.ephemeral_messages,
            )

        try:
            return _apply(self._db.transaction())
        except Exception as exc:
            raise FirestoreUnavailableError("Falha ao aplicar transição no Firestore") from exc

    def _attach_message_sync(
        self,
        external_entry_id: str,
        slot: MessageSlot,
        message_id: int,
        expected_status: TransactionStatus,
    ) -> bool:
        from google.cloud import firestore

        try:
            ref = self._document(external_entry_id)
        except ValueError:
            return False

        @firestore.transactional
        def _apply(transaction: Any) -> bool:
            snapshot = ref.get(transaction=transaction)
            if not snapshot.exists:
                return False
            if (snapshot.to_dict() or {}).get("status") != expected_status.value:
                return False
            transaction.update(
                ref,
                {f"ephemeral_messages.{slot}": message_id, "updated_at": datetime.now(UTC)},
            )
            return True

        try:
            return _apply(self._db.transaction())
        except Exception as exc:
            raise FirestoreUnavailableError("Falha ao registrar mensagem no Firestore") from exc

    def _record_webhook_delivery_sync(
        self,
        external_entry_id: str,
        processor_status: str,
    ) -> None:
        from google.api_core.exceptions import NotFound
        from google.cloud import firestore

        try:
            self._document(external_entry_id).update(
                {
                    "webhook_delivery_count": firestore.Increment(1),
                    "processor_status": processor_status,
                    "webhook_received_at": datetime.now(UTC),
                }
            )
        except (NotFound, ValueError):
            return
        except Exception as exc:
            raise FirestoreUnavailableError("Falha ao registrar entrega do webhook") from exc
