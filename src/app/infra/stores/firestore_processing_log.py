"""Firestore Processing Log — trilha dos webhooks processados.

Append-only, um documento por desfecho de reconciliação. Ajuda a
investigar reclamações ("paguei e não recebi") sem depender de logs.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from app.protocols.processing_log import ProcessingLogProtocol

if TYPE_CHECKING:
    from google.cloud.firestore import Client as FirestoreClient

logger = logging.getLogger(__name__)

PROCESSING_LOG_COLLECTION = "transaction_processing_log"


class FirestoreProcessingLog(ProcessingLogProtocol):
    """Log de processamento usando Firestore.

    Características:
        - Append-only (sem updates)
        - Document ID ordenável por entry/tempo
        - TTL via Firestore TTL policies sobre `created_at`
        - Sem PII nos registros

    Args:
        firestore_client: Cliente Firestore
        collection_name: Nome da collection
    """

    def __init__(
        self,
        firestore_client: FirestoreClient,
        collection_name: str = PROCESSING_LOG_COLLECTION,
    ) -> None:
        self._db = firestore_client
        self._collection = collection_name

    async def append(self, record: dict[str, Any]) -> None:
        await asyncio.to_thread(self._append_sync, record)

    def _append_sync(self, record: dict[str, Any]) -> None:
        now = datetime.now(UTC)
        enriched = {
            **record,
            "timestamp": now.isoformat(),
            "created_at": now,  # Para TTL do Firestore
        }
        entry_id = str(record.get("external_entry_id", "unknown")).replace("/", "_")
        doc_id = f"{entry_id}_{now.strftime('%Y%m%d%H%M%S%f')}"

        try:
            self._db.collection(self._collection).document(doc_id).set(enriched)
            logger.debug(
                "processing_log_appended",
                extra={"doc_id": doc_id, "outcome": record.get("outcome", "unknown")},
            )
        except Exception as exc:
            # Não falhar a reconciliação por erro de trilha
            logger.error(
                "processing_log_append_error",
                extra={"error_type": type(exc).__name__, "doc_id": doc_id},
            )
