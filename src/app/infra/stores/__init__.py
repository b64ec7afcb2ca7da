"""Stores — implementações concretas de persistência.

Módulos disponíveis:
    - firestore_transaction_store: Store de transações Pix usando Firestore
    - firestore_processing_log: Trilha de webhooks processados no Firestore
    - memory_stores: Stores em memória para desenvolvimento/testes
"""

from __future__ import annotations

from app.infra.stores.firestore_processing_log import FirestoreProcessingLog
from app.infra.stores.firestore_transaction_store import FirestoreTransactionStore
from app.infra.stores.memory_stores import (
    MemoryProcessingLog,
    MemoryTransactionStore,
)

__all__ = [
    # Firestore
    "FirestoreProcessingLog",
    "FirestoreTransactionStore",
    # Memory (dev/test)
    "MemoryProcessingLog",
    "MemoryTransactionStore",
]
