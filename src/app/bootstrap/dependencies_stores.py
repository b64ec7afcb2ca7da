"""Factories de stores e infra baseadas em configuração de ambiente."""

from __future__ import annotations

import logging

from app.bootstrap.clients import create_async_redis_client, create_firestore_client
from app.infra.jobs import MemoryJobScheduler, RedisJobScheduler
from app.infra.stores import (
    FirestoreProcessingLog,
    FirestoreTransactionStore,
    MemoryProcessingLog,
    MemoryTransactionStore,
)
from app.protocols.job_scheduler import JobSchedulerProtocol
from app.protocols.processing_log import ProcessingLogProtocol
from app.protocols.transaction_store import TransactionReaderProtocol, TransactionStoreProtocol
from config.settings import (
    get_base_settings,
    get_depix_settings,
    get_firestore_settings,
    get_job_settings,
)

logger = logging.getLogger(__name__)


def _warn_memory_backend(component: str) -> None:
    environment = get_base_settings().environment
    if environment != "development":
        logger.warning(
            "memory_backend_in_non_dev",
            extra={"component": component, "backend": "memory", "environment": environment},
        )


def create_transaction_store() -> TransactionStoreProtocol:
    """Cria store de transações conforme STORE_BACKEND (memory|firestore)."""
    backend = get_base_settings().store_backend

    if backend == "firestore":
        collection = get_firestore_settings().collection_transactions
        store = FirestoreTransactionStore(create_firestore_client(), collection)
        logger.info("transaction_store_created", extra={"backend": "firestore", "collection": collection})
        return store

    if backend == "memory":
        _warn_memory_backend("transaction_store")
        logger.info("transaction_store_created", extra={"backend": "memory"})
        return MemoryTransactionStore()

    msg = f"STORE_BACKEND inválido: {backend}"
    raise ValueError(msg)


def create_processing_log() -> ProcessingLogProtocol:
    """Cria trilha de processamento no mesmo backend do store."""
    if get_base_settings().store_backend == "firestore":
        collection = get_firestore_settings().collection_processing_log
        logger.info("processing_log_created", extra={"backend": "firestore"})
        return FirestoreProcessingLog(create_firestore_client(), collection)
    logger.info("processing_log_created", extra={"backend": "memory"})
    return MemoryProcessingLog()


def create_job_scheduler() -> JobSchedulerProtocol:
    """Cria broker de jobs conforme JOB_BACKEND (memory|redis)."""
    settings = get_job_settings()

    if settings.backend == "redis":
        scheduler = RedisJobScheduler(
            create_async_redis_client(),
            key_prefix=settings.queue_prefix,
            lease_seconds=settings.lease_seconds,
        )
        logger.info("job_scheduler_created", extra={"backend": "redis", "prefix": settings.queue_prefix})
        return scheduler

    if settings.backend == "memory":
        _warn_memory_backend("job_scheduler")
        logger.info("job_scheduler_created", extra={"backend": "memory"})
        return MemoryJobScheduler(lease_seconds=settings.lease_seconds)

    msg = f"JOB_BACKEND inválido: {settings.backend}"
    raise ValueError(msg)


def create_peer_reader() -> TransactionReaderProtocol | None:
    """Leitor somente-leitura do store do deployment par (None se não houver)."""
    depix = get_depix_settings()
    if not depix.peer_enabled:
        return None
    client = create_firestore_client(depix.peer_firestore_project_id)
    logger.info(
        "peer_reader_created",
        extra={"peer": depix.peer_name, "collection": depix.peer_transactions_collection},
    )
    return FirestoreTransactionStore(client, depix.peer_transactions_collection)
