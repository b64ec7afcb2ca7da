"""Bootstrap da aplicação — inicialização e wiring.

Composition root: configura logging, valida settings e conecta
implementações concretas aos protocolos. API e worker usam os mesmos
getters, então o modo embutido compartilha store e scheduler.

Uso:
    from app.bootstrap import initialize_app, get_reconcile_use_case

    initialize_app()
    use_case = get_reconcile_use_case()
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import TYPE_CHECKING

from app.observability import get_correlation_id, get_log_context
from config.logging import configure_logging
from config.settings import (
    get_base_settings,
    get_depix_settings,
    get_firestore_settings,
    get_job_settings,
    get_telegram_settings,
)

if TYPE_CHECKING:
    from app.jobs.worker import JobWorker
    from app.protocols.job_scheduler import JobSchedulerProtocol
    from app.protocols.processing_log import ProcessingLogProtocol
    from app.protocols.transaction_store import (
        TransactionReaderProtocol,
        TransactionStoreProtocol,
    )
    from app.services.notification_dispatcher import NotificationDispatcher
    from app.services.webhook_forwarder import WebhookForwarder
    from app.services.webhook_router import WebhookRouter
    from app.use_cases.depix import ReconcilePaymentUseCase

# Nome do serviço para logs e métricas
SERVICE_NAME = "atlas_bridge"

# Nível de log padrão (pode ser sobrescrito por env)
DEFAULT_LOG_LEVEL = "INFO"
STRICT_VALIDATION_ENVS = {"staging", "production"}

logger = logging.getLogger(__name__)


def initialize_app() -> None:
    """Configura logging JSON com correlation_id. Chamar uma vez no boot."""
    log_level = os.getenv("LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()

    configure_logging(
        level=log_level,
        service_name=SERVICE_NAME,
        correlation_id_getter=get_correlation_id,
        context_getter=get_log_context,
    )


def initialize_test_app() -> None:
    """Inicializa a aplicação para testes (DEBUG)."""
    configure_logging(
        level="DEBUG",
        service_name=f"{SERVICE_NAME}_test",
        correlation_id_getter=get_correlation_id,
        context_getter=get_log_context,
    )


def validate_runtime_settings() -> None:
    """Valida settings obrigatórias no startup.

    Em `staging`/`production` falha rápido para impedir boot inválido.
    Em `development` mantém alerta sem bloquear execução local.
    """
    base = get_base_settings()
    environment = base.environment
    strict_mode = environment in STRICT_VALIDATION_ENVS
    errors: list[str] = []

    errors.extend(f"base: {error}" for error in base.validate())
    errors.extend(f"depix: {error}" for error in get_depix_settings().validate())
    errors.extend(f"telegram: {error}" for error in get_telegram_settings().validate())
    errors.extend(f"jobs: {error}" for error in get_job_settings().validate(base.redis_url))

    if base.store_backend == "firestore":
        firestore_errors = get_firestore_settings().validate(base.gcp_project)
        errors.extend(f"firestore: {error}" for error in firestore_errors)

    if strict_mode and base.store_backend == "memory":
        errors.append("base: STORE_BACKEND=memory não é permitido fora de development")
    if strict_mode and get_job_settings().backend == "memory":
        errors.append("jobs: JOB_BACKEND=memory não é permitido fora de development")

    if not errors:
        logger.info(
            "settings_validated",
            extra={"component": "bootstrap", "result": "ok", "environment": environment},
        )
        return

    logger.warning(
        "settings_validation_failed",
        extra={
            "component": "bootstrap",
            "result": "failed",
            "environment": environment,
            "error_count": len(errors),
            "errors": errors,
        },
    )
    if strict_mode:
        details = "\n".join(f"- {error}" for error in errors)
        raise RuntimeError(f"Configuração inválida para {environment}:\n{details}")


# ──────────────────────────────────────────────────────────────────────────────
# Getters (lazy initialization com cache)
# ──────────────────────────────────────────────────────────────────────────────


@lru_cache(maxsize=1)
def get_transaction_store() -> TransactionStoreProtocol:
    from app.bootstrap.dependencies_stores import create_transaction_store

    return create_transaction_store()


@lru_cache(maxsize=1)
def get_processing_log() -> ProcessingLogProtocol:
    from app.bootstrap.dependencies_stores import create_processing_log

    return create_processing_log()


@lru_cache(maxsize=1)
def get_job_scheduler() -> JobSchedulerProtocol:
    from app.bootstrap.dependencies_stores import create_job_scheduler

    return create_job_scheduler()


@lru_cache(maxsize=1)
def get_peer_reader() -> TransactionReaderProtocol | None:
    from app.bootstrap.dependencies_stores import create_peer_reader

    return create_peer_reader()


@lru_cache(maxsize=1)
def get_notification_dispatcher() -> NotificationDispatcher:
    from app.bootstrap.clients import create_telegram_client
    from app.bootstrap.dependencies_services import create_dispatcher

    return create_dispatcher(create_telegram_client())


@lru_cache(maxsize=1)
def get_webhook_router() -> WebhookRouter:
    from app.bootstrap.dependencies_services import create_webhook_router

    return create_webhook_router(get_transaction_store(), get_peer_reader())


@lru_cache(maxsize=1)
def get_webhook_forwarder() -> WebhookForwarder:
    from app.bootstrap.dependencies_services import create_webhook_forwarder

    return create_webhook_forwarder()


@lru_cache(maxsize=1)
def get_reconcile_use_case() -> ReconcilePaymentUseCase:
    from app.bootstrap.dependencies_services import create_reconcile_use_case

    return create_reconcile_use_case(
        get_transaction_store(),
        get_job_scheduler(),
        get_notification_dispatcher(),
        get_processing_log(),
    )


def build_job_worker() -> JobWorker:
    """Cria worker ligado ao mesmo store/scheduler/dispatcher da API."""
    from app.bootstrap.dependencies_services import create_job_worker

    return create_job_worker(
        get_transaction_store(),
        get_job_scheduler(),
        get_notification_dispatcher(),
    )


def reset_dependencies() -> None:
    """Limpa singletons (testes e recarga de settings)."""
    for getter in (
        get_transaction_store,
        get_processing_log,
        get_job_scheduler,
        get_peer_reader,
        get_notification_dispatcher,
        get_webhook_router,
        get_webhook_forwarder,
        get_reconcile_use_case,
    ):
        getter.cache_clear()
