"""Factories de serviços, casos de uso e worker."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from app.infra.http import HttpClient, HttpClientConfig
from app.jobs.handlers import ExpirationJobHandler, ReminderJobHandler
from app.jobs.models import JobKind
from app.jobs.worker import JobWorker
from app.services.notification_dispatcher import NotificationDispatcher
from app.services.webhook_forwarder import WebhookForwarder
from app.services.webhook_router import PeerDeployment, WebhookRouter
from app.use_cases.depix import ReconcilePaymentUseCase
from config.settings import get_depix_settings, get_job_settings, get_telegram_settings

if TYPE_CHECKING:
    from app.protocols.chat_transport import ChatTransportProtocol
    from app.protocols.job_scheduler import JobSchedulerProtocol
    from app.protocols.processing_log import ProcessingLogProtocol
    from app.protocols.transaction_store import (
        TransactionReaderProtocol,
        TransactionStoreProtocol,
    )

logger = logging.getLogger(__name__)


def create_dispatcher(transport: ChatTransportProtocol) -> NotificationDispatcher:
    telegram = get_telegram_settings()
    return NotificationDispatcher(
        transport,
        support_contact=telegram.support_contact,
        community_group=telegram.community_group,
        followup_delay_seconds=get_job_settings().followup_delay_seconds,
    )


def create_webhook_router(
    store: TransactionReaderProtocol,
    peer_reader: TransactionReaderProtocol | None,
) -> WebhookRouter:
    depix = get_depix_settings()
    peers: list[PeerDeployment] = []
    if peer_reader is not None:
        peers.append(
            PeerDeployment(
                name=depix.peer_name,
                webhook_url=depix.peer_webhook_url,
                reader=peer_reader,
            )
        )
    return WebhookRouter(store, peers)


def create_webhook_forwarder() -> WebhookForwarder:
    depix = get_depix_settings()
    config = HttpClientConfig(
        timeout_seconds=depix.forward_timeout_seconds,
        max_retries=depix.forward_max_retries,
        backoff_base_seconds=depix.forward_backoff_seconds,
        backoff_max_seconds=max(depix.forward_backoff_seconds * 4, 1.0),
    )
    return WebhookForwarder(HttpClient(config))


def create_reconcile_use_case(
    store: TransactionStoreProtocol,
    scheduler: JobSchedulerProtocol,
    dispatcher: NotificationDispatcher,
    processing_log: ProcessingLogProtocol | None,
) -> ReconcilePaymentUseCase:
    return ReconcilePaymentUseCase(
        store=store,
        scheduler=scheduler,
        dispatcher=dispatcher,
        processing_log=processing_log,
    )


def create_job_worker(
    store: TransactionStoreProtocol,
    scheduler: JobSchedulerProtocol,
    dispatcher: NotificationDispatcher,
) -> JobWorker:
    settings = get_job_settings()
    handlers = {
        JobKind.REMINDER: ReminderJobHandler(
            store=store,
            dispatcher=dispatcher,
            default_support_contact=get_telegram_settings().support_contact,
        ),
        JobKind.EXPIRATION: ExpirationJobHandler(
            store=store,
            scheduler=scheduler,
            dispatcher=dispatcher,
        ),
    }
    logger.info(
        "job_worker_created",
        extra={"max_attempts": settings.max_attempts, "backend": settings.backend},
    )
    return JobWorker(
        scheduler,
        handlers,
        max_attempts=settings.max_attempts,
        retry_backoff_seconds=settings.retry_backoff_seconds,
        poll_interval_seconds=settings.poll_interval_seconds,
    )
