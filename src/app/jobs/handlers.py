"""Handlers dos jobs diferidos.

Ambos releem o store antes de agir: se o webhook já finalizou a
transação, o job vira no-op. A ordem webhook/job é irrelevante.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Protocol

from app.domain.transaction import TransactionStatus
from app.jobs.models import JobKind
from app.protocols.transaction_store import TransitionResult
from app.services.notification_texts import reminder_message

if TYPE_CHECKING:
    from app.jobs.models import ScheduledJob
    from app.protocols.job_scheduler import JobSchedulerProtocol
    from app.protocols.transaction_store import TransactionStoreProtocol
    from app.services.notification_dispatcher import NotificationDispatcher

logger = logging.getLogger(__name__)


class JobHandler(Protocol):
    """Executa um job; exceções sinalizam falha e disparam retry."""

    async def handle(self, job: ScheduledJob) -> str: ...


class ReminderJobHandler:
    """Envia o lembrete "seus DePix podem levar alguns instantes".

    O message_id é gravado condicionalmente (status ainda PENDING). Se a
    transação finalizou entre a leitura e a gravação, o lembrete recém
    enviado é apagado.
    """

    def __init__(
        self,
        *,
        store: TransactionStoreProtocol,
        dispatcher: NotificationDispatcher,
        default_support_contact: str,
    ) -> None:
        self._store = store
        self._dispatcher = dispatcher
        self._support_contact = default_support_contact

    async def handle(self, job: ScheduledJob) -> str:
        entry_id = job.external_entry_id
        transaction = await self._store.get_by_external_entry_id(entry_id)
        if transaction is None or not transaction.is_pending:
            logger.info(
                "reminder_skipped",
                extra={
                    "external_entry_id": entry_id,
                    "status": transaction.status.value if transaction else None,
                },
            )
            return "noop"

        support_contact = job.payload.get("support_contact") or self._support_contact
        message_id = await self._dispatcher.send_text(
            transaction.owner_id, entry_id, reminder_message(support_contact)
        )
        if message_id is None:
            return "delivery_failed"

        attached = await self._store.attach_message(
            entry_id, "reminder_message_id", message_id, TransactionStatus.PENDING
        )
        if not attached:
            await self._dispatcher.delete_message(transaction.owner_id, entry_id, message_id)
            logger.info("reminder_retracted", extra={"external_entry_id": entry_id})
            return "retracted"

        logger.info("reminder_sent", extra={"external_entry_id": entry_id})
        return "sent"


class ExpirationJobHandler:
    """Expira a cobrança se ninguém a finalizou antes."""

    def __init__(
        self,
        *,
        store: TransactionStoreProtocol,
        scheduler: JobSchedulerProtocol,
        dispatcher: NotificationDispatcher,
    ) -> None:
        self._store = store
        self._scheduler = scheduler
        self._dispatcher = dispatcher

    async def handle(self, job: ScheduledJob) -> str:
        entry_id = job.external_entry_id
        outcome = await self._store.compare_and_transition(
            entry_id,
            TransactionStatus.PENDING,
            TransactionStatus.EXPIRED,
            {"expired_at": datetime.now(UTC)},
        )
        if outcome.result != TransitionResult.SUCCESS:
            logger.info(
                "expiration_skipped",
                extra={"external_entry_id": entry_id, "result": outcome.result.value},
            )
            return "noop"

        try:
            await self._scheduler.cancel(JobKind.REMINDER, entry_id)
        except Exception as exc:
            logger.warning(
                "job_cancel_failed",
                extra={
                    "external_entry_id": entry_id,
                    "kind": JobKind.REMINDER.value,
                    "error_type": type(exc).__name__,
                },
            )

        transaction = outcome.transaction
        assert transaction is not None
        logger.info("transaction_expired", extra=transaction.to_log_dict())
        await self._dispatcher.notify_terminal(transaction, outcome.released_messages)
        return "expired"
