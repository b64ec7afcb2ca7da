"""Reconciliação de um webhook DePix com o estado local da transação.

Fluxo para um evento autenticado e de dono local:
    1. Registra a entrega (contador, status bruto do processador)
    2. Cancela os jobs REMINDER e EXPIRATION (best-effort)
    3. Mapeia o status da DePix para PAID/FAILED; demais são não terminais
    4. compare_and_transition(PENDING -> destino); CONFLICT = já processado
    5. Em sucesso, entrega ao NotificationDispatcher

Reenvios do mesmo webhook e a corrida com o job de expiração terminam em
CONFLICT no passo 4: nenhuma segunda notificação é enviada.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from app.domain.transaction import TransactionStatus
from app.jobs.models import JobKind
from app.observability import get_correlation_id, record_latency, record_reconciliation_outcome
from app.protocols.transaction_store import TransitionResult
from utils.errors import NotFoundFailure

if TYPE_CHECKING:
    from app.domain.payment_event import PaymentEvent
    from app.protocols.job_scheduler import JobSchedulerProtocol
    from app.protocols.processing_log import ProcessingLogProtocol
    from app.protocols.transaction_store import TransactionStoreProtocol
    from app.services.notification_dispatcher import NotificationDispatcher, NotificationResult

logger = logging.getLogger(__name__)

PAID_SIGNALS = frozenset({"depix_sent"})
FAILED_SIGNALS = frozenset({"canceled", "error", "refunded", "expired"})
IN_PROGRESS_SIGNALS = frozenset({"pending", "under_review"})


class ReconciliationOutcome(StrEnum):
    RECONCILED = "reconciled"
    ALREADY_PROCESSED = "already_processed"
    NON_TERMINAL = "non_terminal"


_OUTCOME_MESSAGES: dict[ReconciliationOutcome, str] = {
    ReconciliationOutcome.RECONCILED: "OK: Webhook processed.",
    ReconciliationOutcome.ALREADY_PROCESSED: "OK: Transaction already processed.",
    ReconciliationOutcome.NON_TERMINAL: "OK: Non-terminal status ignored.",
}


@dataclass(frozen=True, slots=True)
class ReconciliationResult:
    """Desfecho devolvido ao webhook (sempre 200)."""

    outcome: ReconciliationOutcome
    external_entry_id: str
    status: TransactionStatus | None = None
    notification: NotificationResult | None = None

    @property
    def message(self) -> str:
        return _OUTCOME_MESSAGES[self.outcome]


def map_terminal_signal(signal: str) -> TransactionStatus | None:
    """Converte o status da DePix em status terminal local.

    Returns:
        PAID, FAILED ou None (sinal não terminal ou desconhecido).
    """
    normalized = signal.strip().lower()
    if normalized in PAID_SIGNALS:
        return TransactionStatus.PAID
    if normalized in FAILED_SIGNALS:
        return TransactionStatus.FAILED
    return None


class ReconcilePaymentUseCase:
    """Aplica exatamente uma transição terminal por transação.

    Args:
        store: Store de transações (fonte de verdade)
        scheduler: Broker dos jobs de lembrete e expiração
        dispatcher: Notificação ao usuário
        processing_log: Trilha opcional dos desfechos
    """

    def __init__(
        self,
        *,
        store: TransactionStoreProtocol,
        scheduler: JobSchedulerProtocol,
        dispatcher: NotificationDispatcher,
        processing_log: ProcessingLogProtocol | None = None,
    ) -> None:
        self._store = store
        self._scheduler = scheduler
        self._dispatcher = dispatcher
        self._processing_log = processing_log

    async def execute(self, event: PaymentEvent) -> ReconciliationResult:
        """Reconcilia o evento.

        Raises:
            NotFoundFailure: Transação sumiu entre o roteamento e a transição.
        """
        started = time.perf_counter()
        entry_id = event.external_entry_id

        await self._record_delivery(event)
        await self._cancel_jobs(entry_id)

        target = map_terminal_signal(event.terminal_signal)
        if target is None:
            self._log_non_terminal(event)
            result = ReconciliationResult(
                outcome=ReconciliationOutcome.NON_TERMINAL,
                external_entry_id=entry_id,
            )
            await self._finish(result, event, started)
            return result

        extra_fields: dict[str, Any] = {
            "processor_status": event.terminal_signal,
            "webhook_received_at": datetime.now(UTC),
        }
        # txid da Liquid só existe para pagamento concluído
        if target == TransactionStatus.PAID:
            extra_fields["settlement_reference"] = event.settlement_reference
        outcome = await self._store.compare_and_transition(
            entry_id, TransactionStatus.PENDING, target, extra_fields
        )

        if outcome.result == TransitionResult.NOT_FOUND:
            raise NotFoundFailure(entry_id)

        if outcome.result == TransitionResult.CONFLICT:
            current = outcome.transaction.status if outcome.transaction else None
            # Pago depois de expirar ou falhar: precisa de olho humano
            log = logger.info if current == target else logger.warning
            log(
                "payment_already_processed",
                extra={
                    "external_entry_id": entry_id,
                    "current_status": current.value if current else None,
                    "attempted_status": target.value,
                },
            )
            result = ReconciliationResult(
                outcome=ReconciliationOutcome.ALREADY_PROCESSED,
                external_entry_id=entry_id,
                status=current,
            )
            await self._finish(result, event, started)
            return result

        transaction = outcome.transaction
        assert transaction is not None
        self._check_amount(event, transaction.requested_amount)
        logger.info(
            "payment_reconciled",
            extra={**transaction.to_log_dict(), "processor_status": event.terminal_signal},
        )

        notification = await self._dispatcher.notify_terminal(
            transaction, outcome.released_messages
        )
        result = ReconciliationResult(
            outcome=ReconciliationOutcome.RECONCILED,
            external_entry_id=entry_id,
            status=target,
            notification=notification,
        )
        await self._finish(result, event, started)
        return result

    async def _record_delivery(self, event: PaymentEvent) -> None:
        try:
            await self._store.record_webhook_delivery(
                event.external_entry_id, event.terminal_signal
            )
        except Exception as exc:
            logger.warning(
                "webhook_delivery_bookkeeping_failed",
                extra={
                    "external_entry_id": event.external_entry_id,
                    "error_type": type(exc).__name__,
                },
            )

    async def _cancel_jobs(self, external_entry_id: str) -> None:
        for kind in (JobKind.REMINDER, JobKind.EXPIRATION):
            try:
                removed = await self._scheduler.cancel(kind, external_entry_id)
            except Exception as exc:
                logger.warning(
                    "job_cancel_failed",
                    extra={
                        "external_entry_id": external_entry_id,
                        "kind": kind.value,
                        "error_type": type(exc).__name__,
                    },
                )
                continue
            logger.debug(
                "job_cancel_attempted",
                extra={"external_entry_id": external_entry_id, "kind": kind.value, "removed": removed},
            )

    def _log_non_terminal(self, event: PaymentEvent) -> None:
        signal = event.terminal_signal.strip().lower()
        if signal == "under_review":
            event_name = "payment_under_review"
        elif signal == "pending":
            event_name = "payment_pending_at_processor"
        else:
            event_name = "payment_unknown_status"
        log = logger.warning if signal not in IN_PROGRESS_SIGNALS else logger.info
        log(
            event_name,
            extra={"external_entry_id": event.external_entry_id, "processor_status": signal},
        )

    def _check_amount(self, event: PaymentEvent, requested_amount: Decimal) -> None:
        if event.value_in_cents is None:
            return
        expected_cents = int((requested_amount * 100).to_integral_value())
        if expected_cents != event.value_in_cents:
            logger.warning(
                "payment_amount_mismatch",
                extra={
                    "external_entry_id": event.external_entry_id,
                    "expected_cents": expected_cents,
                    "received_cents": event.value_in_cents,
                },
            )

    async def _finish(
        self,
        result: ReconciliationResult,
        event: PaymentEvent,
        started: float,
    ) -> None:
        correlation_id = get_correlation_id() or None
        record_reconciliation_outcome(
            result.outcome.value,
            result.status.value if result.status else None,
            correlation_id,
        )
        record_latency(
            "reconcile_payment",
            "execute",
            (time.perf_counter() - started) * 1000,
            correlation_id,
        )
        if self._processing_log is None:
            return
        await self._processing_log.append(
            {
                "external_entry_id": event.external_entry_id,
                "processor_status": event.terminal_signal,
                "outcome": result.outcome.value,
                "status": result.status.value if result.status else None,
                "notified": bool(result.notification and result.notification.delivered),
                "correlation_id": correlation_id,
            }
        )
