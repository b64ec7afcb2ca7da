"""Testes do ReconcilePaymentUseCase (cenários ponta a ponta em memória)."""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime, timedelta
from decimal import Decimal

import httpx
import pytest

from app.domain.payment_event import PaymentEvent
from app.domain.transaction import TransactionStatus
from app.infra.http import HttpClient, HttpClientConfig
from app.infra.telegram import TelegramBotClient
from app.jobs.handlers import ExpirationJobHandler
from app.jobs.models import JobKind, ScheduledJob
from app.jobs.worker import JobWorker
from app.services.notification_dispatcher import NotificationDispatcher
from app.use_cases.depix import (
    ReconcilePaymentUseCase,
    ReconciliationOutcome,
    attach_qr_message,
    map_terminal_signal,
    register_pending_transaction,
)
from config.settings import TelegramSettings
from utils.errors import NotFoundFailure


@pytest.fixture
def use_case(store, scheduler, dispatcher, processing_log) -> ReconcilePaymentUseCase:
    return ReconcilePaymentUseCase(
        store=store,
        scheduler=scheduler,
        dispatcher=dispatcher,
        processing_log=processing_log,
    )


async def _register(store, scheduler, entry: str = "qr-001") -> None:
    await register_pending_transaction(
        store=store,
        scheduler=scheduler,
        owner_id="555001",
        external_entry_id=entry,
        requested_amount=Decimal("150.00"),
        expected_payout_amount=Decimal("147.01"),
        reminder_delay_seconds=70,
        expiration_delay_seconds=1140,
        support_contact="@Suporte",
    )
    await attach_qr_message(store, entry, 500)


@pytest.mark.parametrize(
    ("signal", "expected"),
    [
        ("depix_sent", TransactionStatus.PAID),
        ("DEPIX_SENT", TransactionStatus.PAID),
        ("canceled", TransactionStatus.FAILED),
        ("error", TransactionStatus.FAILED),
        ("refunded", TransactionStatus.FAILED),
        ("expired", TransactionStatus.FAILED),
        ("pending", None),
        ("under_review", None),
        ("something_new", None),
    ],
)
def test_map_terminal_signal(signal, expected) -> None:
    assert map_terminal_signal(signal) == expected


class TestReconcilePayment:
    """Cenários de reconciliação."""

    @pytest.mark.asyncio
    async def test_paid_webhook_finalizes_and_notifies(
        self, use_case, store, scheduler, transport, processing_log
    ) -> None:
        await _register(store, scheduler)

        result = await use_case.execute(
            PaymentEvent(
                external_entry_id="qr-001",
                terminal_signal="depix_sent",
                settlement_reference="liquid-tx",
                value_in_cents=15000,
            )
        )

        assert result.outcome == ReconciliationOutcome.RECONCILED
        assert result.message == "OK: Webhook processed."
        stored = await store.get_by_external_entry_id("qr-001")
        assert stored.status == TransactionStatus.PAID
        assert stored.settlement_reference == "liquid-tx"
        assert stored.processor_status == "depix_sent"
        assert stored.webhook_received_at is not None
        assert stored.webhook_delivery_count == 1
        assert transport.deleted == [("555001", 500)]
        assert len(transport.sent) == 1
        assert "liquid-tx" in transport.texts()[0]
        assert await scheduler.get(JobKind.REMINDER, "qr-001") is None
        assert await scheduler.get(JobKind.EXPIRATION, "qr-001") is None
        (record,) = processing_log.get_records()
        assert record["outcome"] == "reconciled"
        assert record["notified"] is True
        assert "owner_id" not in record

    @pytest.mark.asyncio
    async def test_replayed_webhook_notifies_once(self, use_case, store, scheduler, transport) -> None:
        await _register(store, scheduler)
        event = PaymentEvent(external_entry_id="qr-001", terminal_signal="depix_sent")

        first = await use_case.execute(event)
        second = await use_case.execute(event)

        assert first.outcome == ReconciliationOutcome.RECONCILED
        assert second.outcome == ReconciliationOutcome.ALREADY_PROCESSED
        assert second.message == "OK: Transaction already processed."
        assert second.status == TransactionStatus.PAID
        assert len(transport.sent) == 1
        stored = await store.get_by_external_entry_id("qr-001")
        assert stored.webhook_delivery_count == 2

    @pytest.mark.asyncio
    async def test_failed_signal_finalizes_as_failed(self, use_case, store, scheduler, transport) -> None:
        await _register(store, scheduler)

        result = await use_case.execute(
            PaymentEvent(external_entry_id="qr-001", terminal_signal="refunded")
        )

        assert result.status == TransactionStatus.FAILED
        assert "refunded" in transport.texts()[0]

    @pytest.mark.asyncio
    async def test_late_webhook_after_expiration_is_conflict(
        self, use_case, store, scheduler, dispatcher, transport, caplog
    ) -> None:
        await _register(store, scheduler)
        worker = JobWorker(
            scheduler,
            {
                JobKind.EXPIRATION: ExpirationJobHandler(
                    store=store, scheduler=scheduler, dispatcher=dispatcher
                )
            },
        )
        await scheduler.cancel(JobKind.REMINDER, "qr-001")
        await worker.run_once(datetime.now(UTC) + timedelta(seconds=1200))

        with caplog.at_level(logging.WARNING):
            result = await use_case.execute(
                PaymentEvent(external_entry_id="qr-001", terminal_signal="depix_sent")
            )

        assert result.outcome == ReconciliationOutcome.ALREADY_PROCESSED
        assert result.status == TransactionStatus.EXPIRED
        stored = await store.get_by_external_entry_id("qr-001")
        assert stored.status == TransactionStatus.EXPIRED
        assert len(transport.sent) == 1
        assert "expirou" in transport.texts()[0]
        assert any(r.getMessage() == "payment_already_processed" for r in caplog.records)

    @pytest.mark.asyncio
    async def test_expiration_after_payment_is_noop(
        self, use_case, store, scheduler, dispatcher, transport
    ) -> None:
        await _register(store, scheduler)
        await use_case.execute(PaymentEvent(external_entry_id="qr-001", terminal_signal="depix_sent"))
        handler = ExpirationJobHandler(store=store, scheduler=scheduler, dispatcher=dispatcher)
        job = await scheduler.schedule(JobKind.EXPIRATION, "qr-001", {}, 0)

        assert await handler.handle(job) == "noop"
        stored = await store.get_by_external_entry_id("qr-001")
        assert stored.status == TransactionStatus.PAID
        assert len(transport.sent) == 1

    @pytest.mark.asyncio
    async def test_non_terminal_signal_keeps_pending(
        self, use_case, store, scheduler, transport, processing_log
    ) -> None:
        await _register(store, scheduler)

        result = await use_case.execute(
            PaymentEvent(external_entry_id="qr-001", terminal_signal="under_review")
        )

        assert result.outcome == ReconciliationOutcome.NON_TERMINAL
        assert result.message == "OK: Non-terminal status ignored."
        stored = await store.get_by_external_entry_id("qr-001")
        assert stored.status == TransactionStatus.PENDING
        assert stored.processor_status == "under_review"
        assert transport.sent == []
        assert processing_log.get_records()[0]["outcome"] == "non_terminal"

    @pytest.mark.asyncio
    async def test_any_webhook_cancels_scheduled_jobs(self, use_case, store, scheduler) -> None:
        await _register(store, scheduler)

        await use_case.execute(PaymentEvent(external_entry_id="qr-001", terminal_signal="pending"))

        assert await scheduler.get(JobKind.REMINDER, "qr-001") is None
        assert await scheduler.get(JobKind.EXPIRATION, "qr-001") is None

    @pytest.mark.asyncio
    async def test_missing_transaction_raises_not_found(self, use_case) -> None:
        with pytest.raises(NotFoundFailure):
            await use_case.execute(
                PaymentEvent(external_entry_id="qr-ghost", terminal_signal="depix_sent")
            )

    @pytest.mark.asyncio
    async def test_amount_mismatch_is_logged_not_rejected(
        self, use_case, store, scheduler, caplog
    ) -> None:
        await _register(store, scheduler)

        with caplog.at_level(logging.WARNING):
            result = await use_case.execute(
                PaymentEvent(
                    external_entry_id="qr-001",
                    terminal_signal="depix_sent",
                    value_in_cents=100,
                )
            )

        assert result.outcome == ReconciliationOutcome.RECONCILED
        assert any(r.getMessage() == "payment_amount_mismatch" for r in caplog.records)

    @pytest.mark.asyncio
    async def test_cancel_failure_does_not_block_reconciliation(
        self, store, scheduler, dispatcher, transport, monkeypatch
    ) -> None:
        await _register(store, scheduler)

        async def _broken_cancel(kind, external_entry_id):
            raise ConnectionError("redis down")

        monkeypatch.setattr(scheduler, "cancel", _broken_cancel)
        use_case = ReconcilePaymentUseCase(store=store, scheduler=scheduler, dispatcher=dispatcher)

        result = await use_case.execute(
            PaymentEvent(external_entry_id="qr-001", terminal_signal="depix_sent")
        )

        assert result.outcome == ReconciliationOutcome.RECONCILED
        assert len(transport.sent) == 1

    @pytest.mark.asyncio
    async def test_failed_signal_does_not_store_settlement_reference(
        self, use_case, store, scheduler, transport
    ) -> None:
        await _register(store, scheduler)

        result = await use_case.execute(
            PaymentEvent(
                external_entry_id="qr-001",
                terminal_signal="refunded",
                settlement_reference="0xabc",
            )
        )

        assert result.status == TransactionStatus.FAILED
        stored = await store.get_by_external_entry_id("qr-001")
        assert stored.status == TransactionStatus.FAILED
        assert stored.settlement_reference is None
        assert "0xabc" not in transport.texts()[0]

    @pytest.mark.asyncio
    async def test_telegram_read_error_keeps_paid_transition(
        self, store, scheduler, processing_log
    ) -> None:
        await _register(store, scheduler)

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadError("connection reset", request=request)

        bot = TelegramBotClient(
            TelegramSettings(bot_token="123:abc", api_base_url="https://tg.test"),
            http_client=HttpClient(
                HttpClientConfig(max_retries=0, backoff_base_seconds=0.0),
                transport=httpx.MockTransport(handler),
            ),
        )
        use_case = ReconcilePaymentUseCase(
            store=store,
            scheduler=scheduler,
            dispatcher=NotificationDispatcher(
                bot, support_contact="@Suporte", community_group="https://t.me/grupo"
            ),
            processing_log=processing_log,
        )

        result = await use_case.execute(
            PaymentEvent(external_entry_id="qr-001", terminal_signal="depix_sent")
        )

        assert result.outcome == ReconciliationOutcome.RECONCILED
        assert result.notification.delivered is False
        assert result.notification.failed_deletes == 1
        stored = await store.get_by_external_entry_id("qr-001")
        assert stored.status == TransactionStatus.PAID
        assert processing_log.get_records()[0]["notified"] is False

    @pytest.mark.asyncio
    async def test_webhook_racing_expiration_sends_single_terminal_message(
        self, use_case, store, scheduler, dispatcher, transport
    ) -> None:
        await _register(store, scheduler)
        handler = ExpirationJobHandler(store=store, scheduler=scheduler, dispatcher=dispatcher)
        job = ScheduledJob(
            kind=JobKind.EXPIRATION,
            external_entry_id="qr-001",
            due_at=datetime.now(UTC),
        )

        result, job_outcome = await asyncio.gather(
            use_case.execute(
                PaymentEvent(external_entry_id="qr-001", terminal_signal="depix_sent")
            ),
            handler.handle(job),
        )

        stored = await store.get_by_external_entry_id("qr-001")
        assert stored.status in {TransactionStatus.PAID, TransactionStatus.EXPIRED}
        assert len(transport.sent) == 1
        assert transport.deleted == [("555001", 500)]
        if stored.status == TransactionStatus.PAID:
            assert result.outcome == ReconciliationOutcome.RECONCILED
            assert job_outcome == "noop"
        else:
            assert result.outcome == ReconciliationOutcome.ALREADY_PROCESSED
