"""Testes dos handlers de REMINDER e EXPIRATION."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from app.domain.transaction import TransactionStatus
from app.infra.stores import MemoryTransactionStore
from app.jobs.handlers import ExpirationJobHandler, ReminderJobHandler
from app.jobs.models import JobKind, ScheduledJob
from conftest import make_transaction


def _job(kind: JobKind, entry: str = "qr-001", **payload: object) -> ScheduledJob:
    return ScheduledJob(
        kind=kind,
        external_entry_id=entry,
        due_at=datetime.now(UTC),
        payload=dict(payload),
    )


class _StoreFinalizedDuringReminder(MemoryTransactionStore):
    """Simula webhook PAID chegando entre o envio e o registro do lembrete."""

    async def attach_message(self, external_entry_id, slot, message_id, expected_status=TransactionStatus.PENDING):
        await self.compare_and_transition(
            external_entry_id, TransactionStatus.PENDING, TransactionStatus.PAID
        )
        return await super().attach_message(external_entry_id, slot, message_id, expected_status)


class TestReminderJobHandler:
    """Testes do lembrete pós-QR."""

    @pytest.mark.asyncio
    async def test_sends_reminder_and_records_message_id(self, store, dispatcher, transport) -> None:
        await store.create(make_transaction())
        handler = ReminderJobHandler(
            store=store, dispatcher=dispatcher, default_support_contact="@Default"
        )

        result = await handler.handle(_job(JobKind.REMINDER, support_contact="@Suporte"))

        assert result == "sent"
        ((owner, message_id, text),) = transport.sent
        assert owner == "555001"
        assert "@Suporte" in text
        stored = await store.get_by_external_entry_id("qr-001")
        assert stored.ephemeral_messages.reminder_message_id == message_id

    @pytest.mark.asyncio
    async def test_uses_default_support_contact(self, store, dispatcher, transport) -> None:
        await store.create(make_transaction())
        handler = ReminderJobHandler(
            store=store, dispatcher=dispatcher, default_support_contact="@Default"
        )

        await handler.handle(_job(JobKind.REMINDER))

        assert "@Default" in transport.texts()[0]

    @pytest.mark.asyncio
    async def test_noop_when_transaction_already_final(self, store, dispatcher, transport) -> None:
        await store.create(make_transaction())
        await store.compare_and_transition("qr-001", TransactionStatus.PENDING, TransactionStatus.PAID)
        handler = ReminderJobHandler(store=store, dispatcher=dispatcher, default_support_contact="@D")

        assert await handler.handle(_job(JobKind.REMINDER)) == "noop"
        assert transport.sent == []

    @pytest.mark.asyncio
    async def test_noop_when_transaction_missing(self, store, dispatcher, transport) -> None:
        handler = ReminderJobHandler(store=store, dispatcher=dispatcher, default_support_contact="@D")

        assert await handler.handle(_job(JobKind.REMINDER, entry="qr-x")) == "noop"

    @pytest.mark.asyncio
    async def test_delivery_failure_is_not_an_error(self, store, dispatcher, transport) -> None:
        await store.create(make_transaction())
        transport.fail_sends = True
        handler = ReminderJobHandler(store=store, dispatcher=dispatcher, default_support_contact="@D")

        assert await handler.handle(_job(JobKind.REMINDER)) == "delivery_failed"

    @pytest.mark.asyncio
    async def test_retracts_reminder_when_transaction_finalized_meanwhile(
        self, dispatcher, transport
    ) -> None:
        racing_store = _StoreFinalizedDuringReminder()
        await racing_store.create(make_transaction())
        handler = ReminderJobHandler(
            store=racing_store, dispatcher=dispatcher, default_support_contact="@D"
        )

        result = await handler.handle(_job(JobKind.REMINDER))

        assert result == "retracted"
        ((_, message_id, _),) = transport.sent
        assert transport.deleted == [("555001", message_id)]


class TestExpirationJobHandler:
    """Testes da expiração da cobrança."""

    @pytest.mark.asyncio
    async def test_expires_pending_transaction(self, store, scheduler, dispatcher, transport) -> None:
        await store.create(make_transaction())
        await store.attach_message("qr-001", "qr_message_id", 10)
        await scheduler.schedule(JobKind.REMINDER, "qr-001", {}, 70)
        handler = ExpirationJobHandler(store=store, scheduler=scheduler, dispatcher=dispatcher)

        result = await handler.handle(_job(JobKind.EXPIRATION))

        assert result == "expired"
        stored = await store.get_by_external_entry_id("qr-001")
        assert stored.status == TransactionStatus.EXPIRED
        assert stored.expired_at is not None
        assert stored.ephemeral_messages.ids() == []
        assert transport.deleted == [("555001", 10)]
        assert "expirou" in transport.texts()[0]
        assert await scheduler.get(JobKind.REMINDER, "qr-001") is None

    @pytest.mark.asyncio
    async def test_noop_after_payment(self, store, scheduler, dispatcher, transport) -> None:
        await store.create(make_transaction())
        await store.compare_and_transition("qr-001", TransactionStatus.PENDING, TransactionStatus.PAID)
        handler = ExpirationJobHandler(store=store, scheduler=scheduler, dispatcher=dispatcher)

        result = await handler.handle(_job(JobKind.EXPIRATION))

        assert result == "noop"
        stored = await store.get_by_external_entry_id("qr-001")
        assert stored.status == TransactionStatus.PAID
        assert transport.sent == []

    @pytest.mark.asyncio
    async def test_noop_for_unknown_entry(self, store, scheduler, dispatcher, transport) -> None:
        handler = ExpirationJobHandler(store=store, scheduler=scheduler, dispatcher=dispatcher)

        assert await handler.handle(_job(JobKind.EXPIRATION, entry="qr-x")) == "noop"
        assert transport.sent == []
