"""Testes do modelo de domínio Transaction."""

from __future__ import annotations

from decimal import Decimal

from app.domain.transaction import (
    EphemeralMessages,
    Transaction,
    TransactionStatus,
    is_terminal,
)


def _tx() -> Transaction:
    return Transaction(
        owner_id="42",
        external_entry_id="qr-abc",
        requested_amount=Decimal("99.90"),
        expected_payout_amount=Decimal("97.00"),
    )


def test_new_transaction_is_pending() -> None:
    tx = _tx()

    assert tx.status == TransactionStatus.PENDING
    assert tx.is_pending
    assert tx.ephemeral_messages.is_empty
    assert tx.webhook_delivery_count == 0


def test_terminal_statuses() -> None:
    assert not is_terminal(TransactionStatus.PENDING)
    assert is_terminal(TransactionStatus.PAID)
    assert is_terminal(TransactionStatus.FAILED)
    assert is_terminal(TransactionStatus.EXPIRED)


def test_ephemeral_ids_skip_missing_slots() -> None:
    messages = EphemeralMessages(qr_message_id=10)

    assert messages.ids() == [10]
    assert not messages.is_empty


def test_firestore_dict_keeps_decimal_precision() -> None:
    tx = _tx()

    data = tx.to_firestore_dict()
    restored = Transaction.from_firestore_dict(data)

    assert data["requested_amount"] == "99.90"
    assert data["status"] == "PENDING"
    assert restored.requested_amount == Decimal("99.90")
    assert restored.status == TransactionStatus.PENDING


def test_log_dict_has_no_owner() -> None:
    assert "owner_id" not in _tx().to_log_dict()
