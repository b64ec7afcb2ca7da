"""Registro de uma cobrança Pix recém-emitida.

Chamado pelo fluxo do bot logo após a DePix devolver o qrId: persiste a
transação PENDING e agenda lembrete e expiração com IDs determinísticos.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import TYPE_CHECKING

from app.domain.transaction import Transaction, TransactionStatus
from app.jobs.models import JobKind

if TYPE_CHECKING:
    from app.protocols.job_scheduler import JobSchedulerProtocol
    from app.protocols.transaction_store import TransactionStoreProtocol

logger = logging.getLogger(__name__)


async def register_pending_transaction(
    *,
    store: TransactionStoreProtocol,
    scheduler: JobSchedulerProtocol,
    owner_id: str,
    external_entry_id: str,
    requested_amount: Decimal,
    expected_payout_amount: Decimal,
    reminder_delay_seconds: float,
    expiration_delay_seconds: float,
    support_contact: str = "",
) -> Transaction:
    """Persiste a transação e agenda os dois jobs.

    Raises:
        ValueError: external_entry_id duplicado.
    """
    transaction = Transaction(
        owner_id=owner_id,
        external_entry_id=external_entry_id,
        requested_amount=requested_amount,
        expected_payout_amount=expected_payout_amount,
    )
    await store.create(transaction)

    payload = {
        "owner_id": owner_id,
        "external_entry_id": external_entry_id,
        "amount": str(requested_amount),
        "support_contact": support_contact,
    }
    await scheduler.schedule(
        JobKind.REMINDER,
        external_entry_id,
        {**payload, "kind": JobKind.REMINDER.value},
        reminder_delay_seconds,
    )
    await scheduler.schedule(
        JobKind.EXPIRATION,
        external_entry_id,
        {**payload, "kind": JobKind.EXPIRATION.value},
        expiration_delay_seconds,
    )

    logger.info(
        "transaction_registered",
        extra={
            **transaction.to_log_dict(),
            "reminder_delay_seconds": reminder_delay_seconds,
            "expiration_delay_seconds": expiration_delay_seconds,
        },
    )
    return transaction


async def attach_qr_message(
    store: TransactionStoreProtocol,
    external_entry_id: str,
    message_id: int,
) -> bool:
    """Guarda o message_id do QR Code exibido ao usuário.

    Returns:
        False se a transação já saiu de PENDING (o QR deve ser apagado
        por quem chamou).
    """
    attached = await store.attach_message(
        external_entry_id,
        "qr_message_id",
        message_id,
        expected_status=TransactionStatus.PENDING,
    )
    if not attached:
        logger.info("qr_message_not_attached", extra={"external_entry_id": external_entry_id})
    return attached
