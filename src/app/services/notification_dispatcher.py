"""Notification Dispatcher — avisa o usuário quando a transação finaliza.

Sequência:
    1. Apaga QR Code e lembrete (cada um best-effort)
    2. Envia exatamente uma mensagem de status terminal
    3. Em PAID, agenda mensagem de acompanhamento em background

Nenhuma falha de entrega desfaz a transição já gravada: tudo é
registrado via log_delivery_failure e o fluxo segue.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from app.domain.transaction import EphemeralMessages, Transaction, TransactionStatus, is_terminal
from app.services.background_tasks import schedule_background_task
from app.services.notification_texts import followup_message, terminal_message
from config.logging import log_delivery_failure
from utils.errors import TransientDeliveryFailure

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from app.protocols.chat_transport import ChatTransportProtocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class NotificationResult:
    """Resumo do que chegou (ou não) ao usuário."""

    deleted_messages: int = 0
    failed_deletes: int = 0
    terminal_message_id: int | None = None
    followup_scheduled: bool = False

    @property
    def delivered(self) -> bool:
        return self.terminal_message_id is not None


class NotificationDispatcher:
    """Envia o status terminal ao dono da transação.

    Args:
        transport: Adapter de chat (Telegram)
        support_contact: Contato exibido no acompanhamento
        community_group: Link da comunidade exibido no acompanhamento
        followup_delay_seconds: Atraso do acompanhamento pós-PAID
        task_scheduler: Agenda a coroutine de acompanhamento (injetável em testes)
    """

    def __init__(
        self,
        transport: ChatTransportProtocol,
        *,
        support_contact: str,
        community_group: str,
        followup_delay_seconds: float = 2.0,
        task_scheduler: Callable[..., object] | None = None,
    ) -> None:
        self._transport = transport
        self._support_contact = support_contact
        self._community_group = community_group
        self._followup_delay = followup_delay_seconds
        self._schedule_task = task_scheduler or schedule_background_task

    async def notify_terminal(
        self,
        transaction: Transaction,
        released_messages: EphemeralMessages | None = None,
    ) -> NotificationResult:
        """Apaga mensagens efêmeras e envia a mensagem terminal.

        Args:
            transaction: Transação já no estado terminal
            released_messages: Mensagens devolvidas pelo compare_and_transition

        Raises:
            ValueError: Se a transação não estiver em estado terminal.
        """
        if not is_terminal(transaction.status):
            raise ValueError(f"transação não terminal: {transaction.status}")

        entry_id = transaction.external_entry_id
        deleted, failed = await self._delete_ephemeral(transaction, released_messages)

        text = terminal_message(
            transaction.status,
            transaction.requested_amount,
            settlement_reference=transaction.settlement_reference,
            processor_status=transaction.processor_status,
        )
        message_id: int | None = None
        try:
            message_id = await self._transport.send_message(transaction.owner_id, text)
        except TransientDeliveryFailure as exc:
            # Sem retry: usuário fica sem aviso, lacuna registrada
            log_delivery_failure(logger, "send", entry_id, reason=exc.reason)

        followup = False
        if transaction.status == TransactionStatus.PAID and message_id is not None:
            self._schedule_task(
                name=f"followup-{entry_id}",
                coroutine=self._send_followup(transaction.owner_id, entry_id),
                delay_seconds=self._followup_delay,
            )
            followup = True

        logger.info(
            "terminal_notification_dispatched",
            extra={
                "external_entry_id": entry_id,
                "status": transaction.status.value,
                "delivered": message_id is not None,
                "deleted_messages": deleted,
                "failed_deletes": failed,
            },
        )
        return NotificationResult(
            deleted_messages=deleted,
            failed_deletes=failed,
            terminal_message_id=message_id,
            followup_scheduled=followup,
        )

    async def send_text(self, owner_id: str, external_entry_id: str, text: str) -> int | None:
        """Envia mensagem avulsa; None se a entrega falhou."""
        try:
            return await self._transport.send_message(owner_id, text)
        except TransientDeliveryFailure as exc:
            log_delivery_failure(logger, "send", external_entry_id, reason=exc.reason)
            return None

    async def delete_message(self, owner_id: str, external_entry_id: str, message_id: int) -> bool:
        """Apaga uma mensagem isolada; False se a entrega falhou."""
        try:
            await self._transport.delete_message(owner_id, message_id)
        except TransientDeliveryFailure as exc:
            log_delivery_failure(
                logger, "delete", external_entry_id, reason=exc.reason, message_id=message_id
            )
            return False
        return True

    async def _delete_ephemeral(
        self,
        transaction: Transaction,
        released_messages: EphemeralMessages | None,
    ) -> tuple[int, int]:
        messages = released_messages or transaction.ephemeral_messages
        deleted = failed = 0
        for message_id in messages.ids():
            if await self.delete_message(
                transaction.owner_id, transaction.external_entry_id, message_id
            ):
                deleted += 1
            else:
                failed += 1
        return deleted, failed

    def _send_followup(self, owner_id: str, external_entry_id: str) -> Awaitable[None]:
        async def _run() -> None:
            try:
                await self._transport.send_message(
                    owner_id,
                    followup_message(self._support_contact, self._community_group),
                )
            except TransientDeliveryFailure as exc:
                log_delivery_failure(logger, "send_followup", external_entry_id, reason=exc.reason)

        return _run()
