"""Protocolo de transporte de chat (Telegram).

Evita dependência direta da camada infra nos serviços.
"""

from __future__ import annotations

from typing import Protocol


class ChatTransportProtocol(Protocol):
    """Contrato mínimo para enviar e apagar mensagens.

    Implementações levantam TransientDeliveryFailure em qualquer falha
    de entrega.
    """

    async def send_message(self, owner_id: str, text: str) -> int: ...

    async def delete_message(self, owner_id: str, message_id: int) -> None: ...
