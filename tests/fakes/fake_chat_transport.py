"""Transporte de chat em memória para testes (sem Telegram)."""

from __future__ import annotations

from dataclasses import dataclass, field

from utils.errors import TransientDeliveryFailure


@dataclass
class FakeChatTransport:
    """Registra envios e remoções; pode simular falhas por operação."""

    fail_sends: bool = False
    fail_deletes: bool = False
    sent: list[tuple[str, int, str]] = field(default_factory=list)
    deleted: list[tuple[str, int]] = field(default_factory=list)
    _next_id: int = 1000

    async def send_message(self, owner_id: str, text: str) -> int:
        if self.fail_sends:
            raise TransientDeliveryFailure("send", "bot_blocked")
        self._next_id += 1
        self.sent.append((owner_id, self._next_id, text))
        return self._next_id

    async def delete_message(self, owner_id: str, message_id: int) -> None:
        if self.fail_deletes:
            raise TransientDeliveryFailure("delete", "message_not_found")
        self.deleted.append((owner_id, message_id))

    def texts(self) -> list[str]:
        return [text for _, _, text in self.sent]
