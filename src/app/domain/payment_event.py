"""Evento de status recebido do processador de pagamentos (DePix)."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class PaymentEvent:
    """Evento já autenticado e validado, pronto para reconciliação.

    Attributes:
        external_entry_id: qrId emitido pela DePix (chave de junção)
        terminal_signal: Status bruto informado pela DePix (ex: depix_sent)
        settlement_reference: txid Liquid, quando informado
        value_in_cents: Valor pago em centavos, quando informado
    """

    external_entry_id: str
    terminal_signal: str
    settlement_reference: str | None = None
    value_in_cents: int | None = None
