"""Casos de uso do fluxo Pix -> DePix."""

from app.use_cases.depix.reconcile_payment import (
    ReconcilePaymentUseCase,
    ReconciliationOutcome,
    ReconciliationResult,
    map_terminal_signal,
)
from app.use_cases.depix.register_transaction import (
    attach_qr_message,
    register_pending_transaction,
)

__all__ = [
    "ReconcilePaymentUseCase",
    "ReconciliationOutcome",
    "ReconciliationResult",
    "attach_qr_message",
    "map_terminal_signal",
    "register_pending_transaction",
]
