"""Exceções de domínio e de infraestrutura do bridge.

Falhas do webhook viram status HTTP na borda; falhas de entrega no chat
são logadas e isoladas; falhas de handler ficam com a política de retry
do scheduler.
"""

from __future__ import annotations


class InfrastructureError(RuntimeError):
    """Base para falhas de infraestrutura transitórias."""


class RedisConnectionError(InfrastructureError):
    """Falha de conexão/timeout ao acessar Redis."""


class FirestoreUnavailableError(InfrastructureError):
    """Falha de indisponibilidade ao acessar Firestore."""


class BridgeError(Exception):
    """Base das falhas de reconciliação."""


class AuthenticationFailure(BridgeError):
    """Credencial do webhook ausente ou inválida."""


class ValidationFailure(BridgeError, ValueError):
    """Payload malformado (JSON inválido ou sem chave de junção)."""


class NotFoundFailure(BridgeError):
    """Nenhum ambiente alcançável conhece a transação."""

    def __init__(self, external_entry_id: str) -> None:
        super().__init__(f"transação desconhecida: {external_entry_id}")
        self.external_entry_id = external_entry_id


class ForwardingFailure(BridgeError):
    """Peer inalcançável ou rejeitou o webhook encaminhado."""

    def __init__(
        self,
        message: str,
        peer_name: str = "",
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.peer_name = peer_name
        self.status_code = status_code


class ConflictFailure(BridgeError):
    """Transação já finalizada por outro caminho.

    Nunca chega ao cliente HTTP como erro: é idempotência.
    """


class TransientDeliveryFailure(BridgeError):
    """Falha ao enviar/apagar mensagem no chat."""

    def __init__(self, operation: str, reason: str) -> None:
        super().__init__(f"{operation}: {reason}")
        self.operation = operation
        self.reason = reason


class HandlerFailure(BridgeError):
    """Handler de job falhou; o scheduler decide retry ou dead-letter."""

    def __init__(self, job_id: str, attempts: int, cause: str) -> None:
        super().__init__(f"job {job_id} falhou após {attempts} tentativa(s): {cause}")
        self.job_id = job_id
        self.attempts = attempts
        self.cause = cause
