"""Correlation_id por requisição de webhook e por execução de job.

Usa ContextVar para ser async-safe. O mesmo id segue no header
X-Correlation-Id quando o webhook é encaminhado ao deployment par.

Uso:
    token = set_correlation_id(request.headers.get(CORRELATION_ID_HEADER))
    try:
        ...
    finally:
        reset_correlation_id(token)
"""

from __future__ import annotations

import uuid
from contextvars import ContextVar, Token

CORRELATION_ID_HEADER = "X-Correlation-Id"

_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")


def get_correlation_id() -> str:
    """Retorna o correlation_id do contexto atual (vazio se não definido)."""
    return _correlation_id.get()


def set_correlation_id(correlation_id: str | None = None) -> Token[str]:
    """Define o correlation_id no contexto atual.

    Args:
        correlation_id: ID a definir. Se None ou vazio, gera um novo UUID.

    Returns:
        Token para reset posterior via reset_correlation_id().
    """
    value = correlation_id or generate_correlation_id()
    return _correlation_id.set(value)


def reset_correlation_id(token: Token[str]) -> None:
    """Restaura o correlation_id ao valor anterior."""
    _correlation_id.reset(token)


def generate_correlation_id() -> str:
    """Gera um novo correlation_id (UUID v4)."""
    return str(uuid.uuid4())


_log_context: ContextVar[dict[str, str] | None] = ContextVar("log_context", default=None)


def get_log_context() -> dict[str, str]:
    """Campos de contexto vinculados ao fluxo atual (cópia)."""
    return dict(_log_context.get() or {})


def bind_log_context(**fields: str) -> Token[dict[str, str] | None]:
    """Acrescenta campos (external_entry_id, job_id) aos logs do fluxo atual."""
    return _log_context.set({**get_log_context(), **fields})


def reset_log_context(token: Token[dict[str, str] | None]) -> None:
    """Restaura o contexto de log anterior."""
    _log_context.reset(token)
