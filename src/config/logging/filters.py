"""Filter de logging que injeta o contexto da transação em cada linha.

Campos injetados:
- correlation_id: requisição de webhook ou job_id em execução
- service: nome do serviço
- external_entry_id / job_id: quando o fluxo atual os vinculou
  (ver app.observability.correlation.bind_log_context)

Valores passados explicitamente via `extra` nunca são sobrescritos.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

# Únicas chaves de contexto aceitas; owner_id e segredos ficam de fora
CONTEXT_FIELDS = ("external_entry_id", "job_id")


class CorrelationIdFilter(logging.Filter):
    """Enriquece records com service, correlation_id e contexto da transação.

    Args:
        service_name: Nome do serviço nos logs.
        correlation_id_getter: Retorna o correlation_id corrente ("" se ausente).
        context_getter: Retorna os campos vinculados ao fluxo corrente.
    """

    def __init__(
        self,
        service_name: str,
        correlation_id_getter: Callable[[], str] | None = None,
        context_getter: Callable[[], Mapping[str, str]] | None = None,
    ) -> None:
        super().__init__()
        self._service_name = service_name
        self._get_correlation_id = correlation_id_getter or (lambda: "")
        self._get_context = context_getter or dict

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "correlation_id", None):
            record.correlation_id = self._get_correlation_id()
        record.service = self._service_name

        context = self._get_context()
        for key in CONTEXT_FIELDS:
            value = context.get(key)
            if value and not hasattr(record, key):
                setattr(record, key, value)
        return True
