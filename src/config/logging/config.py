"""Configuração centralizada de logging.

Logging JSON estruturado com correlation_id e service em cada linha.
Chamada uma vez pelo bootstrap da API e uma vez pelo worker de jobs.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from config.logging.filters import CorrelationIdFilter
from config.logging.formatters import create_json_formatter

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

# Níveis de log válidos
VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})

# Nome padrão do serviço
DEFAULT_SERVICE_NAME = "atlas_bridge"

# Bibliotecas ruidosas em DEBUG
_NOISY_LOGGERS = ("httpx", "httpcore", "google.api_core", "urllib3")


def configure_logging(
    level: str = "INFO",
    service_name: str = DEFAULT_SERVICE_NAME,
    correlation_id_getter: Callable[[], str] | None = None,
    context_getter: Callable[[], Mapping[str, str]] | None = None,
) -> None:
    """Configura logging JSON estruturado para o serviço.

    Args:
        level: Nível de log (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        service_name: Nome do serviço para identificação nos logs.
        correlation_id_getter: Função que retorna o correlation_id do
            contexto atual (ver app.observability.correlation).
        context_getter: Função que retorna external_entry_id/job_id
            vinculados ao fluxo atual.

    Raises:
        ValueError: Se o nível de log for inválido.
    """
    level_upper = level.upper()
    if level_upper not in VALID_LOG_LEVELS:
        raise ValueError(
            f"Nível de log inválido: {level}. "
            f"Válidos: {', '.join(sorted(VALID_LOG_LEVELS))}"
        )

    handler = logging.StreamHandler()
    handler.setLevel(level_upper)
    handler.setFormatter(create_json_formatter())
    handler.addFilter(CorrelationIdFilter(service_name, correlation_id_getter, context_getter))

    root = logging.getLogger()
    root.setLevel(level_upper)
    # Substituir handlers existentes para evitar duplicação
    root.handlers = [handler]

    for noisy in _NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(max(logging.WARNING, root.level))


def get_logger(name: str) -> logging.Logger:
    """Retorna logger para o módulo (o filter injeta service e correlation_id)."""
    return logging.getLogger(name)


def log_delivery_failure(
    logger: logging.Logger,
    operation: str,
    external_entry_id: str,
    reason: str | None = None,
    message_id: int | None = None,
) -> None:
    """Registra falha de entrega ao usuário sem abortar o fluxo.

    Falhas de envio/remoção de mensagem nunca desfazem uma transição de
    status já gravada; ficam apenas registradas aqui.

    Args:
        logger: Logger instance.
        operation: "send" ou "delete".
        external_entry_id: Identificador da cobrança.
        reason: Tipo do erro (sem PII).
        message_id: Mensagem envolvida, quando houver.
    """
    extra: dict[str, object] = {
        "delivery_failed": True,
        "operation": operation,
        "external_entry_id": external_entry_id,
    }
    if reason:
        extra["reason"] = reason
    if message_id is not None:
        extra["message_id"] = message_id

    logger.warning("notification_delivery_failed", extra=extra)
