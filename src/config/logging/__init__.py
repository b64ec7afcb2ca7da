"""Configuração de logging estruturado.

Uso:
    from config.logging import configure_logging, get_logger

    # Na inicialização (bootstrap ou worker)
    configure_logging(level="INFO", service_name="atlas_bridge")

    # Em qualquer módulo
    logger = get_logger(__name__)
    logger.info("payment_reconciled", extra={"external_entry_id": "qr-1"})

Todo log carrega correlation_id e service. Nunca logar o segredo do
webhook nem o corpo bruto das requisições.
"""

from config.logging.config import configure_logging, get_logger, log_delivery_failure
from config.logging.filters import CorrelationIdFilter
from config.logging.formatters import (
    FIELD_RENAME_MAP,
    REQUIRED_LOG_FIELDS,
    create_json_formatter,
)

__all__ = [
    "FIELD_RENAME_MAP",
    "REQUIRED_LOG_FIELDS",
    # Filters
    "CorrelationIdFilter",
    # Configuração principal
    "configure_logging",
    # Formatters
    "create_json_formatter",
    "get_logger",
    "log_delivery_failure",
]
