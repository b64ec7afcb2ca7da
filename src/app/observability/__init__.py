"""Observabilidade — correlation_id e métricas em logs estruturados.

Uso:
    from app.observability import get_correlation_id, set_correlation_id
    from app.observability import record_latency, record_job_outcome
"""

from app.observability.correlation import (
    CORRELATION_ID_HEADER,
    bind_log_context,
    generate_correlation_id,
    get_correlation_id,
    get_log_context,
    reset_correlation_id,
    reset_log_context,
    set_correlation_id,
)
from app.observability.metrics import (
    record_job_outcome,
    record_latency,
    record_reconciliation_outcome,
    record_route_decision,
)

__all__ = [
    "CORRELATION_ID_HEADER",
    "bind_log_context",
    "generate_correlation_id",
    "get_correlation_id",
    "get_log_context",
    "record_job_outcome",
    "record_latency",
    "record_reconciliation_outcome",
    "record_route_decision",
    "reset_correlation_id",
    "reset_log_context",
    "set_correlation_id",
]
