"""Registro de métricas via structured logging.

As métricas são linhas de log estruturadas (`metric_type` no extra),
agregáveis depois em BigQuery ou Cloud Logging.

Métricas suportadas:
- Latência: tempo de execução por componente/operação
- Reconciliação: counter de desfechos do webhook (reconciled, no_op...)
- Jobs: counter de execuções do worker por tipo e resultado
- Roteamento: counter de decisões Local/Remote/Unknown
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


def record_latency(
    component: str,
    operation: str,
    latency_ms: float,
    correlation_id: str | None = None,
) -> None:
    """Registra latência de operação.

    Args:
        component: Nome do componente (ex: "depix_webhook", "job_worker")
        operation: Nome da operação (ex: "reconcile", "forward")
        latency_ms: Latência em milissegundos
        correlation_id: ID de correlação para rastreamento
    """
    logger.info(
        "metric_latency",
        extra={
            "metric_type": "latency",
            "component": component,
            "operation": operation,
            "latency_ms": round(latency_ms, 2),
            "correlation_id": correlation_id,
        },
    )


def record_reconciliation_outcome(
    outcome: str,
    target_status: str | None = None,
    correlation_id: str | None = None,
) -> None:
    """Registra o desfecho de um webhook reconciliado localmente."""
    logger.info(
        "metric_reconciliation",
        extra={
            "metric_type": "reconciliation",
            "component": "reconcile_payment",
            "outcome": outcome,
            "target_status": target_status,
            "correlation_id": correlation_id,
        },
    )


def record_route_decision(route: str, correlation_id: str | None = None) -> None:
    """Registra a decisão de roteamento (local, remote, unknown)."""
    logger.info(
        "metric_route",
        extra={
            "metric_type": "route",
            "component": "webhook_router",
            "route": route,
            "correlation_id": correlation_id,
        },
    )


def record_job_outcome(
    kind: str,
    result: str,
    attempts: int,
    metadata: dict[str, str | float | int] | None = None,
) -> None:
    """Registra execução de job diferido.

    Args:
        kind: REMINDER ou EXPIRATION
        result: completed, retried ou dead_lettered
        attempts: Tentativas consumidas até aqui
        metadata: Metadados adicionais opcionais
    """
    extra: dict[str, object] = {
        "metric_type": "job",
        "component": "job_worker",
        "kind": kind,
        "result": result,
        "attempts": attempts,
    }
    if metadata:
        extra.update(metadata)

    logger.info("metric_job", extra=extra)
