"""Modelos dos jobs agendados por transação.

O ID do job é derivado de (kind, external_entry_id). Qualquer componente
que conhece o qrId consegue cancelar o job sem tabela de handles.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any


class JobKind(StrEnum):
    """Tipos de job agendados na criação da transação."""

    REMINDER = "REMINDER"
    EXPIRATION = "EXPIRATION"

    def __str__(self) -> str:
        return self.value


# Prefixos herdados das filas originais (expectation-<qrId>, expiration-<qrId>)
JOB_ID_PREFIXES: dict[JobKind, str] = {
    JobKind.REMINDER: "expectation",
    JobKind.EXPIRATION: "expiration",
}


def build_job_id(kind: JobKind, external_entry_id: str) -> str:
    """Gera o ID determinístico do job.

    Raises:
        ValueError: Se external_entry_id for vazio.
    """
    if not external_entry_id:
        msg = "external_entry_id é obrigatório para gerar job_id"
        raise ValueError(msg)
    return f"{JOB_ID_PREFIXES[JobKind(kind)]}-{external_entry_id}"


@dataclass(frozen=True, slots=True)
class ScheduledJob:
    """Job diferido de uma transação.

    Attributes:
        kind: REMINDER ou EXPIRATION
        external_entry_id: qrId da transação
        due_at: Momento mínimo de execução (UTC)
        payload: Dados para renderizar a mensagem sem nova consulta
        attempts: Execuções com falha até agora
        last_error: Tipo do último erro (sem mensagem, sem PII)
    """

    kind: JobKind
    external_entry_id: str
    due_at: datetime
    payload: dict[str, Any] = field(default_factory=dict)
    attempts: int = 0
    last_error: str | None = None

    @property
    def job_id(self) -> str:
        return build_job_id(self.kind, self.external_entry_id)

    def is_due(self, now: datetime) -> bool:
        return self.due_at <= now

    def with_failure(self, error_type: str, next_due_at: datetime) -> ScheduledJob:
        return replace(
            self,
            attempts=self.attempts + 1,
            last_error=error_type,
            due_at=next_due_at,
        )

    def to_json(self) -> str:
        return json.dumps(
            {
                "kind": self.kind.value,
                "external_entry_id": self.external_entry_id,
                "due_at": self.due_at.isoformat(),
                "payload": self.payload,
                "attempts": self.attempts,
                "last_error": self.last_error,
            },
            default=str,
        )

    @classmethod
    def from_json(cls, raw: str | bytes) -> ScheduledJob:
        data = json.loads(raw)
        due_at = datetime.fromisoformat(data["due_at"])
        if due_at.tzinfo is None:
            due_at = due_at.replace(tzinfo=UTC)
        return cls(
            kind=JobKind(data["kind"]),
            external_entry_id=data["external_entry_id"],
            due_at=due_at,
            payload=data.get("payload") or {},
            attempts=int(data.get("attempts", 0)),
            last_error=data.get("last_error"),
        )


__all__ = ["JOB_ID_PREFIXES", "JobKind", "ScheduledJob", "build_job_id"]
