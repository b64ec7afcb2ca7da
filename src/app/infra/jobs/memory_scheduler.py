"""Scheduler de jobs em memória — apenas para desenvolvimento e testes.

ATENÇÃO: Não usar em staging/production. Jobs somem em reinícios e não
são compartilhados entre processos.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from datetime import UTC, datetime, timedelta
from typing import Any

from app.jobs.models import JobKind, ScheduledJob, build_job_id
from app.protocols.job_scheduler import JobSchedulerProtocol

logger = logging.getLogger(__name__)


class MemoryJobScheduler(JobSchedulerProtocol):
    """Broker de jobs em memória com a mesma semântica do Redis.

    Args:
        lease_seconds: Tempo máximo de um job reivindicado antes de voltar
            para a fila em `recover_stale`.
    """

    def __init__(self, lease_seconds: float = 300.0) -> None:
        self._pending: dict[str, ScheduledJob] = {}
        self._processing: dict[str, tuple[ScheduledJob, datetime]] = {}
        self._dead_letters: list[tuple[ScheduledJob, str]] = []
        self._lease = timedelta(seconds=lease_seconds)
        self._lock = threading.Lock()

    async def schedule(
        self,
        kind: JobKind,
        external_entry_id: str,
        payload: dict[str, Any],
        delay_seconds: float,
    ) -> ScheduledJob:
        job_id = build_job_id(kind, external_entry_id)
        with self._lock:
            existing = self._pending.get(job_id)
            if existing is None and job_id in self._processing:
                existing = self._processing[job_id][0]
            if existing is not None:
                logger.debug("job_already_scheduled", extra={"job_id": job_id})
                return existing
            job = ScheduledJob(
                kind=JobKind(kind),
                external_entry_id=external_entry_id,
                due_at=datetime.now(UTC) + timedelta(seconds=delay_seconds),
                payload=dict(payload),
            )
            self._pending[job_id] = job
        logger.debug("job_scheduled", extra={"job_id": job_id, "delay_seconds": delay_seconds})
        return job

    async def cancel(self, kind: JobKind, external_entry_id: str) -> bool:
        job_id = build_job_id(kind, external_entry_id)
        with self._lock:
            return self._pending.pop(job_id, None) is not None

    async def get(self, kind: JobKind, external_entry_id: str) -> ScheduledJob | None:
        job_id = build_job_id(kind, external_entry_id)
        with self._lock:
            if job_id in self._pending:
                return self._pending[job_id]
            claimed = self._processing.get(job_id)
            return claimed[0] if claimed else None

    async def claim_due(self, now: datetime, limit: int = 20) -> list[ScheduledJob]:
        with self._lock:
            due = sorted(
                (job for job in self._pending.values() if job.is_due(now)),
                key=lambda job: job.due_at,
            )[:limit]
            for job in due:
                del self._pending[job.job_id]
                self._processing[job.job_id] = (job, now + self._lease)
            return due

    async def complete(self, job: ScheduledJob) -> None:
        with self._lock:
            self._processing.pop(job.job_id, None)

    async def reschedule(self, job: ScheduledJob) -> None:
        with self._lock:
            self._processing.pop(job.job_id, None)
            self._pending[job.job_id] = job

    async def dead_letter(self, job: ScheduledJob, error_type: str) -> None:
        with self._lock:
            self._processing.pop(job.job_id, None)
            self._dead_letters.append((replace(job, last_error=error_type), error_type))

    async def recover_stale(self, now: datetime) -> int:
        with self._lock:
            stale = [
                job for job, deadline in self._processing.values() if deadline <= now
            ]
            for job in stale:
                del self._processing[job.job_id]
                self._pending[job.job_id] = job
            return len(stale)

    def dead_letters(self) -> list[tuple[ScheduledJob, str]]:
        """Retorna jobs esgotados (apenas para testes/inspeção)."""
        return list(self._dead_letters)
