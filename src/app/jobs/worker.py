"""Worker dos jobs diferidos.

Roda embutido na API (lifespan) ou como processo próprio:

    python -m app.jobs.worker

Cada job é executado pelo menos uma vez, nunca antes de `due_at`.
Handler que levanta exceção é reagendado com backoff exponencial até
`max_attempts`; depois disso vai para o dead-letter e é registrado em
ERROR. Nenhum job é descartado em silêncio.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
import time
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from app.observability import (
    bind_log_context,
    record_job_outcome,
    reset_correlation_id,
    reset_log_context,
    set_correlation_id,
)
from utils.errors import HandlerFailure

if TYPE_CHECKING:
    from collections.abc import Mapping

    from app.jobs.handlers import JobHandler
    from app.jobs.models import JobKind, ScheduledJob
    from app.protocols.job_scheduler import JobSchedulerProtocol

logger = logging.getLogger(__name__)


class JobWorker:
    """Loop de polling: reivindica jobs vencidos e despacha ao handler.

    Args:
        scheduler: Broker de jobs
        handlers: Handler por tipo de job
        max_attempts: Execuções antes do dead-letter
        retry_backoff_seconds: Base do backoff (base * 2^(tentativa-1))
        poll_interval_seconds: Espera entre ciclos sem trabalho
        batch_size: Jobs reivindicados por ciclo
    """

    def __init__(
        self,
        scheduler: JobSchedulerProtocol,
        handlers: Mapping[JobKind, JobHandler],
        *,
        max_attempts: int = 3,
        retry_backoff_seconds: float = 5.0,
        poll_interval_seconds: float = 1.0,
        batch_size: int = 20,
    ) -> None:
        self._scheduler = scheduler
        self._handlers = dict(handlers)
        self._max_attempts = max(1, max_attempts)
        self._retry_backoff = retry_backoff_seconds
        self._poll_interval = poll_interval_seconds
        self._batch_size = batch_size
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    async def run_once(self, now: datetime | None = None) -> int:
        """Executa um ciclo. Retorna quantos jobs foram processados."""
        current = now or datetime.now(UTC)
        await self._scheduler.recover_stale(current)
        jobs = await self._scheduler.claim_due(current, limit=self._batch_size)
        for job in jobs:
            await self._execute(job)
        return len(jobs)

    async def run_forever(self) -> None:
        """Loop até `stop()`; erros do broker não derrubam o worker."""
        logger.info("job_worker_started", extra={"poll_interval_seconds": self._poll_interval})
        while not self._stop_event.is_set():
            try:
                processed = await self.run_once()
            except Exception as exc:
                logger.exception(
                    "job_worker_poll_failed",
                    extra={"error_type": type(exc).__name__},
                )
                processed = 0
            if processed:
                continue
            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(self._stop_event.wait(), timeout=self._poll_interval)
        logger.info("job_worker_stopped")

    def start(self) -> asyncio.Task[None]:
        """Inicia o loop em background (modo embutido)."""
        if self._task is None or self._task.done():
            self._stop_event.clear()
            self._task = asyncio.create_task(self.run_forever(), name="job-worker")
        return self._task

    def request_stop(self) -> None:
        self._stop_event.set()

    async def stop(self, timeout_seconds: float = 10.0) -> None:
        self.request_stop()
        if self._task is None:
            return
        try:
            await asyncio.wait_for(self._task, timeout=timeout_seconds)
        except TimeoutError:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
        self._task = None

    async def _execute(self, job: ScheduledJob) -> None:
        handler = self._handlers.get(job.kind)
        token = set_correlation_id(job.job_id)
        context_token = bind_log_context(
            job_id=job.job_id, external_entry_id=job.external_entry_id
        )
        started = time.perf_counter()
        try:
            if handler is None:
                raise LookupError(f"sem handler para {job.kind}")
            result = await handler.handle(job)
        except Exception as exc:
            await self._handle_failure(job, exc)
        else:
            await self._scheduler.complete(job)
            record_job_outcome(
                job.kind.value,
                "completed",
                job.attempts + 1,
                {"handler_result": result, "latency_ms": round((time.perf_counter() - started) * 1000, 2)},
            )
        finally:
            reset_log_context(context_token)
            reset_correlation_id(token)

    async def _handle_failure(self, job: ScheduledJob, exc: Exception) -> None:
        error_type = type(exc).__name__
        attempts = job.attempts + 1

        if attempts >= self._max_attempts:
            failure = HandlerFailure(job.job_id, attempts, error_type)
            await self._scheduler.dead_letter(job, error_type)
            logger.error(
                "job_failed_permanently",
                extra={
                    "job_id": failure.job_id,
                    "kind": job.kind.value,
                    "attempts": failure.attempts,
                    "error_type": failure.cause,
                },
            )
            record_job_outcome(job.kind.value, "dead_lettered", attempts)
            return

        delay = self._retry_backoff * (2 ** (attempts - 1))
        retry = job.with_failure(error_type, datetime.now(UTC) + timedelta(seconds=delay))
        await self._scheduler.reschedule(retry)
        logger.warning(
            "job_retry_scheduled",
            extra={
                "job_id": job.job_id,
                "kind": job.kind.value,
                "attempts": attempts,
                "retry_in_seconds": delay,
                "error_type": error_type,
            },
        )
        record_job_outcome(job.kind.value, "retried", attempts)


async def _run_standalone() -> None:
    from app.bootstrap import build_job_worker, initialize_app, validate_runtime_settings

    initialize_app()
    validate_runtime_settings()
    worker = build_job_worker()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, worker.request_stop)

    await worker.run_forever()


def main() -> None:
    asyncio.run(_run_standalone())


if __name__ == "__main__":
    main()
