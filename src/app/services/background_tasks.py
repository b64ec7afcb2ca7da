"""Tasks assíncronas de baixa prioridade (mensagem de acompanhamento).

Nada aqui é crítico: falhas são registradas e nunca chegam ao webhook.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Awaitable

logger = logging.getLogger(__name__)

_MAX_CONCURRENT_TASKS = 50

_task_semaphore: asyncio.Semaphore | None = None
_active_tasks: set[asyncio.Task[Any]] = set()


def _semaphore() -> asyncio.Semaphore:
    global _task_semaphore
    if _task_semaphore is None:
        _task_semaphore = asyncio.Semaphore(_MAX_CONCURRENT_TASKS)
    return _task_semaphore


def schedule_background_task(
    *,
    name: str,
    coroutine: Awaitable[None],
    delay_seconds: float = 0.0,
) -> asyncio.Task[None]:
    """Agenda coroutine com atraso opcional e limite de concorrência."""
    task = asyncio.create_task(_run_with_limit(coroutine, delay_seconds), name=name)
    _active_tasks.add(task)
    task.add_done_callback(_on_task_done)
    logger.debug(
        "background_task_scheduled",
        extra={"task_name": name, "delay_seconds": delay_seconds, "active_tasks": len(_active_tasks)},
    )
    return task


def active_task_count() -> int:
    return len(_active_tasks)


async def _run_with_limit(coroutine: Awaitable[None], delay_seconds: float) -> None:
    if delay_seconds > 0:
        await asyncio.sleep(delay_seconds)
    async with _semaphore():
        await coroutine


def _on_task_done(task: asyncio.Task[Any]) -> None:
    _active_tasks.discard(task)
    with contextlib.suppress(asyncio.CancelledError):
        exc = task.exception()
        if exc is not None:
            logger.error(
                "background_task_failed",
                extra={
                    "task_name": task.get_name(),
                    "error_type": type(exc).__name__,
                    "active_tasks": len(_active_tasks),
                },
            )


async def drain_background_tasks(timeout_seconds: float = 10.0) -> None:
    """Aguarda tasks pendentes durante shutdown do processo."""
    if not _active_tasks:
        return

    pending_now = list(_active_tasks)
    logger.info(
        "background_tasks_shutdown_wait",
        extra={"pending_tasks": len(pending_now), "timeout_seconds": timeout_seconds},
    )
    _, pending = await asyncio.wait(pending_now, timeout=timeout_seconds)
    if not pending:
        return

    for task in pending:
        task.cancel()
    await asyncio.gather(*pending, return_exceptions=True)
    logger.warning(
        "background_tasks_shutdown_cancelled",
        extra={"cancelled_tasks": len(pending)},
    )
