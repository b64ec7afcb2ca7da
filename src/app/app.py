"""Entrypoint da aplicação Atlas Bridge.

Expõe a aplicação ASGI (FastAPI) com o webhook DePix e, por padrão, o
worker de jobs embutido no mesmo processo.

Uso (produção):
    uvicorn app.app:app --host 0.0.0.0 --port 8080

Uso (desenvolvimento):
    uvicorn app.app:app --reload --host 0.0.0.0 --port 8080

Worker separado (JOB_EMBEDDED_WORKER=false na API):
    python -m app.jobs.worker
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from fastapi import FastAPI

from api.routes import create_api_router
from app.bootstrap import build_job_worker, initialize_app, validate_runtime_settings
from app.bootstrap.clients import create_async_redis_client, create_firestore_client
from app.services.background_tasks import drain_background_tasks
from config.logging import get_logger
from config.settings import get_base_settings, get_job_settings

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

# Inicializar logging ANTES de qualquer import que use logger
initialize_app()

logger = get_logger(__name__)


async def _seed_firestore_health_doc(firestore_client: object) -> None:
    """Escreve documento mínimo de health para check de readiness."""

    def _write_doc() -> None:
        firestore_client.collection("_health").document("check").set(  # type: ignore[attr-defined]
            {
                "updated_at": datetime.now(UTC).isoformat(),
                "service": get_base_settings().service_name,
            }
        )

    await asyncio.to_thread(_write_doc)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Gerencia ciclo de vida da aplicação.

    Startup:
    - Valida configurações
    - Inicializa conexões usadas pelos backends configurados
    - Sobe o worker de jobs embutido (JOB_EMBEDDED_WORKER)

    Shutdown:
    - Para o worker e aguarda tasks de acompanhamento
    - Fecha conexões
    """
    base = get_base_settings()
    job_settings = get_job_settings()
    logger.info("app_starting", extra={"environment": base.environment})
    validate_runtime_settings()
    app.state.redis_client = None
    app.state.firestore_client = None
    app.state.job_worker = None

    if job_settings.backend == "redis":
        try:
            app.state.redis_client = create_async_redis_client()
        except Exception as exc:
            logger.warning("redis_client_not_ready", extra={"error_type": type(exc).__name__})

    if base.store_backend == "firestore":
        try:
            app.state.firestore_client = create_firestore_client()
            await _seed_firestore_health_doc(app.state.firestore_client)
        except Exception as exc:
            logger.warning("firestore_client_not_ready", extra={"error_type": type(exc).__name__})

    if job_settings.embedded_worker:
        worker = build_job_worker()
        worker.start()
        app.state.job_worker = worker

    yield

    logger.info("app_shutting_down")
    worker = getattr(app.state, "job_worker", None)
    if worker is not None:
        await worker.stop()
    await drain_background_tasks(timeout_seconds=10.0)
    redis_client = getattr(app.state, "redis_client", None)
    if redis_client is not None:
        close_async = getattr(redis_client, "aclose", None)
        if callable(close_async):
            await close_async()


def create_app() -> FastAPI:
    """Cria e configura a aplicação FastAPI."""
    fastapi_app = FastAPI(
        title="Atlas Bridge",
        description="Reconciliação de pagamentos Pix -> DePix",
        version="1.0.0",
        lifespan=lifespan,
        docs_url=None if get_base_settings().is_production else "/docs",
        redoc_url=None,
    )

    fastapi_app.include_router(create_api_router())

    logger.info("app_configured")

    return fastapi_app


# Aplicação ASGI exposta para uvicorn
app = create_app()


def main() -> None:
    """Entrypoint para execução direta (desenvolvimento)."""
    import uvicorn

    logger.info("app_starting_dev_mode")
    uvicorn.run(
        "app.app:app",
        host="0.0.0.0",
        port=8080,
        reload=True,
    )


if __name__ == "__main__":
    main()
