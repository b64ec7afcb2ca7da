"""Agregador de rotas — health checks e webhook DePix.

Uso:
    from api.routes import create_api_router

    app = FastAPI()
    app.include_router(create_api_router())
"""

from __future__ import annotations

from fastapi import APIRouter

from api.routes.depix.webhook import create_depix_router
from api.routes.health.router import router as health_router


def create_api_router() -> APIRouter:
    """Cria router principal com todos os sub-routers registrados."""
    api_router = APIRouter()

    # Health checks (sem prefixo para /health e /ready na raiz)
    api_router.include_router(health_router, tags=["health"])

    # Webhook DePix (caminho completo vem de DEPIX_WEBHOOK_PATH)
    api_router.include_router(create_depix_router(), tags=["depix"])

    return api_router
