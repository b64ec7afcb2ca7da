"""Factories de clientes externos — Redis, Firestore e Telegram."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import TYPE_CHECKING

from config.settings import get_base_settings, get_firestore_settings, get_telegram_settings

if TYPE_CHECKING:
    from google.cloud.firestore import Client as FirestoreClient
    from redis.asyncio import Redis as AsyncRedis

    from app.infra.telegram import TelegramBotClient

logger = logging.getLogger(__name__)


# ──────────────────────────────────────────────────────────────────────────────
# Redis Client Factory
# ──────────────────────────────────────────────────────────────────────────────


@lru_cache(maxsize=1)
def create_async_redis_client() -> AsyncRedis[bytes]:
    """Cria cliente Redis assíncrono (singleton).

    Raises:
        ValueError: Se REDIS_URL não configurado
    """
    from redis.asyncio import Redis as AsyncRedis

    redis_url = get_base_settings().redis_url
    if not redis_url:
        msg = "REDIS_URL não configurado"
        raise ValueError(msg)

    client: AsyncRedis[bytes] = AsyncRedis.from_url(
        redis_url,
        decode_responses=False,
        socket_timeout=5.0,
        socket_connect_timeout=5.0,
        retry_on_timeout=True,
    )

    host = client.connection_pool.connection_kwargs.get("host", "unknown")
    logger.info("async_redis_client_created", extra={"host": host})
    return client


# ──────────────────────────────────────────────────────────────────────────────
# Firestore Client Factory
# ──────────────────────────────────────────────────────────────────────────────


@lru_cache(maxsize=4)
def create_firestore_client(project_id: str = "") -> FirestoreClient:
    """Cria cliente Firestore (um por projeto).

    Args:
        project_id: Projeto explícito (peer). Vazio usa FIRESTORE_PROJECT_ID
            ou GCP_PROJECT.
    """
    from google.cloud import firestore

    effective_project = (
        project_id
        or get_firestore_settings().project_id
        or get_base_settings().gcp_project
        or None
    )
    client = firestore.Client(project=effective_project)
    logger.info("firestore_client_created", extra={"project": effective_project})
    return client


# ──────────────────────────────────────────────────────────────────────────────
# Telegram Client Factory
# ──────────────────────────────────────────────────────────────────────────────


@lru_cache(maxsize=1)
def create_telegram_client() -> TelegramBotClient:
    """Cria adapter da Telegram Bot API (singleton)."""
    from app.infra.telegram import TelegramBotClient

    client = TelegramBotClient(get_telegram_settings())
    logger.info("telegram_client_created")
    return client
