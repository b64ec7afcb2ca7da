"""Agregador de settings do Atlas Bridge.

Re-exporta todas as settings e funções de cada módulo.
Organização por domínio para isolamento de mudanças.
"""

from __future__ import annotations

# Base settings
from config.settings.base import (
    BaseSettings,
    Environment,
    JobBackend,
    JobSettings,
    StoreBackend,
    get_base_settings,
    get_job_settings,
)

# Webhook DePix
from config.settings.depix import (
    DEFAULT_WEBHOOK_PATH,
    DepixSettings,
    get_depix_settings,
)

# Infrastructure settings
from config.settings.infra import (
    FirestoreSettings,
    get_firestore_settings,
)

# Channel-specific settings
from config.settings.telegram import (
    TELEGRAM_API_BASE_URL,
    TelegramSettings,
    get_telegram_settings,
)

__all__ = [
    # Constants
    "DEFAULT_WEBHOOK_PATH",
    "TELEGRAM_API_BASE_URL",
    # Base
    "BaseSettings",
    # DePix
    "DepixSettings",
    "Environment",
    # Infrastructure
    "FirestoreSettings",
    "JobBackend",
    # Jobs
    "JobSettings",
    "StoreBackend",
    # Channels
    "TelegramSettings",
    "get_base_settings",
    "get_depix_settings",
    "get_firestore_settings",
    "get_job_settings",
    "get_telegram_settings",
]
