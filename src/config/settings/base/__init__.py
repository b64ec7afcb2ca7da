"""Agregador de settings base.

Re-exporta todas as settings base para uso externo.
"""

from __future__ import annotations

from config.settings.base.core import (
    BaseSettings,
    Environment,
    StoreBackend,
    get_base_settings,
)
from config.settings.base.jobs import (
    JobBackend,
    JobSettings,
    get_job_settings,
)

__all__ = [
    # Core
    "BaseSettings",
    # Types
    "Environment",
    "JobBackend",
    # Jobs
    "JobSettings",
    "StoreBackend",
    "get_base_settings",
    "get_job_settings",
]
