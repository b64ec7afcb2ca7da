"""Brokers de jobs diferidos (Redis em produção, memória em dev/test)."""

from __future__ import annotations

from app.infra.jobs.memory_scheduler import MemoryJobScheduler
from app.infra.jobs.redis_scheduler import RedisJobScheduler

__all__ = ["MemoryJobScheduler", "RedisJobScheduler"]
