"""Redis Job Scheduler — jobs diferidos compartilhados entre workers.

Estrutura de keys (prefixo configurável):
    <prefix>:pending     ZSET job_id -> due_at (epoch)
    <prefix>:processing  ZSET job_id -> deadline do lease (epoch)
    <prefix>:jobs        HASH job_id -> JSON do ScheduledJob
    <prefix>:dead        LIST JSON de jobs esgotados

Reivindicar e cancelar usam ZREM em `pending`: só um dos dois vence.
Quem perde recebe 0 e segue em frente (cancel retorna False, o worker
pula o job). A passagem pending -> processing (e a volta, em
`recover_stale`) roda num script Lua: o job nunca fica fora dos dois ZSETs.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

from app.jobs.models import JobKind, ScheduledJob, build_job_id
from app.protocols.job_scheduler import JobSchedulerProtocol
from utils.errors import RedisConnectionError

if TYPE_CHECKING:
    from redis.asyncio import Redis as AsyncRedis

logger = logging.getLogger(__name__)

DEFAULT_KEY_PREFIX = "depix_jobs"

CLAIM_LUA_SCRIPT = """
-- KEYS[1] = pending, KEYS[2] = processing, KEYS[3] = jobs
-- ARGV[1] = job_id, ARGV[2] = deadline do lease
if redis.call('ZREM', KEYS[1], ARGV[1]) == 0 then
    return false
end
local raw = redis.call('HGET', KEYS[3], ARGV[1])
if not raw then
    return false
end
redis.call('ZADD', KEYS[2], ARGV[2], ARGV[1])
return raw
"""

REQUEUE_LUA_SCRIPT = """
-- KEYS[1] = processing, KEYS[2] = pending
-- ARGV[1] = job_id, ARGV[2] = novo due_at
if redis.call('ZREM', KEYS[1], ARGV[1]) == 0 then
    return 0
end
redis.call('ZADD', KEYS[2], ARGV[2], ARGV[1])
return 1
"""


def _decode(value: bytes | str) -> str:
    return value.decode("utf-8") if isinstance(value, bytes) else value


class RedisJobScheduler(JobSchedulerProtocol):
    """Broker de jobs usando Redis (sorted sets + hash).

    Args:
        async_redis_client: Cliente Redis assíncrono
        key_prefix: Namespace das keys
        lease_seconds: Tempo máximo de execução antes de `recover_stale`
            devolver o job para a fila
    """

    def __init__(
        self,
        async_redis_client: AsyncRedis[bytes],
        key_prefix: str = DEFAULT_KEY_PREFIX,
        lease_seconds: float = 300.0,
    ) -> None:
        self._redis = async_redis_client
        self._prefix = key_prefix
        self._lease_seconds = lease_seconds
        self._claim_script = async_redis_client.register_script(CLAIM_LUA_SCRIPT)
        self._requeue_script = async_redis_client.register_script(REQUEUE_LUA_SCRIPT)

    @property
    def pending_key(self) -> str:
        return f"{self._prefix}:pending"

    @property
    def processing_key(self) -> str:
        return f"{self._prefix}:processing"

    @property
    def jobs_key(self) -> str:
        return f"{self._prefix}:jobs"

    @property
    def dead_key(self) -> str:
        return f"{self._prefix}:dead"

    async def schedule(
        self,
        kind: JobKind,
        external_entry_id: str,
        payload: dict[str, Any],
        delay_seconds: float,
    ) -> ScheduledJob:
        job = ScheduledJob(
            kind=JobKind(kind),
            external_entry_id=external_entry_id,
            due_at=datetime.now(UTC) + timedelta(seconds=delay_seconds),
            payload=dict(payload),
        )
        job_id = job.job_id
        try:
            pipeline = self._redis.pipeline()
            pipeline.hsetnx(self.jobs_key, job_id, job.to_json())
            pipeline.zadd(self.pending_key, {job_id: job.due_at.timestamp()}, nx=True)
            created, _ = await pipeline.execute()
        except Exception as exc:
            raise RedisConnectionError("Falha ao agendar job no Redis") from exc

        if not created:
            logger.debug("job_already_scheduled", extra={"job_id": job_id})
            existing = await self.get(kind, external_entry_id)
            return existing or job

        logger.debug("job_scheduled", extra={"job_id": job_id, "delay_seconds": delay_seconds})
        return job

    async def cancel(self, kind: JobKind, external_entry_id: str) -> bool:
        job_id = build_job_id(kind, external_entry_id)
        try:
            removed = await self._redis.zrem(self.pending_key, job_id)
            if removed:
                await self._redis.hdel(self.jobs_key, job_id)
        except Exception as exc:
            raise RedisConnectionError("Falha ao cancelar job no Redis") from exc
        return bool(removed)

    async def get(self, kind: JobKind, external_entry_id: str) -> ScheduledJob | None:
        job_id = build_job_id(kind, external_entry_id)
        try:
            raw = await self._redis.hget(self.jobs_key, job_id)
        except Exception as exc:
            raise RedisConnectionError("Falha ao consultar job no Redis") from exc
        return ScheduledJob.from_json(raw) if raw else None

    async def claim_due(self, now: datetime, limit: int = 20) -> list[ScheduledJob]:
        lease_deadline = now.timestamp() + self._lease_seconds
        claimed: list[ScheduledJob] = []
        try:
            due_ids = await self._redis.zrangebyscore(
                self.pending_key, "-inf", now.timestamp(), start=0, num=limit
            )
            for raw_id in due_ids:
                job_id = _decode(raw_id)
                # None: perdeu para cancel()/outro worker, ou id órfão
                raw_job = await self._claim_script(
                    keys=[self.pending_key, self.processing_key, self.jobs_key],
                    args=[job_id, lease_deadline],
                )
                if raw_job is None:
                    continue
                claimed.append(ScheduledJob.from_json(raw_job))
        except Exception as exc:
            raise RedisConnectionError("Falha ao reivindicar jobs no Redis") from exc
        return claimed

    async def complete(self, job: ScheduledJob) -> None:
        try:
            pipeline = self._redis.pipeline()
            pipeline.zrem(self.processing_key, job.job_id)
            pipeline.hdel(self.jobs_key, job.job_id)
            await pipeline.execute()
        except Exception as exc:
            raise RedisConnectionError("Falha ao concluir job no Redis") from exc

    async def reschedule(self, job: ScheduledJob) -> None:
        try:
            pipeline = self._redis.pipeline()
            pipeline.hset(self.jobs_key, job.job_id, job.to_json())
            pipeline.zrem(self.processing_key, job.job_id)
            pipeline.zadd(self.pending_key, {job.job_id: job.due_at.timestamp()})
            await pipeline.execute()
        except Exception as exc:
            raise RedisConnectionError("Falha ao reagendar job no Redis") from exc

    async def dead_letter(self, job: ScheduledJob, error_type: str) -> None:
        record = json.dumps(
            {
                "job_id": job.job_id,
                "job": json.loads(job.to_json()),
                "error_type": error_type,
                "failed_at": datetime.now(UTC).isoformat(),
            }
        )
        try:
            pipeline = self._redis.pipeline()
            pipeline.rpush(self.dead_key, record)
            pipeline.zrem(self.processing_key, job.job_id)
            pipeline.hdel(self.jobs_key, job.job_id)
            await pipeline.execute()
        except Exception as exc:
            raise RedisConnectionError("Falha ao mover job para dead-letter") from exc

    async def recover_stale(self, now: datetime) -> int:
        recovered = 0
        try:
            stale_ids = await self._redis.zrangebyscore(
                self.processing_key, "-inf", now.timestamp()
            )
            for raw_id in stale_ids:
                requeued = await self._requeue_script(
                    keys=[self.processing_key, self.pending_key],
                    args=[_decode(raw_id), now.timestamp()],
                )
                recovered += int(requeued or 0)
        except Exception as exc:
            raise RedisConnectionError("Falha ao recuperar jobs expirados") from exc
        if recovered:
            logger.warning("jobs_recovered_after_lease", extra={"count": recovered})
        return recovered
