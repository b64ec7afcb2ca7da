"""Settings dos jobs diferidos (lembrete e expiração).

Backends:
    - memory: apenas desenvolvimento/testes (jobs somem em reinícios)
    - redis: produção (fila compartilhada entre instâncias)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Literal

JobBackend = Literal["memory", "redis"]


@dataclass(frozen=True)
class JobSettings:
    """Configurações do scheduler e do worker de jobs.

    Attributes:
        backend: Backend da fila (memory|redis)
        reminder_delay_seconds: Atraso do lembrete após o QR Code
        expiration_delay_seconds: Validade do QR Code
        max_attempts: Tentativas antes do dead-letter
        retry_backoff_seconds: Base do backoff exponencial entre tentativas
        poll_interval_seconds: Intervalo de polling do worker
        lease_seconds: Tempo máximo de um job reivindicado
        queue_prefix: Namespace das keys no Redis
        embedded_worker: Roda o worker dentro do processo da API
        followup_delay_seconds: Atraso da mensagem de acompanhamento pós-PAID
    """

    backend: JobBackend = "memory"
    reminder_delay_seconds: float = 70.0
    expiration_delay_seconds: float = 1140.0
    max_attempts: int = 3
    retry_backoff_seconds: float = 5.0
    poll_interval_seconds: float = 1.0
    lease_seconds: float = 300.0
    queue_prefix: str = "depix_jobs"
    embedded_worker: bool = True
    followup_delay_seconds: float = 2.0

    def validate(self, redis_url: str = "") -> list[str]:
        """Valida configurações de jobs.

        Args:
            redis_url: URL do Redis (necessária se backend=redis)

        Returns:
            Lista de erros de validação.
        """
        errors: list[str] = []

        if self.backend not in ("memory", "redis"):
            errors.append(f"JOB_BACKEND inválido: {self.backend}")

        if self.backend == "redis" and not redis_url:
            errors.append("REDIS_URL obrigatório quando JOB_BACKEND=redis")

        if self.reminder_delay_seconds <= 0:
            errors.append("JOB_REMINDER_DELAY_SECONDS deve ser positivo")

        if self.expiration_delay_seconds <= self.reminder_delay_seconds:
            errors.append(
                "JOB_EXPIRATION_DELAY_SECONDS deve ser maior que o atraso do lembrete"
            )

        if self.max_attempts < 1:
            errors.append("JOB_MAX_ATTEMPTS deve ser >= 1")

        if self.poll_interval_seconds <= 0:
            errors.append("JOB_POLL_INTERVAL_SECONDS deve ser positivo")

        return errors


def _load_job_settings_from_env() -> JobSettings:
    """Carrega JobSettings de variáveis de ambiente."""
    backend_str = os.getenv("JOB_BACKEND", "memory").lower()
    backend: JobBackend = "redis" if backend_str == "redis" else "memory"

    return JobSettings(
        backend=backend,
        reminder_delay_seconds=float(os.getenv("JOB_REMINDER_DELAY_SECONDS", "70")),
        expiration_delay_seconds=float(
            os.getenv("JOB_EXPIRATION_DELAY_SECONDS", "1140")
        ),
        max_attempts=int(os.getenv("JOB_MAX_ATTEMPTS", "3")),
        retry_backoff_seconds=float(os.getenv("JOB_RETRY_BACKOFF_SECONDS", "5")),
        poll_interval_seconds=float(os.getenv("JOB_POLL_INTERVAL_SECONDS", "1")),
        lease_seconds=float(os.getenv("JOB_LEASE_SECONDS", "300")),
        queue_prefix=os.getenv("JOB_QUEUE_PREFIX", "depix_jobs"),
        embedded_worker=os.getenv("JOB_EMBEDDED_WORKER", "true").lower()
        in ("true", "1", "yes"),
        followup_delay_seconds=float(os.getenv("NOTIFY_FOLLOWUP_DELAY_SECONDS", "2")),
    )


@lru_cache(maxsize=1)
def get_job_settings() -> JobSettings:
    """Retorna instância cacheada de JobSettings."""
    return _load_job_settings_from_env()
