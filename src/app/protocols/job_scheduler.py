"""Protocolo do broker de jobs diferidos.

O broker é o único que cria ou remove jobs. Nenhum componente guarda
uma cópia privada de "jobs que agendei": o cancelamento recalcula o ID
a partir de (kind, external_entry_id).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from datetime import datetime

    from app.jobs.models import JobKind, ScheduledJob


class JobSchedulerProtocol(ABC):
    """Contrato de agendamento, cancelamento e consumo de jobs."""

    @abstractmethod
    async def schedule(
        self,
        kind: JobKind,
        external_entry_id: str,
        payload: dict[str, Any],
        delay_seconds: float,
    ) -> ScheduledJob:
        """Agenda job para `agora + delay_seconds`.

        Reagendar um ID já existente não cria duplicata: o job original é
        mantido e devolvido.
        """

    @abstractmethod
    async def cancel(self, kind: JobKind, external_entry_id: str) -> bool:
        """Remove job ainda não iniciado.

        Returns:
            True se removeu; False se não existe ou já foi reivindicado
            por um worker (não é erro).
        """

    @abstractmethod
    async def get(self, kind: JobKind, external_entry_id: str) -> ScheduledJob | None:
        """Retorna job pendente ou em execução, se houver."""

    @abstractmethod
    async def claim_due(self, now: datetime, limit: int = 20) -> list[ScheduledJob]:
        """Reivindica atomicamente jobs vencidos para execução.

        Um job reivindicado sai do conjunto pendente; `cancel` passa a
        retornar False para ele.
        """

    @abstractmethod
    async def complete(self, job: ScheduledJob) -> None:
        """Remove definitivamente job executado com sucesso."""

    @abstractmethod
    async def reschedule(self, job: ScheduledJob) -> None:
        """Devolve job reivindicado para a fila pendente (retry)."""

    @abstractmethod
    async def dead_letter(self, job: ScheduledJob, error_type: str) -> None:
        """Move job esgotado para a fila de falhas (canal do operador)."""

    @abstractmethod
    async def recover_stale(self, now: datetime) -> int:
        """Devolve à fila jobs reivindicados cujo lease expirou.

        Returns:
            Quantidade de jobs recuperados.
        """
