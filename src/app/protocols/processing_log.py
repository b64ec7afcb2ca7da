"""Protocolo do log de processamento de webhooks."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class ProcessingLogProtocol(ABC):
    """Contrato append-only para registrar desfechos de reconciliação."""

    @abstractmethod
    async def append(self, record: dict[str, Any]) -> None:
        """Adiciona registro (sem PII: nada de owner_id ou credenciais)."""
