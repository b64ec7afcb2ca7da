"""Settings do webhook DePix e do roteamento para o deployment par.

Dois deployments (ex.: bot principal e bot de testes) compartilham o mesmo
endpoint de webhook do processador. Cada um persiste suas transações; o
que não encontra a transação localmente consulta o par e encaminha.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

DEFAULT_WEBHOOK_PATH = "/webhooks/depix_payment"


@dataclass(frozen=True)
class DepixSettings:
    """Configurações do webhook DePix.

    Attributes:
        webhook_secret: Segredo compartilhado do header Authorization
        webhook_path: Caminho HTTP do endpoint de webhook
        webhook_timeout_seconds: Orçamento total por requisição (504 ao estourar)
        peer_base_url: URL base do deployment par (vazio = sem par)
        peer_name: Nome do par para logs
        peer_transactions_collection: Collection de transações do par
        peer_firestore_project_id: Projeto Firestore do par (vazio = mesmo projeto)
        forward_timeout_seconds: Timeout do encaminhamento ao par
        forward_max_retries: Retentativas do encaminhamento (0 = sem retry)
        forward_backoff_seconds: Base do backoff entre retentativas
    """

    webhook_secret: str = ""
    webhook_path: str = DEFAULT_WEBHOOK_PATH
    webhook_timeout_seconds: float = 25.0

    peer_base_url: str = ""
    peer_name: str = "peer"
    peer_transactions_collection: str = ""
    peer_firestore_project_id: str = ""

    forward_timeout_seconds: float = 10.0
    forward_max_retries: int = 0
    forward_backoff_seconds: float = 1.0

    @property
    def peer_enabled(self) -> bool:
        """True quando há deployment par configurado."""
        return bool(self.peer_base_url and self.peer_transactions_collection)

    @property
    def peer_webhook_url(self) -> str:
        """URL completa do webhook do par."""
        return f"{self.peer_base_url.rstrip('/')}{self.webhook_path}"

    def validate(self) -> list[str]:
        """Valida configurações mínimas do webhook."""
        errors: list[str] = []

        if not self.webhook_secret:
            errors.append("DEPIX_WEBHOOK_SECRET não configurado")

        if not self.webhook_path.startswith("/"):
            errors.append("DEPIX_WEBHOOK_PATH deve começar com '/'")

        if self.webhook_timeout_seconds <= 0:
            errors.append("DEPIX_WEBHOOK_TIMEOUT_SECONDS deve ser positivo")

        if self.peer_base_url and not self.peer_transactions_collection:
            errors.append(
                "DEPIX_PEER_TRANSACTIONS_COLLECTION obrigatório com DEPIX_PEER_BASE_URL"
            )

        if self.forward_max_retries < 0:
            errors.append("DEPIX_FORWARD_MAX_RETRIES não pode ser negativo")

        return errors


def _load_depix_from_env() -> DepixSettings:
    """Carrega DepixSettings de variáveis de ambiente."""
    return DepixSettings(
        webhook_secret=os.getenv("DEPIX_WEBHOOK_SECRET", ""),
        webhook_path=os.getenv("DEPIX_WEBHOOK_PATH", DEFAULT_WEBHOOK_PATH),
        webhook_timeout_seconds=float(os.getenv("DEPIX_WEBHOOK_TIMEOUT_SECONDS", "25")),
        peer_base_url=os.getenv("DEPIX_PEER_BASE_URL", ""),
        peer_name=os.getenv("DEPIX_PEER_NAME", "peer"),
        peer_transactions_collection=os.getenv("DEPIX_PEER_TRANSACTIONS_COLLECTION", ""),
        peer_firestore_project_id=os.getenv("DEPIX_PEER_FIRESTORE_PROJECT_ID", ""),
        forward_timeout_seconds=float(os.getenv("DEPIX_FORWARD_TIMEOUT_SECONDS", "10")),
        forward_max_retries=int(os.getenv("DEPIX_FORWARD_MAX_RETRIES", "0")),
        forward_backoff_seconds=float(os.getenv("DEPIX_FORWARD_BACKOFF_SECONDS", "1")),
    )


@lru_cache(maxsize=1)
def get_depix_settings() -> DepixSettings:
    """Retorna instância cacheada de DepixSettings."""
    return _load_depix_from_env()
