"""Settings específicas de Telegram.

Configurações do canal Telegram via Bot API (envio e remoção de
mensagens ao usuário).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

# Constantes da Telegram Bot API
TELEGRAM_API_BASE_URL: str = "https://api.telegram.org"


@dataclass(frozen=True)
class TelegramSettings:
    """Configurações do canal Telegram.

    Attributes:
        bot_token: Token do bot Telegram (obtido via @BotFather)
        api_base_url: URL base da API
        request_timeout_seconds: Timeout para requisições HTTP
        max_retries: Máximo de tentativas em caso de erro
        support_contact: Contato do suporte citado nas mensagens
        community_group: Link do grupo da comunidade
    """

    # Credenciais
    bot_token: str = ""

    # API
    api_base_url: str = TELEGRAM_API_BASE_URL

    # Timeouts e retries
    request_timeout_seconds: float = 15.0
    max_retries: int = 2

    # Links exibidos nas mensagens
    support_contact: str = "@AtlasDAO_Support"
    community_group: str = "https://t.me/atlassupport_group"

    @property
    def api_endpoint(self) -> str:
        """URL base completa da API com token do bot."""
        if not self.bot_token:
            raise ValueError("bot_token é obrigatório")
        return f"{self.api_base_url}/bot{self.bot_token}"

    def validate(self) -> list[str]:
        """Valida configurações mínimas de Telegram."""
        errors: list[str] = []
        if not self.bot_token:
            errors.append("TELEGRAM_BOT_TOKEN não configurado")
        return errors


def _load_from_env() -> TelegramSettings:
    """Carrega TelegramSettings de variáveis de ambiente."""
    return TelegramSettings(
        bot_token=os.getenv("TELEGRAM_BOT_TOKEN", ""),
        api_base_url=os.getenv("TELEGRAM_API_BASE_URL", TELEGRAM_API_BASE_URL),
        request_timeout_seconds=float(
            os.getenv("TELEGRAM_REQUEST_TIMEOUT_SECONDS", "15")
        ),
        max_retries=int(os.getenv("TELEGRAM_MAX_RETRIES", "2")),
        support_contact=os.getenv("LINK_SUPPORT_CONTACT", "@AtlasDAO_Support"),
        community_group=os.getenv(
            "LINK_COMMUNITY_GROUP", "https://t.me/atlassupport_group"
        ),
    )


@lru_cache(maxsize=1)
def get_telegram_settings() -> TelegramSettings:
    """Retorna instância cacheada de TelegramSettings."""
    return _load_from_env()
