"""Adapters do Telegram."""

from app.infra.telegram.bot_client import TelegramBotClient

__all__ = ["TelegramBotClient"]
