"""Webhook DePix: autenticação e parse."""

from api.connectors.depix.webhook.auth import authenticate, extract_basic_secret
from api.connectors.depix.webhook.receive import DepixWebhookPayload, parse_webhook_request

__all__ = [
    "DepixWebhookPayload",
    "authenticate",
    "extract_basic_secret",
    "parse_webhook_request",
]
