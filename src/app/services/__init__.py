"""Serviços de aplicação.

Orquestração reutilizável sobre protocolos; IO concreto fica em app/infra/.
"""

from app.services.notification_dispatcher import NotificationDispatcher, NotificationResult
from app.services.webhook_forwarder import ForwardedResponse, WebhookForwarder
from app.services.webhook_router import (
    LocalRoute,
    PeerDeployment,
    RemoteRoute,
    Route,
    UnknownRoute,
    WebhookRouter,
)

__all__ = [
    "ForwardedResponse",
    "LocalRoute",
    "NotificationDispatcher",
    "NotificationResult",
    "PeerDeployment",
    "RemoteRoute",
    "Route",
    "UnknownRoute",
    "WebhookForwarder",
    "WebhookRouter",
]
