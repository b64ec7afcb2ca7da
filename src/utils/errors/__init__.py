"""Exceções utilitárias compartilhadas."""

from .exceptions import (
    AuthenticationFailure,
    BridgeError,
    ConflictFailure,
    FirestoreUnavailableError,
    ForwardingFailure,
    HandlerFailure,
    InfrastructureError,
    NotFoundFailure,
    RedisConnectionError,
    TransientDeliveryFailure,
    ValidationFailure,
)

__all__ = [
    "AuthenticationFailure",
    "BridgeError",
    "ConflictFailure",
    "FirestoreUnavailableError",
    "ForwardingFailure",
    "HandlerFailure",
    "InfrastructureError",
    "NotFoundFailure",
    "RedisConnectionError",
    "TransientDeliveryFailure",
    "ValidationFailure",
]
