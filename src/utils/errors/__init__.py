"""Exceções utilitárias compartilhadas."""

from .exceptions import (
    ConflictError,
    ConnectionManagerError,
    GatewayError,
    GatewayRejected,
    GatewayUnavailable,
    InfrastructureError,
    NotFoundError,
    RedisConnectionError,
    ValidationError,
)

__all__ = [
    "ConflictError",
    "ConnectionManagerError",
    "GatewayError",
    "GatewayRejected",
    "GatewayUnavailable",
    "InfrastructureError",
    "NotFoundError",
    "RedisConnectionError",
    "ValidationError",
]
