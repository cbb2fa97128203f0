"""Conector do gateway de pareamento: borda de entrada de eventos.

Responsabilidades:
- Checar o segredo compartilhado do webhook
- Parsear o payload bruto em ConnectionUpdate
"""

from .events import CONNECTION_EVENT_TYPES, parse_gateway_event
from .webhook import (
    InvalidJsonError,
    InvalidSecretError,
    WebhookRequestError,
    parse_webhook_request,
    verify_gateway_secret,
)

__all__ = [
    "CONNECTION_EVENT_TYPES",
    "InvalidJsonError",
    "InvalidSecretError",
    "WebhookRequestError",
    "parse_gateway_event",
    "parse_webhook_request",
    "verify_gateway_secret",
]
