"""Validação inicial do webhook do gateway (sem PII)."""

from __future__ import annotations

import hmac
import json
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Mapping

SECRET_HEADER = "x-gateway-secret"


class WebhookRequestError(ValueError):
    """Erro base para falhas de webhook."""


class InvalidSecretError(WebhookRequestError):
    """Header de segredo ausente ou divergente."""


class InvalidJsonError(WebhookRequestError):
    """JSON inválido no payload do webhook."""


def verify_gateway_secret(headers: Mapping[str, str], secret: str | None) -> bool:
    """Compara o header X-Gateway-Secret com o segredo configurado.

    Sem segredo configurado a checagem é pulada (retorna True).
    """
    if not secret:
        return True
    received = headers.get(SECRET_HEADER) or ""
    return hmac.compare_digest(received.encode(), secret.encode())


def parse_webhook_request(
    raw_body: bytes,
    headers: Mapping[str, str],
    secret: str | None,
) -> dict[str, Any]:
    """Valida segredo e parseia JSON do webhook.

    Args:
        raw_body: Corpo bruto do request
        headers: Headers recebidos (chaves em minúsculas)
        secret: Segredo do webhook (vazio = sem checagem)

    Raises:
        InvalidSecretError: Se o segredo não conferir
        InvalidJsonError: Se o JSON estiver inválido ou não for objeto

    Returns:
        Payload como dict
    """
    if not verify_gateway_secret(headers, secret):
        raise InvalidSecretError("invalid_secret")

    try:
        payload = json.loads(raw_body or b"{}")
    except json.JSONDecodeError as exc:
        raise InvalidJsonError("invalid_json") from exc

    if not isinstance(payload, dict):
        raise InvalidJsonError("payload_not_object")

    return payload
