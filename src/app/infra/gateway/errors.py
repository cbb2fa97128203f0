"""Classificação de falhas HTTP do gateway na taxonomia de erros."""

from __future__ import annotations

from typing import Any

from app.infra.http import HttpError
from utils.errors import GatewayError, GatewayRejected, GatewayUnavailable

REJECTED_STATUS_CODES = frozenset({401, 403})

# Tipos de erro da Graph API que indicam token inválido/expirado
META_AUTH_ERROR_TYPES = frozenset({"OAuthException"})
META_AUTH_ERROR_CODES = frozenset({102, 190})


def classify_status(status_code: int, message: str) -> GatewayError:
    """401/403 são recusa de credencial; qualquer outro status é transitório."""
    if status_code in REJECTED_STATUS_CODES:
        return GatewayRejected(message, status_code=status_code)
    return GatewayUnavailable(message, status_code=status_code)


def classify_exception(exc: BaseException) -> GatewayError:
    """Converte qualquer exceção em GatewayError.

    Desconhecido vira GatewayUnavailable: na dúvida, tentar de novo.
    """
    if isinstance(exc, GatewayError):
        return exc
    if isinstance(exc, HttpError):
        if exc.status_code is not None:
            return classify_status(exc.status_code, str(exc))
        return GatewayUnavailable(str(exc))
    return GatewayUnavailable(f"gateway_unexpected_error:{type(exc).__name__}")


def is_meta_auth_error(payload: Any) -> bool:
    """Verifica se o corpo de erro da Graph API indica credencial inválida."""
    if not isinstance(payload, dict):
        return False
    error_obj = payload.get("error")
    if not isinstance(error_obj, dict):
        return False
    return (
        error_obj.get("type") in META_AUTH_ERROR_TYPES
        or error_obj.get("code") in META_AUTH_ERROR_CODES
    )
