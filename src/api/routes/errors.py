"""Mapeamento de erros do gerenciador de conexões para respostas HTTP.

| Erro                  | HTTP | retryable |
|-----------------------|------|-----------|
| ValidationError       | 422  | -         |
| NotFoundError         | 404  | -         |
| ConflictError         | 409  | -         |
| GatewayRejected       | 502  | False     |
| GatewayUnavailable    | 503  | True      |
| RedisConnectionError  | 503  | True      |
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi.responses import JSONResponse

from utils.errors import (
    ConflictError,
    GatewayError,
    GatewayRejected,
    NotFoundError,
    RedisConnectionError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def _body(error: str, message: str, **extra: Any) -> dict[str, Any]:
    return {"error": error, "message": message, **extra}


def error_response(exc: Exception) -> JSONResponse:
    """Converte exceção conhecida em JSONResponse.

    Exceções fora da taxonomia são propagadas pelo chamador, não aqui.
    """
    if isinstance(exc, ValidationError):
        return JSONResponse(
            status_code=422,
            content=_body("validation_error", str(exc), field_errors=exc.field_errors),
        )
    if isinstance(exc, NotFoundError):
        return JSONResponse(status_code=404, content=_body("not_found", str(exc)))
    if isinstance(exc, ConflictError):
        return JSONResponse(status_code=409, content=_body("conflict", str(exc)))
    if isinstance(exc, GatewayError):
        status_code = 502 if isinstance(exc, GatewayRejected) else 503
        error = "gateway_rejected" if isinstance(exc, GatewayRejected) else "gateway_unavailable"
        logger.info(
            "gateway_error_response",
            extra={
                "error_type": type(exc).__name__,
                "upstream_status": exc.status_code,
                "status_code": status_code,
            },
        )
        return JSONResponse(
            status_code=status_code,
            content=_body(error, str(exc), retryable=exc.retryable),
        )
    if isinstance(exc, RedisConnectionError):
        logger.warning("storage_unavailable", extra={"error_type": type(exc).__name__})
        return JSONResponse(
            status_code=503,
            content=_body("storage_unavailable", "Armazenamento indisponível", retryable=True),
        )
    raise exc
