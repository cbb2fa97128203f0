"""Endpoint de webhook do gateway de pareamento.

Endpoint:
- POST /webhooks/gateway: eventos empurrados pelo gateway

Fluxo:
1. Checa X-Gateway-Secret (quando GATEWAY_WEBHOOK_SECRET está definido)
2. Parseia o payload; só eventos de conexão seguem
3. Entrega ConnectionUpdate ao EventIngest

Eventos de outros tipos e chaves desconhecidas recebem 200 (ACK) para
o gateway não reenviar.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from api.connectors.gateway import (
    InvalidJsonError,
    InvalidSecretError,
    parse_gateway_event,
    parse_webhook_request,
)
from config.settings import get_gateway_settings

if TYPE_CHECKING:
    from app.services import EventIngest

logger = logging.getLogger(__name__)

router = APIRouter()


def _ack(outcome: str) -> dict[str, Any]:
    return {"status": "received", "outcome": outcome}


@router.post("/webhooks/gateway", response_model=None)
async def receive_gateway_event(request: Request) -> JSONResponse:
    """Recebe evento do gateway e aplica no registry."""
    raw_body = await request.body()
    try:
        payload = parse_webhook_request(
            raw_body=raw_body,
            headers=request.headers,
            secret=get_gateway_settings().webhook_secret or None,
        )
    except InvalidSecretError:
        logger.warning("gateway_webhook_invalid_secret", extra={"payload_size": len(raw_body)})
        return JSONResponse(status_code=401, content={"error": "invalid_secret"})
    except InvalidJsonError as exc:
        logger.warning("gateway_webhook_invalid_json", extra={"error": str(exc)})
        return JSONResponse(status_code=400, content={"error": str(exc)})

    update = parse_gateway_event(payload)
    if update is None:
        logger.debug(
            "gateway_webhook_ignored",
            extra={"event": str(payload.get("event") or payload.get("type") or "")},
        )
        return JSONResponse(content=_ack("ignored"))

    ingest: EventIngest = request.app.state.ingest
    outcome = await ingest.ingest(update)
    logger.info(
        "gateway_webhook_processed",
        extra={
            "instance_key": update.instance_key,
            "remote_state": update.state.value,
            "outcome": outcome.value,
        },
    )
    return JSONResponse(content=_ack(outcome.value))
