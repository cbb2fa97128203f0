"""Stream ao vivo de mudanças de status por tenant (WebSocket).

Protocolo:
1. Cliente conecta em /tenants/{tenant_id}/stream
2. Servidor envia {"type": "subscribed", ...}
3. Cada StatusChangeEvent do tenant é enviado como JSON
4. Ao desconectar, a assinatura é fechada e o poller para se for a última

Sem replay: ao reconectar, o cliente relê via GET de instâncias.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from app.observability import correlation_scope
from utils.errors import NotFoundError

if TYPE_CHECKING:
    from app.services import ConnectionManager, Subscription

logger = logging.getLogger(__name__)

router = APIRouter()

# Código de fechamento para tenant inexistente (faixa 4000-4999 é da aplicação)
CLOSE_TENANT_NOT_FOUND = 4404


async def _pump_events(websocket: WebSocket, subscription: Subscription) -> None:
    async for event in subscription:
        await websocket.send_json(event.to_dict())


async def _wait_client_close(websocket: WebSocket) -> None:
    # Mensagens do cliente são ignoradas; só interessa o disconnect
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


@router.websocket("/tenants/{tenant_id}/stream")
async def stream_status(websocket: WebSocket, tenant_id: str) -> None:
    """Assina as mudanças de status do tenant até o cliente sair."""
    manager: ConnectionManager = websocket.app.state.manager

    with correlation_scope(websocket.headers.get("x-correlation-id")):
        await websocket.accept()
        try:
            subscription = await manager.subscribe(tenant_id)
        except NotFoundError:
            logger.info("stream_tenant_not_found", extra={"tenant_id": tenant_id})
            await websocket.close(code=CLOSE_TENANT_NOT_FOUND)
            return

        logger.info(
            "stream_opened",
            extra={"tenant_id": tenant_id, "subscription_id": subscription.subscription_id},
        )
        try:
            await websocket.send_json(
                {
                    "type": "subscribed",
                    "tenant_id": tenant_id,
                    "subscription_id": subscription.subscription_id,
                }
            )
            with contextlib.suppress(WebSocketDisconnect):
                await _serve(websocket, subscription)
        finally:
            await manager.unsubscribe(subscription)
            logger.info(
                "stream_closed",
                extra={"tenant_id": tenant_id, "subscription_id": subscription.subscription_id},
            )


async def _serve(websocket: WebSocket, subscription: Subscription) -> None:
    pump = asyncio.create_task(_pump_events(websocket, subscription))
    closer = asyncio.create_task(_wait_client_close(websocket))
    try:
        done, _ = await asyncio.wait({pump, closer}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in (pump, closer):
            task.cancel()
        await asyncio.gather(pump, closer, return_exceptions=True)

    if closer not in done:
        # Assinatura fechada pelo servidor (shutdown)
        await websocket.close()
