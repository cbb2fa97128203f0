"""Fan-out de mudanças de status para sessões ao vivo.

Cada sessão (WebSocket) tem uma Subscription com fila limitada. O publish
nunca bloqueia: fila cheia descarta o evento mais antigo, porque o status
mais recente é o que importa. Não há replay: quem reconecta relê o estado
via list_instances/get_status.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import TYPE_CHECKING

from app.observability import record_fanout_drop

if TYPE_CHECKING:
    from app.domain.events import StatusChangeEvent

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 32

_CLOSED = object()


class Subscription:
    """Interesse de uma sessão ao vivo nos status de um tenant.

    Iterável de forma assíncrona até ser fechada:

        async for event in subscription:
            await websocket.send_json(event.to_dict())
    """

    __slots__ = ("_closed", "_queue", "subscription_id", "tenant_id")

    def __init__(self, tenant_id: str, queue_size: int = DEFAULT_QUEUE_SIZE) -> None:
        self.subscription_id = uuid.uuid4().hex
        self.tenant_id = tenant_id
        self._queue: asyncio.Queue[object] = asyncio.Queue(maxsize=queue_size)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def deliver(self, event: StatusChangeEvent) -> bool:
        """Enfileira sem bloquear.

        Returns:
            False se um evento antigo foi descartado para abrir espaço
        """
        if self._closed:
            return True
        dropped = False
        if self._queue.full():
            self._queue.get_nowait()
            dropped = True
        self._queue.put_nowait(event)
        return not dropped

    def close(self) -> None:
        """Encerra a iteração; eventos pendentes são descartados."""
        if self._closed:
            return
        self._closed = True
        while not self._queue.empty():
            self._queue.get_nowait()
        self._queue.put_nowait(_CLOSED)

    async def get(self) -> StatusChangeEvent | None:
        """Próximo evento, ou None se a assinatura foi fechada."""
        if self._closed and self._queue.empty():
            return None
        item = await self._queue.get()
        if item is _CLOSED:
            return None
        return item  # type: ignore[return-value]

    def __aiter__(self) -> Subscription:
        return self

    async def __anext__(self) -> StatusChangeEvent:
        event = await self.get()
        if event is None:
            raise StopAsyncIteration
        return event


class NotificationFanout:
    """Publica StatusChangeEvent para todas as assinaturas do tenant.

    Args:
        queue_size: Tamanho da fila de cada assinatura
    """

    def __init__(self, queue_size: int = DEFAULT_QUEUE_SIZE) -> None:
        self._queue_size = queue_size
        self._subscriptions: dict[str, dict[str, Subscription]] = {}

    def subscribe(self, tenant_id: str) -> Subscription:
        subscription = Subscription(tenant_id, self._queue_size)
        self._subscriptions.setdefault(tenant_id, {})[subscription.subscription_id] = subscription
        logger.info(
            "fanout_subscribed",
            extra={
                "tenant_id": tenant_id,
                "subscription_id": subscription.subscription_id,
                "subscriber_count": self.subscriber_count(tenant_id),
            },
        )
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        """Remove e fecha a assinatura (idempotente)."""
        tenant_subs = self._subscriptions.get(subscription.tenant_id)
        if tenant_subs is not None:
            tenant_subs.pop(subscription.subscription_id, None)
            if not tenant_subs:
                del self._subscriptions[subscription.tenant_id]
        subscription.close()
        logger.info(
            "fanout_unsubscribed",
            extra={
                "tenant_id": subscription.tenant_id,
                "subscription_id": subscription.subscription_id,
                "subscriber_count": self.subscriber_count(subscription.tenant_id),
            },
        )

    def subscriber_count(self, tenant_id: str) -> int:
        return len(self._subscriptions.get(tenant_id, {}))

    def publish(self, event: StatusChangeEvent) -> int:
        """Entrega o evento às assinaturas do tenant.

        Returns:
            Número de assinaturas que receberam o evento
        """
        subscriptions = list(self._subscriptions.get(event.tenant_id, {}).values())
        for subscription in subscriptions:
            if not subscription.deliver(event):
                record_fanout_drop(event.tenant_id, subscription.subscription_id)
                logger.debug(
                    "fanout_event_dropped",
                    extra={
                        "tenant_id": event.tenant_id,
                        "subscription_id": subscription.subscription_id,
                    },
                )
        return len(subscriptions)

    def close_all(self) -> None:
        """Fecha todas as assinaturas (shutdown)."""
        for tenant_subs in list(self._subscriptions.values()):
            for subscription in list(tenant_subs.values()):
                subscription.close()
        self._subscriptions.clear()
