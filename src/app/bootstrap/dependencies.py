"""Factories de stores, gateway e serviços baseadas em configuração."""

from __future__ import annotations

import logging

from app.bootstrap.clients import create_async_redis_client
from app.domain.channel import ChannelType
from app.infra.gateway import (
    ChannelGatewayRouter,
    EvolutionGatewayClient,
    MetaGraphGatewayClient,
)
from app.infra.stores import MemoryInstanceStore, RedisInstanceStore
from app.protocols.gateway import GatewayClientProtocol
from app.protocols.instance_store import InstanceStoreProtocol
from app.services import (
    ConnectionManager,
    EventIngest,
    InstanceRegistry,
    NotificationFanout,
    StatusPoller,
)
from config.settings import (
    get_base_settings,
    get_gateway_settings,
    get_meta_settings,
    get_poller_settings,
    get_registry_settings,
)

logger = logging.getLogger(__name__)


def create_instance_store() -> InstanceStoreProtocol:
    """Cria store de instâncias conforme INSTANCE_STORE_BACKEND.

    - "memory": MemoryInstanceStore (dev/test)
    - "redis": RedisInstanceStore (staging/production)
    """
    base = get_base_settings()
    settings = get_registry_settings()
    backend = settings.store_backend

    if backend == "redis":
        store = RedisInstanceStore(create_async_redis_client(), key_prefix=settings.key_prefix)
        logger.info("instance_store_created", extra={"backend": "redis"})
        return store

    if backend == "memory":
        if not base.is_development:
            logger.warning(
                "memory_store_in_non_dev",
                extra={"backend": "memory", "environment": base.environment},
            )
        store = MemoryInstanceStore()
        logger.info("instance_store_created", extra={"backend": "memory"})
        return store

    msg = f"INSTANCE_STORE_BACKEND inválido: {backend}"
    raise ValueError(msg)


def create_gateway_client() -> GatewayClientProtocol:
    """Cria o router de gateway com um adapter por tipo de canal."""
    evolution = EvolutionGatewayClient(get_gateway_settings())
    meta = MetaGraphGatewayClient(get_meta_settings())
    return ChannelGatewayRouter(
        {
            ChannelType.PRIMARY_MESSAGING: evolution,
            ChannelType.PHOTO_SHARING: meta,
            ChannelType.PAGE_MESSAGING: meta,
        }
    )


def create_connection_manager(
    store: InstanceStoreProtocol | None = None,
    gateway: GatewayClientProtocol | None = None,
) -> tuple[ConnectionManager, EventIngest]:
    """Monta o grafo de serviços.

    Returns:
        (ConnectionManager, EventIngest) compartilhando o mesmo registry
    """
    poller_settings = get_poller_settings()
    fanout = NotificationFanout(queue_size=poller_settings.fanout_queue_size)
    registry = InstanceRegistry(store or create_instance_store(), fanout)
    gateway_client = gateway or create_gateway_client()
    poller = StatusPoller(
        registry,
        gateway_client,
        interval_seconds=poller_settings.interval_seconds,
        failure_threshold=poller_settings.failure_threshold,
    )
    manager = ConnectionManager(registry, gateway_client, poller, fanout)
    logger.info(
        "connection_manager_created",
        extra={
            "poll_interval_seconds": poller_settings.interval_seconds,
            "failure_threshold": poller_settings.failure_threshold,
        },
    )
    return manager, EventIngest(registry)
