"""Fixtures compartilhadas dos testes de serviços."""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from app.domain.channel import ChannelInstance, ChannelType, InstanceDefinition, TenantAccount
from app.domain.events import StatusChangeEvent
from app.infra.stores import MemoryInstanceStore
from app.services import (
    ConnectionManager,
    EventIngest,
    InstanceRegistry,
    NotificationFanout,
    StatusPoller,
    Subscription,
)
from tests.fakes.fake_gateway import FakeGateway

TENANT_ID = "t1"


@dataclass
class ServiceStack:
    store: MemoryInstanceStore
    fanout: NotificationFanout
    registry: InstanceRegistry
    gateway: FakeGateway
    poller: StatusPoller
    manager: ConnectionManager
    ingest: EventIngest

    def subscribe(self, tenant_id: str = TENANT_ID) -> Subscription:
        return self.fanout.subscribe(tenant_id)

    @staticmethod
    async def drain(subscription: Subscription) -> list[StatusChangeEvent]:
        """Eventos já enfileirados, sem aguardar novos."""
        events: list[StatusChangeEvent] = []
        while subscription.pending:
            event = await subscription.get()
            if event is None:
                break
            events.append(event)
        return events

    async def seed_tenant(
        self,
        tenant_id: str = TENANT_ID,
        primary_slots: int = 2,
        page_slots: int = 1,
    ) -> TenantAccount:
        return await self.registry.register_tenant(
            TenantAccount(
                tenant_id=tenant_id,
                name="Loja",
                gateway_url="https://evo.example.com",
                gateway_secret="global-secret",
                slot_limits={
                    ChannelType.PRIMARY_MESSAGING: primary_slots,
                    ChannelType.PHOTO_SHARING: 0,
                    ChannelType.PAGE_MESSAGING: page_slots,
                },
            )
        )

    async def seed_instance(
        self,
        instance_key: str = "loja_01",
        *,
        tenant_id: str = TENANT_ID,
        slot_index: int = 0,
        credential: str | None = "inst-apikey",
    ) -> ChannelInstance:
        return await self.registry.upsert(
            tenant_id,
            slot_index,
            InstanceDefinition(
                display_name="Loja Centro",
                instance_key=instance_key,
                credential=credential,
            ),
        )


@pytest.fixture
def stack() -> ServiceStack:
    store = MemoryInstanceStore()
    fanout = NotificationFanout(queue_size=8)
    registry = InstanceRegistry(store, fanout)
    gateway = FakeGateway()
    poller = StatusPoller(registry, gateway, interval_seconds=3600, failure_threshold=3)
    manager = ConnectionManager(registry, gateway, poller, fanout)
    return ServiceStack(
        store=store,
        fanout=fanout,
        registry=registry,
        gateway=gateway,
        poller=poller,
        manager=manager,
        ingest=EventIngest(registry),
    )
