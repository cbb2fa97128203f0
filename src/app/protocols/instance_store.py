"""Protocolo de persistência de tenants e instâncias de canal."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.domain.channel import ChannelInstance, ChannelType, TenantAccount


class InstanceStoreProtocol(ABC):
    """Contrato assíncrono do store de instâncias.

    Implementações garantem unicidade global de instance_key:
    save_instance levanta ConflictError quando a chave já pertence
    a outra instância, sem persistir nada.
    """

    @abstractmethod
    async def get_tenant(self, tenant_id: str) -> TenantAccount | None: ...

    @abstractmethod
    async def save_tenant(self, tenant: TenantAccount) -> None: ...

    @abstractmethod
    async def list_instances(
        self,
        tenant_id: str,
        channel_type: ChannelType | None = None,
    ) -> list[ChannelInstance]: ...

    @abstractmethod
    async def get_by_id(self, instance_id: str) -> ChannelInstance | None: ...

    @abstractmethod
    async def get_by_key(self, instance_key: str) -> ChannelInstance | None: ...

    @abstractmethod
    async def get_by_slot(
        self,
        tenant_id: str,
        channel_type: ChannelType,
        slot_index: int,
    ) -> ChannelInstance | None: ...

    @abstractmethod
    async def save_instance(self, instance: ChannelInstance) -> None: ...

    @abstractmethod
    async def delete_instance(self, instance_id: str) -> bool: ...
