"""Store de instâncias em memória: apenas para desenvolvimento e testes.

ATENÇÃO: Não usar em staging/production. Sem persistência entre reinícios.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from app.protocols.instance_store import InstanceStoreProtocol
from utils.errors import ConflictError

if TYPE_CHECKING:
    from app.domain.channel import ChannelInstance, ChannelType, TenantAccount


class MemoryInstanceStore(InstanceStoreProtocol):
    """Store de tenants e instâncias em dicts: apenas para dev/test."""

    def __init__(self) -> None:
        self._tenants: dict[str, TenantAccount] = {}
        self._instances: dict[str, ChannelInstance] = {}  # instance_id -> instance
        self._key_index: dict[str, str] = {}  # instance_key -> instance_id

    async def get_tenant(self, tenant_id: str) -> TenantAccount | None:
        return self._tenants.get(tenant_id)

    async def save_tenant(self, tenant: TenantAccount) -> None:
        self._tenants[tenant.tenant_id] = tenant

    async def list_instances(
        self,
        tenant_id: str,
        channel_type: ChannelType | None = None,
    ) -> list[ChannelInstance]:
        found = [
            inst
            for inst in self._instances.values()
            if inst.tenant_id == tenant_id
            and (channel_type is None or inst.channel_type == channel_type)
        ]
        return sorted(found, key=lambda inst: (inst.channel_type.value, inst.slot_index))

    async def get_by_id(self, instance_id: str) -> ChannelInstance | None:
        return self._instances.get(instance_id)

    async def get_by_key(self, instance_key: str) -> ChannelInstance | None:
        instance_id = self._key_index.get(instance_key)
        if instance_id is None:
            return None
        return self._instances.get(instance_id)

    async def get_by_slot(
        self,
        tenant_id: str,
        channel_type: ChannelType,
        slot_index: int,
    ) -> ChannelInstance | None:
        for inst in self._instances.values():
            if (
                inst.tenant_id == tenant_id
                and inst.channel_type == channel_type
                and inst.slot_index == slot_index
            ):
                return inst
        return None

    async def save_instance(self, instance: ChannelInstance) -> None:
        """Persiste a instância, reivindicando a chave no índice global.

        Raises:
            ConflictError: Chave já pertence a outra instância
        """
        if instance.instance_id is None:
            raise ValueError("instance_id é obrigatório para persistir")

        key = instance.instance_key
        if key:
            owner = self._key_index.get(key)
            if owner is not None and owner != instance.instance_id:
                raise ConflictError(f"instance_key já em uso: {key}")

        previous = self._instances.get(instance.instance_id)
        if previous is not None and previous.instance_key and previous.instance_key != key:
            self._key_index.pop(previous.instance_key, None)

        if key:
            self._key_index[key] = instance.instance_id
        self._instances[instance.instance_id] = instance

    async def delete_instance(self, instance_id: str) -> bool:
        instance = self._instances.pop(instance_id, None)
        if instance is None:
            return False
        if instance.instance_key:
            self._key_index.pop(instance.instance_key, None)
        return True

    def clear(self) -> None:
        """Limpa todos os dados (útil em testes)."""
        self._tenants.clear()
        self._instances.clear()
        self._key_index.clear()
