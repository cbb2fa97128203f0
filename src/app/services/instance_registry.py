"""Registry de instâncias de canal.

Único caminho de escrita de status (set_status) e de configuração de
slots (upsert). Escritas de status são serializadas por instância com
asyncio.Lock e decididas pela ConnectionStateMachine, de modo que
observações fora de ordem ou repetidas não mudam o estado nem geram
notificação.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import replace
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from app.domain.channel import (
    DEFAULT_COLOR,
    ChannelInstance,
    ChannelType,
    InstanceDefinition,
    TenantAccount,
    sanitize_instance_key,
)
from app.domain.events import StatusChangeEvent
from app.observability import record_transition
from config.logging import log_discarded
from fsm import (
    ConnectionObservation,
    ConnectionStatus,
    ObservationSource,
    create_fsm,
)
from utils.errors import ConflictError, NotFoundError, ValidationError

if TYPE_CHECKING:
    from app.protocols.instance_store import InstanceStoreProtocol
    from app.services.fanout import NotificationFanout

logger = logging.getLogger(__name__)


class InstanceRegistry:
    """Registry de tenants e instâncias sobre um InstanceStoreProtocol.

    Args:
        store: Backend de persistência (memória ou Redis)
        fanout: Destino dos StatusChangeEvent (opcional)
    """

    def __init__(
        self,
        store: InstanceStoreProtocol,
        fanout: NotificationFanout | None = None,
    ) -> None:
        self._store = store
        self._fanout = fanout
        self._locks: dict[str, asyncio.Lock] = {}
        # slot -> (lock, chamadas usando o lock); removido quando chega a zero
        self._slot_locks: dict[tuple[str, str, int], tuple[asyncio.Lock, int]] = {}

    def _lock_for(self, instance_id: str) -> asyncio.Lock:
        return self._locks.setdefault(instance_id, asyncio.Lock())

    @asynccontextmanager
    async def _slot_guard(
        self,
        tenant_id: str,
        channel_type: ChannelType,
        slot_index: int,
    ) -> AsyncIterator[None]:
        slot = (tenant_id, str(channel_type), slot_index)
        lock, users = self._slot_locks.get(slot, (asyncio.Lock(), 0))
        self._slot_locks[slot] = (lock, users + 1)
        try:
            async with lock:
                yield
        finally:
            lock, users = self._slot_locks[slot]
            if users <= 1:
                del self._slot_locks[slot]
            else:
                self._slot_locks[slot] = (lock, users - 1)

    # ──────────────────────────────────────────────────────────────
    # Tenants
    # ──────────────────────────────────────────────────────────────

    async def register_tenant(self, tenant: TenantAccount) -> TenantAccount:
        """Cria ou atualiza o tenant (seed de onboarding)."""
        if not tenant.tenant_id or not tenant.tenant_id.strip():
            raise ValidationError(
                "tenant_id obrigatório",
                field_errors={"tenant_id": "Identificador do tenant é obrigatório"},
            )
        await self._store.save_tenant(tenant)
        logger.info("tenant_registered", extra={"tenant_id": tenant.tenant_id})
        return tenant

    async def get_tenant(self, tenant_id: str) -> TenantAccount:
        tenant = await self._store.get_tenant(tenant_id)
        if tenant is None:
            raise NotFoundError(f"Tenant não encontrado: {tenant_id}")
        return tenant

    async def set_slot_limit(
        self,
        tenant_id: str,
        channel_type: ChannelType,
        limit: int,
    ) -> TenantAccount:
        """Muda o limite de slots do plano.

        Reduzir o limite remove as instâncias dos slots que deixaram de existir.
        """
        if limit < 0:
            raise ValidationError(
                "Limite de slots inválido",
                field_errors={"slot_limit": "Limite deve ser >= 0"},
            )
        tenant = (await self.get_tenant(tenant_id)).with_slot_limit(channel_type, limit)
        await self._store.save_tenant(tenant)

        for instance in await self._store.list_instances(tenant_id, channel_type):
            if instance.slot_index >= limit and instance.instance_id:
                async with self._lock_for(instance.instance_id):
                    await self._store.delete_instance(instance.instance_id)
                self._locks.pop(instance.instance_id, None)
                logger.info(
                    "instance_removed_by_slot_downsize",
                    extra={"tenant_id": tenant_id, "instance_id": instance.instance_id},
                )
        return tenant

    # ──────────────────────────────────────────────────────────────
    # Leitura
    # ──────────────────────────────────────────────────────────────

    async def get(self, tenant_id: str, channel_type: ChannelType) -> list[ChannelInstance]:
        """Lista ordenada por slot com exatamente slot_limit itens.

        Slots vazios vêm como placeholders.
        """
        tenant = await self.get_tenant(tenant_id)
        limit = tenant.slot_limit(channel_type)
        by_slot = {
            inst.slot_index: inst
            for inst in await self._store.list_instances(tenant_id, channel_type)
        }
        return [
            by_slot.get(slot) or ChannelInstance.placeholder(tenant_id, channel_type, slot)
            for slot in range(limit)
        ]

    async def list_configured(self, tenant_id: str) -> list[ChannelInstance]:
        """Instâncias do tenant com chave e credencial (alvos do poller)."""
        return [
            inst
            for inst in await self._store.list_instances(tenant_id)
            if inst.instance_key and inst.has_credential
        ]

    async def get_by_id(self, instance_id: str) -> ChannelInstance:
        instance = await self._store.get_by_id(instance_id)
        if instance is None:
            raise NotFoundError(f"Instância não encontrada: {instance_id}")
        return instance

    async def get_by_key(self, instance_key: str) -> ChannelInstance:
        instance = await self._store.get_by_key(instance_key)
        if instance is None:
            raise NotFoundError(f"Instância não encontrada para a chave: {instance_key}")
        return instance

    async def get_status(self, instance_id: str) -> ConnectionStatus:
        return (await self.get_by_id(instance_id)).status

    # ──────────────────────────────────────────────────────────────
    # Configuração
    # ──────────────────────────────────────────────────────────────

    @staticmethod
    def _validate_definition(
        tenant: TenantAccount,
        slot_index: int,
        definition: InstanceDefinition,
    ) -> str:
        field_errors: dict[str, str] = {}

        if not definition.display_name or not definition.display_name.strip():
            field_errors["display_name"] = "Nome de exibição é obrigatório"

        key = sanitize_instance_key(definition.instance_key)
        if not key:
            field_errors["instance_key"] = "Chave da instância é obrigatória"

        limit = tenant.slot_limit(definition.channel_type)
        if slot_index < 0 or slot_index >= limit:
            field_errors["slot_index"] = f"Slot fora do limite do plano (0..{limit - 1})"

        if field_errors:
            raise ValidationError("Definição de instância inválida", field_errors=field_errors)
        return key

    async def upsert(
        self,
        tenant_id: str,
        slot_index: int,
        definition: InstanceDefinition,
    ) -> ChannelInstance:
        """Cria ou substitui a instância do slot.

        Raises:
            NotFoundError: Tenant inexistente
            ValidationError: Nome/chave em branco ou slot fora do limite
            ConflictError: Chave pertence a outra instância, ou troca de
                chave com a instância conectada
        """
        tenant = await self.get_tenant(tenant_id)
        key = self._validate_definition(tenant, slot_index, definition)
        async with self._slot_guard(tenant_id, definition.channel_type, slot_index):
            return await self._upsert_slot(tenant_id, slot_index, key, definition)

    async def _upsert_slot(
        self,
        tenant_id: str,
        slot_index: int,
        key: str,
        definition: InstanceDefinition,
    ) -> ChannelInstance:
        channel_type = definition.channel_type
        existing = await self._store.get_by_slot(tenant_id, channel_type, slot_index)
        owner = await self._store.get_by_key(key)
        if owner is not None and (existing is None or owner.instance_id != existing.instance_id):
            raise ConflictError(f"instance_key já em uso: {key}")

        if existing is None:
            instance = ChannelInstance(
                instance_id=uuid.uuid4().hex,
                tenant_id=tenant_id,
                channel_type=channel_type,
                slot_index=slot_index,
                display_name=definition.display_name.strip(),
                instance_key=key,
                credential=definition.credential,
                color=definition.color or DEFAULT_COLOR,
            )
            await self._store.save_instance(instance)
            logger.info(
                "instance_created",
                extra={
                    "tenant_id": tenant_id,
                    "instance_id": instance.instance_id,
                    "channel_type": str(channel_type),
                    "slot_index": slot_index,
                },
            )
            return instance

        instance_id = str(existing.instance_id)
        async with self._lock_for(instance_id):
            current = await self._store.get_by_id(instance_id) or existing
            key_changed = current.instance_key != key
            if key_changed and current.status == ConnectionStatus.CONNECTED:
                raise ConflictError("Desconecte a instância antes de trocar a chave")

            instance = replace(
                current,
                display_name=definition.display_name.strip(),
                instance_key=key,
                credential=(
                    definition.credential
                    if definition.credential is not None
                    else current.credential
                ),
                color=definition.color or current.color,
                updated_at=datetime.now(UTC),
            )
            if key_changed and current.status != ConnectionStatus.UNCONFIGURED:
                instance = replace(
                    instance,
                    status=ConnectionStatus.UNCONFIGURED,
                    remote_id=None,
                    status_sequence=current.status_sequence + 1,
                )
            await self._store.save_instance(instance)

        logger.info(
            "instance_updated",
            extra={
                "tenant_id": tenant_id,
                "instance_id": instance.instance_id,
                "key_changed": key_changed,
            },
        )
        return instance

    async def delete(self, instance_id: str) -> None:
        async with self._lock_for(instance_id):
            deleted = await self._store.delete_instance(instance_id)
        self._locks.pop(instance_id, None)
        if not deleted:
            raise NotFoundError(f"Instância não encontrada: {instance_id}")
        logger.info("instance_deleted", extra={"instance_id": instance_id})

    # ──────────────────────────────────────────────────────────────
    # Status
    # ──────────────────────────────────────────────────────────────

    async def apply_observation(
        self,
        observation: ConnectionObservation,
    ) -> tuple[ChannelInstance, bool]:
        """Aplica a observação sob o lock da instância.

        Returns:
            (instância após a decisão, True se o status mudou)

        Raises:
            NotFoundError: Nenhuma instância com a chave observada
        """
        found = await self.get_by_key(observation.instance_key)
        instance_id = str(found.instance_id)

        async with self._lock_for(instance_id):
            current = await self._store.get_by_id(instance_id)
            if current is None or current.instance_key != observation.instance_key:
                raise NotFoundError(
                    f"Instância não encontrada para a chave: {observation.instance_key}"
                )

            machine = create_fsm(
                instance_key=observation.instance_key,
                initial_state=current.status,
                remote_id=current.remote_id,
                sequence=current.status_sequence,
            )
            result = machine.apply(observation)
            if not result.success or result.transition is None:
                log_discarded(
                    logger,
                    "status_observation",
                    result.error_reason or "rejected",
                    instance_key=observation.instance_key,
                    source=observation.source.value,
                    observed=observation.status.value,
                    current=current.status.value,
                )
                return current, False

            transition = result.transition
            updated = replace(
                current,
                status=transition.to_state,
                remote_id=transition.remote_id,
                status_sequence=transition.sequence,
                updated_at=transition.timestamp,
            )
            await self._store.save_instance(updated)

        record_transition(
            transition.from_state.value,
            transition.to_state.value,
            observation.source.value,
            str(updated.channel_type),
        )
        logger.info(
            "instance_status_changed",
            extra={
                "tenant_id": updated.tenant_id,
                "instance_key": observation.instance_key,
                **transition.to_log_dict(),
            },
        )
        if self._fanout is not None:
            self._fanout.publish(
                StatusChangeEvent(
                    tenant_id=updated.tenant_id,
                    instance_key=observation.instance_key,
                    status=transition.to_state,
                    previous_status=transition.from_state,
                    remote_id=transition.remote_id,
                    source=observation.source.value,
                    sequence=transition.sequence,
                    occurred_at=transition.timestamp,
                )
            )
        return updated, True

    async def set_status(
        self,
        instance_key: str,
        status: ConnectionStatus,
        remote_id: str | None = None,
        source: ObservationSource = ObservationSource.POLL,
    ) -> ChannelInstance:
        """Único caminho de mutação de status.

        No-op (sem persistir, sem notificar) quando a observação é menos
        avançada que o status atual ou idêntica a ele.
        """
        instance, _ = await self.apply_observation(
            ConnectionObservation(
                instance_key=instance_key,
                status=status,
                remote_id=remote_id,
                source=source,
            )
        )
        return instance
