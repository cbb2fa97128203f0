"""Redis Instance Store: tenants e instâncias de canal no Redis.

Layout de chaves (prefixo configurável, default "conecta"):
    {prefix}:tenant:{tenant_id}                 JSON do TenantAccount
    {prefix}:instance:{instance_id}             JSON da ChannelInstance
    {prefix}:tenant_instances:{tenant_id}       SET de instance_id
    {prefix}:key_index                          HASH instance_key -> instance_id

A unicidade global de instance_key é garantida com HSETNX no key_index:
quem grava primeiro é dono da chave.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from app.domain.channel import ChannelInstance, TenantAccount
from app.protocols.instance_store import InstanceStoreProtocol
from utils.errors import ConflictError, RedisConnectionError

if TYPE_CHECKING:
    from redis.asyncio import Redis as AsyncRedis

    from app.domain.channel import ChannelType

logger = logging.getLogger(__name__)

DEFAULT_KEY_PREFIX = "conecta"


def _decode(value: bytes | str | None) -> str | None:
    if value is None:
        return None
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value


class RedisInstanceStore(InstanceStoreProtocol):
    """Store de instâncias usando redis.asyncio.

    Args:
        async_redis_client: Cliente Redis assíncrono
        key_prefix: Namespace das chaves
    """

    def __init__(
        self,
        async_redis_client: AsyncRedis[bytes] | None,
        key_prefix: str = DEFAULT_KEY_PREFIX,
    ) -> None:
        self._redis = async_redis_client
        self._prefix = key_prefix

    # ──────────────────────────────────────────────────────────────
    # Chaves
    # ──────────────────────────────────────────────────────────────

    def _tenant_key(self, tenant_id: str) -> str:
        return f"{self._prefix}:tenant:{tenant_id}"

    def _instance_key(self, instance_id: str) -> str:
        return f"{self._prefix}:instance:{instance_id}"

    def _tenant_instances_key(self, tenant_id: str) -> str:
        return f"{self._prefix}:tenant_instances:{tenant_id}"

    def _key_index(self) -> str:
        return f"{self._prefix}:key_index"

    def _client(self) -> AsyncRedis[bytes]:
        if self._redis is None:
            msg = "Async Redis client não configurado"
            raise RuntimeError(msg)
        return self._redis

    # ──────────────────────────────────────────────────────────────
    # Tenants
    # ──────────────────────────────────────────────────────────────

    async def get_tenant(self, tenant_id: str) -> TenantAccount | None:
        client = self._client()
        try:
            raw = await client.get(self._tenant_key(tenant_id))
        except Exception as exc:
            raise RedisConnectionError("Falha ao carregar tenant no Redis") from exc
        data = _decode(raw)
        if data is None:
            return None
        return TenantAccount.from_dict(json.loads(data))

    async def save_tenant(self, tenant: TenantAccount) -> None:
        client = self._client()
        try:
            await client.set(self._tenant_key(tenant.tenant_id), json.dumps(tenant.to_dict()))
        except Exception as exc:
            raise RedisConnectionError("Falha ao salvar tenant no Redis") from exc

    # ──────────────────────────────────────────────────────────────
    # Instâncias
    # ──────────────────────────────────────────────────────────────

    async def list_instances(
        self,
        tenant_id: str,
        channel_type: ChannelType | None = None,
    ) -> list[ChannelInstance]:
        client = self._client()
        try:
            raw_ids = await client.smembers(self._tenant_instances_key(tenant_id))
            ids = sorted(_decode(raw) or "" for raw in raw_ids)
            if not ids:
                return []
            raw_items = await client.mget([self._instance_key(i) for i in ids])
        except Exception as exc:
            raise RedisConnectionError("Falha ao listar instâncias no Redis") from exc

        instances: list[ChannelInstance] = []
        for raw in raw_items:
            data = _decode(raw)
            if data is None:
                continue
            inst = ChannelInstance.from_dict(json.loads(data))
            if channel_type is None or inst.channel_type == channel_type:
                instances.append(inst)
        return sorted(instances, key=lambda inst: (inst.channel_type.value, inst.slot_index))

    async def get_by_id(self, instance_id: str) -> ChannelInstance | None:
        client = self._client()
        try:
            raw = await client.get(self._instance_key(instance_id))
        except Exception as exc:
            raise RedisConnectionError("Falha ao carregar instância no Redis") from exc
        data = _decode(raw)
        if data is None:
            return None
        return ChannelInstance.from_dict(json.loads(data))

    async def get_by_key(self, instance_key: str) -> ChannelInstance | None:
        client = self._client()
        try:
            raw_id = await client.hget(self._key_index(), instance_key)
        except Exception as exc:
            raise RedisConnectionError("Falha ao consultar key_index no Redis") from exc
        instance_id = _decode(raw_id)
        if instance_id is None:
            return None
        return await self.get_by_id(instance_id)

    async def get_by_slot(
        self,
        tenant_id: str,
        channel_type: ChannelType,
        slot_index: int,
    ) -> ChannelInstance | None:
        for inst in await self.list_instances(tenant_id, channel_type):
            if inst.slot_index == slot_index:
                return inst
        return None

    async def save_instance(self, instance: ChannelInstance) -> None:
        """Persiste a instância reivindicando a chave com HSETNX.

        Raises:
            ConflictError: Chave já pertence a outra instância
            RedisConnectionError: Falha de comunicação com o Redis
        """
        if instance.instance_id is None:
            raise ValueError("instance_id é obrigatório para persistir")

        client = self._client()
        key = instance.instance_key
        previous = await self.get_by_id(instance.instance_id)

        try:
            if key:
                claimed = await client.hsetnx(self._key_index(), key, instance.instance_id)
                if not claimed:
                    owner = _decode(await client.hget(self._key_index(), key))
                    if owner != instance.instance_id:
                        raise ConflictError(f"instance_key já em uso: {key}")

            pipeline = client.pipeline()
            pipeline.set(self._instance_key(instance.instance_id), json.dumps(instance.to_dict()))
            pipeline.sadd(self._tenant_instances_key(instance.tenant_id), instance.instance_id)
            if previous is not None and previous.instance_key and previous.instance_key != key:
                pipeline.hdel(self._key_index(), previous.instance_key)
            await pipeline.execute()
        except ConflictError:
            raise
        except Exception as exc:
            raise RedisConnectionError("Falha ao salvar instância no Redis") from exc

        logger.debug(
            "instance_saved",
            extra={"instance_id": instance.instance_id, "backend": "redis"},
        )

    async def delete_instance(self, instance_id: str) -> bool:
        instance = await self.get_by_id(instance_id)
        if instance is None:
            return False

        client = self._client()
        try:
            pipeline = client.pipeline()
            pipeline.delete(self._instance_key(instance_id))
            pipeline.srem(self._tenant_instances_key(instance.tenant_id), instance_id)
            if instance.instance_key:
                pipeline.hdel(self._key_index(), instance.instance_key)
            await pipeline.execute()
        except Exception as exc:
            raise RedisConnectionError("Falha ao remover instância no Redis") from exc
        return True

    async def ping(self) -> bool:
        """Verifica conectividade (usado pelo /ready)."""
        try:
            return bool(await self._client().ping())
        except Exception as exc:
            raise RedisConnectionError("Redis não respondeu ao ping") from exc
