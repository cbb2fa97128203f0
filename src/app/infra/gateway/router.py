"""Roteamento das chamadas de gateway por tipo de canal."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from app.domain.remote import RemoteStatus
from app.protocols.gateway import GatewayClientProtocol
from utils.errors import ValidationError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from app.domain.channel import ChannelInstance, ChannelType, TenantAccount
    from app.domain.remote import PairingChallenge

logger = logging.getLogger(__name__)


class ChannelGatewayRouter(GatewayClientProtocol):
    """Despacha para o adapter do tipo de canal da instância.

    Args:
        adapters: Adapter por ChannelType (um adapter pode servir vários tipos)
    """

    def __init__(self, adapters: Mapping[ChannelType, GatewayClientProtocol]) -> None:
        self._adapters = dict(adapters)

    def _adapter_for(self, instance: ChannelInstance) -> GatewayClientProtocol:
        adapter = self._adapters.get(instance.channel_type)
        if adapter is None:
            raise ValidationError(
                f"Tipo de canal sem gateway configurado: {instance.channel_type}",
                field_errors={"channel_type": "Tipo de canal não suportado"},
            )
        return adapter

    async def request_pairing(
        self,
        tenant: TenantAccount,
        instance: ChannelInstance,
    ) -> PairingChallenge:
        return await self._adapter_for(instance).request_pairing(tenant, instance)

    async def fetch_status(
        self,
        tenant: TenantAccount,
        instance: ChannelInstance,
    ) -> RemoteStatus:
        adapter = self._adapters.get(instance.channel_type)
        if adapter is None:
            logger.info(
                "gateway_adapter_missing",
                extra={"channel_type": str(instance.channel_type)},
            )
            return RemoteStatus.unknown()
        return await adapter.fetch_status(tenant, instance)

    async def disconnect(
        self,
        tenant: TenantAccount,
        instance: ChannelInstance,
    ) -> None:
        await self._adapter_for(instance).disconnect(tenant, instance)

    async def aclose(self) -> None:
        # Mesmo adapter pode aparecer em mais de um tipo de canal
        seen: set[int] = set()
        for adapter in self._adapters.values():
            if id(adapter) in seen:
                continue
            seen.add(id(adapter))
            await adapter.aclose()
