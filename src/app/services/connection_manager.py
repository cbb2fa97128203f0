"""Fachada do gerenciador de conexões de instâncias de canal.

Operações expostas à camada HTTP/WebSocket:
    list_instances, configure_instance, request_pairing, retry,
    disconnect, get_status, subscribe, unsubscribe

Ações do cliente entram no registry como observações `action`; o
poller e o ingest de eventos produzem `poll` e `push`. Os três passam
pelo mesmo set_status.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from app.domain.remote import LinkedChallenge, QrCodeChallenge
from fsm import ConnectionStatus, ObservationSource
from utils.errors import GatewayRejected, GatewayUnavailable, ValidationError

if TYPE_CHECKING:
    from app.domain.channel import ChannelInstance, ChannelType, InstanceDefinition
    from app.domain.remote import PairingChallenge
    from app.protocols.gateway import GatewayClientProtocol
    from app.services.fanout import NotificationFanout, Subscription
    from app.services.instance_registry import InstanceRegistry
    from app.services.status_poller import StatusPoller

logger = logging.getLogger(__name__)

# Desconectar nesses estados é sucesso sem chamar o gateway
_ALREADY_DISCONNECTED = frozenset({
    ConnectionStatus.UNCONFIGURED,
    ConnectionStatus.DISCONNECTED,
})


class ConnectionManager:
    """Orquestra registry, gateway, poller e fan-out.

    Args:
        registry: InstanceRegistry (único dono do status)
        gateway: Cliente de gateway (router por tipo de canal)
        poller: StatusPoller por tenant
        fanout: NotificationFanout das sessões ao vivo
    """

    def __init__(
        self,
        registry: InstanceRegistry,
        gateway: GatewayClientProtocol,
        poller: StatusPoller,
        fanout: NotificationFanout,
    ) -> None:
        self._registry = registry
        self._gateway = gateway
        self._poller = poller
        self._fanout = fanout

    @property
    def registry(self) -> InstanceRegistry:
        return self._registry

    # ──────────────────────────────────────────────────────────────
    # Configuração e leitura
    # ──────────────────────────────────────────────────────────────

    async def list_instances(
        self,
        tenant_id: str,
        channel_type: ChannelType,
        *,
        sync: bool = False,
    ) -> list[ChannelInstance]:
        """Slots do tipo de canal, com placeholders.

        Com sync=True consulta o gateway antes de responder.
        """
        if sync:
            await self._poller.poll_once(tenant_id)
        return await self._registry.get(tenant_id, channel_type)

    async def configure_instance(
        self,
        tenant_id: str,
        slot_index: int,
        definition: InstanceDefinition,
    ) -> ChannelInstance:
        return await self._registry.upsert(tenant_id, slot_index, definition)

    async def get_status(self, instance_id: str) -> ChannelInstance:
        """Snapshot atual da instância (render inicial e resync)."""
        return await self._registry.get_by_id(instance_id)

    # ──────────────────────────────────────────────────────────────
    # Ações
    # ──────────────────────────────────────────────────────────────

    async def request_pairing(self, instance_id: str) -> PairingChallenge:
        """Pede desafio de pareamento ao gateway.

        Raises:
            NotFoundError: Instância inexistente
            ValidationError: Instância sem credencial (gateway não é chamado)
            GatewayRejected: Credencial recusada; instância vai para ERROR
            GatewayUnavailable: Falha transitória; status fica em PAIRING
        """
        instance = await self._registry.get_by_id(instance_id)
        if not instance.has_credential or not instance.instance_key:
            raise ValidationError(
                "Configure a credencial antes de parear",
                field_errors={"credential": "Credencial é obrigatória para parear"},
            )
        key = instance.instance_key
        tenant = await self._registry.get_tenant(instance.tenant_id)

        with self._poller.pairing_in_flight(key):
            if instance.status != ConnectionStatus.CONNECTED:
                instance = await self._registry.set_status(
                    key, ConnectionStatus.PAIRING, source=ObservationSource.ACTION
                )

            try:
                challenge = await self._gateway.request_pairing(tenant, instance)
            except GatewayRejected:
                await self._registry.set_status(
                    key, ConnectionStatus.ERROR, source=ObservationSource.ACTION
                )
                logger.warning("pairing_rejected", extra={"instance_key": key})
                raise
            except GatewayUnavailable:
                logger.info("pairing_gateway_unavailable", extra={"instance_key": key})
                raise

            if isinstance(challenge, QrCodeChallenge):
                await self._registry.set_status(
                    key, ConnectionStatus.SCANNING, source=ObservationSource.ACTION
                )
            elif isinstance(challenge, LinkedChallenge):
                await self._registry.set_status(
                    key,
                    ConnectionStatus.CONNECTED,
                    remote_id=challenge.remote_id,
                    source=ObservationSource.ACTION,
                )

        logger.info(
            "pairing_challenge_issued",
            extra={"instance_key": key, "challenge": challenge.kind},
        )
        return challenge

    async def retry(self, instance_id: str) -> PairingChallenge:
        """Retry explícito após ERROR (mesmo fluxo do pareamento)."""
        return await self.request_pairing(instance_id)

    async def disconnect(self, instance_id: str) -> ChannelInstance:
        """Desconecta a instância no gateway (idempotente).

        Raises:
            NotFoundError: Instância inexistente
            GatewayRejected / GatewayUnavailable: Falha no logout remoto
        """
        instance = await self._registry.get_by_id(instance_id)
        if instance.status in _ALREADY_DISCONNECTED or not instance.instance_key:
            logger.info(
                "disconnect_noop",
                extra={"instance_id": instance_id, "status": instance.status.value},
            )
            return instance

        tenant = await self._registry.get_tenant(instance.tenant_id)
        await self._gateway.disconnect(tenant, instance)

        if instance.status == ConnectionStatus.ERROR:
            # ERROR só sai por novo pareamento
            return await self._registry.get_by_id(instance_id)

        return await self._registry.set_status(
            instance.instance_key,
            ConnectionStatus.DISCONNECTED,
            source=ObservationSource.ACTION,
        )

    # ──────────────────────────────────────────────────────────────
    # Sessões ao vivo
    # ──────────────────────────────────────────────────────────────

    async def subscribe(self, tenant_id: str) -> Subscription:
        """Abre assinatura e inicia o poller do tenant se for a primeira."""
        await self._registry.get_tenant(tenant_id)
        subscription = self._fanout.subscribe(tenant_id)
        self._poller.watch(tenant_id)
        return subscription

    async def unsubscribe(self, subscription: Subscription) -> None:
        """Fecha assinatura e para o poller quando não resta ninguém."""
        self._fanout.unsubscribe(subscription)
        if self._fanout.subscriber_count(subscription.tenant_id) == 0:
            await self._poller.unwatch(subscription.tenant_id)

    async def shutdown(self) -> None:
        await self._poller.stop_all()
        self._fanout.close_all()
        await self._gateway.aclose()
