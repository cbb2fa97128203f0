"""Protocolo do cliente de gateway de pareamento."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.domain.channel import ChannelInstance, TenantAccount
    from app.domain.remote import PairingChallenge, RemoteStatus


class GatewayClientProtocol(ABC):
    """Contrato das chamadas ao gateway externo.

    - request_pairing levanta GatewayUnavailable ou GatewayRejected
    - fetch_status nunca levanta: falhas viram RemoteStatus UNKNOWN
    - disconnect é idempotente (instância já desconectada = sucesso)
    """

    @abstractmethod
    async def request_pairing(
        self,
        tenant: TenantAccount,
        instance: ChannelInstance,
    ) -> PairingChallenge: ...

    @abstractmethod
    async def fetch_status(
        self,
        tenant: TenantAccount,
        instance: ChannelInstance,
    ) -> RemoteStatus: ...

    @abstractmethod
    async def disconnect(
        self,
        tenant: TenantAccount,
        instance: ChannelInstance,
    ) -> None: ...

    async def aclose(self) -> None:
        """Libera conexões HTTP (default: nada a fazer)."""
        return None
