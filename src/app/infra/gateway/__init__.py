"""Adapters de gateway: Evolution (canal primário) e Meta Graph API."""

from __future__ import annotations

from app.infra.gateway.evolution_client import EvolutionGatewayClient
from app.infra.gateway.meta_client import MetaGraphGatewayClient
from app.infra.gateway.router import ChannelGatewayRouter

__all__ = [
    "ChannelGatewayRouter",
    "EvolutionGatewayClient",
    "MetaGraphGatewayClient",
]
