"""Protocolos e contratos do core da aplicação."""

from .gateway import GatewayClientProtocol
from .instance_store import InstanceStoreProtocol

__all__ = [
    "GatewayClientProtocol",
    "InstanceStoreProtocol",
]
