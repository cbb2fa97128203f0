"""Agregador de settings do conecta.

Re-exporta todas as settings e funções de cada módulo.
Organização por componente para isolamento de mudanças.
"""

from __future__ import annotations

from config.settings.base import (
    BaseSettings,
    Environment,
    InstanceStoreBackend,
    RegistrySettings,
    get_base_settings,
    get_registry_settings,
)
from config.settings.gateway import (
    DEFAULT_INTEGRATION,
    DEFAULT_WEBHOOK_EVENTS,
    GatewaySettings,
    get_gateway_settings,
)
from config.settings.meta import (
    GRAPH_API_BASE_URL,
    GRAPH_API_VERSION,
    MetaSettings,
    get_meta_settings,
)
from config.settings.poller import PollerSettings, get_poller_settings

__all__ = [
    "DEFAULT_INTEGRATION",
    "DEFAULT_WEBHOOK_EVENTS",
    "GRAPH_API_BASE_URL",
    "GRAPH_API_VERSION",
    "BaseSettings",
    "Environment",
    "GatewaySettings",
    "InstanceStoreBackend",
    "MetaSettings",
    "PollerSettings",
    "RegistrySettings",
    "get_base_settings",
    "get_gateway_settings",
    "get_meta_settings",
    "get_poller_settings",
    "get_registry_settings",
]
