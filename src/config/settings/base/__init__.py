"""Agregador de settings base."""

from __future__ import annotations

from config.settings.base.core import (
    BaseSettings,
    Environment,
    get_base_settings,
)
from config.settings.base.registry import (
    InstanceStoreBackend,
    RegistrySettings,
    get_registry_settings,
)

__all__ = [
    "BaseSettings",
    "Environment",
    "InstanceStoreBackend",
    "RegistrySettings",
    "get_base_settings",
    "get_registry_settings",
]
