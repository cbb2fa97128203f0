"""Settings do registry de instâncias.

Backend de persistência de tenants e instâncias de canal.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Literal

from config.settings.base.core import BaseSettings, get_base_settings

InstanceStoreBackend = Literal["memory", "redis"]

_VALID_BACKENDS = ("memory", "redis")


@dataclass(frozen=True)
class RegistrySettings:
    """Configurações do registry.

    Attributes:
        store_backend: Backend do store de instâncias (memory|redis)
        key_prefix: Prefixo das chaves Redis
    """

    store_backend: InstanceStoreBackend = "memory"
    key_prefix: str = "conecta"

    def validate(self, base: BaseSettings) -> list[str]:
        """Valida configurações do registry.

        Args:
            base: BaseSettings para verificar ambiente e REDIS_URL.

        Returns:
            Lista de erros de validação.
        """
        errors: list[str] = []

        if self.store_backend not in _VALID_BACKENDS:
            errors.append(f"INSTANCE_STORE_BACKEND inválido: {self.store_backend}")

        if self.store_backend == "memory" and not base.is_development:
            errors.append("INSTANCE_STORE_BACKEND=memory proibido em staging/production")

        if self.store_backend == "redis" and not base.redis_url:
            errors.append("INSTANCE_STORE_BACKEND=redis requer REDIS_URL configurado")

        if not self.key_prefix:
            errors.append("INSTANCE_STORE_KEY_PREFIX não pode ser vazio")

        return errors


def _default_backend() -> InstanceStoreBackend:
    # Ambiente já normalizado (aceita aliases como "prod" e "stage")
    return "memory" if get_base_settings().is_development else "redis"


def _load_registry_from_env() -> RegistrySettings:
    """Carrega RegistrySettings de variáveis de ambiente."""
    backend_str = os.getenv("INSTANCE_STORE_BACKEND", _default_backend()).lower()
    return RegistrySettings(
        store_backend=backend_str,  # type: ignore[arg-type]
        key_prefix=os.getenv("INSTANCE_STORE_KEY_PREFIX", "conecta"),
    )


@lru_cache(maxsize=1)
def get_registry_settings() -> RegistrySettings:
    """Retorna instância cacheada de RegistrySettings."""
    return _load_registry_from_env()
