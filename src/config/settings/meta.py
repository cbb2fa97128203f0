"""Settings da Meta Graph API (Instagram e páginas do Messenger)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

GRAPH_API_VERSION: str = "v24.0"
GRAPH_API_BASE_URL: str = "https://graph.facebook.com"


@dataclass(frozen=True)
class MetaSettings:
    """Configurações da Graph API.

    Attributes:
        api_base_url: URL base da Graph API
        api_version: Versão da Graph API (ex: v24.0)
        request_timeout_seconds: Timeout de cada chamada HTTP
    """

    api_base_url: str = GRAPH_API_BASE_URL
    api_version: str = GRAPH_API_VERSION
    request_timeout_seconds: float = 5.0

    @property
    def api_endpoint(self) -> str:
        """URL base completa da API com versão."""
        return f"{self.api_base_url}/{self.api_version}"

    def validate(self) -> list[str]:
        errors: list[str] = []

        if not self.api_base_url.startswith(("http://", "https://")):
            errors.append("META_GRAPH_API_BASE_URL deve começar com http:// ou https://")

        if not self.api_version.startswith("v"):
            errors.append(f"META_GRAPH_API_VERSION inválida: {self.api_version}")

        if self.request_timeout_seconds <= 0:
            errors.append("META_REQUEST_TIMEOUT_SECONDS deve ser > 0")

        return errors


def _load_from_env() -> MetaSettings:
    """Carrega MetaSettings a partir de variáveis de ambiente."""
    return MetaSettings(
        api_base_url=os.getenv("META_GRAPH_API_BASE_URL", GRAPH_API_BASE_URL).rstrip("/"),
        api_version=os.getenv("META_GRAPH_API_VERSION", GRAPH_API_VERSION),
        request_timeout_seconds=float(os.getenv("META_REQUEST_TIMEOUT_SECONDS", "5")),
    )


@lru_cache(maxsize=1)
def get_meta_settings() -> MetaSettings:
    """Retorna instância cacheada de MetaSettings."""
    return _load_from_env()
