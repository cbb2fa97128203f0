"""Settings do gateway de pareamento (estilo Evolution API).

Base URL e segredo global são configuração do tenant; os valores
aqui são defaults para tenants que não informam os seus.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

DEFAULT_INTEGRATION: str = "WHATSAPP-BAILEYS"

# Eventos registrados no webhook do gateway
DEFAULT_WEBHOOK_EVENTS: tuple[str, ...] = ("CONNECTION_UPDATE", "QRCODE_UPDATED")


@dataclass(frozen=True)
class GatewaySettings:
    """Configurações do gateway de pareamento.

    Attributes:
        default_url: URL base usada quando o tenant não tem gateway_url
        global_secret: Segredo global usado quando o tenant não tem o seu
        request_timeout_seconds: Timeout de cada chamada HTTP
        max_retries: Tentativas extras em erros retryable
        webhook_secret: Segredo esperado no header X-Gateway-Secret (vazio = sem checagem)
        auto_create_instance: Cria a instância no gateway quando connect devolve 404
        integration: Tipo de integração enviado no create
    """

    default_url: str = ""
    global_secret: str = ""
    request_timeout_seconds: float = 5.0
    max_retries: int = 1
    webhook_secret: str = ""
    auto_create_instance: bool = True
    integration: str = DEFAULT_INTEGRATION

    def validate(self) -> list[str]:
        """Valida configurações do gateway.

        Returns:
            Lista de erros de validação (vazia = tudo OK).
        """
        errors: list[str] = []

        if self.default_url and not self.default_url.startswith(("http://", "https://")):
            errors.append("GATEWAY_DEFAULT_URL deve começar com http:// ou https://")

        if self.request_timeout_seconds <= 0:
            errors.append("GATEWAY_REQUEST_TIMEOUT_SECONDS deve ser > 0")

        if self.max_retries < 0:
            errors.append("GATEWAY_MAX_RETRIES deve ser >= 0")

        if not self.integration:
            errors.append("GATEWAY_INTEGRATION não pode ser vazio")

        return errors


def _load_from_env() -> GatewaySettings:
    """Carrega GatewaySettings a partir de variáveis de ambiente."""
    return GatewaySettings(
        default_url=os.getenv("GATEWAY_DEFAULT_URL", "").rstrip("/"),
        global_secret=os.getenv("GATEWAY_GLOBAL_SECRET", ""),
        request_timeout_seconds=float(
            os.getenv("GATEWAY_REQUEST_TIMEOUT_SECONDS", "5")
        ),
        max_retries=int(os.getenv("GATEWAY_MAX_RETRIES", "1")),
        webhook_secret=os.getenv("GATEWAY_WEBHOOK_SECRET", ""),
        auto_create_instance=os.getenv("GATEWAY_AUTO_CREATE_INSTANCE", "true").lower()
        in ("true", "1", "yes"),
        integration=os.getenv("GATEWAY_INTEGRATION", DEFAULT_INTEGRATION),
    )


@lru_cache(maxsize=1)
def get_gateway_settings() -> GatewaySettings:
    """Retorna instância cacheada de GatewaySettings."""
    return _load_from_env()
