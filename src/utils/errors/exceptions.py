"""Taxonomia de erros do gerenciador de conexões.

Dois ramos:
- Domínio (corrigível pelo usuário): ValidationError, ConflictError, NotFoundError
- Infraestrutura (transitória ou de credencial): GatewayUnavailable,
  GatewayRejected, RedisConnectionError
"""

from __future__ import annotations


class ConnectionManagerError(Exception):
    """Base para todos os erros expostos pelo gerenciador de conexões."""


class ValidationError(ConnectionManagerError):
    """Entrada inválida, corrigível pelo usuário.

    Attributes:
        field_errors: Mapa campo -> mensagem, para exibição estruturada no formulário
    """

    def __init__(self, message: str, field_errors: dict[str, str] | None = None) -> None:
        super().__init__(message)
        self.field_errors = dict(field_errors or {})


class ConflictError(ConnectionManagerError):
    """Chave de instância duplicada ou colisão de slot."""


class NotFoundError(ConnectionManagerError):
    """Instância ou tenant inexistente."""


class InfrastructureError(RuntimeError):
    """Base para falhas de infraestrutura transitórias."""


class RedisConnectionError(InfrastructureError):
    """Falha de conexão/timeout ao acessar Redis."""


class GatewayError(InfrastructureError):
    """Base para falhas ao falar com o gateway de pareamento."""

    retryable: bool = True

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class GatewayUnavailable(GatewayError):
    """Timeout, falha de conexão ou erro 5xx/429: retentável."""

    retryable = True


class GatewayRejected(GatewayError):
    """Credencial recusada pelo gateway: não retentável até nova credencial."""

    retryable = False
