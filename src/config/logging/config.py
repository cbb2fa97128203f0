"""Configuração centralizada de logging.

Um único StreamHandler JSON no root logger, com filtro que injeta
correlation_id e service. Chamado uma vez em app/bootstrap.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from config.logging.filters import CorrelationIdFilter
from config.logging.formatters import create_json_formatter

if TYPE_CHECKING:
    from collections.abc import Callable

VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})

DEFAULT_SERVICE_NAME = "conecta"


def configure_logging(
    level: str = "INFO",
    service_name: str = DEFAULT_SERVICE_NAME,
    correlation_id_getter: Callable[[], str] | None = None,
) -> None:
    """Configura logging JSON estruturado para o serviço.

    Args:
        level: Nível de log (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        service_name: Nome do serviço gravado em cada record.
        correlation_id_getter: Função que devolve o correlation_id do
            contexto atual (ex: app.observability.get_correlation_id).

    Raises:
        ValueError: Se o nível de log for inválido.
    """
    level_upper = level.upper()
    if level_upper not in VALID_LOG_LEVELS:
        raise ValueError(
            f"Nível de log inválido: {level}. "
            f"Válidos: {', '.join(sorted(VALID_LOG_LEVELS))}"
        )

    handler = logging.StreamHandler()
    handler.setLevel(level_upper)
    handler.setFormatter(create_json_formatter())
    handler.addFilter(CorrelationIdFilter(service_name, correlation_id_getter))

    root = logging.getLogger()
    root.setLevel(level_upper)
    # Substitui handlers existentes para evitar duplicação em reload
    root.handlers = [handler]

    # httpx loga cada request em INFO, incluindo URLs com instance_key
    logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Retorna logger do módulo (geralmente __name__)."""
    return logging.getLogger(name)


def log_discarded(
    logger: logging.Logger,
    component: str,
    reason: str,
    **context: object,
) -> None:
    """Registra uma observação ou evento descartado.

    Descartes são esperados (observação obsoleta, evento de tipo
    ignorado, chave desconhecida) e ficam em DEBUG/INFO, nunca WARNING.

    Args:
        logger: Logger do chamador.
        component: Componente que descartou (ex: "event_ingest").
        reason: Motivo curto, sem PII (ex: "unknown_instance_key").
        **context: Campos adicionais seguros para log.
    """
    extra: dict[str, object] = {
        "discarded": True,
        "component": component,
        "reason": reason,
    }
    extra.update(context)
    logger.info("%s_discarded", component, extra=extra)
