"""Logging estruturado do conecta.

Uso:
    from config.logging import configure_logging, get_logger

    # Bootstrap (uma vez)
    configure_logging(level="INFO", service_name="conecta")

    # Módulos
    logger = get_logger(__name__)
    logger.info("instance_status_changed", extra={"instance_key": "loja_1"})

Todo record carrega correlation_id e service. Credenciais nunca vão
para o log em claro: use mask_secret().
"""

from config.logging.config import configure_logging, get_logger, log_discarded
from config.logging.filters import CorrelationIdFilter
from config.logging.formatters import (
    FIELD_RENAME_MAP,
    REQUIRED_LOG_FIELDS,
    create_json_formatter,
)
from config.logging.redaction import mask_secret

__all__ = [
    "FIELD_RENAME_MAP",
    "REQUIRED_LOG_FIELDS",
    "CorrelationIdFilter",
    "configure_logging",
    "create_json_formatter",
    "get_logger",
    "log_discarded",
    "mask_secret",
]
