"""Formatter JSON com campos obrigatórios.

Exemplo de saída:
    {"asctime": "...", "level": "INFO", "logger": "app.services.fanout",
     "message": "fanout_event_dropped", "correlation_id": "abc-123",
     "service": "conecta", "tenant_id": "t1"}
"""

from __future__ import annotations

from pythonjsonlogger.json import JsonFormatter

REQUIRED_LOG_FIELDS = frozenset(
    {
        "asctime",
        "levelname",
        "name",
        "message",
        "correlation_id",
        "service",
    }
)

FIELD_RENAME_MAP = {
    "levelname": "level",
    "name": "logger",
}


def create_json_formatter() -> JsonFormatter:
    """Cria JsonFormatter com os campos obrigatórios renomeados."""
    format_string = " ".join(f"%({field})s" for field in sorted(REQUIRED_LOG_FIELDS))
    return JsonFormatter(
        format_string,
        rename_fields=FIELD_RENAME_MAP,
    )
