"""Observabilidade: correlation_id e métricas via logs estruturados.

Uso:
    from app.observability import get_correlation_id, set_correlation_id
    from app.observability import record_latency, record_transition
"""

from app.observability.correlation import (
    correlation_scope,
    generate_correlation_id,
    get_correlation_id,
    reset_correlation_id,
    set_correlation_id,
)
from app.observability.metrics import (
    record_fanout_drop,
    record_gateway_failure,
    record_latency,
    record_transition,
)

__all__ = [
    "correlation_scope",
    "generate_correlation_id",
    "get_correlation_id",
    "record_fanout_drop",
    "record_gateway_failure",
    "record_latency",
    "record_transition",
    "reset_correlation_id",
    "set_correlation_id",
]
