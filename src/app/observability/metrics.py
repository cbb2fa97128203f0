"""Registro de métricas via structured logging.

As métricas são logs estruturados (`metric_*`) agregados depois no
backend de logs.

Métricas:
- metric_latency: latência por componente/operação
- metric_transition: transição de status aplicada (por origem)
- metric_gateway_failure: falha classificada do gateway
- metric_fanout_drop: evento descartado por fila cheia
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


def record_latency(
    component: str,
    operation: str,
    latency_ms: float,
    correlation_id: str | None = None,
) -> None:
    """Registra latência de operação.

    Args:
        component: Nome do componente (ex: "evolution_gateway")
        operation: Nome da operação (ex: "fetch_status")
        latency_ms: Latência em milissegundos
        correlation_id: ID de correlação para rastreamento
    """
    logger.info(
        "metric_latency",
        extra={
            "metric_type": "latency",
            "component": component,
            "operation": operation,
            "latency_ms": round(latency_ms, 2),
            "correlation_id": correlation_id,
        },
    )


def record_transition(
    from_state: str,
    to_state: str,
    source: str,
    channel_type: str | None = None,
) -> None:
    """Registra transição de status aplicada."""
    logger.info(
        "metric_transition",
        extra={
            "metric_type": "transition",
            "component": "instance_registry",
            "from_state": from_state,
            "to_state": to_state,
            "source": source,
            "channel_type": channel_type,
        },
    )


def record_gateway_failure(
    component: str,
    operation: str,
    error_type: str,
    status_code: int | None = None,
) -> None:
    """Registra falha do gateway já classificada.

    Args:
        component: Adapter (ex: "evolution_gateway", "meta_gateway")
        operation: request_pairing, fetch_status ou disconnect
        error_type: Nome da classe de erro (GatewayUnavailable, GatewayRejected)
        status_code: Status HTTP quando houver
    """
    logger.info(
        "metric_gateway_failure",
        extra={
            "metric_type": "gateway_failure",
            "component": component,
            "operation": operation,
            "error_type": error_type,
            "status_code": status_code,
        },
    )


def record_fanout_drop(tenant_id: str, subscription_id: str) -> None:
    logger.info(
        "metric_fanout_drop",
        extra={
            "metric_type": "fanout_drop",
            "component": "fanout",
            "tenant_id": tenant_id,
            "subscription_id": subscription_id,
        },
    )
