"""Parse de eventos de conexão empurrados pelo gateway.

Formatos aceitos (v1 e v2 do webhook da Evolution API):

    {"event": "connection.update", "instance": "loja_01",
     "data": {"state": "open", "wuid": "5511999990000@s.whatsapp.net"}}

    {"type": "CONNECTION_UPDATE", "instance": {"instanceName": "loja_01"},
     "state": "close"}

Qualquer outro tipo de evento devolve None (reconhecido e ignorado).
"""

from __future__ import annotations

from typing import Any

from app.domain.channel import sanitize_instance_key
from app.domain.events import ConnectionUpdate
from app.infra.gateway.payloads import map_gateway_state, normalize_remote_number

CONNECTION_EVENT_TYPES = frozenset({"connection_update", "connection.update"})


def _event_type(payload: dict[str, Any]) -> str:
    raw = payload.get("event") or payload.get("type") or ""
    return str(raw).strip()


def _instance_key(payload: dict[str, Any]) -> str:
    instance = payload.get("instance")
    if isinstance(instance, dict):
        instance = instance.get("instanceName") or instance.get("name")
    if not isinstance(instance, str):
        return ""
    return sanitize_instance_key(instance)


def _data(payload: dict[str, Any]) -> dict[str, Any]:
    data = payload.get("data")
    return data if isinstance(data, dict) else {}


def _first(*values: Any) -> Any:
    for value in values:
        if value:
            return value
    return None


def parse_gateway_event(payload: dict[str, Any]) -> ConnectionUpdate | None:
    """Converte payload de webhook em ConnectionUpdate.

    Returns:
        ConnectionUpdate, ou None se o evento não for de conexão
        ou não trouxer a chave da instância.
    """
    event_type = _event_type(payload)
    if event_type.lower() not in CONNECTION_EVENT_TYPES:
        return None

    instance_key = _instance_key(payload)
    if not instance_key:
        return None

    data = _data(payload)
    raw_state = _first(data.get("state"), data.get("status"), payload.get("state"))
    raw_number = _first(data.get("number"), payload.get("number"), data.get("wuid"))

    return ConnectionUpdate(
        instance_key=instance_key,
        state=map_gateway_state(raw_state),
        remote_id=normalize_remote_number(raw_number),
        event_type=event_type,
    )
