"""Eventos de domínio: mudança de status publicada e update recebido do gateway."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from app.domain.remote import RemoteState
from fsm.states import ConnectionStatus


@dataclass(frozen=True, slots=True)
class StatusChangeEvent:
    """Mudança de status efetivamente aplicada a uma instância.

    Atributos:
        tenant_id: Tenant dono da instância
        instance_key: Chave da instância
        status: Novo status
        previous_status: Status anterior
        remote_id: Identificador remoto após a mudança
        source: Origem da observação (poll, push, action)
        sequence: status_sequence da instância após a mudança
        occurred_at: Momento da mudança (UTC)
    """

    tenant_id: str
    instance_key: str
    status: ConnectionStatus
    previous_status: ConnectionStatus
    remote_id: str | None
    source: str
    sequence: int
    occurred_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "instance_status",
            "tenant_id": self.tenant_id,
            "instance_key": self.instance_key,
            "status": self.status.value,
            "previous_status": self.previous_status.value,
            "remote_id": self.remote_id,
            "source": self.source,
            "sequence": self.sequence,
            "occurred_at": self.occurred_at.isoformat(),
        }


@dataclass(frozen=True, slots=True)
class ConnectionUpdate:
    """Evento de conexão recebido do gateway, já normalizado.

    Atributos:
        instance_key: Chave da instância no gateway
        state: Estado remoto normalizado (linked, scanning, unlinked, unknown)
        remote_id: Número remoto sem sufixos de device/domínio
        event_type: Nome original do evento (para log)
    """

    instance_key: str
    state: RemoteState
    remote_id: str | None = None
    event_type: str = "CONNECTION_UPDATE"
