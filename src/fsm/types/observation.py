"""
Observação efêmera do status remoto de uma instância.

Produzida pelo poller (source=poll), pelo ingest de eventos (source=push)
ou por uma ação do cliente (source=action). Nunca persistida.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from fsm.states.connection import ConnectionStatus


class ObservationSource(StrEnum):
    """Origem de uma observação."""

    POLL = "poll"
    PUSH = "push"
    ACTION = "action"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class ConnectionObservation:
    """
    Fato observado sobre uma instância.

    Attributes:
        instance_key: Chave opaca da instância
        status: Estado observado
        remote_id: Identificador remoto observado (None = sem informação)
        source: Origem da observação
        received_at: Momento de recebimento (UTC)
    """

    instance_key: str
    status: ConnectionStatus
    remote_id: str | None = None
    source: ObservationSource = ObservationSource.POLL
    received_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        if not self.instance_key or not self.instance_key.strip():
            raise ValueError("instance_key não pode ser vazio")
        if not isinstance(self.status, ConnectionStatus):
            raise ValueError(f"status inválido: {self.status!r}")

    @property
    def is_action(self) -> bool:
        return self.source == ObservationSource.ACTION

    def to_log_dict(self) -> dict[str, Any]:
        """Representação segura para logs."""
        return {
            "instance_key": self.instance_key,
            "status": self.status.value,
            "source": self.source.value,
            "received_at": self.received_at.isoformat(),
        }
