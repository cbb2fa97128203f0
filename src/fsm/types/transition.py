"""
Tipos e estruturas de dados para transições de estado de conexão.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from fsm.states.connection import ConnectionStatus


@dataclass(frozen=True, slots=True)
class StateTransition:
    """
    Registro imutável de uma mudança de estado aplicada.

    Attributes:
        from_state: Estado de origem
        to_state: Estado de destino (igual à origem quando só o remote_id mudou)
        trigger: Gatilho (poll, push, action:<nome>)
        sequence: Valor do contador monotônico da instância após a transição
        remote_id: Identificador remoto após a transição
        metadata: Dados adicionais para auditoria (nunca credenciais)
        timestamp: Momento da transição (UTC)
    """

    from_state: ConnectionStatus
    to_state: ConnectionStatus
    trigger: str
    sequence: int
    remote_id: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        if not self.trigger or not self.trigger.strip():
            raise ValueError("trigger não pode ser vazio")
        if self.sequence < 1:
            raise ValueError(f"sequence deve ser >= 1, recebido: {self.sequence}")

    @property
    def status_changed(self) -> bool:
        return self.from_state != self.to_state

    def to_log_dict(self) -> dict[str, Any]:
        """Representação segura para logging estruturado."""
        return {
            "from_state": self.from_state.value,
            "to_state": self.to_state.value,
            "trigger": self.trigger,
            "sequence": self.sequence,
            "timestamp": self.timestamp.isoformat(),
            "metadata": self.metadata,
        }


@dataclass(frozen=True, slots=True)
class TransitionResult:
    """
    Resultado de uma tentativa de transição.

    Attributes:
        success: Se a transição foi aplicada
        transition: Dados da transição (se success=True)
        error_reason: Motivo da recusa (se success=False)
    """

    success: bool
    transition: StateTransition | None = None
    error_reason: str | None = None

    def __post_init__(self) -> None:
        if self.success and self.transition is None:
            raise ValueError("Transição bem-sucedida deve incluir transition")
        if not self.success and self.error_reason is None:
            raise ValueError("Transição falha deve incluir error_reason")
