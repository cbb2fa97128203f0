"""
Máquina de estados (ConnectionStateMachine) de uma instância de canal.

Aplica observações de poll, push e ações do cliente sobre o status
atual, decidindo se a observação vira transição (e portanto notificação)
ou é descartada.

Regras:
- Ações seguem VALID_TRANSITIONS (ACTION_GUARDS)
- Observações seguem ordenação por avanço (OBSERVATION_GUARDS)
- Observação idêntica ao estado atual não gera transição
- Mesmo status com remote_id novo gera transição de refresh
"""

from typing import Any

from fsm.rules.guards import (
    ACTION_GUARDS,
    OBSERVATION_GUARDS,
    GuardResult,
    evaluate_guards,
)
from fsm.states.connection import (
    DEFAULT_INITIAL_STATE,
    ConnectionStatus,
    is_terminal,
)
from fsm.types.observation import ConnectionObservation
from fsm.types.transition import StateTransition, TransitionResult


class ConnectionStateMachine:
    """
    Máquina de estados de conexão de uma instância.

    Attributes:
        current_state: Estado atual
        remote_id: Identificador remoto conhecido
        sequence: Contador monotônico de transições aplicadas
    """

    __slots__ = ("_current_state", "_instance_key", "_remote_id", "_sequence")

    def __init__(
        self,
        instance_key: str = "",
        initial_state: ConnectionStatus | None = None,
        remote_id: str | None = None,
        sequence: int = 0,
    ) -> None:
        self._instance_key = instance_key
        self._current_state = initial_state or DEFAULT_INITIAL_STATE
        self._remote_id = remote_id
        self._sequence = sequence

    @property
    def current_state(self) -> ConnectionStatus:
        """Estado atual da máquina."""
        return self._current_state

    @property
    def remote_id(self) -> str | None:
        return self._remote_id

    @property
    def sequence(self) -> int:
        return self._sequence

    @property
    def instance_key(self) -> str:
        return self._instance_key

    @property
    def is_terminal(self) -> bool:
        """Verifica se está em estado terminal para observações."""
        return is_terminal(self._current_state)

    def evaluate(self, observation: ConnectionObservation) -> GuardResult:
        """
        Avalia se a observação seria aplicada, sem alterar estado.

        Returns:
            GuardResult com o motivo da recusa, quando houver
        """
        target = observation.status

        if target == self._current_state:
            if self.is_terminal and not observation.is_action:
                return GuardResult.deny(
                    f"Estado {target.name} é terminal para observações"
                )
            if observation.remote_id is None or observation.remote_id == self._remote_id:
                return GuardResult.deny(f"Sem mudança: {target.name}")
            return GuardResult.allow()

        guards = ACTION_GUARDS if observation.is_action else OBSERVATION_GUARDS
        return evaluate_guards(self._current_state, target, guards)

    def apply(
        self,
        observation: ConnectionObservation,
        trigger: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> TransitionResult:
        """
        Tenta aplicar uma observação.

        Args:
            observation: Fato observado (poll, push ou action)
            trigger: Identificador do gatilho (default: source da observação)
            metadata: Dados adicionais para auditoria (nunca credenciais)

        Returns:
            TransitionResult com sucesso/falha e dados da transição
        """
        guard_result = self.evaluate(observation)
        if not guard_result.allowed:
            return TransitionResult(success=False, error_reason=guard_result.reason)

        remote_id = (
            observation.remote_id
            if observation.remote_id is not None
            else self._remote_id
        )
        transition = StateTransition(
            from_state=self._current_state,
            to_state=observation.status,
            trigger=trigger or observation.source.value,
            sequence=self._sequence + 1,
            remote_id=remote_id,
            metadata=metadata or {},
        )

        self._current_state = observation.status
        self._remote_id = remote_id
        self._sequence = transition.sequence

        return TransitionResult(success=True, transition=transition)


def create_fsm(
    instance_key: str,
    initial_state: ConnectionStatus | None = None,
    remote_id: str | None = None,
    sequence: int = 0,
) -> ConnectionStateMachine:
    """
    Factory function para criar uma FSM de conexão.

    Usada pelo registry para reconstruir a máquina a partir do
    status persistido antes de aplicar uma observação.
    """
    return ConnectionStateMachine(
        instance_key=instance_key,
        initial_state=initial_state,
        remote_id=remote_id,
        sequence=sequence,
    )
