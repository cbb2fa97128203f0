"""
Guards para transições de estado de conexão.

Dois conjuntos de guards:
- ACTION_GUARDS: ações explícitas (pareamento, desconexão, retry)
- OBSERVATION_GUARDS: observações de poll/push, que chegam fora de ordem

Observações só são aplicadas se não forem estritamente menos avançadas
que o estado atual, para que um poll atrasado não faça a UI voltar de
CONNECTED para SCANNING.
"""

from collections.abc import Callable

from fsm.states.connection import (
    TERMINAL_STATES,
    ConnectionStatus,
    advancement,
)
from fsm.transitions.rules import is_transition_valid


class GuardResult:
    """
    Resultado da avaliação de um guard.

    Attributes:
        allowed: Se a transição é permitida
        reason: Motivo do bloqueio (se allowed=False)
    """

    __slots__ = ("allowed", "reason")

    def __init__(self, allowed: bool, reason: str | None = None) -> None:
        self.allowed = allowed
        self.reason = reason

    @classmethod
    def allow(cls) -> "GuardResult":
        """Cria resultado permitindo a transição."""
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: str) -> "GuardResult":
        """Cria resultado negando a transição."""
        return cls(allowed=False, reason=reason)


Guard = Callable[[ConnectionStatus, ConnectionStatus], GuardResult]


def guard_valid_state(
    from_state: ConnectionStatus,
    to_state: ConnectionStatus,
) -> GuardResult:
    """Guard: ambos os estados precisam ser ConnectionStatus."""
    if not isinstance(from_state, ConnectionStatus):
        return GuardResult.deny(f"Estado de origem inválido: {from_state}")

    if not isinstance(to_state, ConnectionStatus):
        return GuardResult.deny(f"Estado de destino inválido: {to_state}")

    return GuardResult.allow()


def guard_action_transition(
    from_state: ConnectionStatus,
    to_state: ConnectionStatus,
) -> GuardResult:
    """Guard: ação explícita precisa seguir VALID_TRANSITIONS."""
    if not is_transition_valid(from_state, to_state):
        return GuardResult.deny(
            f"Transição inválida: {from_state.name} → {to_state.name}"
        )
    return GuardResult.allow()


def guard_terminal_state(
    from_state: ConnectionStatus,
    to_state: ConnectionStatus,
) -> GuardResult:
    """
    Guard: observações não tiram a instância de ERROR.

    Apenas um novo pedido de pareamento (ação) reinicia o ciclo.
    """
    del to_state
    if from_state in TERMINAL_STATES:
        return GuardResult.deny(
            f"Estado {from_state.name} é terminal para observações"
        )
    return GuardResult.allow()


def guard_not_less_advanced(
    from_state: ConnectionStatus,
    to_state: ConnectionStatus,
) -> GuardResult:
    """
    Guard: rejeita observação estritamente menos avançada que o estado atual.

    CONNECTED e DISCONNECTED têm o mesmo nível e se sobrescrevem.
    """
    if advancement(to_state) < advancement(from_state):
        return GuardResult.deny(
            f"Observação obsoleta: {to_state.name} < {from_state.name}"
        )
    return GuardResult.allow()


ACTION_GUARDS: list[Guard] = [
    guard_valid_state,
    guard_action_transition,
]

OBSERVATION_GUARDS: list[Guard] = [
    guard_valid_state,
    guard_terminal_state,
    guard_not_less_advanced,
]

DEFAULT_GUARDS = OBSERVATION_GUARDS


def evaluate_guards(
    from_state: ConnectionStatus,
    to_state: ConnectionStatus,
    guards: list[Guard] | None = None,
) -> GuardResult:
    """
    Avalia guards em ordem.

    Args:
        from_state: Estado de origem
        to_state: Estado de destino
        guards: Lista de guards a aplicar (usa DEFAULT_GUARDS se None)

    Returns:
        GuardResult do primeiro guard que negar, ou allow() se todos passarem
    """
    guards_to_apply = guards if guards is not None else DEFAULT_GUARDS

    for guard in guards_to_apply:
        result = guard(from_state, to_state)
        if not result.allowed:
            return result

    return GuardResult.allow()
