"""
Módulo FSM: Máquina de estados de conexão das instâncias de canal.

Estrutura:
    - states/: Estados de conexão e ordenação por avanço
    - transitions/: Transições permitidas por ação explícita
    - rules/: Guards de ação e de observação
    - manager/: Máquina de estados (ConnectionStateMachine)
    - types/: Observações e transições
"""

from fsm.manager import (
    ConnectionStateMachine,
    create_fsm,
)
from fsm.rules import (
    ACTION_GUARDS,
    OBSERVATION_GUARDS,
    GuardResult,
    evaluate_guards,
)
from fsm.states import (
    ADVANCEMENT_RANK,
    DEFAULT_INITIAL_STATE,
    SETTLED_STATES,
    TERMINAL_STATES,
    ConnectionStatus,
    advancement,
    is_settled,
    is_terminal,
    is_valid_state,
    parse_status,
)
from fsm.transitions import (
    VALID_TRANSITIONS,
    get_valid_targets,
    is_transition_valid,
    validate_transition_map,
)
from fsm.types import (
    ConnectionObservation,
    ObservationSource,
    StateTransition,
    TransitionResult,
)

__all__ = [
    "ACTION_GUARDS",
    "ADVANCEMENT_RANK",
    "DEFAULT_INITIAL_STATE",
    "OBSERVATION_GUARDS",
    "SETTLED_STATES",
    "TERMINAL_STATES",
    "VALID_TRANSITIONS",
    "ConnectionObservation",
    "ConnectionStateMachine",
    "ConnectionStatus",
    "GuardResult",
    "ObservationSource",
    "StateTransition",
    "TransitionResult",
    "advancement",
    "create_fsm",
    "evaluate_guards",
    "get_valid_targets",
    "is_settled",
    "is_terminal",
    "is_transition_valid",
    "is_valid_state",
    "parse_status",
    "validate_transition_map",
]
