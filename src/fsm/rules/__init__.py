"""
Exports públicos do módulo fsm/rules.

Guards para ações explícitas e para observações fora de ordem.
"""

from fsm.rules.guards import (
    ACTION_GUARDS,
    DEFAULT_GUARDS,
    OBSERVATION_GUARDS,
    Guard,
    GuardResult,
    evaluate_guards,
    guard_action_transition,
    guard_not_less_advanced,
    guard_terminal_state,
    guard_valid_state,
)

__all__ = [
    "ACTION_GUARDS",
    "DEFAULT_GUARDS",
    "OBSERVATION_GUARDS",
    "Guard",
    "GuardResult",
    "evaluate_guards",
    "guard_action_transition",
    "guard_not_less_advanced",
    "guard_terminal_state",
    "guard_valid_state",
]
