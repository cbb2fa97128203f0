"""
Exports públicos do módulo fsm/states.

Estados canônicos de conexão de instâncias de canal.
"""

from fsm.states.connection import (
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

__all__ = [
    "ADVANCEMENT_RANK",
    "DEFAULT_INITIAL_STATE",
    "SETTLED_STATES",
    "TERMINAL_STATES",
    "ConnectionStatus",
    "advancement",
    "is_settled",
    "is_terminal",
    "is_valid_state",
    "parse_status",
]
