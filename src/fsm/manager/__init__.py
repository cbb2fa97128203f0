"""
Exports públicos do módulo fsm/manager.

Máquina de estados (ConnectionStateMachine) de instâncias de canal.
"""

from fsm.manager.machine import (
    ConnectionStateMachine,
    create_fsm,
)

__all__ = [
    "ConnectionStateMachine",
    "create_fsm",
]
