"""
Exports públicos do módulo fsm/types.

Tipos de observação e de transição de estado.
"""

from fsm.types.observation import ConnectionObservation, ObservationSource
from fsm.types.transition import StateTransition, TransitionResult

__all__ = [
    "ConnectionObservation",
    "ObservationSource",
    "StateTransition",
    "TransitionResult",
]
