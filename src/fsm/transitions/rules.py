"""
Regras de transição para ações explícitas sobre a instância.

Ações (pedir pareamento, desconectar, repetir após erro) seguem este
grafo. Observações de poll/push não usam o grafo: são governadas pela
ordem de avanço em fsm.states.connection (ver fsm.rules.guards).
"""

from fsm.states.connection import ConnectionStatus

# Tipagem explícita do mapa de transições
TransitionMap = dict[ConnectionStatus, frozenset[ConnectionStatus]]

VALID_TRANSITIONS: TransitionMap = {
    # UNCONFIGURED: primeiro pedido de pareamento ou credencial recusada
    ConnectionStatus.UNCONFIGURED: frozenset({
        ConnectionStatus.PAIRING,
        ConnectionStatus.ERROR,
    }),

    # PAIRING: gateway devolve código, ou canal que vincula sem leitura
    ConnectionStatus.PAIRING: frozenset({
        ConnectionStatus.SCANNING,
        ConnectionStatus.CONNECTED,
        ConnectionStatus.DISCONNECTED,
        ConnectionStatus.ERROR,
    }),

    # SCANNING: novo pedido (código expirado), leitura concluída ou cancelamento
    ConnectionStatus.SCANNING: frozenset({
        ConnectionStatus.PAIRING,
        ConnectionStatus.CONNECTED,
        ConnectionStatus.DISCONNECTED,
        ConnectionStatus.ERROR,
    }),

    ConnectionStatus.CONNECTED: frozenset({
        ConnectionStatus.DISCONNECTED,
        ConnectionStatus.ERROR,
    }),

    # DISCONNECTED: re-pareamento
    ConnectionStatus.DISCONNECTED: frozenset({
        ConnectionStatus.PAIRING,
        ConnectionStatus.CONNECTED,
        ConnectionStatus.ERROR,
    }),

    # ERROR: apenas retry explícito
    ConnectionStatus.ERROR: frozenset({
        ConnectionStatus.PAIRING,
    }),
}


def get_valid_targets(state: ConnectionStatus) -> frozenset[ConnectionStatus]:
    """
    Retorna os estados de destino válidos para uma ação a partir do estado.

    Args:
        state: Estado de origem

    Returns:
        Conjunto de estados de destino permitidos
    """
    return VALID_TRANSITIONS.get(state, frozenset())


def is_transition_valid(from_state: ConnectionStatus, to_state: ConnectionStatus) -> bool:
    """
    Verifica se uma ação pode levar de from_state a to_state.

    Args:
        from_state: Estado de origem
        to_state: Estado de destino

    Returns:
        True se a transição é permitida, False caso contrário
    """
    return to_state in get_valid_targets(from_state)


def validate_transition_map() -> list[str]:
    """
    Valida a integridade do mapa de transições.

    Verifica:
    - Todos os estados do enum estão no mapa
    - Nenhum estado tem transição reflexiva
    - ERROR só sai para PAIRING

    Returns:
        Lista de erros encontrados (vazia se válido)
    """
    errors: list[str] = []

    for state in ConnectionStatus:
        if state not in VALID_TRANSITIONS:
            errors.append(f"Estado {state.name} ausente em VALID_TRANSITIONS")

    for from_state, targets in VALID_TRANSITIONS.items():
        if from_state in targets:
            errors.append(f"Transição reflexiva não permitida: {from_state.name}")
        for target in targets:
            if not isinstance(target, ConnectionStatus):
                errors.append(f"Transição {from_state.name} → {target}: destino inválido")

    if VALID_TRANSITIONS.get(ConnectionStatus.ERROR) != frozenset({ConnectionStatus.PAIRING}):
        errors.append("Estado ERROR deve permitir apenas PAIRING")

    return errors
