"""
Estados canônicos de conexão de uma instância de canal.

Este módulo define os estados que uma instância pode assumir enquanto
é pareada com o gateway externo, e a ordem de "avanço" usada para
decidir se uma observação tardia ainda deve ser aplicada.

Ordem de avanço:
    UNCONFIGURED < PAIRING < SCANNING < (CONNECTED | DISCONNECTED | ERROR)
"""

from enum import StrEnum


class ConnectionStatus(StrEnum):
    """
    Estados canônicos de conexão de uma instância.

    Estados de handshake:
        - UNCONFIGURED: Slot sem pareamento iniciado
        - PAIRING: Pedido de pareamento enviado ao gateway
        - SCANNING: Gateway devolveu código escaneável, aguardando leitura

    Estados assentados (mesmo nível de avanço):
        - CONNECTED: Lado remoto vinculado
        - DISCONNECTED: Lado remoto desvinculado
        - ERROR: Credencial recusada ou falha dura; só sai via novo pareamento
    """

    UNCONFIGURED = "unconfigured"
    PAIRING = "pairing"
    SCANNING = "scanning"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    ERROR = "error"

    def __str__(self) -> str:
        return self.value


# Nível de avanço por estado; observações com nível menor são descartadas
ADVANCEMENT_RANK: dict[ConnectionStatus, int] = {
    ConnectionStatus.UNCONFIGURED: 0,
    ConnectionStatus.PAIRING: 1,
    ConnectionStatus.SCANNING: 2,
    ConnectionStatus.CONNECTED: 3,
    ConnectionStatus.DISCONNECTED: 3,
    ConnectionStatus.ERROR: 3,
}

SETTLED_STATES: frozenset[ConnectionStatus] = frozenset({
    ConnectionStatus.CONNECTED,
    ConnectionStatus.DISCONNECTED,
    ConnectionStatus.ERROR,
})

# ERROR só é deixado por ação explícita de pareamento
TERMINAL_STATES: frozenset[ConnectionStatus] = frozenset({ConnectionStatus.ERROR})

DEFAULT_INITIAL_STATE: ConnectionStatus = ConnectionStatus.UNCONFIGURED


def advancement(state: ConnectionStatus) -> int:
    """Retorna o nível de avanço do estado."""
    return ADVANCEMENT_RANK[state]


def is_settled(state: ConnectionStatus) -> bool:
    """Verifica se o estado é assentado (connected, disconnected ou error)."""
    return state in SETTLED_STATES


def is_terminal(state: ConnectionStatus) -> bool:
    """Verifica se o estado só pode ser deixado por ação explícita."""
    return state in TERMINAL_STATES


def is_valid_state(state: object) -> bool:
    """
    Verifica se o valor é um estado válido do enum.

    Args:
        state: Valor a ser verificado

    Returns:
        True se é um ConnectionStatus válido
    """
    return isinstance(state, ConnectionStatus)


def parse_status(value: str | ConnectionStatus) -> ConnectionStatus:
    """
    Converte string persistida para ConnectionStatus.

    Raises:
        ValueError: Se o valor não corresponde a nenhum estado
    """
    if isinstance(value, ConnectionStatus):
        return value
    return ConnectionStatus(str(value).strip().lower())
