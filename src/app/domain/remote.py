"""Variantes fechadas para respostas do gateway.

Payloads JSON do gateway (formato varia por canal) são convertidos
nestes tipos na borda do adapter; nada além do adapter vê dict cru.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from fsm.states import ConnectionStatus


class RemoteState(StrEnum):
    """Estado remoto normalizado."""

    LINKED = "linked"
    SCANNING = "scanning"
    UNLINKED = "unlinked"
    UNKNOWN = "unknown"


# UNKNOWN não tem status correspondente: é falha de leitura
REMOTE_TO_STATUS: dict[RemoteState, ConnectionStatus] = {
    RemoteState.LINKED: ConnectionStatus.CONNECTED,
    RemoteState.SCANNING: ConnectionStatus.SCANNING,
    RemoteState.UNLINKED: ConnectionStatus.DISCONNECTED,
}


@dataclass(frozen=True, slots=True)
class RemoteStatus:
    """Resultado de fetch_status."""

    state: RemoteState
    remote_id: str | None = None

    @classmethod
    def unknown(cls) -> RemoteStatus:
        return cls(state=RemoteState.UNKNOWN)

    @property
    def is_known(self) -> bool:
        return self.state != RemoteState.UNKNOWN

    def to_status(self) -> ConnectionStatus | None:
        """Status de conexão correspondente (None para UNKNOWN)."""
        return REMOTE_TO_STATUS.get(self.state)


@dataclass(frozen=True, slots=True)
class QrCodeChallenge:
    """Gateway devolveu código escaneável (data URI ou URL)."""

    qr_code: str
    pairing_code: str | None = None

    kind = "qr_code"


@dataclass(frozen=True, slots=True)
class LinkedChallenge:
    """Instância já vinculada; nada a escanear."""

    remote_id: str | None = None

    kind = "linked"


PairingChallenge = QrCodeChallenge | LinkedChallenge
