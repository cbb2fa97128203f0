"""Parsing de payloads do gateway para as variantes fechadas do domínio.

Respostas e eventos do gateway chegam em formatos variados (versões da
Evolution API, create vs connect, webhooks v1/v2). Tudo que sai daqui é
QrCodeChallenge, LinkedChallenge, RemoteState ou string normalizada.
"""

from __future__ import annotations

from typing import Any

from app.domain.remote import (
    LinkedChallenge,
    PairingChallenge,
    QrCodeChallenge,
    RemoteState,
    RemoteStatus,
)

DATA_URI_PREFIX = "data:image/png;base64,"

# Ordem de busca do QR nos payloads de connect/create
QR_CODE_FIELDS: tuple[str, ...] = (
    "qrCode",
    "qrcode",
    "qr_code",
    "qr",
    "base64",
    "code",
)

_LINKED_STATES = frozenset({"open", "connected", "online"})
_SCANNING_STATES = frozenset({"connecting", "pairing", "qr", "qrcode"})
_UNLINKED_STATES = frozenset({"close", "closed", "disconnected", "logout", "refused"})

_REMOTE_NUMBER_FIELDS: tuple[str, ...] = ("number", "owner", "ownerJid", "wuid")


def map_gateway_state(raw_state: Any) -> RemoteState:
    """Converte o estado textual do gateway em RemoteState.

    >>> map_gateway_state("open")
    <RemoteState.LINKED: 'linked'>
    >>> map_gateway_state("???")
    <RemoteState.UNKNOWN: 'unknown'>
    """
    if not isinstance(raw_state, str):
        return RemoteState.UNKNOWN
    state = raw_state.strip().lower()
    if state in _LINKED_STATES:
        return RemoteState.LINKED
    if state in _SCANNING_STATES:
        return RemoteState.SCANNING
    if state in _UNLINKED_STATES:
        return RemoteState.UNLINKED
    return RemoteState.UNKNOWN


def normalize_remote_number(raw: Any) -> str | None:
    """Remove sufixos de device e de domínio de um JID.

    >>> normalize_remote_number("5511999990000:12@s.whatsapp.net")
    '5511999990000'
    """
    if not isinstance(raw, str):
        return None
    value = raw.strip()
    if not value:
        return None
    value = value.split("@", 1)[0]
    value = value.split(":", 1)[0]
    return value or None


def _format_qr(value: str) -> str:
    if value.startswith(("data:", "http://", "https://")):
        return value
    return f"{DATA_URI_PREFIX}{value}"


def extract_qr_code(data: Any) -> str | None:
    """Procura o QR em qualquer dos campos conhecidos, inclusive aninhados.

    Retorna data URI (ou URL) pronta para exibição, ou None.
    """
    if not isinstance(data, dict):
        return None

    for field_name in QR_CODE_FIELDS:
        value = data.get(field_name)
        if isinstance(value, str) and value.strip():
            return _format_qr(value.strip())
        if isinstance(value, dict):
            nested = extract_qr_code(value)
            if nested:
                return nested
    return None


def _extract_pairing_code(data: dict[str, Any]) -> str | None:
    value = data.get("pairingCode")
    if isinstance(value, str) and value:
        return value
    for nested_key in ("qrcode", "qr"):
        nested = data.get(nested_key)
        if isinstance(nested, dict):
            found = _extract_pairing_code(nested)
            if found:
                return found
    return None


def _instance_block(data: dict[str, Any]) -> dict[str, Any]:
    block = data.get("instance")
    return block if isinstance(block, dict) else {}


def extract_state(data: Any) -> Any:
    """Lê o estado de `instance.state`, `instance.status` ou `state`."""
    if not isinstance(data, dict):
        return None
    block = _instance_block(data)
    return block.get("state") or block.get("status") or data.get("state")


def extract_remote_id(data: Any) -> str | None:
    """Lê o número remoto do bloco `instance` ou do topo do payload."""
    if not isinstance(data, dict):
        return None
    for source in (_instance_block(data), data):
        for field_name in _REMOTE_NUMBER_FIELDS:
            number = normalize_remote_number(source.get(field_name))
            if number:
                return number
    return None


def parse_connection_state(data: Any) -> RemoteStatus:
    """Converte a resposta de connectionState em RemoteStatus."""
    state = map_gateway_state(extract_state(data))
    if state == RemoteState.UNKNOWN:
        return RemoteStatus.unknown()
    return RemoteStatus(state=state, remote_id=extract_remote_id(data))


def parse_pairing_response(data: Any) -> PairingChallenge | None:
    """Converte a resposta de connect/create em PairingChallenge.

    Retorna None quando o payload não tem QR nem indica instância vinculada.
    """
    if not isinstance(data, dict):
        return None

    if map_gateway_state(extract_state(data)) == RemoteState.LINKED:
        return LinkedChallenge(remote_id=extract_remote_id(data))

    qr_code = extract_qr_code(data)
    if qr_code:
        return QrCodeChallenge(qr_code=qr_code, pairing_code=_extract_pairing_code(data))
    return None
