"""Modelos de domínio de tenants e instâncias de canal.

Um tenant possui slots por tipo de canal; cada slot preenchido é uma
ChannelInstance com chave global única, credencial e status de conexão.
Slots vazios são devolvidos como placeholders.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from fsm.states import DEFAULT_INITIAL_STATE, ConnectionStatus, parse_status

DEFAULT_COLOR = "#3b82f6"

_WHITESPACE_RE = re.compile(r"\s+")
_INVALID_KEY_CHARS_RE = re.compile(r"[^A-Za-z0-9_-]")


class ChannelType(StrEnum):
    """Tipos de canal suportados (conjunto fechado)."""

    PRIMARY_MESSAGING = "primary_messaging"
    PHOTO_SHARING = "photo_sharing"
    PAGE_MESSAGING = "page_messaging"

    def __str__(self) -> str:
        return self.value


# Slots por tipo de canal quando o plano não define
DEFAULT_SLOT_LIMITS: dict[ChannelType, int] = {
    ChannelType.PRIMARY_MESSAGING: 1,
    ChannelType.PHOTO_SHARING: 0,
    ChannelType.PAGE_MESSAGING: 0,
}


def sanitize_instance_key(raw: str | None) -> str:
    """Normaliza a chave da instância antes de persistir ou enviar ao gateway.

    Espaços viram "_" e qualquer caractere fora de [A-Za-z0-9_-] é removido.
    Devolve string vazia quando nada sobra.

    >>> sanitize_instance_key("  Loja Centro #1 ")
    'Loja_Centro_1'
    """
    if not raw:
        return ""
    collapsed = _WHITESPACE_RE.sub("_", raw.strip())
    return _INVALID_KEY_CHARS_RE.sub("", collapsed)


def _parse_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        return datetime.fromisoformat(value)
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class TenantAccount:
    """Unidade organizacional dona das instâncias.

    Atributos:
        tenant_id: Identificador do tenant
        name: Nome de exibição
        gateway_url: URL base do gateway de pareamento do tenant
        gateway_secret: Segredo global do gateway (nunca logado)
        slot_limits: Máximo de instâncias por tipo de canal
        webhook_url: URL onde o gateway deve entregar eventos (opcional)
    """

    tenant_id: str
    name: str = ""
    gateway_url: str = ""
    gateway_secret: str = ""
    slot_limits: dict[ChannelType, int] = field(
        default_factory=lambda: dict(DEFAULT_SLOT_LIMITS)
    )
    webhook_url: str | None = None

    def slot_limit(self, channel_type: ChannelType) -> int:
        """Retorna o limite de slots do tipo de canal (0 se não contratado)."""
        return self.slot_limits.get(channel_type, 0)

    def with_slot_limit(self, channel_type: ChannelType, limit: int) -> TenantAccount:
        limits = dict(self.slot_limits)
        limits[channel_type] = limit
        return replace(self, slot_limits=limits)

    def to_dict(self) -> dict[str, Any]:
        """Serializa para persistência."""
        return {
            "tenant_id": self.tenant_id,
            "name": self.name,
            "gateway_url": self.gateway_url,
            "gateway_secret": self.gateway_secret,
            "slot_limits": {str(k): v for k, v in self.slot_limits.items()},
            "webhook_url": self.webhook_url,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TenantAccount:
        """Deserializa de persistência."""
        raw_limits = data.get("slot_limits") or {}
        return cls(
            tenant_id=data["tenant_id"],
            name=data.get("name", ""),
            gateway_url=data.get("gateway_url", ""),
            gateway_secret=data.get("gateway_secret", ""),
            slot_limits={ChannelType(k): int(v) for k, v in raw_limits.items()},
            webhook_url=data.get("webhook_url"),
        )


@dataclass(frozen=True, slots=True)
class InstanceDefinition:
    """Campos editáveis pelo tenant ao configurar um slot."""

    display_name: str
    instance_key: str
    channel_type: ChannelType = ChannelType.PRIMARY_MESSAGING
    credential: str | None = None
    color: str | None = None


@dataclass(frozen=True, slots=True)
class ChannelInstance:
    """Endpoint de mensagens endereçável de um tenant.

    Atributos:
        instance_id: Identificador interno (atribuído no primeiro persist)
        tenant_id: Tenant dono
        channel_type: Tipo de canal
        slot_index: Posição 0-based entre os slots do tipo de canal
        display_name: Nome amigável
        instance_key: Chave opaca global única (None em placeholders)
        credential: apikey do gateway ou page token (nunca logado)
        color: Cor de apresentação
        status: Status de conexão atual
        remote_id: Último identificador remoto conhecido (número, page id)
        status_sequence: Contador monotônico de mudanças de status
        updated_at: Momento da última escrita
    """

    tenant_id: str
    channel_type: ChannelType
    slot_index: int
    instance_id: str | None = None
    display_name: str = ""
    instance_key: str | None = None
    credential: str | None = None
    color: str = DEFAULT_COLOR
    status: ConnectionStatus = DEFAULT_INITIAL_STATE
    remote_id: str | None = None
    status_sequence: int = 0
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def placeholder(
        cls,
        tenant_id: str,
        channel_type: ChannelType,
        slot_index: int,
    ) -> ChannelInstance:
        """Slot ainda não configurado: só tenant, tipo e índice."""
        return cls(tenant_id=tenant_id, channel_type=channel_type, slot_index=slot_index)

    @property
    def is_placeholder(self) -> bool:
        return self.instance_id is None

    @property
    def has_credential(self) -> bool:
        return bool(self.credential and self.credential.strip())

    def to_dict(self) -> dict[str, Any]:
        """Serializa para persistência (inclui credencial)."""
        return {
            "instance_id": self.instance_id,
            "tenant_id": self.tenant_id,
            "channel_type": self.channel_type.value,
            "slot_index": self.slot_index,
            "display_name": self.display_name,
            "instance_key": self.instance_key,
            "credential": self.credential,
            "color": self.color,
            "status": self.status.value,
            "remote_id": self.remote_id,
            "status_sequence": self.status_sequence,
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ChannelInstance:
        """Deserializa de persistência."""
        return cls(
            instance_id=data.get("instance_id"),
            tenant_id=data["tenant_id"],
            channel_type=ChannelType(data["channel_type"]),
            slot_index=int(data["slot_index"]),
            display_name=data.get("display_name", ""),
            instance_key=data.get("instance_key"),
            credential=data.get("credential"),
            color=data.get("color") or DEFAULT_COLOR,
            status=parse_status(data.get("status", DEFAULT_INITIAL_STATE)),
            remote_id=data.get("remote_id"),
            status_sequence=int(data.get("status_sequence", 0)),
            updated_at=_parse_datetime(data.get("updated_at")),
        )

    def to_public_dict(self) -> dict[str, Any]:
        """Representação para a camada de UI (sem credencial)."""
        data = self.to_dict()
        data.pop("credential")
        data["has_credential"] = self.has_credential
        data["is_placeholder"] = self.is_placeholder
        return data
