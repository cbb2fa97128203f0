"""Schemas pydantic da API de instâncias e tenants."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from app.domain.channel import ChannelInstance, ChannelType, InstanceDefinition, TenantAccount
from app.domain.remote import LinkedChallenge, PairingChallenge, QrCodeChallenge


class InstanceDefinitionIn(BaseModel):
    """Corpo do PUT de configuração de slot.

    Campos em branco são aceitos aqui e validados pelo registry,
    que devolve field_errors estruturados.
    """

    display_name: str = ""
    instance_key: str = ""
    credential: str | None = None
    color: str | None = None

    def to_domain(self, channel_type: ChannelType) -> InstanceDefinition:
        return InstanceDefinition(
            display_name=self.display_name,
            instance_key=self.instance_key,
            channel_type=channel_type,
            credential=self.credential,
            color=self.color,
        )


class InstanceOut(BaseModel):
    """Instância como vista pela UI (credencial nunca sai)."""

    instance_id: str | None
    tenant_id: str
    channel_type: ChannelType
    slot_index: int
    display_name: str
    instance_key: str | None
    color: str
    status: str
    remote_id: str | None
    status_sequence: int
    updated_at: datetime
    has_credential: bool
    is_placeholder: bool

    @classmethod
    def from_domain(cls, instance: ChannelInstance) -> InstanceOut:
        return cls.model_validate(instance.to_public_dict())


class InstanceListOut(BaseModel):
    tenant_id: str
    channel_type: ChannelType
    instances: list[InstanceOut]


class PairingOut(BaseModel):
    """Desafio de pareamento devolvido ao cliente."""

    kind: str
    qr_code: str | None = None
    pairing_code: str | None = None
    remote_id: str | None = None

    @classmethod
    def from_domain(cls, challenge: PairingChallenge) -> PairingOut:
        if isinstance(challenge, QrCodeChallenge):
            return cls(
                kind=challenge.kind,
                qr_code=challenge.qr_code,
                pairing_code=challenge.pairing_code,
            )
        if isinstance(challenge, LinkedChallenge):
            return cls(kind=challenge.kind, remote_id=challenge.remote_id)
        raise TypeError(f"Desafio desconhecido: {type(challenge).__name__}")


class TenantIn(BaseModel):
    """Cadastro/atualização de tenant (onboarding)."""

    name: str = ""
    gateway_url: str = ""
    gateway_secret: str = ""
    webhook_url: str | None = None
    slot_limits: dict[ChannelType, int] = Field(default_factory=dict)

    def to_domain(self, tenant_id: str) -> TenantAccount:
        kwargs: dict[str, Any] = {
            "tenant_id": tenant_id,
            "name": self.name,
            "gateway_url": self.gateway_url,
            "gateway_secret": self.gateway_secret,
            "webhook_url": self.webhook_url,
        }
        if self.slot_limits:
            kwargs["slot_limits"] = dict(self.slot_limits)
        return TenantAccount(**kwargs)


class TenantOut(BaseModel):
    """Tenant sem o segredo do gateway."""

    tenant_id: str
    name: str
    gateway_url: str
    webhook_url: str | None
    slot_limits: dict[str, int]

    @classmethod
    def from_domain(cls, tenant: TenantAccount) -> TenantOut:
        return cls(
            tenant_id=tenant.tenant_id,
            name=tenant.name,
            gateway_url=tenant.gateway_url,
            webhook_url=tenant.webhook_url,
            slot_limits={str(k): v for k, v in tenant.slot_limits.items()},
        )


class SlotLimitIn(BaseModel):
    limit: int
