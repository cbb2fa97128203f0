"""Endpoints de tenant usados no onboarding e na troca de plano.

Endpoints:
- PUT /tenants/{tenant_id}: cria ou atualiza o tenant
- GET /tenants/{tenant_id}: dados do tenant (sem segredo)
- PUT /tenants/{tenant_id}/slot-limits/{channel_type}: muda o limite de slots
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from api.routes.errors import error_response
from api.routes.instances.schemas import SlotLimitIn, TenantIn, TenantOut
from app.domain.channel import ChannelType
from utils.errors import ConnectionManagerError, InfrastructureError

if TYPE_CHECKING:
    from app.services import InstanceRegistry

router = APIRouter()


def _registry(request: Request) -> InstanceRegistry:
    return request.app.state.manager.registry


@router.put("/tenants/{tenant_id}", response_model=None)
async def register_tenant(request: Request, tenant_id: str, body: TenantIn) -> JSONResponse:
    try:
        tenant = await _registry(request).register_tenant(body.to_domain(tenant_id))
    except (ConnectionManagerError, InfrastructureError) as exc:
        return error_response(exc)
    return JSONResponse(content=TenantOut.from_domain(tenant).model_dump(mode="json"))


@router.get("/tenants/{tenant_id}", response_model=None)
async def get_tenant(request: Request, tenant_id: str) -> JSONResponse:
    try:
        tenant = await _registry(request).get_tenant(tenant_id)
    except (ConnectionManagerError, InfrastructureError) as exc:
        return error_response(exc)
    return JSONResponse(content=TenantOut.from_domain(tenant).model_dump(mode="json"))


@router.put("/tenants/{tenant_id}/slot-limits/{channel_type}", response_model=None)
async def set_slot_limit(
    request: Request,
    tenant_id: str,
    channel_type: ChannelType,
    body: SlotLimitIn,
) -> JSONResponse:
    """Reduzir o limite remove as instâncias dos slots excedentes."""
    try:
        tenant = await _registry(request).set_slot_limit(tenant_id, channel_type, body.limit)
    except (ConnectionManagerError, InfrastructureError) as exc:
        return error_response(exc)
    return JSONResponse(content=TenantOut.from_domain(tenant).model_dump(mode="json"))
