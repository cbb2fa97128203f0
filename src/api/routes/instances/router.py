"""Endpoints REST do gerenciador de conexões.

Endpoints:
- GET  /tenants/{tenant_id}/instances: slots do tipo de canal (com placeholders)
- PUT  /tenants/{tenant_id}/instances/{channel_type}/{slot_index}: configura slot
- POST /instances/{instance_id}/pairing: pede QR ou valida token
- POST /instances/{instance_id}/retry: novo pareamento após ERROR
- POST /instances/{instance_id}/disconnect: logout idempotente
- GET  /instances/{instance_id}/status: snapshot atual

Erros de domínio/infra viram JSON via api.routes.errors.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from api.routes.errors import error_response
from api.routes.instances.schemas import (
    InstanceDefinitionIn,
    InstanceListOut,
    InstanceOut,
    PairingOut,
)
from app.domain.channel import ChannelType
from utils.errors import ConnectionManagerError, InfrastructureError

if TYPE_CHECKING:
    from app.services import ConnectionManager

logger = logging.getLogger(__name__)

router = APIRouter()


def _manager(request: Request) -> ConnectionManager:
    return request.app.state.manager


@router.get("/tenants/{tenant_id}/instances", response_model=None)
async def list_instances(
    request: Request,
    tenant_id: str,
    channel_type: ChannelType = ChannelType.PRIMARY_MESSAGING,
    sync: bool = False,
) -> JSONResponse:
    """Lista os slots do tipo de canal; sync=true consulta o gateway antes."""
    try:
        instances = await _manager(request).list_instances(tenant_id, channel_type, sync=sync)
    except (ConnectionManagerError, InfrastructureError) as exc:
        return error_response(exc)

    body = InstanceListOut(
        tenant_id=tenant_id,
        channel_type=channel_type,
        instances=[InstanceOut.from_domain(inst) for inst in instances],
    )
    return JSONResponse(content=body.model_dump(mode="json"))


@router.put("/tenants/{tenant_id}/instances/{channel_type}/{slot_index}", response_model=None)
async def configure_instance(
    request: Request,
    tenant_id: str,
    channel_type: ChannelType,
    slot_index: int,
    definition: InstanceDefinitionIn,
) -> JSONResponse:
    """Cria ou atualiza a instância do slot."""
    try:
        instance = await _manager(request).configure_instance(
            tenant_id, slot_index, definition.to_domain(channel_type)
        )
    except (ConnectionManagerError, InfrastructureError) as exc:
        return error_response(exc)

    logger.info(
        "instance_configured",
        extra={
            "tenant_id": tenant_id,
            "channel_type": channel_type.value,
            "slot_index": slot_index,
            "instance_id": instance.instance_id,
        },
    )
    return JSONResponse(content=InstanceOut.from_domain(instance).model_dump(mode="json"))


@router.post("/instances/{instance_id}/pairing", response_model=None)
async def request_pairing(request: Request, instance_id: str) -> JSONResponse:
    """Devolve QR (primary_messaging) ou confirmação de token (Meta)."""
    try:
        challenge = await _manager(request).request_pairing(instance_id)
    except (ConnectionManagerError, InfrastructureError) as exc:
        return error_response(exc)
    return JSONResponse(content=PairingOut.from_domain(challenge).model_dump(mode="json"))


@router.post("/instances/{instance_id}/retry", response_model=None)
async def retry_pairing(request: Request, instance_id: str) -> JSONResponse:
    try:
        challenge = await _manager(request).retry(instance_id)
    except (ConnectionManagerError, InfrastructureError) as exc:
        return error_response(exc)
    return JSONResponse(content=PairingOut.from_domain(challenge).model_dump(mode="json"))


@router.post("/instances/{instance_id}/disconnect", response_model=None)
async def disconnect(request: Request, instance_id: str) -> JSONResponse:
    """Logout no gateway. Instância já desconectada responde 200 sem chamada remota."""
    try:
        instance = await _manager(request).disconnect(instance_id)
    except (ConnectionManagerError, InfrastructureError) as exc:
        return error_response(exc)
    return JSONResponse(content=InstanceOut.from_domain(instance).model_dump(mode="json"))


@router.get("/instances/{instance_id}/status", response_model=None)
async def get_status(request: Request, instance_id: str) -> JSONResponse:
    try:
        instance = await _manager(request).get_status(instance_id)
    except (ConnectionManagerError, InfrastructureError) as exc:
        return error_response(exc)
    return JSONResponse(content=InstanceOut.from_domain(instance).model_dump(mode="json"))
