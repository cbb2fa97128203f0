"""Agregador de rotas: registra todos os routers da API.

Uso:
    from api.routes import create_api_router

    app = FastAPI()
    app.include_router(create_api_router())
"""

from __future__ import annotations

from fastapi import APIRouter

from api.routes.health.router import router as health_router
from api.routes.instances.router import router as instances_router
from api.routes.instances.stream import router as stream_router
from api.routes.tenants.router import router as tenants_router
from api.routes.webhooks.router import router as webhooks_router


def create_api_router() -> APIRouter:
    """Cria router principal com todos os sub-routers registrados.

    Returns:
        APIRouter configurado com todos os endpoints.
    """
    api_router = APIRouter()

    # Health checks (sem prefixo para /health e /ready na raiz)
    api_router.include_router(health_router, tags=["health"])

    api_router.include_router(tenants_router, tags=["tenants"])
    api_router.include_router(instances_router, tags=["instances"])
    api_router.include_router(stream_router, tags=["stream"])

    # Eventos empurrados pelo gateway de pareamento
    api_router.include_router(webhooks_router, tags=["webhooks"])

    return api_router
