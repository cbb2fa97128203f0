"""Fixtures dos testes de rotas: app FastAPI com store em memória e gateway fake."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from api.routes import create_api_router
from app.bootstrap.dependencies import create_connection_manager
from app.infra.stores import MemoryInstanceStore
from tests.fakes.fake_gateway import FakeGateway

TENANT_BODY = {
    "name": "Loja",
    "gateway_url": "https://evo.example.com",
    "gateway_secret": "global-secret",
    "slot_limits": {"primary_messaging": 2, "page_messaging": 1},
}


@dataclass
class ApiHarness:
    client: TestClient
    gateway: FakeGateway
    app: FastAPI

    def seed(self, tenant_id: str = "t1", instance_key: str | None = "loja_01") -> str | None:
        """Cria tenant e (opcionalmente) a instância do slot 0; devolve instance_id."""
        assert self.client.put(f"/tenants/{tenant_id}", json=TENANT_BODY).status_code == 200
        if instance_key is None:
            return None
        response = self.client.put(
            f"/tenants/{tenant_id}/instances/primary_messaging/0",
            json={
                "display_name": "Loja Centro",
                "instance_key": instance_key,
                "credential": "inst-apikey",
            },
        )
        assert response.status_code == 200
        return response.json()["instance_id"]


@pytest.fixture
def api() -> Iterator[ApiHarness]:
    gateway = FakeGateway()
    app = FastAPI()
    app.include_router(create_api_router())
    app.state.manager, app.state.ingest = create_connection_manager(
        store=MemoryInstanceStore(),
        gateway=gateway,
    )
    app.state.redis_client = None
    with TestClient(app) as client:
        yield ApiHarness(client=client, gateway=gateway, app=app)
