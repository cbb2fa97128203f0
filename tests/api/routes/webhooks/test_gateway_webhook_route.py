"""Testes do endpoint POST /webhooks/gateway."""

from __future__ import annotations

import json

import pytest

import api.routes.webhooks.router as webhook_route
from config.settings import GatewaySettings

CONNECTION_OPEN = {
    "event": "connection.update",
    "instance": "loja_01",
    "data": {"state": "open", "wuid": "5511999990000@s.whatsapp.net"},
}


def test_connection_event_is_applied_once(api) -> None:
    instance_id = api.seed()

    first = api.client.post("/webhooks/gateway", json=CONNECTION_OPEN)
    again = api.client.post("/webhooks/gateway", json=CONNECTION_OPEN)

    assert first.json() == {"status": "received", "outcome": "applied"}
    assert again.json()["outcome"] == "unchanged"
    status = api.client.get(f"/instances/{instance_id}/status").json()
    assert status["status"] == "connected"
    assert status["remote_id"] == "5511999990000"


def test_other_events_are_acknowledged(api) -> None:
    api.seed()

    response = api.client.post(
        "/webhooks/gateway",
        json={"event": "messages.upsert", "instance": "loja_01", "data": {}},
    )

    assert response.status_code == 200
    assert response.json()["outcome"] == "ignored"


def test_unknown_instance_is_acknowledged(api) -> None:
    api.seed(instance_key=None)

    response = api.client.post(
        "/webhooks/gateway",
        json={"type": "CONNECTION_UPDATE", "instance": {"instanceName": "ghost"}, "state": "close"},
    )

    assert response.status_code == 200
    assert response.json()["outcome"] == "unknown_instance"


def test_invalid_json(api) -> None:
    response = api.client.post(
        "/webhooks/gateway",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json() == {"error": "invalid_json"}


class TestSecret:
    @pytest.fixture(autouse=True)
    def webhook_secret(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(
            webhook_route,
            "get_gateway_settings",
            lambda: GatewaySettings(webhook_secret="s3cret"),
        )

    def test_missing_secret_is_rejected(self, api) -> None:
        api.seed()

        response = api.client.post("/webhooks/gateway", json=CONNECTION_OPEN)

        assert response.status_code == 401
        assert response.json() == {"error": "invalid_secret"}

    def test_matching_secret(self, api) -> None:
        api.seed()

        response = api.client.post(
            "/webhooks/gateway",
            content=json.dumps(CONNECTION_OPEN).encode(),
            headers={"Content-Type": "application/json", "X-Gateway-Secret": "s3cret"},
        )

        assert response.status_code == 200
        assert response.json()["outcome"] == "applied"
