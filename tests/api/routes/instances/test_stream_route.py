"""Testes do stream WebSocket de status."""

from __future__ import annotations

import pytest
from starlette.websockets import WebSocketDisconnect

from api.routes.instances.stream import CLOSE_TENANT_NOT_FOUND


def test_stream_receives_status_changes(api) -> None:
    instance_id = api.seed()

    with api.client.websocket_connect("/tenants/t1/stream") as websocket:
        hello = websocket.receive_json()
        assert hello["type"] == "subscribed"
        assert hello["tenant_id"] == "t1"

        api.client.post(f"/instances/{instance_id}/pairing")

        first = websocket.receive_json()
        second = websocket.receive_json()
        assert [first["status"], second["status"]] == ["pairing", "scanning"]
        assert first["instance_key"] == "loja_01"
        assert second["sequence"] == 2


def test_stream_unknown_tenant_closes(api) -> None:
    with pytest.raises(WebSocketDisconnect) as exc_info:
        with api.client.websocket_connect("/tenants/ghost/stream") as websocket:
            websocket.receive_json()

    assert exc_info.value.code == CLOSE_TENANT_NOT_FOUND
