"""Testes do ConnectionManager com gateway fake e store em memória."""

from __future__ import annotations

import pytest

from app.domain.channel import ChannelType
from app.domain.events import ConnectionUpdate
from app.domain.remote import LinkedChallenge, QrCodeChallenge, RemoteState, RemoteStatus
from fsm import ConnectionStatus, ObservationSource
from utils.errors import (
    GatewayRejected,
    GatewayUnavailable,
    NotFoundError,
    ValidationError,
)


class TestRequestPairing:
    @pytest.mark.asyncio
    async def test_qr_challenge_moves_to_scanning(self, stack) -> None:
        await stack.seed_tenant()
        instance = await stack.seed_instance()
        subscription = stack.subscribe()

        challenge = await stack.manager.request_pairing(instance.instance_id)

        assert isinstance(challenge, QrCodeChallenge)
        assert stack.gateway.calls_for("request_pairing") == ["loja_01"]
        events = await stack.drain(subscription)
        assert [e.status for e in events] == [ConnectionStatus.PAIRING, ConnectionStatus.SCANNING]
        assert all(e.source == "action" for e in events)

    @pytest.mark.asyncio
    async def test_linked_challenge_connects(self, stack) -> None:
        await stack.seed_tenant()
        instance = await stack.seed_instance()
        stack.gateway.pairing["loja_01"] = LinkedChallenge(remote_id="5511999990000")

        await stack.manager.request_pairing(instance.instance_id)

        current = await stack.manager.get_status(instance.instance_id)
        assert current.status == ConnectionStatus.CONNECTED
        assert current.remote_id == "5511999990000"

    @pytest.mark.asyncio
    async def test_missing_credential_never_calls_gateway(self, stack) -> None:
        await stack.seed_tenant()
        instance = await stack.seed_instance(credential=None)

        with pytest.raises(ValidationError) as exc_info:
            await stack.manager.request_pairing(instance.instance_id)

        assert "credential" in exc_info.value.field_errors
        assert stack.gateway.calls == []
        assert (await stack.manager.get_status(instance.instance_id)).status == (
            ConnectionStatus.UNCONFIGURED
        )

    @pytest.mark.asyncio
    async def test_rejected_moves_to_error(self, stack) -> None:
        await stack.seed_tenant()
        instance = await stack.seed_instance()
        stack.gateway.pairing["loja_01"] = GatewayRejected("bad_apikey", status_code=401)

        with pytest.raises(GatewayRejected):
            await stack.manager.request_pairing(instance.instance_id)

        assert (await stack.manager.get_status(instance.instance_id)).status == ConnectionStatus.ERROR

    @pytest.mark.asyncio
    async def test_unavailable_keeps_pairing(self, stack) -> None:
        await stack.seed_tenant()
        instance = await stack.seed_instance()
        stack.gateway.pairing["loja_01"] = GatewayUnavailable("timeout")

        with pytest.raises(GatewayUnavailable):
            await stack.manager.request_pairing(instance.instance_id)

        assert (await stack.manager.get_status(instance.instance_id)).status == (
            ConnectionStatus.PAIRING
        )
        assert stack.poller.is_pairing("loja_01") is False

    @pytest.mark.asyncio
    async def test_retry_after_error(self, stack) -> None:
        await stack.seed_tenant()
        instance = await stack.seed_instance()
        stack.gateway.pairing["loja_01"] = GatewayRejected("bad_apikey", status_code=401)
        with pytest.raises(GatewayRejected):
            await stack.manager.request_pairing(instance.instance_id)

        del stack.gateway.pairing["loja_01"]
        challenge = await stack.manager.retry(instance.instance_id)

        assert isinstance(challenge, QrCodeChallenge)
        assert (await stack.manager.get_status(instance.instance_id)).status == (
            ConnectionStatus.SCANNING
        )

    @pytest.mark.asyncio
    async def test_unknown_instance(self, stack) -> None:
        with pytest.raises(NotFoundError):
            await stack.manager.request_pairing("missing")


class TestDisconnect:
    @pytest.mark.asyncio
    async def test_disconnect_is_idempotent(self, stack) -> None:
        await stack.seed_tenant()
        instance = await stack.seed_instance()
        await stack.registry.set_status("loja_01", ConnectionStatus.CONNECTED, "5511")
        subscription = stack.subscribe()

        first = await stack.manager.disconnect(instance.instance_id)
        second = await stack.manager.disconnect(instance.instance_id)

        assert first.status == ConnectionStatus.DISCONNECTED
        assert second.status == ConnectionStatus.DISCONNECTED
        assert stack.gateway.calls_for("disconnect") == ["loja_01"]
        assert len(await stack.drain(subscription)) == 1

    @pytest.mark.asyncio
    async def test_unconfigured_is_noop(self, stack) -> None:
        await stack.seed_tenant()
        instance = await stack.seed_instance()

        result = await stack.manager.disconnect(instance.instance_id)

        assert result.status == ConnectionStatus.UNCONFIGURED
        assert stack.gateway.calls == []

    @pytest.mark.asyncio
    async def test_gateway_failure_keeps_status(self, stack) -> None:
        await stack.seed_tenant()
        instance = await stack.seed_instance()
        await stack.registry.set_status("loja_01", ConnectionStatus.CONNECTED, "5511")
        stack.gateway.disconnect_errors["loja_01"] = GatewayUnavailable("timeout")

        with pytest.raises(GatewayUnavailable):
            await stack.manager.disconnect(instance.instance_id)

        assert (await stack.manager.get_status(instance.instance_id)).status == (
            ConnectionStatus.CONNECTED
        )

    @pytest.mark.asyncio
    async def test_error_stays_error(self, stack) -> None:
        await stack.seed_tenant()
        instance = await stack.seed_instance()
        await stack.registry.set_status(
            "loja_01", ConnectionStatus.ERROR, source=ObservationSource.ACTION
        )

        result = await stack.manager.disconnect(instance.instance_id)

        assert result.status == ConnectionStatus.ERROR
        assert stack.gateway.calls_for("disconnect") == ["loja_01"]


class TestConcurrentSources:
    @pytest.mark.asyncio
    async def test_late_poll_does_not_regress_pushed_state(self, stack) -> None:
        await stack.seed_tenant()
        await stack.seed_instance()
        subscription = stack.subscribe()

        # t=0.5 ação, t=1 poll, t=2 push, t=3 poll atrasado
        await stack.registry.set_status(
            "loja_01", ConnectionStatus.PAIRING, source=ObservationSource.ACTION
        )
        await stack.registry.set_status(
            "loja_01", ConnectionStatus.SCANNING, source=ObservationSource.POLL
        )
        await stack.ingest.ingest(
            ConnectionUpdate(
                instance_key="loja_01", state=RemoteState.LINKED, remote_id="5511999990000"
            )
        )
        await stack.registry.set_status(
            "loja_01", ConnectionStatus.PAIRING, source=ObservationSource.POLL
        )

        events = await stack.drain(subscription)
        assert [e.status for e in events] == [
            ConnectionStatus.PAIRING,
            ConnectionStatus.SCANNING,
            ConnectionStatus.CONNECTED,
        ]
        assert [e.sequence for e in events] == [1, 2, 3]
        assert (await stack.registry.get_by_key("loja_01")).status == ConnectionStatus.CONNECTED


class TestListAndSessions:
    @pytest.mark.asyncio
    async def test_list_with_sync_polls_first(self, stack) -> None:
        await stack.seed_tenant()
        await stack.seed_instance()
        stack.gateway.queue_status("loja_01", RemoteStatus(state=RemoteState.UNLINKED))

        slots = await stack.manager.list_instances(
            "t1", ChannelType.PRIMARY_MESSAGING, sync=True
        )

        assert slots[0].status == ConnectionStatus.DISCONNECTED
        assert slots[1].is_placeholder
        assert stack.gateway.calls_for("fetch_status") == ["loja_01"]

    @pytest.mark.asyncio
    async def test_list_without_sync_does_not_poll(self, stack) -> None:
        await stack.seed_tenant()
        await stack.seed_instance()

        await stack.manager.list_instances("t1", ChannelType.PRIMARY_MESSAGING)

        assert stack.gateway.calls == []

    @pytest.mark.asyncio
    async def test_subscribe_starts_and_last_unsubscribe_stops_poller(self, stack) -> None:
        await stack.seed_tenant()

        first = await stack.manager.subscribe("t1")
        second = await stack.manager.subscribe("t1")
        assert stack.poller.is_watching("t1")

        await stack.manager.unsubscribe(first)
        assert stack.poller.is_watching("t1")

        await stack.manager.unsubscribe(second)
        assert not stack.poller.is_watching("t1")

    @pytest.mark.asyncio
    async def test_subscribe_unknown_tenant(self, stack) -> None:
        with pytest.raises(NotFoundError):
            await stack.manager.subscribe("ghost")
        assert stack.fanout.subscriber_count("ghost") == 0

    @pytest.mark.asyncio
    async def test_shutdown(self, stack) -> None:
        await stack.seed_tenant()
        subscription = await stack.manager.subscribe("t1")

        await stack.manager.shutdown()

        assert subscription.closed
        assert not stack.poller.is_watching("t1")
        assert stack.gateway.closed
