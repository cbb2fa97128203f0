"""Testes do InstanceRegistry: slots, upsert e caminho único de status."""

from __future__ import annotations

import asyncio
import itertools

import pytest

from app.domain.channel import ChannelType, InstanceDefinition, TenantAccount
from fsm import ConnectionStatus, ObservationSource
from utils.errors import ConflictError, NotFoundError, ValidationError


class TestTenantsAndSlots:
    @pytest.mark.asyncio
    async def test_unknown_tenant(self, stack) -> None:
        with pytest.raises(NotFoundError):
            await stack.registry.get("nope", ChannelType.PRIMARY_MESSAGING)

    @pytest.mark.asyncio
    async def test_register_requires_tenant_id(self, stack) -> None:
        with pytest.raises(ValidationError):
            await stack.registry.register_tenant(TenantAccount(tenant_id="  "))

    @pytest.mark.asyncio
    async def test_get_returns_exactly_slot_limit_items(self, stack) -> None:
        await stack.seed_tenant(primary_slots=3)
        await stack.seed_instance("loja_02", slot_index=1)

        slots = await stack.registry.get("t1", ChannelType.PRIMARY_MESSAGING)

        assert [s.slot_index for s in slots] == [0, 1, 2]
        assert [s.is_placeholder for s in slots] == [True, False, True]
        assert slots[1].instance_key == "loja_02"
        assert await stack.registry.get("t1", ChannelType.PHOTO_SHARING) == []

    @pytest.mark.asyncio
    async def test_downsizing_removes_orphan_slots(self, stack) -> None:
        await stack.seed_tenant(primary_slots=2)
        await stack.seed_instance("loja_01", slot_index=0)
        await stack.seed_instance("loja_02", slot_index=1)

        tenant = await stack.registry.set_slot_limit("t1", ChannelType.PRIMARY_MESSAGING, 1)

        assert tenant.slot_limit(ChannelType.PRIMARY_MESSAGING) == 1
        slots = await stack.registry.get("t1", ChannelType.PRIMARY_MESSAGING)
        assert [s.instance_key for s in slots] == ["loja_01"]
        assert await stack.store.get_by_key("loja_02") is None

    @pytest.mark.asyncio
    async def test_negative_slot_limit(self, stack) -> None:
        await stack.seed_tenant()
        with pytest.raises(ValidationError):
            await stack.registry.set_slot_limit("t1", ChannelType.PRIMARY_MESSAGING, -1)


class TestUpsert:
    @pytest.mark.asyncio
    async def test_creates_with_sanitized_key(self, stack) -> None:
        await stack.seed_tenant()

        instance = await stack.registry.upsert(
            "t1",
            0,
            InstanceDefinition(display_name="  Loja Centro ", instance_key=" Loja Centro #1 "),
        )

        assert instance.instance_key == "Loja_Centro_1"
        assert instance.display_name == "Loja Centro"
        assert instance.status == ConnectionStatus.UNCONFIGURED
        assert instance.instance_id

    @pytest.mark.asyncio
    async def test_blank_display_name_persists_nothing(self, stack) -> None:
        await stack.seed_tenant()

        with pytest.raises(ValidationError) as exc_info:
            await stack.registry.upsert(
                "t1", 0, InstanceDefinition(display_name="   ", instance_key="loja_01")
            )

        assert "display_name" in exc_info.value.field_errors
        assert await stack.store.list_instances("t1") == []

    @pytest.mark.asyncio
    async def test_invalid_key_and_slot(self, stack) -> None:
        await stack.seed_tenant(primary_slots=1)

        with pytest.raises(ValidationError) as exc_info:
            await stack.registry.upsert(
                "t1", 1, InstanceDefinition(display_name="Loja", instance_key="###")
            )

        assert set(exc_info.value.field_errors) == {"instance_key", "slot_index"}

    @pytest.mark.asyncio
    async def test_same_key_across_tenants_one_wins(self, stack) -> None:
        await stack.seed_tenant("t1")
        await stack.seed_tenant("t2")

        results = await asyncio.gather(
            stack.seed_instance("shared", tenant_id="t1"),
            stack.seed_instance("shared", tenant_id="t2"),
            return_exceptions=True,
        )

        conflicts = [r for r in results if isinstance(r, ConflictError)]
        created = [r for r in results if not isinstance(r, BaseException)]
        assert len(conflicts) == 1
        assert len(created) == 1
        owner = await stack.store.get_by_key("shared")
        assert owner is not None
        assert owner.tenant_id == created[0].tenant_id

    @pytest.mark.asyncio
    async def test_concurrent_upserts_share_slot_and_release_lock(self, stack) -> None:
        await stack.seed_tenant()

        first, second = await asyncio.gather(
            stack.seed_instance("loja_01"),
            stack.seed_instance("loja_02"),
        )

        assert first.instance_id == second.instance_id
        slots = await stack.registry.get("t1", ChannelType.PRIMARY_MESSAGING)
        assert slots[0].instance_key == "loja_02"
        assert stack.registry._slot_locks == {}

    @pytest.mark.asyncio
    async def test_update_keeps_credential_when_omitted(self, stack) -> None:
        await stack.seed_tenant()
        original = await stack.seed_instance("loja_01")

        updated = await stack.registry.upsert(
            "t1", 0, InstanceDefinition(display_name="Novo nome", instance_key="loja_01")
        )

        assert updated.instance_id == original.instance_id
        assert updated.display_name == "Novo nome"
        assert updated.credential == "inst-apikey"

    @pytest.mark.asyncio
    async def test_key_change_resets_status(self, stack) -> None:
        await stack.seed_tenant()
        await stack.seed_instance("loja_01")
        await stack.registry.set_status("loja_01", ConnectionStatus.DISCONNECTED)

        updated = await stack.registry.upsert(
            "t1", 0, InstanceDefinition(display_name="Loja", instance_key="loja_novo")
        )

        assert updated.status == ConnectionStatus.UNCONFIGURED
        assert updated.remote_id is None
        assert await stack.store.get_by_key("loja_01") is None
        assert (await stack.registry.get_by_key("loja_novo")).instance_id == updated.instance_id

    @pytest.mark.asyncio
    async def test_key_change_while_connected_conflicts(self, stack) -> None:
        await stack.seed_tenant()
        await stack.seed_instance("loja_01")
        await stack.registry.set_status("loja_01", ConnectionStatus.CONNECTED, remote_id="5511")

        with pytest.raises(ConflictError):
            await stack.registry.upsert(
                "t1", 0, InstanceDefinition(display_name="Loja", instance_key="loja_novo")
            )

    @pytest.mark.asyncio
    async def test_delete(self, stack) -> None:
        await stack.seed_tenant()
        instance = await stack.seed_instance()

        await stack.registry.delete(instance.instance_id)

        with pytest.raises(NotFoundError):
            await stack.registry.delete(instance.instance_id)


class TestSetStatus:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "order",
        list(
            itertools.permutations(
                [ConnectionStatus.PAIRING, ConnectionStatus.SCANNING, ConnectionStatus.CONNECTED]
            )
        ),
    )
    async def test_observation_order_does_not_change_final_state(
        self, stack, order: tuple[ConnectionStatus, ...]
    ) -> None:
        await stack.seed_tenant()
        await stack.seed_instance()

        for status in order:
            await stack.registry.set_status("loja_01", status, source=ObservationSource.POLL)

        assert (await stack.registry.get_by_key("loja_01")).status == ConnectionStatus.CONNECTED

    @pytest.mark.asyncio
    async def test_repeated_observation_notifies_once(self, stack) -> None:
        await stack.seed_tenant()
        await stack.seed_instance()
        subscription = stack.subscribe()

        first = await stack.registry.set_status("loja_01", ConnectionStatus.CONNECTED, "5511")
        second = await stack.registry.set_status("loja_01", ConnectionStatus.CONNECTED, "5511")

        events = await stack.drain(subscription)
        assert len(events) == 1
        assert events[0].status == ConnectionStatus.CONNECTED
        assert events[0].previous_status == ConnectionStatus.UNCONFIGURED
        assert events[0].remote_id == "5511"
        assert second.status_sequence == first.status_sequence

    @pytest.mark.asyncio
    async def test_new_remote_id_is_a_refresh(self, stack) -> None:
        await stack.seed_tenant()
        await stack.seed_instance()
        subscription = stack.subscribe()

        await stack.registry.set_status("loja_01", ConnectionStatus.CONNECTED, "5511")
        refreshed = await stack.registry.set_status("loja_01", ConnectionStatus.CONNECTED, "5521")

        assert refreshed.remote_id == "5521"
        assert len(await stack.drain(subscription)) == 2

    @pytest.mark.asyncio
    async def test_error_is_sticky_for_observations(self, stack) -> None:
        await stack.seed_tenant()
        await stack.seed_instance()
        await stack.registry.set_status(
            "loja_01", ConnectionStatus.ERROR, source=ObservationSource.ACTION
        )

        current = await stack.registry.set_status(
            "loja_01", ConnectionStatus.CONNECTED, source=ObservationSource.PUSH
        )

        assert current.status == ConnectionStatus.ERROR

    @pytest.mark.asyncio
    async def test_events_only_reach_the_owner_tenant(self, stack) -> None:
        await stack.seed_tenant("t1")
        await stack.seed_tenant("t2")
        await stack.seed_instance("loja_01", tenant_id="t1")
        other = stack.subscribe("t2")

        await stack.registry.set_status("loja_01", ConnectionStatus.CONNECTED)

        assert other.pending == 0

    @pytest.mark.asyncio
    async def test_unknown_key(self, stack) -> None:
        await stack.seed_tenant()
        with pytest.raises(NotFoundError):
            await stack.registry.set_status("ghost", ConnectionStatus.CONNECTED)
