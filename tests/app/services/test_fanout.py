"""Testes do NotificationFanout e das assinaturas."""

from __future__ import annotations

import asyncio

import pytest

from app.domain.events import StatusChangeEvent
from app.services.fanout import NotificationFanout
from fsm import ConnectionStatus


def _event(tenant_id: str = "t1", sequence: int = 1) -> StatusChangeEvent:
    return StatusChangeEvent(
        tenant_id=tenant_id,
        instance_key="loja_01",
        status=ConnectionStatus.CONNECTED,
        previous_status=ConnectionStatus.SCANNING,
        remote_id="5511999990000",
        source="push",
        sequence=sequence,
    )


@pytest.mark.asyncio
async def test_publish_reaches_every_subscription_of_the_tenant() -> None:
    fanout = NotificationFanout()
    first = fanout.subscribe("t1")
    second = fanout.subscribe("t1")
    other = fanout.subscribe("t2")

    event = _event()

    delivered = fanout.publish(event)

    assert delivered == 2
    assert (await first.get()) is event
    assert (await second.get()).sequence == 1
    assert other.pending == 0


@pytest.mark.asyncio
async def test_full_queue_drops_oldest() -> None:
    fanout = NotificationFanout(queue_size=2)
    subscription = fanout.subscribe("t1")

    for sequence in (1, 2, 3):
        fanout.publish(_event(sequence=sequence))

    assert subscription.pending == 2
    assert (await subscription.get()).sequence == 2
    assert (await subscription.get()).sequence == 3


@pytest.mark.asyncio
async def test_unsubscribe_ends_iteration() -> None:
    fanout = NotificationFanout()
    subscription = fanout.subscribe("t1")
    received: list[int] = []

    async def consume() -> None:
        async for event in subscription:
            received.append(event.sequence)

    consumer = asyncio.create_task(consume())
    fanout.publish(_event(sequence=7))
    await asyncio.sleep(0)
    fanout.unsubscribe(subscription)
    await asyncio.wait_for(consumer, timeout=1)

    assert received == [7]
    assert subscription.closed is True
    assert fanout.subscriber_count("t1") == 0

    fanout.unsubscribe(subscription)
    assert fanout.publish(_event()) == 0


def test_close_all() -> None:
    fanout = NotificationFanout()
    a = fanout.subscribe("t1")
    b = fanout.subscribe("t2")

    fanout.close_all()

    assert a.closed and b.closed
    assert fanout.subscriber_count("t1") == 0
    assert fanout.subscriber_count("t2") == 0


def test_event_serialization() -> None:
    data = _event().to_dict()

    assert data["type"] == "instance_status"
    assert data["status"] == "connected"
    assert data["previous_status"] == "scanning"
    assert data["occurred_at"].endswith("+00:00")
