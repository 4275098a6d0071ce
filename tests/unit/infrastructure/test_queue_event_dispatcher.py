"""Unit tests for QueueEventDispatcher."""

import asyncio
from datetime import datetime, timezone

import pytest

from territory.domain.events import TerritoryChangedPayload
from territory.domain.models import AssignmentAction
from territory.infrastructure.adapters import QueueEventDispatcher


def _payload(sequence: int = 1) -> TerritoryChangedPayload:
    return TerritoryChangedPayload(
        action=AssignmentAction.CLAIMED,
        resource_id="lyon",
        agent_id="agent-a",
        actor="self-registration",
        reason="",
        occurred_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
        sequence=sequence,
    )


class TestQueueEventDispatcher:
    """Tests for queueing and fan-out."""

    @pytest.mark.asyncio
    async def test_publish_only_queues(self) -> None:
        """publish returns immediately; delivery happens later."""
        received: list[TerritoryChangedPayload] = []

        async def subscriber(payload: TerritoryChangedPayload) -> None:
            received.append(payload)

        dispatcher = QueueEventDispatcher()
        dispatcher.subscribe(subscriber)

        await dispatcher.publish(_payload())

        assert received == []
        assert dispatcher.pending == 1

    @pytest.mark.asyncio
    async def test_drain_delivers_to_every_subscriber(self) -> None:
        first: list[int] = []
        second: list[int] = []

        async def to_first(payload: TerritoryChangedPayload) -> None:
            first.append(payload.sequence)

        async def to_second(payload: TerritoryChangedPayload) -> None:
            second.append(payload.sequence)

        dispatcher = QueueEventDispatcher()
        dispatcher.subscribe(to_first)
        dispatcher.subscribe(to_second)
        await dispatcher.publish(_payload(1))
        await dispatcher.publish(_payload(2))

        processed = await dispatcher.drain()

        assert processed == 2
        assert first == [1, 2]
        assert second == [1, 2]
        assert dispatcher.delivered == 4

    @pytest.mark.asyncio
    async def test_failing_subscriber_isolated(self) -> None:
        """One broken subscriber does not starve the others."""
        received: list[int] = []

        async def broken(payload: TerritoryChangedPayload) -> None:
            raise ConnectionError("webhook down")

        async def healthy(payload: TerritoryChangedPayload) -> None:
            received.append(payload.sequence)

        dispatcher = QueueEventDispatcher()
        dispatcher.subscribe(broken)
        dispatcher.subscribe(healthy)
        await dispatcher.publish(_payload())

        await dispatcher.drain()

        assert received == [1]
        assert dispatcher.failed == 1
        assert dispatcher.delivered == 1

    @pytest.mark.asyncio
    async def test_full_queue_drops(self) -> None:
        dispatcher = QueueEventDispatcher(max_queue_size=1)

        await dispatcher.publish(_payload(1))
        await dispatcher.publish(_payload(2))

        assert dispatcher.pending == 1
        assert dispatcher.dropped == 1

    @pytest.mark.asyncio
    async def test_background_delivery(self) -> None:
        received: list[int] = []

        async def subscriber(payload: TerritoryChangedPayload) -> None:
            received.append(payload.sequence)

        dispatcher = QueueEventDispatcher()
        dispatcher.subscribe(subscriber)
        await dispatcher.start()
        assert dispatcher.running

        await dispatcher.publish(_payload(1))
        await asyncio.sleep(0.01)
        await dispatcher.stop()

        assert received == [1]
        assert not dispatcher.running

    @pytest.mark.asyncio
    async def test_stop_drains_pending(self) -> None:
        received: list[int] = []

        async def subscriber(payload: TerritoryChangedPayload) -> None:
            received.append(payload.sequence)

        dispatcher = QueueEventDispatcher()
        dispatcher.subscribe(subscriber)
        await dispatcher.publish(_payload(1))

        await dispatcher.stop(drain=True)

        assert received == [1]
        assert dispatcher.pending == 0

    @pytest.mark.asyncio
    async def test_stop_finishes_in_flight_delivery(self) -> None:
        """A payload already taken off the queue is delivered before stop returns."""
        received: list[int] = []
        delivering = asyncio.Event()

        async def slow_subscriber(payload: TerritoryChangedPayload) -> None:
            delivering.set()
            await asyncio.sleep(0.05)
            received.append(payload.sequence)

        dispatcher = QueueEventDispatcher()
        dispatcher.subscribe(slow_subscriber)
        await dispatcher.start()
        await dispatcher.publish(_payload(1))
        await dispatcher.publish(_payload(2))
        await delivering.wait()
        assert dispatcher.pending == 1

        await dispatcher.stop(drain=True)

        assert received == [1, 2]
        assert dispatcher.delivered == 2
        assert dispatcher.failed == 0
        assert not dispatcher.running
