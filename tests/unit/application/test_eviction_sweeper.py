"""Unit tests for EvictionSweeper.

Tests cover:
- agents at or past the threshold are voided, others are left alone
- each agent's failure is isolated and reported
- dry runs write nothing
- agents that recover or are voided concurrently are skipped
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from territory.application.services.allocation_engine import (
    EVICTION_RELEASE_REASON,
    AllocationEngine,
)
from territory.application.services.eviction_sweeper import (
    EvictionSweeper,
    eviction_reason,
)
from territory.application.services.liveness_tracker import LivenessTracker
from territory.domain.models import AssignmentAction
from territory.domain.models.assignment_record import (
    SELF_REGISTRATION_ACTOR,
    SYSTEM_ACTOR,
)
from territory.domain.services.void_placement import compute_void_placement
from territory.infrastructure.observability.correlation import (
    get_correlation_id,
    set_correlation_id,
)
from territory.infrastructure.stubs import InMemoryTerritoryStore
from tests.helpers import FakeTimeAuthority, make_agent, make_resource, seed_store

NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
async def population(
    store: InMemoryTerritoryStore, engine: AllocationEngine
) -> InMemoryTerritoryStore:
    """Four agents, three of them holding cities."""
    await seed_store(
        store,
        resources=[make_resource("lyon"), make_resource("nice"), make_resource("lille")],
        agents=[
            make_agent("active", last_liveness=NOW - timedelta(days=6)),
            make_agent("idle", last_liveness=NOW - timedelta(days=8)),
            make_agent("boundary", last_liveness=NOW - timedelta(days=7)),
            make_agent("silent", last_liveness=None),
        ],
    )
    await engine.claim("lyon", "active", SELF_REGISTRATION_ACTOR, "")
    await engine.claim("nice", "idle", SELF_REGISTRATION_ACTOR, "")
    await engine.claim("lille", "boundary", SELF_REGISTRATION_ACTOR, "")
    return store


class TestEvictionReason:
    """Tests for the recorded reason text."""

    def test_reason_with_days(self) -> None:
        assert eviction_reason(8, 7) == "Inactive for 8 days (threshold: 7 days)"

    def test_reason_when_never_seen(self) -> None:
        assert eviction_reason(float("inf"), 7) == (
            "Inactive for unknown days (threshold: 7 days)"
        )


class TestSweep:
    """Tests for EvictionSweeper.sweep."""

    @pytest.mark.asyncio
    async def test_voids_agents_past_threshold(
        self, sweeper: EvictionSweeper, population: InMemoryTerritoryStore
    ) -> None:
        report = await sweeper.sweep()

        assert sorted(report.voided_agent_ids) == ["boundary", "idle", "silent"]
        assert report.checked == 3
        assert report.errors == []
        active = await population.get_agent("active")
        assert active is not None and not active.voided
        assert active.resource_id == "lyon"

    @pytest.mark.asyncio
    async def test_voided_agents_lose_their_resource(
        self, sweeper: EvictionSweeper, population: InMemoryTerritoryStore
    ) -> None:
        await sweeper.sweep()

        idle = await population.get_agent("idle")
        nice = await population.get_resource("nice")
        assert idle is not None and idle.voided
        assert idle.void_placement == compute_void_placement("idle")
        assert nice is not None and nice.owner_id is None

    @pytest.mark.asyncio
    async def test_records_release_then_void(
        self, sweeper: EvictionSweeper, population: InMemoryTerritoryStore
    ) -> None:
        await sweeper.sweep()

        records = await population.list_assignments(agent_id="idle")
        assert [r.action for r in records] == [
            AssignmentAction.CLAIMED,
            AssignmentAction.RELEASED,
            AssignmentAction.VOIDED,
        ]
        assert records[1].reason == EVICTION_RELEASE_REASON
        assert records[2].actor == SYSTEM_ACTOR
        assert records[2].reason == "Inactive for 8 days (threshold: 7 days)"

    @pytest.mark.asyncio
    async def test_report_summaries(
        self, sweeper: EvictionSweeper, population: InMemoryTerritoryStore
    ) -> None:
        report = await sweeper.sweep()

        summaries = {s.agent_id: s for s in report.voided}
        assert summaries["idle"].previous_resource_id == "nice"
        assert summaries["idle"].days_inactive == 8
        assert summaries["silent"].previous_resource_id is None
        assert summaries["idle"].void_zone == compute_void_placement("idle").zone_name

    @pytest.mark.asyncio
    async def test_explicit_threshold(
        self, sweeper: EvictionSweeper, population: InMemoryTerritoryStore
    ) -> None:
        report = await sweeper.sweep(threshold_days=10)

        assert report.voided_agent_ids == ["silent"]
        assert report.threshold_days == 10

    @pytest.mark.asyncio
    async def test_second_sweep_is_noop(
        self, sweeper: EvictionSweeper, population: InMemoryTerritoryStore
    ) -> None:
        """Voided agents are never candidates again."""
        await sweeper.sweep()
        records_before = len(await population.list_assignments())

        report = await sweeper.sweep()

        assert report.checked == 0
        assert report.voided == []
        assert len(await population.list_assignments()) == records_before

    @pytest.mark.asyncio
    async def test_dry_run_writes_nothing(
        self, sweeper: EvictionSweeper, population: InMemoryTerritoryStore
    ) -> None:
        records_before = len(await population.list_assignments())

        report = await sweeper.sweep(dry_run=True)

        assert report.dry_run
        assert sorted(report.voided_agent_ids) == ["boundary", "idle", "silent"]
        assert len(await population.list_assignments()) == records_before
        idle = await population.get_agent("idle")
        assert idle is not None and not idle.voided

    @pytest.mark.asyncio
    async def test_threshold_must_be_positive(self, sweeper: EvictionSweeper) -> None:
        with pytest.raises(ValueError):
            await sweeper.sweep(threshold_days=0)

    @pytest.mark.asyncio
    async def test_sweep_sets_fresh_correlation_id(
        self, sweeper: EvictionSweeper, population: InMemoryTerritoryStore
    ) -> None:
        set_correlation_id("previous")

        await sweeper.sweep()

        assert get_correlation_id() not in ("", "previous")


class TestSweepIsolation:
    """A failure on one agent never stops the sweep."""

    @pytest.mark.asyncio
    async def test_failure_collected_and_sweep_continues(
        self,
        engine: AllocationEngine,
        liveness: LivenessTracker,
        population: InMemoryTerritoryStore,
        fake_time_authority: FakeTimeAuthority,
    ) -> None:
        failing_engine = MagicMock(spec=AllocationEngine)

        async def void_agent(agent_id, placement, actor, reason, **kwargs):
            if agent_id == "idle":
                raise RuntimeError("database unavailable")
            return await engine.void_agent(agent_id, placement, actor, reason, **kwargs)

        failing_engine.void_agent = AsyncMock(side_effect=void_agent)
        sweeper = EvictionSweeper(failing_engine, liveness, population, fake_time_authority)

        report = await sweeper.sweep()

        assert sorted(report.voided_agent_ids) == ["boundary", "silent"]
        assert len(report.errors) == 1
        assert report.errors[0].agent_id == "idle"
        assert "database unavailable" in report.errors[0].error
        idle = await population.get_agent("idle")
        assert idle is not None and not idle.voided

    @pytest.mark.asyncio
    async def test_recovered_agent_skipped(
        self,
        engine: AllocationEngine,
        liveness: LivenessTracker,
        population: InMemoryTerritoryStore,
        fake_time_authority: FakeTimeAuthority,
    ) -> None:
        """Liveness arriving after candidates were listed saves the agent."""
        candidates = await liveness.list_past_threshold()
        await liveness.record_liveness("idle")
        stale_liveness = MagicMock(spec=LivenessTracker)
        stale_liveness.threshold_days = 7
        stale_liveness.list_past_threshold = AsyncMock(return_value=candidates)
        sweeper = EvictionSweeper(engine, stale_liveness, population, fake_time_authority)

        report = await sweeper.sweep()

        assert "idle" not in report.voided_agent_ids
        assert report.checked == 3
        idle = await population.get_agent("idle")
        assert idle is not None and not idle.voided

    @pytest.mark.asyncio
    async def test_heartbeat_during_void_saves_agent(
        self,
        engine: AllocationEngine,
        liveness: LivenessTracker,
        population: InMemoryTerritoryStore,
        fake_time_authority: FakeTimeAuthority,
    ) -> None:
        """Liveness committed after the sweep's re-read still wins over the eviction."""
        racing_engine = MagicMock(spec=AllocationEngine)

        async def void_agent(agent_id, placement, actor, reason, **kwargs):
            if agent_id == "idle":
                await liveness.record_liveness("idle")
            return await engine.void_agent(agent_id, placement, actor, reason, **kwargs)

        racing_engine.void_agent = AsyncMock(side_effect=void_agent)
        sweeper = EvictionSweeper(racing_engine, liveness, population, fake_time_authority)

        report = await sweeper.sweep()

        assert sorted(report.voided_agent_ids) == ["boundary", "silent"]
        assert report.errors == []
        idle = await population.get_agent("idle")
        assert idle is not None and not idle.voided
        assert idle.resource_id == "nice"

    @pytest.mark.asyncio
    async def test_agent_voided_elsewhere_skipped(
        self,
        engine: AllocationEngine,
        liveness: LivenessTracker,
        population: InMemoryTerritoryStore,
        fake_time_authority: FakeTimeAuthority,
    ) -> None:
        """An agent another sweep already voided is neither voided nor an error."""
        candidates = await liveness.list_past_threshold()
        await engine.void_agent("idle")
        stale_liveness = MagicMock(spec=LivenessTracker)
        stale_liveness.threshold_days = 7
        stale_liveness.list_past_threshold = AsyncMock(return_value=candidates)
        sweeper = EvictionSweeper(engine, stale_liveness, population, fake_time_authority)

        report = await sweeper.sweep()

        assert "idle" not in report.voided_agent_ids
        assert report.errors == []
