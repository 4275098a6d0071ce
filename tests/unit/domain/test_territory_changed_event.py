"""Unit tests for TerritoryChangedPayload."""

from datetime import datetime, timezone

import pytest

from territory.domain.events import (
    EVENT_TYPE_BY_ACTION,
    TERRITORY_CLAIMED_EVENT_TYPE,
    TERRITORY_OVERRIDDEN_EVENT_TYPE,
    TERRITORY_RELEASED_EVENT_TYPE,
    TERRITORY_VOIDED_EVENT_TYPE,
    TerritoryChangedPayload,
)
from territory.domain.models import AssignmentAction, VoidPlacement

NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)


class TestEventTypes:
    """Tests for the event type constants."""

    def test_every_action_has_an_event_type(self) -> None:
        assert set(EVENT_TYPE_BY_ACTION) == set(AssignmentAction)

    def test_event_type_values(self) -> None:
        """Event types follow lowercase dot notation."""
        assert TERRITORY_CLAIMED_EVENT_TYPE == "territory.claimed"
        assert TERRITORY_RELEASED_EVENT_TYPE == "territory.released"
        assert TERRITORY_VOIDED_EVENT_TYPE == "territory.voided"
        assert TERRITORY_OVERRIDDEN_EVENT_TYPE == "territory.administrative_override"


class TestTerritoryChangedPayload:
    """Tests for payload validation and serialization."""

    def test_claim_payload(self) -> None:
        payload = TerritoryChangedPayload(
            action=AssignmentAction.CLAIMED,
            resource_id="lyon",
            agent_id="agent-a",
            actor="self-registration",
            reason="signup",
            occurred_at=NOW,
            sequence=1,
        )

        assert payload.event_type == "territory.claimed"
        assert payload.to_dict() == {
            "event_type": "territory.claimed",
            "action": "claimed",
            "resource_id": "lyon",
            "agent_id": "agent-a",
            "actor": "self-registration",
            "reason": "signup",
            "occurred_at": NOW.isoformat(),
            "sequence": 1,
            "previous_agent_id": None,
            "void_placement": None,
        }

    def test_voided_payload_requires_placement(self) -> None:
        """A voided event without a placement is rejected."""
        with pytest.raises(ValueError, match="void_placement"):
            TerritoryChangedPayload(
                action=AssignmentAction.VOIDED,
                resource_id=None,
                agent_id="agent-a",
                actor="system",
                reason="",
                occurred_at=NOW,
                sequence=2,
            )

    def test_voided_payload_serializes_placement(self) -> None:
        placement = VoidPlacement("Arctic Ocean", 75.5, 1.0)
        payload = TerritoryChangedPayload(
            action=AssignmentAction.VOIDED,
            resource_id="lyon",
            agent_id="agent-a",
            actor="system",
            reason="Inactive",
            occurred_at=NOW,
            sequence=3,
            void_placement=placement,
        )

        assert payload.to_dict()["void_placement"] == placement.to_dict()

    def test_sequence_must_be_positive(self) -> None:
        with pytest.raises(ValueError, match="sequence"):
            TerritoryChangedPayload(
                action=AssignmentAction.RELEASED,
                resource_id="lyon",
                agent_id="agent-a",
                actor="system",
                reason="",
                occurred_at=NOW,
                sequence=0,
            )
