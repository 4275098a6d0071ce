"""Eviction sweep report models."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True, eq=True)
class VoidedAgentSummary:
    """One agent voided (or, on a dry run, selected) by a sweep."""

    agent_id: str
    agent_name: str
    previous_resource_id: str | None
    void_zone: str
    days_inactive: float


@dataclass(frozen=True, eq=True)
class SweepFailure:
    """One agent the sweep could not void."""

    agent_id: str
    error: str


@dataclass(frozen=True)
class SweepReport:
    """Outcome of one eviction sweep.

    Attributes:
        threshold_days: Inactivity threshold the sweep applied.
        started_at: When the sweep began (UTC).
        checked: Number of candidates examined.
        voided: Agents voided, in processing order.
        errors: Per-agent failures, collected rather than raised.
        dry_run: True when nothing was written.
    """

    threshold_days: int
    started_at: datetime
    checked: int = 0
    voided: list[VoidedAgentSummary] = field(default_factory=list)
    errors: list[SweepFailure] = field(default_factory=list)
    dry_run: bool = False

    @property
    def voided_agent_ids(self) -> list[str]:
        """Ids of voided agents, in processing order."""
        return [summary.agent_id for summary in self.voided]

    def to_dict(self) -> dict[str, object]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "threshold_days": self.threshold_days,
            "started_at": self.started_at.isoformat(),
            "checked": self.checked,
            "dry_run": self.dry_run,
            "voided": [
                {
                    "agent_id": s.agent_id,
                    "agent_name": s.agent_name,
                    "previous_resource_id": s.previous_resource_id,
                    "void_zone": s.void_zone,
                    "days_inactive": None
                    if math.isinf(s.days_inactive)
                    else int(s.days_inactive),
                }
                for s in self.voided
            ],
            "errors": [{"agent_id": e.agent_id, "error": e.error} for e in self.errors],
        }
