"""Liveness status value object."""

from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True, eq=True)
class LivenessStatus:
    """Where an agent stands relative to the inactivity threshold.

    Attributes:
        agent_id: The agent.
        days_inactive: Whole days since last liveness, ``math.inf`` if never.
        days_until_void: Whole days left before the threshold, never negative.
        approaching: True inside the warning window (0 < days_until_void <= warning days).
    """

    agent_id: str
    days_inactive: float
    days_until_void: float
    approaching: bool

    @property
    def past_threshold(self) -> bool:
        """Whether the agent is eligible for eviction."""
        return self.days_until_void == 0

    def to_dict(self) -> dict[str, object]:
        """Convert to a JSON-serializable dictionary (infinity as None)."""
        return {
            "agent_id": self.agent_id,
            "days_inactive": None
            if math.isinf(self.days_inactive)
            else int(self.days_inactive),
            "days_until_void": int(self.days_until_void),
            "approaching": self.approaching,
        }
