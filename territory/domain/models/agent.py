"""Agent domain model.

An agent's territory is in exactly one of three states: empty, holding a
Resource (``resource_id`` set), or voided (``voided`` true and
``void_placement`` set). Voiding is terminal; this model offers no way to
clear it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from territory.domain.models.void_placement import VoidPlacement


@dataclass(frozen=True, eq=True)
class Agent:
    """A registered actor that may own at most one resource.

    Attributes:
        id: Stable identity.
        name: Display name.
        created_at: Registration timestamp (UTC).
        resource_id: Held resource, or None.
        voided: Permanent eviction flag.
        void_placement: Where the agent was placed when voided.
        last_liveness: Most recent proof-of-life, or None if never recorded.
    """

    id: str
    name: str
    created_at: datetime
    resource_id: str | None = field(default=None)
    voided: bool = field(default=False)
    void_placement: VoidPlacement | None = field(default=None)
    last_liveness: datetime | None = field(default=None)

    def __post_init__(self) -> None:
        """Validate agent fields."""
        if not self.id or not self.id.strip():
            raise ValueError("Agent id must be non-empty")
        if self.voided and self.resource_id is not None:
            raise ValueError("A voided agent cannot hold a resource")
        if self.voided != (self.void_placement is not None):
            raise ValueError("void_placement must be set exactly when voided")

    @property
    def has_territory(self) -> bool:
        """Whether the agent currently holds a resource."""
        return self.resource_id is not None

    @property
    def territory(self) -> str | VoidPlacement | None:
        """The agent's territory: a resource id, a void placement, or None."""
        if self.voided:
            return self.void_placement
        return self.resource_id

    def with_resource(self, resource_id: str | None) -> Agent:
        """Return a copy holding ``resource_id`` (None releases).

        Raises:
            ValueError: If the agent is voided and a resource is given.
        """
        return Agent(
            id=self.id,
            name=self.name,
            created_at=self.created_at,
            resource_id=resource_id,
            voided=self.voided,
            void_placement=self.void_placement,
            last_liveness=self.last_liveness,
        )

    def with_void(self, placement: VoidPlacement) -> Agent:
        """Return a voided copy placed at ``placement``.

        The resource must already have been released.
        """
        return Agent(
            id=self.id,
            name=self.name,
            created_at=self.created_at,
            resource_id=None,
            voided=True,
            void_placement=placement,
            last_liveness=self.last_liveness,
        )

    def with_liveness(self, at: datetime) -> Agent:
        """Return a copy whose last liveness is the later of the current value and ``at``."""
        if self.last_liveness is not None and self.last_liveness >= at:
            return self
        return Agent(
            id=self.id,
            name=self.name,
            created_at=self.created_at,
            resource_id=self.resource_id,
            voided=self.voided,
            void_placement=self.void_placement,
            last_liveness=at,
        )

    def to_dict(self) -> dict[str, object]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "created_at": self.created_at.isoformat(),
            "resource_id": self.resource_id,
            "voided": self.voided,
            "void_placement": self.void_placement.to_dict()
            if self.void_placement
            else None,
            "last_liveness": self.last_liveness.isoformat()
            if self.last_liveness
            else None,
        }
