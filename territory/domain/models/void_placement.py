"""Void zone and void placement value objects."""

from __future__ import annotations

from dataclasses import dataclass

VOID_LOCATION_LABEL: str = "Ocean (Inactive)"


@dataclass(frozen=True, eq=True)
class VoidZone:
    """A named ocean zone that voided agents are scattered across."""

    name: str
    latitude: float
    longitude: float


@dataclass(frozen=True, eq=True)
class VoidPlacement:
    """Coordinate assigned to a voided agent.

    A placement is not a Resource: it is never claimed, is not unique,
    and two agents may land on the same point.

    Attributes:
        zone_name: Name of the void zone the placement falls in.
        latitude: Latitude in degrees.
        longitude: Longitude in degrees.
        label: Display label for the placement.
    """

    zone_name: str
    latitude: float
    longitude: float
    label: str = VOID_LOCATION_LABEL

    def to_dict(self) -> dict[str, object]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "zone_name": self.zone_name,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "label": self.label,
        }
