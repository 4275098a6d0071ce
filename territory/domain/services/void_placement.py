"""Deterministic void placement for evicted agents.

Voided agents are scattered across a fixed set of named ocean zones. The
zone and a bounded offset are derived from a stable hash of the agent id,
so the same agent always lands on the same coordinate and no randomness
needs to be mocked in tests.

Placement has no allocation semantics: nothing is claimed, and two agents
may share a coordinate.
"""

from __future__ import annotations

import hashlib
import math

from territory.domain.models.void_placement import (
    VOID_LOCATION_LABEL,
    VoidPlacement,
    VoidZone,
)

VOID_ZONES: tuple[VoidZone, ...] = (
    VoidZone("North Pacific", 35.0, -150.0),
    VoidZone("South Pacific", -25.0, -130.0),
    VoidZone("Central Pacific", 5.0, -160.0),
    VoidZone("North Atlantic", 40.0, -40.0),
    VoidZone("South Atlantic", -30.0, -20.0),
    VoidZone("Central Atlantic", 10.0, -35.0),
    VoidZone("Indian Ocean North", 5.0, 75.0),
    VoidZone("Indian Ocean South", -25.0, 80.0),
    VoidZone("Southern Ocean", -55.0, 0.0),
    VoidZone("Arctic Ocean", 75.0, 0.0),
)

# Offsets stay within +/- this many degrees of the zone centre
MAX_OFFSET_DEGREES: float = 2.5

# Distance (in degrees) under which a coordinate counts as inside a zone
VOID_ZONE_RADIUS_DEGREES: float = 15.0


def _stable_hash(agent_id: str) -> int:
    """Hash ``agent_id`` to an unsigned 32-bit integer, stable across processes."""
    digest = hashlib.sha256(agent_id.encode("utf-8")).digest()
    return int.from_bytes(digest[:4], "big")


def _offset(bits: int) -> float:
    return (bits % 100) / 100 * (2 * MAX_OFFSET_DEGREES) - MAX_OFFSET_DEGREES


def compute_void_placement(agent_id: str) -> VoidPlacement:
    """Compute the void placement for an agent.

    The low bits of the hash select the zone; the next two bytes give the
    latitude and longitude offsets.

    Args:
        agent_id: The agent identity.

    Returns:
        The agent's VoidPlacement. Identical for identical ids.

    Raises:
        ValueError: If agent_id is empty.
    """
    if not agent_id:
        raise ValueError("agent_id must be non-empty")

    value = _stable_hash(agent_id)
    zone = VOID_ZONES[value % len(VOID_ZONES)]
    return VoidPlacement(
        zone_name=zone.name,
        latitude=zone.latitude + _offset(value >> 8),
        longitude=zone.longitude + _offset(value >> 16),
        label=VOID_LOCATION_LABEL,
    )


def _distance(latitude: float, longitude: float, zone: VoidZone) -> float:
    return math.hypot(latitude - zone.latitude, longitude - zone.longitude)


def is_void_location(latitude: float, longitude: float) -> bool:
    """Return True if the coordinate lies within any void zone's radius."""
    return any(
        _distance(latitude, longitude, zone) < VOID_ZONE_RADIUS_DEGREES
        for zone in VOID_ZONES
    )


def nearest_void_zone(latitude: float, longitude: float) -> VoidZone:
    """Return the void zone whose centre is closest to the coordinate."""
    return min(VOID_ZONES, key=lambda zone: _distance(latitude, longitude, zone))
