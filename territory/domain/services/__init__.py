"""Pure domain services (no I/O, no clock)."""

from territory.domain.services.void_placement import (
    VOID_ZONES,
    compute_void_placement,
    is_void_location,
    nearest_void_zone,
)

__all__: list[str] = [
    "VOID_ZONES",
    "compute_void_placement",
    "is_void_location",
    "nearest_void_zone",
]
