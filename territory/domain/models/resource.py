"""Resource (city) domain model.

A Resource is a uniquely claimable unit of territory. It is created once
when the catalog is loaded and afterwards only its ``owner_id`` changes,
and only through the allocation engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, eq=True)
class Resource:
    """A claimable city.

    Attributes:
        id: Stable identity (e.g. "paris").
        country_code: Grouping key, ISO 3166-1 alpha-2 upper case.
        name: Human label.
        latitude: Latitude in degrees, -90..90.
        longitude: Longitude in degrees, -180..180.
        reserved: Excluded from self-service claim; only an administrative
            override may assign it.
        owner_id: The owning agent id, or None when unowned.
    """

    id: str
    country_code: str
    name: str
    latitude: float
    longitude: float
    reserved: bool = field(default=False)
    owner_id: str | None = field(default=None)

    def __post_init__(self) -> None:
        """Validate resource fields."""
        if not self.id or not self.id.strip():
            raise ValueError("Resource id must be non-empty")
        if not self.country_code or not self.country_code.strip():
            raise ValueError("country_code must be non-empty")
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"latitude out of range: {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError(f"longitude out of range: {self.longitude}")

    @property
    def is_owned(self) -> bool:
        """Whether an agent currently owns this resource."""
        return self.owner_id is not None

    @property
    def is_eligible(self) -> bool:
        """Whether self-service claim could pick this resource right now."""
        return not self.reserved and self.owner_id is None

    def with_owner(self, owner_id: str | None) -> Resource:
        """Return a copy with ``owner_id`` replaced.

        Args:
            owner_id: New owner, or None to clear ownership.

        Returns:
            New Resource instance.
        """
        return Resource(
            id=self.id,
            country_code=self.country_code,
            name=self.name,
            latitude=self.latitude,
            longitude=self.longitude,
            reserved=self.reserved,
            owner_id=owner_id,
        )

    def to_dict(self) -> dict[str, object]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "id": self.id,
            "country_code": self.country_code,
            "name": self.name,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "reserved": self.reserved,
            "owner_id": self.owner_id,
        }


@dataclass(frozen=True, eq=True)
class CountryAvailability:
    """Aggregate of eligible resources in one country.

    Attributes:
        country_code: The country.
        available_count: Unreserved, unowned resources.
        total_count: All resources in the country, reserved included.
    """

    country_code: str
    available_count: int
    total_count: int

    def to_dict(self) -> dict[str, object]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "country_code": self.country_code,
            "available_count": self.available_count,
            "total_count": self.total_count,
        }
