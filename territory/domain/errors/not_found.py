"""Lookup failures for resources and agents."""

from __future__ import annotations

from typing import TYPE_CHECKING

from territory.domain.exceptions import TerritoryError

if TYPE_CHECKING:
    from territory.domain.models.resource import CountryAvailability


class NotFoundError(TerritoryError):
    """Base class for unknown identities."""


class ResourceNotFoundError(NotFoundError):
    """Raised when a resource id is not in the catalog."""

    def __init__(self, resource_id: str) -> None:
        self.resource_id = resource_id
        super().__init__(f"Resource not found: {resource_id}")


class AgentNotFoundError(NotFoundError):
    """Raised when an agent id is not registered."""

    def __init__(self, agent_id: str) -> None:
        self.agent_id = agent_id
        super().__init__(f"Agent not found: {agent_id}")


class ResourceNotAssignedError(NotFoundError):
    """Raised when an administrative unassign targets a resource with no owner."""

    def __init__(self, resource_id: str) -> None:
        self.resource_id = resource_id
        super().__init__(f"Resource {resource_id} has no owner")


class NoEligibleResourceError(NotFoundError):
    """Raised when a country has no unreserved, unowned resource left.

    Attributes:
        country_code: The requested country.
        suggested_countries: Other countries ranked by eligible count,
            most available first.
    """

    def __init__(
        self,
        country_code: str,
        suggested_countries: list[CountryAvailability] | None = None,
    ) -> None:
        self.country_code = country_code
        self.suggested_countries = list(suggested_countries or [])
        super().__init__(f"No eligible resource available in {country_code}")
