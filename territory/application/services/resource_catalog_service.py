"""Resource catalog service.

Read-side queries over the set of claimable resources plus append-only
catalog loading. Nothing here mutates ownership: ``pick_random_eligible``
is advisory and the allocation engine re-validates eligibility inside its
own transaction.
"""

from __future__ import annotations

import random
from collections.abc import Iterable
from typing import TYPE_CHECKING

from structlog import get_logger

from territory.domain.errors import NoEligibleResourceError, ResourceNotFoundError
from territory.domain.models.resource import CountryAvailability, Resource

if TYPE_CHECKING:
    from territory.application.ports.territory_store import TerritoryStoreProtocol

logger = get_logger()

DEFAULT_SUGGESTION_LIMIT = 5


class ResourceCatalogService:
    """Queries and loads the resource catalog.

    Example:
        >>> catalog = ResourceCatalogService(store)
        >>> resource = await catalog.pick_random_eligible("FR")
    """

    def __init__(
        self,
        store: TerritoryStoreProtocol,
        rng: random.Random | None = None,
        suggestion_limit: int = DEFAULT_SUGGESTION_LIMIT,
    ) -> None:
        """Initialize the catalog service.

        Args:
            store: Territory store to read from.
            rng: Random source for picks; inject a seeded one in tests.
            suggestion_limit: Number of alternative countries to offer.
        """
        self._store = store
        self._rng = rng or random.Random()
        self._suggestion_limit = suggestion_limit

    async def list_eligible(self, country_code: str) -> list[Resource]:
        """Return every unreserved, unowned resource in a country."""
        return await self._store.list_eligible_resources(country_code)

    async def get(self, resource_id: str) -> Resource:
        """Return a resource by id.

        Raises:
            ResourceNotFoundError: If the id is not in the catalog.
        """
        resource = await self._store.get_resource(resource_id)
        if resource is None:
            raise ResourceNotFoundError(resource_id)
        return resource

    async def pick_random_eligible(self, country_code: str) -> Resource:
        """Pick an eligible resource uniformly at random.

        The pick is not a reservation. Another caller may claim the same
        resource before this caller does.

        Raises:
            NoEligibleResourceError: If the country has none left. The error
                carries alternative countries ranked by eligible count.
        """
        eligible = await self.list_eligible(country_code)
        if not eligible:
            suggestions = await self.suggest_countries(exclude=country_code)
            logger.info(
                "no_eligible_resource",
                country_code=country_code,
                suggestions=[s.country_code for s in suggestions],
            )
            raise NoEligibleResourceError(country_code, suggestions)
        return self._rng.choice(eligible)

    async def countries_with_availability(self) -> list[CountryAvailability]:
        """Return eligible and total counts for every country in the catalog."""
        return await self._store.count_by_country()

    async def suggest_countries(
        self,
        limit: int | None = None,
        exclude: str | None = None,
    ) -> list[CountryAvailability]:
        """Rank countries that still have eligible resources.

        Args:
            limit: Maximum suggestions (defaults to the configured limit).
            exclude: A country to leave out, typically the one that ran dry.

        Returns:
            Countries with at least one eligible resource, most available
            first, ties broken by country code.
        """
        limit = self._suggestion_limit if limit is None else limit
        ranked = sorted(
            (
                c
                for c in await self.countries_with_availability()
                if c.available_count > 0 and c.country_code != exclude
            ),
            key=lambda c: (-c.available_count, c.country_code),
        )
        return ranked[:limit]

    async def load_catalog(self, resources: Iterable[Resource]) -> tuple[int, int]:
        """Add resources to the catalog.

        The catalog is append-only: resources whose id already exists are
        skipped, never overwritten.

        Returns:
            Tuple of (inserted count, skipped count).

        Raises:
            ValueError: If a resource arrives with an owner already set.
        """
        inserted = 0
        skipped = 0
        for resource in resources:
            if resource.owner_id is not None:
                raise ValueError(
                    f"Catalog resource {resource.id} must be loaded without an owner"
                )
            if await self._store.add_resource(resource):
                inserted += 1
            else:
                skipped += 1
        logger.info("catalog_loaded", inserted=inserted, skipped=skipped)
        return inserted, skipped
