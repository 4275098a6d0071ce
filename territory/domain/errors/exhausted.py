"""Exhaustion error for the bounded claim-retry loop."""

from __future__ import annotations

from typing import TYPE_CHECKING

from territory.domain.exceptions import TerritoryError

if TYPE_CHECKING:
    from territory.domain.models.resource import CountryAvailability


class ExhaustedError(TerritoryError):
    """Raised when random claim attempts run out of attempts or time.

    The caller should present ``suggested_countries`` to the end user.

    Attributes:
        country_code: The requested country.
        attempts: Number of claim attempts made.
        suggested_countries: Alternative countries ranked by eligible count.
    """

    def __init__(
        self,
        country_code: str,
        attempts: int,
        suggested_countries: list[CountryAvailability] | None = None,
    ) -> None:
        self.country_code = country_code
        self.attempts = attempts
        self.suggested_countries = list(suggested_countries or [])
        super().__init__(
            f"Could not claim a resource in {country_code} "
            f"after {attempts} attempt(s)"
        )
