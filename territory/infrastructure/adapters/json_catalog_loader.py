"""JSON catalog file loader.

Catalog files are a JSON array of objects:

    [
        {"id": "paris", "country_code": "FR", "name": "Paris",
         "latitude": 48.8566, "longitude": 2.3522, "reserved": true},
        ...
    ]

``reserved`` is optional and defaults to false. Owners are never read
from a catalog file.
"""

from __future__ import annotations

import json
from pathlib import Path

from structlog import get_logger

from territory.domain.models.resource import Resource

logger = get_logger()

BUNDLED_CATALOG_PATH = Path(__file__).resolve().parent.parent.parent / "data" / "cities.json"


class CatalogFormatError(ValueError):
    """Raised when a catalog file does not match the expected shape."""


def parse_catalog(entries: object) -> list[Resource]:
    """Convert decoded JSON into Resource objects.

    Args:
        entries: Decoded JSON, expected to be a list of objects.

    Returns:
        Unowned resources in file order.

    Raises:
        CatalogFormatError: On a missing field or an invalid value.
    """
    if not isinstance(entries, list):
        raise CatalogFormatError("catalog must be a JSON array")

    resources: list[Resource] = []
    for index, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise CatalogFormatError(f"entry {index} is not an object")
        try:
            resources.append(
                Resource(
                    id=str(entry["id"]),
                    country_code=str(entry["country_code"]).upper(),
                    name=str(entry["name"]),
                    latitude=float(entry["latitude"]),
                    longitude=float(entry["longitude"]),
                    reserved=bool(entry.get("reserved", False)),
                )
            )
        except KeyError as exc:
            raise CatalogFormatError(f"entry {index} is missing {exc.args[0]!r}") from exc
        except (TypeError, ValueError) as exc:
            raise CatalogFormatError(f"entry {index} is invalid: {exc}") from exc
    return resources


def load_catalog_file(path: Path | str = BUNDLED_CATALOG_PATH) -> list[Resource]:
    """Read and parse a catalog file.

    Args:
        path: Catalog file; defaults to the bundled city list.

    Raises:
        FileNotFoundError: The file does not exist.
        CatalogFormatError: The content is not a valid catalog.
    """
    path = Path(path)
    with open(path, encoding="utf-8") as f:
        try:
            entries = json.load(f)
        except json.JSONDecodeError as exc:
            raise CatalogFormatError(f"{path} is not valid JSON: {exc}") from exc
    resources = parse_catalog(entries)
    logger.info(
        "catalog_file_parsed",
        path=str(path),
        resources=len(resources),
        reserved=sum(1 for r in resources if r.reserved),
    )
    return resources
