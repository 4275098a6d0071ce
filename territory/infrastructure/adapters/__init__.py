"""Infrastructure adapters implementing the application ports."""

from territory.infrastructure.adapters.json_catalog_loader import (
    BUNDLED_CATALOG_PATH,
    CatalogFormatError,
    load_catalog_file,
    parse_catalog,
)
from territory.infrastructure.adapters.queue_event_dispatcher import (
    QueueEventDispatcher,
)
from territory.infrastructure.adapters.sql_territory_store import (
    SCHEMA_PATH,
    SqlTerritoryStore,
    apply_schema,
)
from territory.infrastructure.adapters.system_time_authority import (
    SystemTimeAuthority,
)

__all__: list[str] = [
    "BUNDLED_CATALOG_PATH",
    "CatalogFormatError",
    "QueueEventDispatcher",
    "SCHEMA_PATH",
    "SqlTerritoryStore",
    "SystemTimeAuthority",
    "apply_schema",
    "load_catalog_file",
    "parse_catalog",
]
