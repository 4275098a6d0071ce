"""Unit tests for service wiring and database bootstrap helpers."""

from collections.abc import Iterator

import pytest

from territory.bootstrap.database import (
    _pool_size,
    database_configured,
    get_database_url,
    get_session_factory,
    mask_database_url,
    reset_database_bootstrap,
)
from territory.bootstrap.territory_services import (
    build_territory_services,
    get_territory_services,
    reset_territory_services,
    set_territory_services,
)
from territory.config.territory_config import TerritoryConfig
from territory.domain.events import TerritoryChangedPayload
from territory.infrastructure.adapters import QueueEventDispatcher
from territory.infrastructure.adapters.json_catalog_loader import load_catalog_file
from territory.infrastructure.adapters.sql_territory_store import (
    SCHEMA_PATH,
    split_schema_statements,
)
from territory.infrastructure.stubs import InMemoryEventPublisher, InMemoryTerritoryStore
from tests.helpers import FakeTimeAuthority


@pytest.fixture(autouse=True)
def reset_singleton() -> Iterator[None]:
    reset_territory_services()
    yield
    reset_territory_services()


class TestBuildTerritoryServices:
    """Tests for build_territory_services."""

    def test_defaults_to_in_memory_without_database(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("DATABASE_URL", raising=False)

        services = build_territory_services()

        assert isinstance(services.store, InMemoryTerritoryStore)
        assert isinstance(services.publisher, QueueEventDispatcher)

    @pytest.mark.asyncio
    async def test_services_share_collaborators(
        self,
        store: InMemoryTerritoryStore,
        publisher: InMemoryEventPublisher,
        fake_time_authority: FakeTimeAuthority,
        config: TerritoryConfig,
    ) -> None:
        """Every service works on the same store, clock and publisher."""
        services = build_territory_services(
            store=store,
            publisher=publisher,
            time_authority=fake_time_authority,
            config=config,
        )
        await services.catalog.load_catalog(
            [r for r in load_catalog_file() if r.country_code == "JP"]
        )

        result = await services.registration.register_agent("agent-a", "Alice", "JP")

        assert (await store.get_resource(result.resource.id)).owner_id == "agent-a"
        assert publisher.event_types() == ["territory.claimed"]
        assert services.monitor.interval_seconds == config.sweep_interval_seconds
        assert services.liveness.threshold_days == config.inactivity_threshold_days

    @pytest.mark.asyncio
    async def test_lifecycle_runs_default_dispatcher(
        self,
        store: InMemoryTerritoryStore,
        fake_time_authority: FakeTimeAuthority,
        config: TerritoryConfig,
    ) -> None:
        """Notifications flow once the services are started, and stop flushes them."""
        services = build_territory_services(
            store=store, time_authority=fake_time_authority, config=config
        )
        dispatcher = services.publisher
        assert isinstance(dispatcher, QueueEventDispatcher)
        received: list[str] = []

        async def record(payload: TerritoryChangedPayload) -> None:
            received.append(payload.event_type)

        dispatcher.subscribe(record)
        await services.catalog.load_catalog(
            [r for r in load_catalog_file() if r.country_code == "JP"]
        )

        await services.start(run_monitor=True)
        assert dispatcher.running
        assert services.monitor.running
        await services.registration.register_agent("agent-a", "Alice", "JP")
        await services.stop()

        assert received == ["territory.claimed"]
        assert not dispatcher.running
        assert not services.monitor.running

    def test_singleton_roundtrip(self, store: InMemoryTerritoryStore) -> None:
        services = build_territory_services(store=store)

        set_territory_services(services)

        assert get_territory_services() is services


class TestDatabaseHelpers:
    """Tests for DATABASE_URL handling."""

    def test_not_configured(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("DATABASE_URL", raising=False)

        assert not database_configured()
        with pytest.raises(ValueError, match="DATABASE_URL"):
            get_database_url()

    @pytest.mark.parametrize(
        "url",
        [
            "postgresql://u:p@db:5432/territory",
            "postgres://u:p@db:5432/territory",
            "postgresql+asyncpg://u:p@db:5432/territory",
        ],
    )
    def test_url_converted_to_asyncpg(
        self, monkeypatch: pytest.MonkeyPatch, url: str
    ) -> None:
        monkeypatch.setenv("DATABASE_URL", url)

        assert get_database_url() == "postgresql+asyncpg://u:p@db:5432/territory"

    def test_mask_password(self) -> None:
        masked = mask_database_url("postgresql+asyncpg://user:secret@db:5432/territory")

        assert masked == "postgresql+asyncpg://user:***@db:5432/territory"
        assert mask_database_url("sqlite:///local.db") == "sqlite:///local.db"

    @pytest.mark.parametrize(("raw", "expected"), [("12", 12), ("0", 5), ("lots", 5)])
    def test_pool_size_from_environment(
        self, monkeypatch: pytest.MonkeyPatch, raw: str, expected: int
    ) -> None:
        monkeypatch.setenv("TERRITORY_DB_POOL_SIZE", raw)

        assert _pool_size() == expected

    def test_session_factory_is_cached_until_reset(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """The engine is created lazily and never connects here."""
        monkeypatch.setenv("DATABASE_URL", "postgresql://u:p@db:5432/territory")
        reset_database_bootstrap()
        try:
            factory = get_session_factory()
            assert get_session_factory() is factory

            reset_database_bootstrap()
            assert get_session_factory() is not factory
        finally:
            reset_database_bootstrap()


class TestSchemaStatements:
    """Tests for migration splitting."""

    def test_comment_lines_dropped(self) -> None:
        sql = "-- header; with semicolon\nCREATE TABLE a (id TEXT);\n\n-- tail\nCREATE INDEX i ON a (id);\n"

        assert split_schema_statements(sql) == [
            "CREATE TABLE a (id TEXT)",
            "CREATE INDEX i ON a (id)",
        ]

    def test_migration_file_creates_all_tables(self) -> None:
        statements = split_schema_statements(SCHEMA_PATH.read_text())
        joined = "\n".join(statements)

        for table in ("territory_resources", "territory_agents", "territory_assignments"):
            assert f"CREATE TABLE IF NOT EXISTS {table}" in joined
        assert all(not s.startswith("--") for s in statements)
