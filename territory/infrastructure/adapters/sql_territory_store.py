"""PostgreSQL territory store (SQLAlchemy async + asyncpg).

Implements TerritoryStoreProtocol with raw SQL through SQLAlchemy's
``text()``. Each ``transaction()`` is one database transaction. Row locks
are ``SELECT ... FOR UPDATE`` and are held until commit or rollback.
Writes that must not race are conditional and check their row count.

The schema lives in migrations/001_create_territory_tables.sql.

Usage:
    from territory.bootstrap.database import get_session_factory

    store = SqlTerritoryStore(get_session_factory())
    async with store.transaction() as tx:
        resource = await tx.lock_resource("fr-paris")
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from structlog import get_logger

from territory.application.ports.territory_store import TerritoryStoreProtocol
from territory.domain.errors import (
    AgentAlreadyExistsError,
    AgentNotFoundError,
    ConcurrentModificationError,
)
from territory.domain.models.agent import Agent
from territory.domain.models.assignment_record import (
    AssignmentAction,
    AssignmentRecord,
)
from territory.domain.models.resource import CountryAvailability, Resource
from territory.domain.models.void_placement import VoidPlacement

logger = get_logger()

SCHEMA_PATH = (
    Path(__file__).resolve().parent.parent.parent.parent
    / "migrations"
    / "001_create_territory_tables.sql"
)

_RESOURCE_COLUMNS = "id, country_code, name, latitude, longitude, reserved, owner_id"
_AGENT_COLUMNS = (
    "id, name, created_at, resource_id, voided, "
    "void_zone, void_latitude, void_longitude, void_label, last_liveness"
)
_ASSIGNMENT_COLUMNS = (
    "sequence, resource_id, agent_id, action, actor, reason, recorded_at"
)


def split_schema_statements(sql: str) -> list[str]:
    """Split a migration file into statements, dropping ``--`` comment lines."""
    body = "\n".join(
        line for line in sql.splitlines() if not line.strip().startswith("--")
    )
    return [statement.strip() for statement in body.split(";") if statement.strip()]


async def apply_schema(session: AsyncSession, path: Path = SCHEMA_PATH) -> None:
    """Create the territory tables if they do not exist.

    Args:
        session: Session to run the DDL in. The caller commits.
        path: Migration file to apply.
    """
    for statement in split_schema_statements(path.read_text()):
        await session.execute(text(statement))


def _resource_from_row(row: Any) -> Resource:
    return Resource(
        id=row.id,
        country_code=row.country_code,
        name=row.name,
        latitude=row.latitude,
        longitude=row.longitude,
        reserved=row.reserved,
        owner_id=row.owner_id,
    )


def _agent_from_row(row: Any) -> Agent:
    placement = None
    if row.voided:
        placement = VoidPlacement(
            zone_name=row.void_zone,
            latitude=row.void_latitude,
            longitude=row.void_longitude,
            label=row.void_label,
        )
    return Agent(
        id=row.id,
        name=row.name,
        created_at=row.created_at,
        resource_id=row.resource_id,
        voided=row.voided,
        void_placement=placement,
        last_liveness=row.last_liveness,
    )


def _assignment_from_row(row: Any) -> AssignmentRecord:
    return AssignmentRecord(
        sequence=row.sequence,
        resource_id=row.resource_id,
        agent_id=row.agent_id,
        action=AssignmentAction(row.action),
        actor=row.actor,
        reason=row.reason,
        recorded_at=row.recorded_at,
    )


class _SqlTransaction:
    """TerritoryTransactionProtocol over one AsyncSession transaction."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def lock_resource(self, resource_id: str) -> Resource | None:
        result = await self._session.execute(
            text(f"""
                SELECT {_RESOURCE_COLUMNS}
                FROM territory_resources
                WHERE id = :id
                FOR UPDATE
            """),
            {"id": resource_id},
        )
        row = result.fetchone()
        return _resource_from_row(row) if row else None

    async def lock_agent(self, agent_id: str) -> Agent | None:
        result = await self._session.execute(
            text(f"""
                SELECT {_AGENT_COLUMNS}
                FROM territory_agents
                WHERE id = :id
                FOR UPDATE
            """),
            {"id": agent_id},
        )
        row = result.fetchone()
        return _agent_from_row(row) if row else None

    async def set_resource_owner(self, resource_id: str, owner_id: str | None) -> None:
        result = await self._session.execute(
            text("UPDATE territory_resources SET owner_id = :owner_id WHERE id = :id"),
            {"id": resource_id, "owner_id": owner_id},
        )
        if result.rowcount != 1:
            raise ConcurrentModificationError("resource", resource_id, "set_resource_owner")

    async def set_agent_resource(self, agent_id: str, resource_id: str | None) -> None:
        result = await self._session.execute(
            text("""
                UPDATE territory_agents
                SET resource_id = :resource_id
                WHERE id = :id AND voided = FALSE
            """),
            {"id": agent_id, "resource_id": resource_id},
        )
        if result.rowcount != 1:
            raise ConcurrentModificationError("agent", agent_id, "set_agent_resource")

    async def mark_agent_voided(self, agent_id: str, placement: VoidPlacement) -> None:
        result = await self._session.execute(
            text("""
                UPDATE territory_agents
                SET voided = TRUE,
                    void_zone = :zone,
                    void_latitude = :latitude,
                    void_longitude = :longitude,
                    void_label = :label
                WHERE id = :id AND voided = FALSE AND resource_id IS NULL
            """),
            {
                "id": agent_id,
                "zone": placement.zone_name,
                "latitude": placement.latitude,
                "longitude": placement.longitude,
                "label": placement.label,
            },
        )
        if result.rowcount != 1:
            raise ConcurrentModificationError("agent", agent_id, "mark_agent_voided")

    async def append_assignment(
        self,
        *,
        resource_id: str | None,
        agent_id: str | None,
        action: AssignmentAction,
        actor: str,
        reason: str,
        recorded_at: datetime,
    ) -> AssignmentRecord:
        result = await self._session.execute(
            text(f"""
                INSERT INTO territory_assignments
                    (resource_id, agent_id, action, actor, reason, recorded_at)
                VALUES (:resource_id, :agent_id, :action, :actor, :reason, :recorded_at)
                RETURNING {_ASSIGNMENT_COLUMNS}
            """),
            {
                "resource_id": resource_id,
                "agent_id": agent_id,
                "action": action.value,
                "actor": actor,
                "reason": reason,
                "recorded_at": recorded_at,
            },
        )
        return _assignment_from_row(result.fetchone())


class SqlTerritoryStore(TerritoryStoreProtocol):
    """PostgreSQL implementation of TerritoryStoreProtocol.

    Attributes:
        _session_factory: SQLAlchemy async session factory for DB access.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Initialize the store.

        Args:
            session_factory: SQLAlchemy async session factory.
        """
        self._session_factory = session_factory

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[_SqlTransaction]:
        async with self._session_factory() as session:
            async with session.begin():
                yield _SqlTransaction(session)

    async def _fetch_all(self, sql: str, params: dict[str, Any] | None = None) -> list[Any]:
        async with self._session_factory() as session:
            result = await session.execute(text(sql), params or {})
            return list(result.fetchall())

    async def _fetch_one(self, sql: str, params: dict[str, Any]) -> Any:
        async with self._session_factory() as session:
            result = await session.execute(text(sql), params)
            return result.fetchone()

    async def _write_one(self, sql: str, params: dict[str, Any]) -> Any:
        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(text(sql), params)
                return result.fetchone()

    # =========================================================================
    # Resources
    # =========================================================================

    async def get_resource(self, resource_id: str) -> Resource | None:
        row = await self._fetch_one(
            f"SELECT {_RESOURCE_COLUMNS} FROM territory_resources WHERE id = :id",
            {"id": resource_id},
        )
        return _resource_from_row(row) if row else None

    async def list_resources(self, country_code: str | None = None) -> list[Resource]:
        if country_code is None:
            rows = await self._fetch_all(
                f"SELECT {_RESOURCE_COLUMNS} FROM territory_resources ORDER BY id"
            )
        else:
            rows = await self._fetch_all(
                f"""
                SELECT {_RESOURCE_COLUMNS} FROM territory_resources
                WHERE country_code = :country_code
                ORDER BY id
                """,
                {"country_code": country_code},
            )
        return [_resource_from_row(row) for row in rows]

    async def list_eligible_resources(self, country_code: str) -> list[Resource]:
        rows = await self._fetch_all(
            f"""
            SELECT {_RESOURCE_COLUMNS} FROM territory_resources
            WHERE country_code = :country_code
              AND reserved = FALSE
              AND owner_id IS NULL
            ORDER BY id
            """,
            {"country_code": country_code},
        )
        return [_resource_from_row(row) for row in rows]

    async def count_by_country(self) -> list[CountryAvailability]:
        rows = await self._fetch_all(
            """
            SELECT country_code,
                   COUNT(*) FILTER (WHERE reserved = FALSE AND owner_id IS NULL)
                       AS available_count,
                   COUNT(*) AS total_count
            FROM territory_resources
            GROUP BY country_code
            ORDER BY country_code
            """
        )
        return [
            CountryAvailability(
                country_code=row.country_code,
                available_count=row.available_count,
                total_count=row.total_count,
            )
            for row in rows
        ]

    async def add_resource(self, resource: Resource) -> bool:
        row = await self._write_one(
            """
            INSERT INTO territory_resources
                (id, country_code, name, latitude, longitude, reserved)
            VALUES (:id, :country_code, :name, :latitude, :longitude, :reserved)
            ON CONFLICT (id) DO NOTHING
            RETURNING id
            """,
            {
                "id": resource.id,
                "country_code": resource.country_code,
                "name": resource.name,
                "latitude": resource.latitude,
                "longitude": resource.longitude,
                "reserved": resource.reserved,
            },
        )
        return row is not None

    # =========================================================================
    # Agents
    # =========================================================================

    async def get_agent(self, agent_id: str) -> Agent | None:
        row = await self._fetch_one(
            f"SELECT {_AGENT_COLUMNS} FROM territory_agents WHERE id = :id",
            {"id": agent_id},
        )
        return _agent_from_row(row) if row else None

    async def list_agents(self, include_voided: bool = False) -> list[Agent]:
        rows = await self._fetch_all(
            f"""
            SELECT {_AGENT_COLUMNS} FROM territory_agents
            WHERE :include_voided OR voided = FALSE
            ORDER BY id
            """,
            {"include_voided": include_voided},
        )
        return [_agent_from_row(row) for row in rows]

    async def list_agents_inactive_since(self, cutoff: datetime) -> list[Agent]:
        rows = await self._fetch_all(
            f"""
            SELECT {_AGENT_COLUMNS} FROM territory_agents
            WHERE voided = FALSE
              AND (last_liveness IS NULL OR last_liveness <= :cutoff)
            ORDER BY id
            """,
            {"cutoff": cutoff},
        )
        return [_agent_from_row(row) for row in rows]

    async def create_agent(self, agent: Agent) -> None:
        row = await self._write_one(
            """
            INSERT INTO territory_agents (id, name, created_at, last_liveness)
            VALUES (:id, :name, :created_at, :last_liveness)
            ON CONFLICT (id) DO NOTHING
            RETURNING id
            """,
            {
                "id": agent.id,
                "name": agent.name,
                "created_at": agent.created_at,
                "last_liveness": agent.last_liveness,
            },
        )
        if row is None:
            raise AgentAlreadyExistsError(agent.id)

    async def delete_agent(self, agent_id: str) -> bool:
        row = await self._write_one(
            """
            DELETE FROM territory_agents
            WHERE id = :id
              AND resource_id IS NULL
              AND voided = FALSE
              AND NOT EXISTS (
                  SELECT 1 FROM territory_assignments WHERE agent_id = :id
              )
            RETURNING id
            """,
            {"id": agent_id},
        )
        return row is not None

    async def record_liveness(self, agent_id: str, at: datetime) -> datetime:
        async with self._session_factory() as session:
            async with session.begin():
                await session.execute(
                    text("""
                        UPDATE territory_agents
                        SET last_liveness = :at
                        WHERE id = :id
                          AND (last_liveness IS NULL OR last_liveness < :at)
                    """),
                    {"id": agent_id, "at": at},
                )
                result = await session.execute(
                    text("SELECT last_liveness FROM territory_agents WHERE id = :id"),
                    {"id": agent_id},
                )
                row = result.fetchone()
        if row is None:
            raise AgentNotFoundError(agent_id)
        return row.last_liveness

    # =========================================================================
    # Assignment trail
    # =========================================================================

    async def list_assignments(
        self,
        *,
        resource_id: str | None = None,
        agent_id: str | None = None,
        limit: int | None = None,
    ) -> list[AssignmentRecord]:
        rows = await self._fetch_all(
            f"""
            SELECT {_ASSIGNMENT_COLUMNS} FROM territory_assignments
            WHERE (CAST(:resource_id AS TEXT) IS NULL OR resource_id = :resource_id)
              AND (CAST(:agent_id AS TEXT) IS NULL OR agent_id = :agent_id)
            ORDER BY sequence DESC
            LIMIT :limit
            """,
            {"resource_id": resource_id, "agent_id": agent_id, "limit": limit},
        )
        return [_assignment_from_row(row) for row in reversed(rows)]
