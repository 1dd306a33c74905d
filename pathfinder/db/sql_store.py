"""SQL implementation of the RemoteStore protocol (SQLAlchemy async core)."""

import copy
import logging
import uuid
from collections.abc import AsyncIterator, Iterator
from contextlib import asynccontextmanager, contextmanager

from sqlalchemy import Table, delete, select, update
from sqlalchemy.exc import DBAPIError, IntegrityError, InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from pathfinder.db.models import Base
from pathfinder.db.store import Eq, Row
from pathfinder.errors import RemoteConstraintError, TransportError

logger = logging.getLogger(__name__)


@contextmanager
def _translate_errors() -> Iterator[None]:
    """Map SQLAlchemy exceptions onto the store error taxonomy."""
    try:
        yield
    except IntegrityError as e:
        raise RemoteConstraintError(str(e.orig)) from e
    except (OperationalError, InterfaceError) as e:
        raise TransportError(str(e.orig)) from e
    except DBAPIError as e:
        if e.connection_invalidated:
            raise TransportError(str(e.orig)) from e
        raise RemoteConstraintError(str(e.orig)) from e
    except SQLAlchemyError as e:
        raise RemoteConstraintError(str(e)) from e


class SqlRemoteStore:
    """SQL implementation of RemoteStore.

    Each call outside a transaction runs in its own short transaction;
    ``transaction()`` yields a store bound to a single connection.
    """

    def __init__(self, engine: AsyncEngine, *, connection: AsyncConnection | None = None) -> None:
        self._engine = engine
        self._connection = connection

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    @property
    def supports_transactions(self) -> bool:
        return True

    @asynccontextmanager
    async def _connect(self) -> AsyncIterator[AsyncConnection]:
        if self._connection is not None:
            with _translate_errors():
                yield self._connection
            return

        with _translate_errors():
            async with self._engine.begin() as conn:
                yield conn

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["SqlRemoteStore"]:
        """Open an atomic unit of work on one connection."""
        if self._connection is not None:
            yield self
            return

        with _translate_errors():
            async with self._engine.begin() as conn:
                bound = copy.copy(self)
                bound._connection = conn
                yield bound

    def _table(self, name: str) -> Table:
        table = Base.metadata.tables.get(name)
        if table is None:
            raise RemoteConstraintError(f'relation "{name}" does not exist')
        return table

    def _where(self, table: Table, filters: tuple[Eq, ...]) -> list:
        clauses = []
        for f in filters:
            if f.column not in table.c:
                raise RemoteConstraintError(f'column "{f.column}" does not exist on "{table.name}"')
            clauses.append(table.c[f.column] == f.value)
        return clauses

    def _order(self, table: Table) -> list:
        if "position" in table.c:
            return [table.c.position]
        return [table.c.created_at, table.c.id]

    async def _fetch_by_ids(self, conn: AsyncConnection, table: Table, ids: list[str]) -> list[Row]:
        if not ids:
            return []
        result = await conn.execute(select(table).where(table.c.id.in_(ids)))
        by_id = {row.id: dict(row._mapping) for row in result}
        return [by_id[i] for i in ids if i in by_id]

    async def select(self, table: str, *filters: Eq) -> list[Row]:
        """Select rows matching all filters."""
        tbl = self._table(table)
        query = select(tbl).where(*self._where(tbl, filters)).order_by(*self._order(tbl))

        async with self._connect() as conn:
            result = await conn.execute(query)
            return [dict(row._mapping) for row in result]

    async def insert(self, table: str, rows: list[Row]) -> list[Row]:
        """Insert rows; ids are generated client-side when absent."""
        if not rows:
            return []
        tbl = self._table(table)
        prepared = [{**row, "id": row.get("id") or str(uuid.uuid4())} for row in rows]

        async with self._connect() as conn:
            await conn.execute(tbl.insert(), prepared)
            return await self._fetch_by_ids(conn, tbl, [r["id"] for r in prepared])

    async def upsert(self, table: str, rows: list[Row]) -> list[Row]:
        """Insert rows, replacing existing rows with the same id."""
        tbl = self._table(table)
        ids: list[str] = []

        async with self._connect() as conn:
            for row in rows:
                row_id = row.get("id") or str(uuid.uuid4())
                existing = await conn.execute(select(tbl.c.id).where(tbl.c.id == row_id))
                if existing.first() is None:
                    await conn.execute(tbl.insert().values(**{**row, "id": row_id}))
                else:
                    values = {k: v for k, v in row.items() if k != "id"}
                    await conn.execute(update(tbl).where(tbl.c.id == row_id).values(**values))
                ids.append(row_id)
            return await self._fetch_by_ids(conn, tbl, ids)

    async def update(self, table: str, values: Row, *filters: Eq) -> list[Row]:
        """Update matching rows in place."""
        tbl = self._table(table)
        where = self._where(tbl, filters)

        async with self._connect() as conn:
            result = await conn.execute(select(tbl.c.id).where(*where))
            ids = [row.id for row in result]
            if not ids:
                return []
            await conn.execute(update(tbl).where(tbl.c.id.in_(ids)).values(**values))
            return await self._fetch_by_ids(conn, tbl, ids)

    async def delete(self, table: str, *filters: Eq) -> int:
        """Delete matching rows; child rows go through ON DELETE CASCADE."""
        tbl = self._table(table)

        async with self._connect() as conn:
            result = await conn.execute(delete(tbl).where(*self._where(tbl, filters)))
            logger.debug("Deleted %d rows from %s", result.rowcount, table)
            return result.rowcount
