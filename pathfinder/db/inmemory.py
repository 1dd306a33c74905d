"""In-memory implementation of the RemoteStore protocol.

Behaves like the relational schema in ``pathfinder.db.models``: NOT NULL
columns, foreign keys to ``adventures`` and ``ON DELETE CASCADE``. Used for
tests and local development.
"""

import asyncio
import copy
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from pathfinder.db.store import (
    ADVENTURE_BADGES,
    ADVENTURE_FLIGHTS,
    ADVENTURE_PLACES,
    ADVENTURES,
    CHILD_TABLES,
    PARENT_COLUMN,
    Eq,
    Row,
)
from pathfinder.errors import RemoteConstraintError

# Columns that must be present and non-null on insert
REQUIRED_COLUMNS: dict[str, tuple[str, ...]] = {
    ADVENTURES: ("name",),
    ADVENTURE_FLIGHTS: (PARENT_COLUMN, "position", "route", "date", "duration", "price"),
    ADVENTURE_PLACES: (
        PARENT_COLUMN,
        "position",
        "name",
        "latitude",
        "longitude",
        "nights",
        "is_start_point",
    ),
    ADVENTURE_BADGES: (PARENT_COLUMN, "position", "badge_emoji"),
}


def _matches(row: Row, filters: tuple[Eq, ...]) -> bool:
    return all(f.matches(row) for f in filters)


class InMemoryRemoteStore:
    """In-memory implementation of RemoteStore.

    Every public call takes the store lock, so a transaction sees no
    interleaved writes; a failed transaction restores the snapshot taken when
    it began.
    """

    def __init__(self, *, transactional: bool = True) -> None:
        """Initialize the store.

        Args:
            transactional: If False, ``transaction()`` gives no atomicity,
                like a plain REST backend
        """
        self._transactional = transactional
        self._tables: dict[str, list[Row]] = {name: [] for name in REQUIRED_COLUMNS}
        self._lock = asyncio.Lock()

    @property
    def supports_transactions(self) -> bool:
        return self._transactional

    async def select(self, table: str, *filters: Eq) -> list[Row]:
        """Select rows matching all filters."""
        async with self._lock:
            return self._select(table, filters)

    async def insert(self, table: str, rows: list[Row]) -> list[Row]:
        """Insert rows."""
        async with self._lock:
            return self._insert(table, rows)

    async def upsert(self, table: str, rows: list[Row]) -> list[Row]:
        """Insert rows, replacing existing rows with the same id."""
        async with self._lock:
            return self._upsert(table, rows)

    async def update(self, table: str, values: Row, *filters: Eq) -> list[Row]:
        """Update matching rows in place."""
        async with self._lock:
            return self._update(table, values, filters)

    async def delete(self, table: str, *filters: Eq) -> int:
        """Delete matching rows, cascading to child tables."""
        async with self._lock:
            return self._delete(table, filters)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["InMemoryRemoteStore | _InMemoryTransaction"]:
        """Open an atomic unit of work."""
        if not self._transactional:
            yield self
            return

        async with self._lock:
            snapshot = copy.deepcopy(self._tables)
            try:
                yield _InMemoryTransaction(self)
            except BaseException:
                self._tables = snapshot
                raise

    # Unlocked operations

    def _rows(self, table: str) -> list[Row]:
        if table not in self._tables:
            raise RemoteConstraintError(f'relation "{table}" does not exist')
        return self._tables[table]

    def _select(self, table: str, filters: tuple[Eq, ...]) -> list[Row]:
        return [dict(row) for row in self._rows(table) if _matches(row, filters)]

    def _check_row(self, table: str, row: Row) -> None:
        for column in REQUIRED_COLUMNS[table]:
            if row.get(column) is None:
                raise RemoteConstraintError(
                    f'null value in column "{column}" of relation "{table}" '
                    "violates not-null constraint"
                )

        if table in CHILD_TABLES:
            parent_ids = {r["id"] for r in self._tables[ADVENTURES]}
            if row[PARENT_COLUMN] not in parent_ids:
                raise RemoteConstraintError(
                    f'insert or update on table "{table}" violates foreign key constraint '
                    f'"{table}_{PARENT_COLUMN}_fkey"'
                )

    def _insert(self, table: str, rows: list[Row]) -> list[Row]:
        existing = self._rows(table)
        existing_ids = {r["id"] for r in existing}
        now = datetime.now(UTC)

        # Validate everything before writing anything
        prepared: list[Row] = []
        for row in rows:
            self._check_row(table, row)
            new_row = dict(row)
            new_row.setdefault("id", str(uuid.uuid4()))
            if new_row["id"] in existing_ids:
                raise RemoteConstraintError(
                    f'duplicate key value violates unique constraint "{table}_pkey"'
                )
            existing_ids.add(new_row["id"])
            new_row.setdefault("created_at", now)
            if table == ADVENTURES:
                new_row.setdefault("updated_at", now)
            prepared.append(new_row)

        existing.extend(prepared)
        return [dict(row) for row in prepared]

    def _upsert(self, table: str, rows: list[Row]) -> list[Row]:
        existing = self._rows(table)
        by_id = {r["id"]: r for r in existing}
        result: list[Row] = []

        for row in rows:
            current = by_id.get(row.get("id"))
            if current is None:
                result.extend(self._insert(table, [row]))
                continue
            merged = {**current, **row}
            self._check_row(table, merged)
            if table == ADVENTURES:
                merged["updated_at"] = datetime.now(UTC)
            current.clear()
            current.update(merged)
            result.append(dict(current))

        return result

    def _update(self, table: str, values: Row, filters: tuple[Eq, ...]) -> list[Row]:
        matched = [row for row in self._rows(table) if _matches(row, filters)]
        for row in matched:
            self._check_row(table, {**row, **values})
        for row in matched:
            row.update(values)
        return [dict(row) for row in matched]

    def _delete(self, table: str, filters: tuple[Eq, ...]) -> int:
        rows = self._rows(table)
        doomed = [row for row in rows if _matches(row, filters)]
        self._tables[table] = [row for row in rows if not _matches(row, filters)]

        if table == ADVENTURES and doomed:
            parent_ids = {row["id"] for row in doomed}
            for child in CHILD_TABLES:
                self._tables[child] = [
                    row for row in self._tables[child] if row[PARENT_COLUMN] not in parent_ids
                ]

        return len(doomed)


class _InMemoryTransaction:
    """Store handle bound to an open in-memory transaction."""

    def __init__(self, store: InMemoryRemoteStore) -> None:
        self._store = store

    @property
    def supports_transactions(self) -> bool:
        return True

    async def select(self, table: str, *filters: Eq) -> list[Row]:
        return self._store._select(table, filters)

    async def insert(self, table: str, rows: list[Row]) -> list[Row]:
        return self._store._insert(table, rows)

    async def upsert(self, table: str, rows: list[Row]) -> list[Row]:
        return self._store._upsert(table, rows)

    async def update(self, table: str, values: Row, *filters: Eq) -> list[Row]:
        return self._store._update(table, values, filters)

    async def delete(self, table: str, *filters: Eq) -> int:
        return self._store._delete(table, filters)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["_InMemoryTransaction"]:
        # Already inside one
        yield self
