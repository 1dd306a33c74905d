"""Remote store protocol - table-oriented persistence used by the sync engine."""

from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from typing import Any, Protocol

# Wire rows are plain snake_case dicts
Row = dict[str, Any]

ADVENTURES = "adventures"
ADVENTURE_FLIGHTS = "adventure_flights"
ADVENTURE_PLACES = "adventure_places"
ADVENTURE_BADGES = "adventure_badges"

CHILD_TABLES = (ADVENTURE_FLIGHTS, ADVENTURE_PLACES, ADVENTURE_BADGES)

# Foreign key column carried by every child table
PARENT_COLUMN = "adventure_id"


@dataclass(frozen=True)
class Eq:
    """Equality filter on one column."""

    column: str
    value: Any

    def matches(self, row: Row) -> bool:
        return row.get(self.column) == self.value


class RemoteStore(Protocol):
    """Relational store with per-table CRUD.

    Child tables must cascade-delete on parent delete. Failures are reported as
    ``TransportError`` (connectivity) or ``RemoteConstraintError`` (rejected
    write); rows are returned with store-assigned ``id`` and ``created_at``.
    """

    @property
    def supports_transactions(self) -> bool:
        """Whether :meth:`transaction` gives real atomicity."""
        ...

    async def select(self, table: str, *filters: Eq) -> list[Row]:
        """Select rows matching all filters.

        Args:
            table: Table name
            filters: Equality filters, combined with AND

        Returns:
            Matching rows in insertion order
        """
        ...

    async def insert(self, table: str, rows: list[Row]) -> list[Row]:
        """Insert rows.

        Args:
            table: Table name
            rows: Rows to insert; missing ids are assigned by the store

        Returns:
            Inserted rows including store-assigned columns, in input order
        """
        ...

    async def upsert(self, table: str, rows: list[Row]) -> list[Row]:
        """Insert rows, replacing existing rows with the same id."""
        ...

    async def update(self, table: str, values: Row, *filters: Eq) -> list[Row]:
        """Update matching rows in place.

        Returns:
            Updated rows (empty if nothing matched)
        """
        ...

    async def delete(self, table: str, *filters: Eq) -> int:
        """Delete matching rows.

        Returns:
            Number of rows deleted from ``table`` (cascaded rows not counted)
        """
        ...

    def transaction(self) -> AbstractAsyncContextManager["RemoteStore"]:
        """Open an atomic unit of work.

        The yielded store commits when the block exits normally and rolls back
        when it raises. Stores without transaction support yield themselves
        and give no atomicity.
        """
        ...
