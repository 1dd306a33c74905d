"""Supabase/PostgREST implementation of the RemoteStore protocol.

PostgREST has no multi-request transactions, so this store reports
``supports_transactions = False`` and the sync engine falls back to
unguarded delete-then-insert for child collections.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import httpx
from pydantic_core import to_jsonable_python

from pathfinder.db.store import CHILD_TABLES, Eq, Row
from pathfinder.errors import DecodeError, RemoteConstraintError, TransportError

logger = logging.getLogger(__name__)


def _filter_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)


def _params(filters: tuple[Eq, ...]) -> dict[str, str]:
    return {f.column: f"{'is' if f.value is None else 'eq'}.{_filter_value(f.value)}" for f in filters}


class PostgrestRemoteStore:
    """RemoteStore backed by a Supabase REST endpoint."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            base_url: Project URL, e.g. ``https://<ref>.supabase.co``
            api_key: Anon or service key, sent as ``apikey`` and bearer token
            timeout: Per-request timeout in seconds
            client: Optional httpx client (for testing with mocks)
        """
        self._rest_url = base_url.rstrip("/") + "/rest/v1"
        self._headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @property
    def supports_transactions(self) -> bool:
        return False

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["PostgrestRemoteStore"]:
        # No atomicity available over plain REST calls
        yield self

    async def _request(
        self,
        method: str,
        table: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> list[Row]:
        headers = dict(self._headers)
        if prefer:
            headers["Prefer"] = prefer

        try:
            response = await self._client.request(
                method,
                f"{self._rest_url}/{table}",
                params=params,
                json=to_jsonable_python(json) if json is not None else None,
                headers=headers,
            )
        except httpx.HTTPError as e:
            raise TransportError(f"{method} {table}: {e}") from e

        if response.status_code >= 500:
            raise TransportError(f"{method} {table}: HTTP {response.status_code} {response.text}")
        if response.status_code >= 400:
            # Surface the store's own message untouched
            raise RemoteConstraintError(response.text)

        if not response.content:
            return []
        try:
            data = response.json()
        except ValueError as e:
            raise DecodeError(table, f"response is not JSON: {response.text[:200]}") from e
        if not isinstance(data, list):
            raise DecodeError(table, f"expected a JSON array, got {type(data).__name__}")
        return data

    async def select(self, table: str, *filters: Eq) -> list[Row]:
        """Select rows matching all filters."""
        params = {"select": "*", **_params(filters)}
        params["order"] = "position.asc" if table in CHILD_TABLES else "created_at.asc"
        return await self._request("GET", table, params=params)

    async def insert(self, table: str, rows: list[Row]) -> list[Row]:
        """Insert rows and return their stored representation."""
        if not rows:
            return []
        return await self._request("POST", table, json=rows, prefer="return=representation")

    async def upsert(self, table: str, rows: list[Row]) -> list[Row]:
        """Insert rows, merging on primary key conflicts."""
        if not rows:
            return []
        return await self._request(
            "POST",
            table,
            json=rows,
            prefer="resolution=merge-duplicates,return=representation",
        )

    async def update(self, table: str, values: Row, *filters: Eq) -> list[Row]:
        """Update matching rows in place."""
        return await self._request(
            "PATCH", table, params=_params(filters), json=values, prefer="return=representation"
        )

    async def delete(self, table: str, *filters: Eq) -> int:
        """Delete matching rows; the database cascades to child tables."""
        deleted = await self._request(
            "DELETE", table, params=_params(filters), prefer="return=representation"
        )
        logger.debug("Deleted %d rows from %s", len(deleted), table)
        return len(deleted)
