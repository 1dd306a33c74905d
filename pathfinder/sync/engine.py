"""Adventure synchronization against a remote store.

Writes use full-replace semantics for child collections: on edit every
flight, stop and badge row of the adventure is deleted and the complete new
collection is inserted.

When the store supports transactions (and ``atomic_writes`` is on) a whole
create or edit runs in one transaction, so a failure leaves the remote data
exactly as it was. Without transactions the steps run one by one; a failure
after the parent row was written raises ``PartialSyncError`` and the remote
adventure may be left with an empty or missing child collection until the
next successful save. Local state is never touched by a failed write.
"""

import logging
import time
import uuid
from collections.abc import Awaitable
from datetime import UTC, datetime
from typing import NamedTuple, TypeVar

from pathfinder.config import Settings
from pathfinder.db.store import (
    ADVENTURE_BADGES,
    ADVENTURE_FLIGHTS,
    ADVENTURE_PLACES,
    ADVENTURES,
    PARENT_COLUMN,
    Eq,
    RemoteStore,
    Row,
)
from pathfinder.db.wire import (
    adventure_from_rows,
    adventure_to_row,
    badges_to_rows,
    flights_to_rows,
    stops_to_rows,
)
from pathfinder.errors import (
    AdventureNotFoundError,
    DecodeError,
    PartialSyncError,
    RemoteStoreError,
)
from pathfinder.itinerary.aggregates import find_divergences, refresh_route_totals
from pathfinder.models.adventure import Adventure, Flight, RouteData, Stop, validate_stops
from pathfinder.sync.guard import InFlightGuard, RecordState
from pathfinder.utils.logging import StructuredSyncLogger
from pathfinder.utils.metrics import PrometheusSyncMetrics

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Child collections in write order: (name, table)
CHILD_COLLECTIONS: tuple[tuple[str, str], ...] = (
    ("flights", ADVENTURE_FLIGHTS),
    ("stops", ADVENTURE_PLACES),
    ("badges", ADVENTURE_BADGES),
)


class SyncResult(NamedTuple):
    """Saved adventure plus its children, with store-assigned ids."""

    adventure: Adventure
    stops: list[Stop]
    flights: list[Flight]
    badges: list[str]


class SyncEngine:
    """Creates, edits, deletes and loads adventures through a RemoteStore.

    Holds the authoritative local adventure list. It is only changed after a
    remote call has completed successfully.
    """

    def __init__(
        self,
        store: RemoteStore,
        settings: Settings | None = None,
        *,
        current_user_id: str | None = None,
        metrics: PrometheusSyncMetrics | None = None,
        sync_logger: StructuredSyncLogger | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            store: Remote store, constructed once by the application
            settings: Settings (defaults apply when omitted)
            current_user_id: Recorded as ``created_by`` on new adventures
            metrics: Metrics sink
            sync_logger: Structured step logger
        """
        self._store = store
        self._settings = settings or Settings()
        self._current_user_id = current_user_id
        self._metrics = metrics or PrometheusSyncMetrics()
        self._sync_logger = sync_logger or StructuredSyncLogger()
        self._guard = InFlightGuard()
        self._adventures: dict[str, Adventure] = {}
        self._states: dict[str, RecordState] = {}

    # Local state

    @property
    def adventures(self) -> list[Adventure]:
        return list(self._adventures.values())

    @property
    def is_busy(self) -> bool:
        """Advisory flag for the UI: some write is in flight."""
        return self._guard.busy

    @property
    def atomic(self) -> bool:
        return self._settings.atomic_writes and self._store.supports_transactions

    def get(self, adventure_id: str) -> Adventure | None:
        return self._adventures.get(adventure_id)

    def state_of(self, adventure_id: str) -> RecordState:
        return self._states.get(adventure_id, RecordState.UNSAVED)

    def begin_editing(self, adventure_id: str) -> None:
        """Mark a saved adventure as being edited locally."""
        if adventure_id not in self._adventures:
            raise AdventureNotFoundError(adventure_id)
        if self.state_of(adventure_id) == RecordState.SAVED:
            self._states[adventure_id] = RecordState.EDITING

    # Writes

    async def create(
        self,
        adventure: Adventure,
        stops: list[Stop],
        flights: list[Flight],
        badges: list[str],
    ) -> SyncResult:
        """Insert a new adventure and its child collections.

        Raises:
            InvariantViolation: Invalid stops (nothing is sent)
            SaveInProgressError: A write for the same id is in flight
            RemoteStoreError: The parent insert failed, or the atomic create
                was rolled back
            PartialSyncError: Parent inserted, then a child insert failed or
                the returned rows could not be decoded
        """
        validate_stops(stops)
        adventure_id = adventure.id or str(uuid.uuid4())
        draft = self._prepare(adventure, adventure_id, stops, flights, badges)

        with self._guard.hold(adventure_id, "create"):
            previous = self.state_of(adventure_id)
            self._states[adventure_id] = RecordState.SAVING
            start = time.perf_counter()
            try:
                if self.atomic:
                    async with self._store.transaction() as tx:
                        result = await self._insert_all(tx, draft, stops, flights, badges)
                else:
                    result = await self._insert_all(self._store, draft, stops, flights, badges)
            except Exception as e:
                self._states[adventure_id] = previous
                self._record_failure("create", e, start)
                raise

            saved_id = result.adventure.id
            assert saved_id is not None
            if saved_id != adventure_id:
                self._states.pop(adventure_id, None)
            self._adventures[saved_id] = result.adventure
            self._states[saved_id] = RecordState.SAVED
            self._metrics.record_latency("create", "success", _elapsed_ms(start))
            logger.info("Created adventure %s (%s)", saved_id, result.adventure.name)
            return result

    async def edit(
        self,
        adventure_id: str,
        adventure: Adventure,
        stops: list[Stop],
        flights: list[Flight],
        badges: list[str],
    ) -> SyncResult:
        """Update the parent row and replace every child collection.

        Raises:
            InvariantViolation: Invalid stops (nothing is sent)
            SaveInProgressError: A write for the same id is in flight
            AdventureNotFoundError: No parent row with this id
            RemoteStoreError: The parent update failed, or the atomic edit
                was rolled back
            PartialSyncError: Parent updated, then a child collection failed or
                the returned rows could not be decoded
        """
        validate_stops(stops)
        draft = self._prepare(adventure, adventure_id, stops, flights, badges)

        with self._guard.hold(adventure_id, "edit"):
            previous = self.state_of(adventure_id)
            self._states[adventure_id] = RecordState.SAVING
            start = time.perf_counter()
            try:
                if self.atomic:
                    async with self._store.transaction() as tx:
                        result = await self._replace_all(tx, draft, stops, flights, badges)
                else:
                    result = await self._replace_all(self._store, draft, stops, flights, badges)
            except Exception as e:
                self._states[adventure_id] = previous
                self._record_failure("edit", e, start)
                raise

            self._adventures[adventure_id] = result.adventure
            self._states[adventure_id] = RecordState.SAVED
            self._metrics.record_latency("edit", "success", _elapsed_ms(start))
            logger.info("Edited adventure %s (%s)", adventure_id, result.adventure.name)
            return result

    async def delete(self, adventure_id: str) -> None:
        """Delete an adventure; the store cascades to its children.

        Deleting an id that does not exist is a no-op.
        """
        with self._guard.hold(adventure_id, "delete"):
            previous = self.state_of(adventure_id)
            self._states[adventure_id] = RecordState.DELETING
            start = time.perf_counter()
            try:
                deleted = await self._step(
                    adventure_id,
                    "delete",
                    "delete_adventure",
                    self._store.delete(ADVENTURES, Eq("id", adventure_id)),
                )
            except Exception as e:
                self._states[adventure_id] = previous
                self._record_failure("delete", e, start)
                raise

            if deleted == 0:
                logger.info("Adventure %s already absent, nothing deleted", adventure_id)
            self._adventures.pop(adventure_id, None)
            self._states[adventure_id] = RecordState.DELETED
            self._metrics.record_latency("delete", "success", _elapsed_ms(start))

    # Reads

    async def fetch_full(self, adventure_id: str) -> Adventure:
        """Load one adventure with all child collections.

        Raises:
            AdventureNotFoundError: No parent row with this id
            DecodeError: A row does not match the wire schema
        """
        rows = await self._step(
            adventure_id, "fetch", "select_adventure", self._store.select(ADVENTURES, Eq("id", adventure_id))
        )
        if not rows:
            raise AdventureNotFoundError(adventure_id)

        adventure = await self._hydrate(rows[0])
        if self._guard.operation_for(adventure_id) is None:
            self._adventures[adventure_id] = adventure
            self._states[adventure_id] = RecordState.SAVED
        return adventure

    async def fetch_all(self) -> list[Adventure]:
        """Load every adventure and replace the local list with the result."""
        start = time.perf_counter()
        try:
            rows = await self._step("*", "fetch_all", "select_adventures", self._store.select(ADVENTURES))
            adventures = [await self._hydrate(row) for row in rows]
        except Exception as e:
            self._record_failure("fetch_all", e, start)
            raise

        # Ids with a write in flight keep their local entry and state
        in_flight = {k for k in self._states if self._guard.operation_for(k) is not None}
        fetched = {a.id: a for a in adventures if a.id is not None and a.id not in in_flight}

        states = {k: v for k, v in self._states.items() if k in in_flight or v == RecordState.DELETED}
        for adventure_id in fetched:
            editing = self._states.get(adventure_id) == RecordState.EDITING
            states[adventure_id] = RecordState.EDITING if editing else RecordState.SAVED

        self._adventures = {
            **fetched,
            **{k: v for k, v in self._adventures.items() if k in in_flight},
        }
        self._states = states
        self._metrics.record_latency("fetch_all", "success", _elapsed_ms(start))
        logger.info("Fetched %d adventures", len(adventures))
        return adventures

    # Internals

    def _prepare(
        self,
        adventure: Adventure,
        adventure_id: str,
        stops: list[Stop],
        flights: list[Flight],
        badges: list[str],
    ) -> Adventure:
        route_data = refresh_route_totals(
            RouteData(
                flights=flights,
                stops=stops,
                badges=badges,
                total_cost=adventure.route_data.total_cost,
                total_nights=adventure.route_data.total_nights,
            )
        )
        for divergence in find_divergences(route_data):
            logger.warning(
                "Adventure %s: stored %s=%d differs from stop-derived value %d",
                adventure_id,
                divergence.field,
                divergence.stored,
                divergence.derived,
            )

        return adventure.model_copy(
            update={
                "id": adventure_id,
                "route_data": route_data,
                "created_by": adventure.created_by or self._current_user_id,
            }
        )

    def _child_rows(
        self, adventure_id: str, stops: list[Stop], flights: list[Flight], badges: list[str]
    ) -> dict[str, list[Row]]:
        return {
            "flights": flights_to_rows(adventure_id, flights),
            "stops": stops_to_rows(adventure_id, stops),
            "badges": badges_to_rows(adventure_id, badges),
        }

    async def _insert_all(
        self,
        store: RemoteStore,
        draft: Adventure,
        stops: list[Stop],
        flights: list[Flight],
        badges: list[str],
    ) -> SyncResult:
        assert draft.id is not None
        parent_rows = await self._step(
            draft.id, "create", "insert_adventure", store.insert(ADVENTURES, [adventure_to_row(draft)])
        )
        parent = parent_rows[0]
        adventure_id = parent["id"]

        child_rows = self._child_rows(adventure_id, stops, flights, badges)
        saved: dict[str, list[Row]] = {}
        for collection, table in CHILD_COLLECTIONS:
            try:
                saved[collection] = await self._step(
                    adventure_id, "create", f"insert_{collection}", store.insert(table, child_rows[collection])
                )
            except RemoteStoreError as e:
                if self.atomic:
                    raise
                raise PartialSyncError(adventure_id, collection, e) from e

        return self._result(adventure_id, parent, saved)

    async def _replace_all(
        self,
        store: RemoteStore,
        draft: Adventure,
        stops: list[Stop],
        flights: list[Flight],
        badges: list[str],
    ) -> SyncResult:
        assert draft.id is not None
        adventure_id = draft.id

        values = adventure_to_row(draft)
        del values["id"]
        if values["created_by"] is None:
            del values["created_by"]
        values["updated_at"] = datetime.now(UTC)

        updated = await self._step(
            adventure_id, "edit", "update_adventure", store.update(ADVENTURES, values, Eq("id", adventure_id))
        )
        if not updated:
            raise AdventureNotFoundError(adventure_id)

        child_rows = self._child_rows(adventure_id, stops, flights, badges)
        saved: dict[str, list[Row]] = {}
        for collection, table in CHILD_COLLECTIONS:
            emptied = False
            try:
                await self._step(
                    adventure_id, "edit", f"delete_{collection}", store.delete(table, Eq(PARENT_COLUMN, adventure_id))
                )
                emptied = True
                saved[collection] = await self._step(
                    adventure_id, "edit", f"insert_{collection}", store.insert(table, child_rows[collection])
                )
            except RemoteStoreError as e:
                if self.atomic:
                    raise
                raise PartialSyncError(adventure_id, collection, e, emptied=emptied) from e

        return self._result(adventure_id, updated[0], saved)

    async def _hydrate(self, parent: Row) -> Adventure:
        adventure_id = parent["id"]
        children: dict[str, list[Row]] = {}
        for collection, table in CHILD_COLLECTIONS:
            children[collection] = await self._step(
                adventure_id, "fetch", f"select_{collection}", self._store.select(table, Eq(PARENT_COLUMN, adventure_id))
            )
        return adventure_from_rows(parent, children["flights"], children["stops"], children["badges"])

    def _result(self, adventure_id: str, parent: Row, saved: dict[str, list[Row]]) -> SyncResult:
        try:
            adventure = adventure_from_rows(parent, saved["flights"], saved["stops"], saved["badges"])
        except DecodeError as e:
            if self.atomic:
                raise
            # Every row was written; only the returned representation is unusable
            raise PartialSyncError(adventure_id, "response", e) from e
        return SyncResult(
            adventure=adventure,
            stops=adventure.route_data.stops,
            flights=adventure.route_data.flights,
            badges=adventure.route_data.badges,
        )

    async def _step(self, adventure_id: str, operation: str, step: str, call: Awaitable[T]) -> T:
        """Await one store round trip, logging its outcome."""
        start = time.perf_counter()
        try:
            result = await call
        except Exception as e:
            self._sync_logger.log_step(
                adventure_id, operation, step, "error", _elapsed_ms(start), error_reason=str(e)
            )
            raise

        rows = len(result) if isinstance(result, list) else result if isinstance(result, int) else None
        self._sync_logger.log_step(adventure_id, operation, step, "success", _elapsed_ms(start), rows=rows)
        return result

    def _record_failure(self, operation: str, error: Exception, start: float) -> None:
        reason = type(error).__name__
        self._metrics.record_latency(operation, "error", _elapsed_ms(start))
        self._metrics.inc_error(operation, reason)
        if isinstance(error, PartialSyncError):
            self._metrics.inc_partial(error.collection)
            logger.error(
                "Partial sync of adventure %s: '%s' failed%s; re-fetch before further edits",
                error.adventure_id,
                error.collection,
                " after its rows were deleted" if error.emptied else "",
            )
        else:
            logger.warning("Sync %s failed: %s", operation, error)


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000
