"""Per-adventure write exclusion and client-observed record state."""

from collections.abc import Iterator
from contextlib import contextmanager
from enum import Enum

from pathfinder.errors import SaveInProgressError


class RecordState(str, Enum):
    """Lifecycle of one adventure as seen by the client."""

    UNSAVED = "unsaved"
    SAVING = "saving"
    SAVED = "saved"
    EDITING = "editing"
    DELETING = "deleting"
    DELETED = "deleted"


class InFlightGuard:
    """Mutual exclusion keyed by adventure id.

    A second write for an id that is already in flight is rejected with
    ``SaveInProgressError``; writes for other ids are unaffected. The
    check-and-claim runs without an ``await`` in between, so it is atomic on
    the event loop.
    """

    def __init__(self) -> None:
        self._in_flight: dict[str, str] = {}

    @property
    def busy(self) -> bool:
        return bool(self._in_flight)

    def operation_for(self, adventure_id: str) -> str | None:
        return self._in_flight.get(adventure_id)

    @contextmanager
    def hold(self, adventure_id: str, operation: str) -> Iterator[None]:
        """Claim ``adventure_id`` for the duration of the block.

        Raises:
            SaveInProgressError: If another operation holds the id
        """
        current = self._in_flight.get(adventure_id)
        if current is not None:
            raise SaveInProgressError(adventure_id, current)

        self._in_flight[adventure_id] = operation
        try:
            yield
        finally:
            del self._in_flight[adventure_id]
