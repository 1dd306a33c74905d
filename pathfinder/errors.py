"""Error taxonomy for itinerary editing and remote synchronization."""


class PathFinderError(Exception):
    """Base class for all adventure core errors."""

    pass


# Raised before any network call
class ItineraryValidationError(PathFinderError):
    """Local data violates a model rule."""

    pass


class InvariantViolation(ItineraryValidationError):
    """A stop collection breaks a structural invariant."""

    pass


class InvalidValue(ItineraryValidationError):
    """An itinerary operation received an unusable argument."""

    pass


# Remote store failures
class RemoteStoreError(PathFinderError):
    """Base class for failures reported by a remote store."""

    pass


class TransportError(RemoteStoreError):
    """The store could not be reached. Safe to retry."""

    pass


class RemoteConstraintError(RemoteStoreError):
    """The store rejected a write (missing field, foreign key, ...)."""

    pass


class DecodeError(RemoteStoreError):
    """A row returned by the store does not match the wire schema."""

    def __init__(self, table: str, message: str) -> None:
        super().__init__(f"{table}: {message}")
        self.table = table


class PartialSyncError(PathFinderError):
    """A multi-step write stopped after the parent row was written.

    Remote state for ``adventure_id`` is no longer trustworthy; callers
    should re-fetch it before continuing. ``emptied`` is True when the failed
    collection was already deleted remotely and now has no rows.
    """

    def __init__(
        self, adventure_id: str, collection: str, cause: Exception, *, emptied: bool = False
    ) -> None:
        super().__init__(
            f"adventure {adventure_id}: parent saved but '{collection}' failed: {cause}"
        )
        self.adventure_id = adventure_id
        self.collection = collection
        self.cause = cause
        self.emptied = emptied


class AdventureNotFoundError(PathFinderError):
    """No adventure row exists for the given id."""

    def __init__(self, adventure_id: str) -> None:
        super().__init__(f"adventure {adventure_id} not found")
        self.adventure_id = adventure_id


class SaveInProgressError(PathFinderError):
    """Another write for the same adventure is still in flight."""

    def __init__(self, adventure_id: str, operation: str) -> None:
        super().__init__(f"adventure {adventure_id} is busy with '{operation}'")
        self.adventure_id = adventure_id
        self.operation = operation
