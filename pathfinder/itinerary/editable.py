"""In-memory editing of one adventure's ordered stops.

All operations are synchronous and keep the stop invariants intact: at most
one start point, ``nights >= 1``. Stops are copied on the way in and out, so
callers never share mutable state with the itinerary.
"""

from collections.abc import Iterable

from pathfinder.errors import InvalidValue
from pathfinder.itinerary.aggregates import total_nights
from pathfinder.models.adventure import Stop, validate_stops


class EditableItinerary:
    """Ordered stop list with invariant-preserving edit operations."""

    def __init__(self, stops: Iterable[Stop] | None = None) -> None:
        self._stops: list[Stop] = [s.model_copy(deep=True) for s in stops or []]

    @classmethod
    def from_stops(cls, stops: Iterable[Stop]) -> "EditableItinerary":
        """Build an itinerary from existing stops, rejecting invalid input.

        Raises:
            InvariantViolation: If the stops break a model invariant
        """
        itinerary = cls(stops)
        itinerary.validate()
        return itinerary

    def __len__(self) -> int:
        return len(self._stops)

    @property
    def stops(self) -> list[Stop]:
        return [s.model_copy(deep=True) for s in self._stops]

    @property
    def start_point(self) -> Stop | None:
        for stop in self._stops:
            if stop.is_start_point:
                return stop.model_copy(deep=True)
        return None

    @property
    def total_nights(self) -> int:
        return total_nights(self._stops)

    def validate(self) -> None:
        validate_stops(self._stops)

    def insert_after(self, index: int, stop: Stop) -> int:
        """Insert ``stop`` right after ``index``, clamped to the list bounds.

        The new stop is inserted as given; it is never promoted to start point.

        Returns:
            Position the stop was inserted at
        """
        position = max(0, min(index + 1, len(self._stops)))
        self._stops.insert(position, stop.model_copy(deep=True))
        return position

    def remove_at(self, index: int) -> Stop:
        """Remove and return the stop at ``index``.

        Removing the start point leaves the itinerary without one.
        """
        self._check_index(index)
        return self._stops.pop(index)

    def set_nights(self, index: int, nights: int) -> None:
        self._check_index(index)
        if nights < 1:
            raise InvalidValue(f"nights must be >= 1, got {nights}")
        self._stops[index] = self._stops[index].model_copy(update={"nights": nights})

    def set_start_point(self, index: int, is_start: bool) -> None:
        """Mark or unmark ``index`` as start point.

        Marking clears the flag on every other stop first.
        """
        self._check_index(index)
        if is_start:
            self._stops = [
                s.model_copy(update={"is_start_point": False}) if s.is_start_point else s
                for s in self._stops
            ]
        self._stops[index] = self._stops[index].model_copy(update={"is_start_point": is_start})

    def reorder(self, from_index: int, to_index: int) -> None:
        """Move one stop to ``to_index``; all other stops keep their relative order."""
        self._check_index(from_index)
        self._check_index(to_index)
        stop = self._stops.pop(from_index)
        self._stops.insert(to_index, stop)

    def day_numbers(self) -> list[int]:
        """First travel day of each stop, derived from position (display only)."""
        days: list[int] = []
        day = 1
        for stop in self._stops:
            days.append(day)
            day += stop.nights
        return days

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._stops):
            raise InvalidValue(f"stop index {index} out of range (0..{len(self._stops) - 1})")
