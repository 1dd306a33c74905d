"""Derived itinerary totals.

``RouteData`` persists ``total_nights`` and ``total_cost`` as a snapshot. The
nights snapshot is always re-derived from the stops before it is written.
``total_cost`` is supplied by the caller (it may include flights or extras) and
is only compared against the lodging cost implied by the stops; mismatches are
reported, never corrected.
"""

from collections.abc import Sequence
from dataclasses import dataclass

from pathfinder.models.adventure import RouteData, Stop


@dataclass(frozen=True)
class AggregateDivergence:
    """Stored snapshot value that differs from the value derived from stops."""

    field: str
    stored: int
    derived: int


def total_nights(stops: Sequence[Stop]) -> int:
    """Sum of nights over all stops."""
    return sum(stop.nights for stop in stops)


def lodging_cost(stops: Sequence[Stop]) -> int:
    """Sum of ``price_per_night * nights`` over all stops."""
    return sum(stop.price_per_night * stop.nights for stop in stops)


def find_divergences(route_data: RouteData) -> list[AggregateDivergence]:
    """Compare the stored totals with what the stops imply.

    Args:
        route_data: Route snapshot to inspect

    Returns:
        One entry per diverging field, empty when both totals agree
    """
    divergences: list[AggregateDivergence] = []

    derived_nights = total_nights(route_data.stops)
    if route_data.total_nights != derived_nights:
        divergences.append(
            AggregateDivergence(
                field="total_nights", stored=route_data.total_nights, derived=derived_nights
            )
        )

    derived_cost = lodging_cost(route_data.stops)
    if route_data.total_cost != derived_cost:
        divergences.append(
            AggregateDivergence(field="total_cost", stored=route_data.total_cost, derived=derived_cost)
        )

    return divergences


def refresh_route_totals(route_data: RouteData) -> RouteData:
    """Return a copy with ``total_nights`` re-derived from the stops."""
    return route_data.model_copy(update={"total_nights": total_nights(route_data.stops)})
