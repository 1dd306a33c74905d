"""Tests for derived itinerary totals."""

from pathfinder.itinerary.aggregates import (
    AggregateDivergence,
    find_divergences,
    lodging_cost,
    refresh_route_totals,
    total_nights,
)
from pathfinder.models import RouteData, Stop


def test_total_nights_sums_stops(sample_stops: list[Stop]) -> None:
    """Test nights [3, 4, 3, 2] add up to 12."""
    assert total_nights(sample_stops) == 12


def test_total_nights_empty_is_zero() -> None:
    assert total_nights([]) == 0


def test_lodging_cost(sample_stops: list[Stop]) -> None:
    """Test price_per_night * nights summed over stops."""
    # 3*180 + 4*150 + 3*160 + 2*120
    assert lodging_cost(sample_stops) == 1860


def test_find_divergences_reports_both_fields(sample_stops: list[Stop]) -> None:
    """Test that stored totals are compared, not reconciled."""
    route = RouteData(stops=sample_stops, total_cost=2450, total_nights=10)

    divergences = find_divergences(route)

    assert AggregateDivergence(field="total_nights", stored=10, derived=12) in divergences
    assert AggregateDivergence(field="total_cost", stored=2450, derived=1860) in divergences
    # Input untouched
    assert route.total_nights == 10
    assert route.total_cost == 2450


def test_find_divergences_empty_when_consistent(sample_stops: list[Stop]) -> None:
    route = RouteData(stops=sample_stops, total_cost=1860, total_nights=12)
    assert find_divergences(route) == []


def test_refresh_route_totals_only_touches_nights(sample_stops: list[Stop]) -> None:
    """Test that refresh re-derives nights and keeps the caller's cost."""
    route = RouteData(stops=sample_stops, total_cost=999, total_nights=0)

    refreshed = refresh_route_totals(route)

    assert refreshed.total_nights == 12
    assert refreshed.total_cost == 999
    assert route.total_nights == 0
