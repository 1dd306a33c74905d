"""Tests for map viewport fitting."""

import random

import pytest

from pathfinder.itinerary.viewport import MIN_SPAN_DEGREES, fit_stops, fit_viewport
from pathfinder.models import Geo, Stop


def test_two_cities() -> None:
    """Test Paris + Rome: center at the midpoint, padded span."""
    viewport = fit_viewport([Geo(lat=48.8566, lon=2.3522), Geo(lat=41.9028, lon=12.4964)])

    assert viewport.center.lat == pytest.approx(45.3797)
    assert viewport.center.lon == pytest.approx(7.4243)
    assert viewport.span.lat_delta == pytest.approx((48.8566 - 41.9028) * 1.5)
    assert viewport.span.lon_delta == pytest.approx((12.4964 - 2.3522) * 1.5)
    assert viewport.span.lat_delta == pytest.approx(10.43, abs=0.01)
    assert viewport.span.lon_delta == pytest.approx(15.22, abs=0.01)


def test_single_point_floors_span() -> None:
    """Test that one coordinate gives the minimum span on both axes."""
    viewport = fit_viewport([Geo(lat=50.0, lon=10.0)])

    assert viewport.center == Geo(lat=50.0, lon=10.0)
    assert viewport.span.lat_delta == 5.0
    assert viewport.span.lon_delta == 5.0


def test_identical_points_floor_span() -> None:
    viewport = fit_viewport([Geo(lat=1.0, lon=2.0)] * 3)
    assert viewport.span.lat_delta == MIN_SPAN_DEGREES
    assert viewport.span.lon_delta == MIN_SPAN_DEGREES


def test_narrow_axis_floors_independently() -> None:
    """Test that only the narrow axis is floored."""
    viewport = fit_viewport([Geo(lat=10.0, lon=0.0), Geo(lat=10.5, lon=20.0)])

    assert viewport.span.lat_delta == 5.0
    assert viewport.span.lon_delta == pytest.approx(30.0)


def test_empty_input_raises() -> None:
    with pytest.raises(ValueError, match="empty"):
        fit_viewport([])


def test_fit_stops_uses_stop_coordinates(sample_stops: list[Stop]) -> None:
    viewport = fit_stops(sample_stops)

    for stop in sample_stops:
        assert viewport.contains(stop.coordinate)


def test_viewport_contains_every_input_point() -> None:
    """Property: the fitted rectangle contains all inputs (fixed seeds)."""
    for seed in range(50):
        rng = random.Random(seed)
        points = [
            Geo(lat=rng.uniform(-80, 80), lon=rng.uniform(-170, 170))
            for _ in range(rng.randint(1, 12))
        ]

        viewport = fit_viewport(points)

        for point in points:
            assert viewport.contains(point), f"seed {seed}: {point} outside {viewport}"
        assert viewport.span.lat_delta >= MIN_SPAN_DEGREES
        assert viewport.span.lon_delta >= MIN_SPAN_DEGREES


def test_contains_rejects_far_point() -> None:
    viewport = fit_viewport([Geo(lat=50.0, lon=10.0)])
    assert not viewport.contains(Geo(lat=60.0, lon=10.0))
