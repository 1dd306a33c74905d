"""Test adventure model validators and invariants."""

import pytest
from pydantic import ValidationError

from pathfinder.errors import InvariantViolation, ItineraryValidationError
from pathfinder.models import Adventure, Geo, PlaceCandidate, PlaceType, Stop, validate_stops


def _stop(name: str, nights: int = 1, start: bool = False, price: int = 0) -> Stop:
    return Stop(
        name=name,
        coordinate=Geo(lat=50.0, lon=10.0),
        nights=nights,
        is_start_point=start,
        price_per_night=price,
    )


def test_validate_stops_accepts_sample(sample_stops: list[Stop]) -> None:
    """Test that a well-formed itinerary passes."""
    validate_stops(sample_stops)


def test_validate_stops_accepts_empty_and_no_start_point() -> None:
    """Test that zero start points is allowed."""
    validate_stops([])
    validate_stops([_stop("A"), _stop("B")])


def test_validate_stops_two_start_points_fails() -> None:
    """Test that more than one start point is rejected."""
    with pytest.raises(InvariantViolation, match="At most one start point"):
        validate_stops([_stop("A", start=True), _stop("B"), _stop("C", start=True)])


def test_validate_stops_zero_nights_fails() -> None:
    """Test that nights < 1 is rejected."""
    with pytest.raises(InvariantViolation, match="nights must be >= 1"):
        validate_stops([_stop("A", nights=0)])


def test_validate_stops_negative_price_fails() -> None:
    """Test that a negative nightly price is rejected."""
    with pytest.raises(InvariantViolation, match="price_per_night must be >= 0"):
        validate_stops([_stop("A", price=-5)])


def test_invariant_violation_is_validation_error() -> None:
    """Test the error taxonomy: invariant failures are validation errors."""
    assert issubclass(InvariantViolation, ItineraryValidationError)


def test_geo_out_of_range_fails() -> None:
    """Test that coordinates outside WGS84 bounds fail validation."""
    with pytest.raises(ValidationError):
        Geo(lat=91.0, lon=0.0)
    with pytest.raises(ValidationError):
        Geo(lat=0.0, lon=-181.0)


def test_stop_from_place_is_never_start_point() -> None:
    """Test building a stop from a search result."""
    candidate = PlaceCandidate(
        display_name="Lisbon", lat=38.7223, lon=-9.1393, place_type=PlaceType.city
    )

    stop = Stop.from_place(candidate, nights=3, hotel_name="Memmo Alfama", price_per_night=140)

    assert stop.id is None
    assert stop.name == "Lisbon"
    assert stop.coordinate == Geo(lat=38.7223, lon=-9.1393)
    assert stop.nights == 3
    assert stop.is_start_point is False
    assert stop.price_per_night == 140


def test_adventure_defaults() -> None:
    """Test that a minimal adventure gets sensible defaults."""
    adventure = Adventure(name="Weekend")

    assert adventure.id is None
    assert adventure.color == "#FF6B35"
    assert adventure.difficulty.value == "Easy"
    assert adventure.budget_tier.value == "€€"
    assert adventure.route_data.stops == []
    assert adventure.route_data.total_nights == 0
