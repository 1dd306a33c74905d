"""Adventure models - the trip aggregate and its child entities."""

from collections.abc import Sequence
from datetime import datetime

from pydantic import BaseModel, Field

from pathfinder.errors import InvariantViolation
from pathfinder.models.common import BudgetTier, Difficulty, Geo
from pathfinder.models.places import PlaceCandidate

DEFAULT_COLOR = "#FF6B35"
DEFAULT_IMAGE = "airplane.departure"


class Stop(BaseModel):
    """One destination of an itinerary.

    ``nights`` and ``price_per_night`` are plain ints here; their bounds are
    checked by :func:`validate_stops` so a whole collection can be judged at
    once before it is sent anywhere.
    """

    id: str | None = None
    name: str
    coordinate: Geo
    nights: int = 1
    is_start_point: bool = False
    hotel_name: str = ""
    price_per_night: int = 0

    @classmethod
    def from_place(
        cls,
        candidate: PlaceCandidate,
        *,
        nights: int = 2,
        hotel_name: str = "",
        price_per_night: int = 0,
    ) -> "Stop":
        """Build a new stop from a place search result."""
        return cls(
            name=candidate.display_name,
            coordinate=candidate.geo,
            nights=nights,
            is_start_point=False,
            hotel_name=hotel_name,
            price_per_night=price_per_night,
        )


class Flight(BaseModel):
    """Flight leg attached to an adventure.

    All fields are display strings; ``price`` is not meant for arithmetic.
    """

    id: str | None = None
    route_label: str  # "Berlin → Paris"
    date: str
    duration: str
    price: str


class RouteData(BaseModel):
    """Child collections plus the persisted totals snapshot."""

    flights: list[Flight] = Field(default_factory=list)
    stops: list[Stop] = Field(default_factory=list)
    badges: list[str] = Field(default_factory=list)
    total_cost: int = 0
    total_nights: int = 0


class Adventure(BaseModel):
    """A complete trip plan - aggregate root of the model."""

    id: str | None = None
    name: str
    description: str = ""
    duration_label: str = ""
    difficulty: Difficulty = Difficulty.easy
    budget_tier: BudgetTier = BudgetTier.mid
    image: str = DEFAULT_IMAGE
    color: str = DEFAULT_COLOR
    destinations: list[str] = Field(default_factory=list)
    highlights: list[str] = Field(default_factory=list)
    route_data: RouteData = Field(default_factory=RouteData)
    created_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


def validate_stops(stops: Sequence[Stop]) -> None:
    """Check the structural invariants of one adventure's stops.

    Raises:
        InvariantViolation: more than one start point, ``nights < 1`` or
            ``price_per_night < 0``
    """
    start_points = [i for i, stop in enumerate(stops) if stop.is_start_point]
    if len(start_points) > 1:
        raise InvariantViolation(
            f"At most one start point allowed, found {len(start_points)} at {start_points}"
        )

    for i, stop in enumerate(stops):
        if stop.nights < 1:
            raise InvariantViolation(f"Stop {i} ({stop.name}): nights must be >= 1, got {stop.nights}")
        if stop.price_per_night < 0:
            raise InvariantViolation(
                f"Stop {i} ({stop.name}): price_per_night must be >= 0, got {stop.price_per_night}"
            )
