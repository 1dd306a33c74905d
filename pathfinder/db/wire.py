"""Mapping between in-memory models and snake_case wire rows.

Every column is listed explicitly. Decoding goes through typed record models:
a missing column or a value of the wrong type raises ``DecodeError`` instead of
being replaced with a default. Columns that are nullable in the schema map
``null`` to the model default.
"""

from datetime import datetime
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError

from pathfinder.db.store import (
    ADVENTURE_BADGES,
    ADVENTURE_FLIGHTS,
    ADVENTURE_PLACES,
    ADVENTURES,
    PARENT_COLUMN,
    Row,
)
from pathfinder.errors import DecodeError
from pathfinder.models.adventure import (
    DEFAULT_COLOR,
    DEFAULT_IMAGE,
    Adventure,
    Flight,
    RouteData,
    Stop,
)
from pathfinder.models.common import BudgetTier, Difficulty, Geo

# Model attribute -> wire column, for fields whose names differ
ADVENTURE_FIELDS: dict[str, str] = {
    "duration_label": "duration",
    "budget_tier": "budget",
    "color": "color_hex",
}
ROUTE_TOTAL_FIELDS: dict[str, str] = {
    "total_cost": "total_cost",
    "total_nights": "total_nights",
}
FLIGHT_FIELDS: dict[str, str] = {
    "route_label": "route",
}
STOP_FIELDS: dict[str, str] = {
    "coordinate.lat": "latitude",
    "coordinate.lon": "longitude",
}
BADGE_COLUMN = "badge_emoji"


class _Record(BaseModel):
    model_config = ConfigDict(extra="ignore")


class AdventureRecord(_Record):
    """Row of the ``adventures`` table."""

    id: str
    name: str
    description: str | None
    duration: str | None
    difficulty: Difficulty | None
    budget: BudgetTier | None
    image: str | None
    color_hex: str | None
    destinations: list[str] | None
    highlights: list[str] | None
    total_cost: int | None
    total_nights: int | None
    created_by: str | None
    created_at: datetime | None
    updated_at: datetime | None


class _ChildRecord(_Record):
    id: str
    adventure_id: str
    position: int


class FlightRecord(_ChildRecord):
    """Row of the ``adventure_flights`` table."""

    route: str
    date: str
    duration: str
    price: str


class PlaceRecord(_ChildRecord):
    """Row of the ``adventure_places`` table."""

    name: str
    latitude: float
    longitude: float
    nights: int
    is_start_point: bool
    hotel_name: str | None
    price_per_night: int | None


class BadgeRecord(_ChildRecord):
    """Row of the ``adventure_badges`` table."""

    badge_emoji: str


RecordT = TypeVar("RecordT", bound=_Record)
ChildT = TypeVar("ChildT", bound=_ChildRecord)


def _decode(record_type: type[RecordT], table: str, row: Row) -> RecordT:
    try:
        return record_type.model_validate(row)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise DecodeError(table, problems) from e


def _ordered(records: list[ChildT]) -> list[ChildT]:
    return sorted(records, key=lambda r: r.position)


# Encoding


def adventure_to_row(adventure: Adventure) -> Row:
    """Encode the parent row. Store-managed timestamps are left out."""
    data: dict[str, Any] = adventure.model_dump(
        mode="python",
        exclude={"route_data", "created_at", "updated_at"},
    )
    if data["id"] is None:
        del data["id"]
    for model_name, column in ADVENTURE_FIELDS.items():
        data[column] = data.pop(model_name)
    data["difficulty"] = adventure.difficulty.value
    data["budget"] = adventure.budget_tier.value
    for model_name, column in ROUTE_TOTAL_FIELDS.items():
        data[column] = getattr(adventure.route_data, model_name)
    return data


def flights_to_rows(adventure_id: str, flights: list[Flight]) -> list[Row]:
    rows = []
    for position, flight in enumerate(flights):
        row: Row = {PARENT_COLUMN: adventure_id, "position": position}
        if flight.id is not None:
            row["id"] = flight.id
        row[FLIGHT_FIELDS["route_label"]] = flight.route_label
        row["date"] = flight.date
        row["duration"] = flight.duration
        row["price"] = flight.price
        rows.append(row)
    return rows


def stops_to_rows(adventure_id: str, stops: list[Stop]) -> list[Row]:
    rows = []
    for position, stop in enumerate(stops):
        row: Row = {PARENT_COLUMN: adventure_id, "position": position}
        if stop.id is not None:
            row["id"] = stop.id
        row["name"] = stop.name
        row[STOP_FIELDS["coordinate.lat"]] = stop.coordinate.lat
        row[STOP_FIELDS["coordinate.lon"]] = stop.coordinate.lon
        row["nights"] = stop.nights
        row["is_start_point"] = stop.is_start_point
        row["hotel_name"] = stop.hotel_name
        row["price_per_night"] = stop.price_per_night
        rows.append(row)
    return rows


def badges_to_rows(adventure_id: str, badges: list[str]) -> list[Row]:
    return [
        {PARENT_COLUMN: adventure_id, "position": position, BADGE_COLUMN: badge}
        for position, badge in enumerate(badges)
    ]


# Decoding


def flights_from_rows(rows: list[Row]) -> list[Flight]:
    records = _ordered([_decode(FlightRecord, ADVENTURE_FLIGHTS, row) for row in rows])
    return [
        Flight(
            id=r.id,
            route_label=r.route,
            date=r.date,
            duration=r.duration,
            price=r.price,
        )
        for r in records
    ]


def stops_from_rows(rows: list[Row]) -> list[Stop]:
    records = _ordered([_decode(PlaceRecord, ADVENTURE_PLACES, row) for row in rows])
    stops = []
    for r in records:
        try:
            coordinate = Geo(lat=r.latitude, lon=r.longitude)
        except ValidationError as e:
            raise DecodeError(ADVENTURE_PLACES, f"row {r.id}: invalid coordinate") from e
        stops.append(
            Stop(
                id=r.id,
                name=r.name,
                coordinate=coordinate,
                nights=r.nights,
                is_start_point=r.is_start_point,
                hotel_name=r.hotel_name or "",
                price_per_night=r.price_per_night or 0,
            )
        )
    return stops


def badges_from_rows(rows: list[Row]) -> list[str]:
    records = _ordered([_decode(BadgeRecord, ADVENTURE_BADGES, row) for row in rows])
    return [r.badge_emoji for r in records]


def adventure_from_rows(
    row: Row,
    flight_rows: list[Row],
    place_rows: list[Row],
    badge_rows: list[Row],
) -> Adventure:
    """Assemble one hydrated adventure from its parent and child rows."""
    record = _decode(AdventureRecord, ADVENTURES, row)

    route_data = RouteData(
        flights=flights_from_rows(flight_rows),
        stops=stops_from_rows(place_rows),
        badges=badges_from_rows(badge_rows),
        total_cost=record.total_cost or 0,
        total_nights=record.total_nights or 0,
    )

    return Adventure(
        id=record.id,
        name=record.name,
        description=record.description or "",
        duration_label=record.duration or "",
        difficulty=record.difficulty or Difficulty.easy,
        budget_tier=record.budget or BudgetTier.mid,
        image=record.image or DEFAULT_IMAGE,
        color=record.color_hex or DEFAULT_COLOR,
        destinations=record.destinations or [],
        highlights=record.highlights or [],
        route_data=route_data,
        created_by=record.created_by,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )
