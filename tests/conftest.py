"""Shared pytest fixtures for all test suites."""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

from pathfinder.db.engine import create_schema
from pathfinder.models import Adventure, BudgetTier, Difficulty, Flight, Geo, RouteData, Stop


@pytest.fixture
def sample_stops() -> list[Stop]:
    """Four-stop European loop, Paris as start point (12 nights)."""
    return [
        Stop(
            name="Paris",
            coordinate=Geo(lat=48.8566, lon=2.3522),
            nights=3,
            is_start_point=True,
            hotel_name="Hotel Le Marais",
            price_per_night=180,
        ),
        Stop(
            name="Rome",
            coordinate=Geo(lat=41.9028, lon=12.4964),
            nights=4,
            hotel_name="Hotel Artemide",
            price_per_night=150,
        ),
        Stop(
            name="Barcelona",
            coordinate=Geo(lat=41.3874, lon=2.1686),
            nights=3,
            hotel_name="Casa Camper",
            price_per_night=160,
        ),
        Stop(
            name="Berlin",
            coordinate=Geo(lat=52.5200, lon=13.4050),
            nights=2,
            hotel_name="Michelberger",
            price_per_night=120,
        ),
    ]


@pytest.fixture
def sample_flights() -> list[Flight]:
    return [
        Flight(route_label="Berlin → Paris", date="12 Jun", duration="1h 50m", price="€89"),
        Flight(route_label="Paris → Rome", date="15 Jun", duration="2h 05m", price="€74"),
    ]


@pytest.fixture
def sample_badges() -> list[str]:
    return ["🗼", "🍝", "🏖️"]


@pytest.fixture
def sample_adventure(sample_stops: list[Stop]) -> Adventure:
    return Adventure(
        name="European Classics",
        description="Four capitals in twelve nights",
        duration_label="12 nights",
        difficulty=Difficulty.medium,
        budget_tier=BudgetTier.mid,
        destinations=["Paris", "Rome", "Barcelona", "Berlin"],
        highlights=["Eiffel Tower", "Colosseum"],
        route_data=RouteData(total_cost=2450, total_nights=12),
    )


@pytest_asyncio.fixture
async def sqlite_engine() -> AsyncGenerator[AsyncEngine, None]:
    """In-memory SQLite engine with the adventure schema.

    StaticPool keeps a single connection so every session sees the same
    in-memory database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        echo=False,
    )
    await create_schema(engine)

    yield engine

    await engine.dispose()
