"""Models package - re-exports for convenience."""

from pathfinder.models.adventure import (
    Adventure,
    Flight,
    RouteData,
    Stop,
    validate_stops,
)
from pathfinder.models.common import BudgetTier, Difficulty, Geo, PlaceType
from pathfinder.models.places import PlaceCandidate

__all__ = [
    # Common
    "Geo",
    "Difficulty",
    "BudgetTier",
    "PlaceType",
    # Adventure
    "Adventure",
    "RouteData",
    "Stop",
    "Flight",
    "validate_stops",
    # Places
    "PlaceCandidate",
]
