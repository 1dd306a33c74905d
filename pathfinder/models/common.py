"""Common types and enums shared across all models."""

from enum import Enum

from pydantic import BaseModel, Field


class Geo(BaseModel):
    """Geographic coordinates (WGS84)."""

    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)


class Difficulty(str, Enum):
    """How demanding an adventure is."""

    easy = "Easy"
    medium = "Medium"
    hard = "Hard"


class BudgetTier(str, Enum):
    """Rough price class of an adventure."""

    low = "€"
    mid = "€€"
    high = "€€€"


class PlaceType(str, Enum):
    """Place classification, used for iconography only."""

    city = "city"
    country = "country"
    other = "other"
