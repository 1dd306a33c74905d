"""Place search results."""

from pydantic import BaseModel, Field

from pathfinder.models.common import Geo, PlaceType


class PlaceCandidate(BaseModel):
    """A place returned by a free-text search."""

    display_name: str
    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)
    place_type: PlaceType | None = None
    description: str = ""

    @property
    def geo(self) -> Geo:
        return Geo(lat=self.lat, lon=self.lon)
