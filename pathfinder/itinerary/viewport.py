"""Map viewport fitting for a set of stop coordinates."""

from collections.abc import Iterable, Sequence

from pydantic import BaseModel

from pathfinder.models.adventure import Stop
from pathfinder.models.common import Geo

# Padding applied to the bounding box, and the smallest span on either axis
SPAN_PADDING = 1.5
MIN_SPAN_DEGREES = 5.0


class Span(BaseModel):
    """Width and height of a map region in degrees."""

    lat_delta: float
    lon_delta: float


class Viewport(BaseModel):
    """Map region given as center plus span."""

    center: Geo
    span: Span

    def contains(self, point: Geo) -> bool:
        """Check whether a coordinate lies inside the region (edges included)."""
        half_lat = self.span.lat_delta / 2
        half_lon = self.span.lon_delta / 2
        return (
            abs(point.lat - self.center.lat) <= half_lat
            and abs(point.lon - self.center.lon) <= half_lon
        )


def fit_viewport(coordinates: Iterable[Geo]) -> Viewport:
    """Compute a viewport showing every coordinate with some padding.

    A single point (or identical points) yields the minimum span on both
    axes instead of a zero-area region.

    Raises:
        ValueError: If no coordinates are given
    """
    points = list(coordinates)
    if not points:
        raise ValueError("Cannot fit a viewport to an empty coordinate set")

    lats = [p.lat for p in points]
    lons = [p.lon for p in points]
    min_lat, max_lat = min(lats), max(lats)
    min_lon, max_lon = min(lons), max(lons)

    center = Geo(lat=(max_lat + min_lat) / 2, lon=(max_lon + min_lon) / 2)
    span = Span(
        lat_delta=max((max_lat - min_lat) * SPAN_PADDING, MIN_SPAN_DEGREES),
        lon_delta=max((max_lon - min_lon) * SPAN_PADDING, MIN_SPAN_DEGREES),
    )
    return Viewport(center=center, span=span)


def fit_stops(stops: Sequence[Stop]) -> Viewport:
    """Viewport for an itinerary; at least one stop is required."""
    return fit_viewport(stop.coordinate for stop in stops)
