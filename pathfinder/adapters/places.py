"""Place search adapters: OpenStreetMap Nominatim and a bundled sample catalog."""

from typing import Any, Protocol

import httpx

from pathfinder.config import Settings
from pathfinder.errors import DecodeError, TransportError
from pathfinder.models.common import PlaceType
from pathfinder.models.places import PlaceCandidate

# Nominatim addresstype values mapped onto our icon classes
_CITY_TYPES = {"city", "town", "village", "municipality", "hamlet", "suburb"}
_COUNTRY_TYPES = {"country"}

# Label used in DecodeError messages
_SOURCE = "nominatim"


class PlaceSearch(Protocol):
    """Free-text place lookup."""

    async def search(self, query: str) -> list[PlaceCandidate]:
        """Find places whose name matches ``query``.

        Args:
            query: Free-text query, e.g. "Lisbon"

        Returns:
            Candidates, best match first; empty for a blank query
        """
        ...


def _classify(item: dict[str, Any]) -> PlaceType:
    kind = item.get("addresstype") or item.get("type") or ""
    if kind in _COUNTRY_TYPES:
        return PlaceType.country
    if kind in _CITY_TYPES:
        return PlaceType.city
    return PlaceType.other


class NominatimPlaceSearch:
    """Place search backed by the Nominatim geocoding API."""

    def __init__(
        self,
        base_url: str = "https://nominatim.openstreetmap.org/search",
        *,
        limit: int = 10,
        user_agent: str = "pathfinder-adventures/0.1",
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            base_url: Nominatim search endpoint
            limit: Maximum number of candidates per query
            user_agent: Identifying User-Agent (required by the usage policy)
            client: Optional httpx client (for testing with mocks)
        """
        self._base_url = base_url
        self._limit = limit
        self._headers = {"User-Agent": user_agent}
        self._client = client

    async def search(self, query: str) -> list[PlaceCandidate]:
        """Search places by name.

        Raises:
            TransportError: On network or HTTP errors
            DecodeError: On a response that is not a list of places
        """
        if not query.strip():
            return []

        params: dict[str, str | int] = {
            "q": query,
            "format": "jsonv2",
            "limit": self._limit,
        }

        close_client = False
        client = self._client
        if client is None:
            client = httpx.AsyncClient(timeout=4.0)
            close_client = True

        try:
            response = await client.get(self._base_url, params=params, headers=self._headers)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            raise TransportError(f"place search failed: {e}") from e
        except ValueError as e:
            raise DecodeError(_SOURCE, "response is not JSON") from e
        finally:
            if close_client:
                await client.aclose()

        # Response structure: [{display_name, lat, lon, addresstype, ...}, ...]
        candidates = []
        for i, item in enumerate(data):
            try:
                name = item.get("name") or item["display_name"].split(",")[0]
                candidates.append(
                    PlaceCandidate(
                        display_name=name,
                        lat=float(item["lat"]),
                        lon=float(item["lon"]),
                        place_type=_classify(item),
                        description=item["display_name"],
                    )
                )
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                raise DecodeError(_SOURCE, f"result {i}: {e!r}") from e
        return candidates


# (name, country, lat, lon)
SAMPLE_PLACES: tuple[tuple[str, str, float, float], ...] = (
    ("Berlin", "Germany", 52.5200, 13.4050),
    ("Paris", "France", 48.8566, 2.3522),
    ("London", "United Kingdom", 51.5074, -0.1278),
    ("Rome", "Italy", 41.9028, 12.4964),
    ("Madrid", "Spain", 40.4168, -3.7038),
    ("Amsterdam", "Netherlands", 52.3676, 4.9041),
    ("Vienna", "Austria", 48.2082, 16.3738),
    ("Zurich", "Switzerland", 47.3769, 8.5417),
    ("Prague", "Czechia", 50.0755, 14.4378),
    ("Budapest", "Hungary", 47.4979, 19.0402),
    ("Warsaw", "Poland", 52.2297, 21.0122),
    ("Copenhagen", "Denmark", 55.6761, 12.5683),
    ("Stockholm", "Sweden", 59.3293, 18.0686),
    ("Oslo", "Norway", 59.9139, 10.7522),
    ("Helsinki", "Finland", 60.1699, 24.9384),
    ("Dublin", "Ireland", 53.3498, -6.2603),
    ("Lisbon", "Portugal", 38.7223, -9.1393),
    ("Athens", "Greece", 37.9838, 23.7275),
    ("Istanbul", "Turkey", 41.0082, 28.9784),
    ("Barcelona", "Spain", 41.3874, 2.1686),
    ("Munich", "Germany", 48.1351, 11.5820),
    ("Tokyo", "Japan", 35.6762, 139.6503),
    ("Seoul", "South Korea", 37.5665, 126.9780),
    ("Bangkok", "Thailand", 13.7563, 100.5018),
    ("Singapore", "Singapore", 1.3521, 103.8198),
    ("Mumbai", "India", 19.0760, 72.8777),
    ("New York", "USA", 40.7128, -74.0060),
    ("Los Angeles", "USA", 34.0522, -118.2437),
    ("Chicago", "USA", 41.8781, -87.6298),
    ("Toronto", "Canada", 43.6532, -79.3832),
    ("Vancouver", "Canada", 49.2827, -123.1207),
    ("Mexico City", "Mexico", 19.4326, -99.1332),
    ("São Paulo", "Brazil", -23.5505, -46.6333),
    ("Buenos Aires", "Argentina", -34.6037, -58.3816),
    ("Lima", "Peru", -12.0464, -77.0428),
    ("Cairo", "Egypt", 30.0444, 31.2357),
    ("Cape Town", "South Africa", -33.9249, 18.4241),
    ("Nairobi", "Kenya", -1.2921, 36.8219),
    ("Marrakesh", "Morocco", 31.6295, -7.9811),
    ("Sydney", "Australia", -33.8688, 151.2093),
    ("Melbourne", "Australia", -37.8136, 144.9631),
    ("Auckland", "New Zealand", -36.8485, 174.7633),
)


class StaticPlaceSearch:
    """Offline search over a fixed catalog of cities.

    Matches the query case-insensitively against city and country names.
    """

    def __init__(
        self,
        places: tuple[tuple[str, str, float, float], ...] = SAMPLE_PLACES,
        *,
        limit: int = 10,
    ) -> None:
        self._places = places
        self._limit = limit

    async def search(self, query: str) -> list[PlaceCandidate]:
        needle = query.strip().casefold()
        if not needle:
            return []

        results = [
            PlaceCandidate(
                display_name=name,
                lat=lat,
                lon=lon,
                place_type=PlaceType.city,
                description=country,
            )
            for name, country, lat, lon in self._places
            if needle in name.casefold() or needle in country.casefold()
        ]
        return results[: self._limit]


def build_place_search(settings: Settings, client: httpx.AsyncClient | None = None) -> NominatimPlaceSearch:
    """Construct the Nominatim adapter from settings."""
    return NominatimPlaceSearch(
        settings.place_search_url,
        limit=settings.place_search_limit,
        user_agent=settings.place_search_user_agent,
        client=client,
    )
