"""Test place search adapters with mocked HTTP."""

import httpx
import pytest

from pathfinder.adapters.places import NominatimPlaceSearch, StaticPlaceSearch, build_place_search
from pathfinder.config import Settings
from pathfinder.errors import DecodeError, TransportError
from pathfinder.models import PlaceType


@pytest.mark.asyncio
async def test_nominatim_success() -> None:
    """Test successful place search with mocked response."""

    def mock_handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["q"] == "Lisbon"
        assert request.url.params["format"] == "jsonv2"
        assert request.url.params["limit"] == "5"
        assert request.headers["User-Agent"] == "pathfinder-tests"
        return httpx.Response(
            200,
            json=[
                {
                    "name": "Lisboa",
                    "display_name": "Lisboa, Lisbon, Portugal",
                    "lat": "38.7077507",
                    "lon": "-9.1365919",
                    "addresstype": "city",
                },
                {
                    "display_name": "Lisbon, Androscoggin County, Maine, United States",
                    "lat": "44.0314",
                    "lon": "-70.1045",
                    "addresstype": "town",
                },
                {
                    "name": "Portugal",
                    "display_name": "Portugal",
                    "lat": "39.6621648",
                    "lon": "-8.1353519",
                    "addresstype": "country",
                },
            ],
        )

    transport = httpx.MockTransport(mock_handler)
    async with httpx.AsyncClient(transport=transport) as client:
        search = NominatimPlaceSearch(limit=5, user_agent="pathfinder-tests", client=client)
        results = await search.search("Lisbon")

    assert len(results) == 3
    assert results[0].display_name == "Lisboa"
    assert results[0].description == "Lisboa, Lisbon, Portugal"
    assert results[0].lat == pytest.approx(38.7077507)
    assert results[0].place_type == PlaceType.city
    assert results[1].display_name == "Lisbon"
    assert results[1].place_type == PlaceType.city
    assert results[2].place_type == PlaceType.country


@pytest.mark.asyncio
async def test_nominatim_unknown_type_is_other() -> None:
    def mock_handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json=[
                {
                    "name": "Mont Blanc",
                    "display_name": "Mont Blanc, France",
                    "lat": "45.83",
                    "lon": "6.86",
                    "addresstype": "peak",
                }
            ],
        )

    async with httpx.AsyncClient(transport=httpx.MockTransport(mock_handler)) as client:
        results = await NominatimPlaceSearch(client=client).search("Mont Blanc")

    assert results[0].place_type == PlaceType.other


@pytest.mark.asyncio
async def test_nominatim_blank_query_skips_network() -> None:
    def mock_handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    async with httpx.AsyncClient(transport=httpx.MockTransport(mock_handler)) as client:
        assert await NominatimPlaceSearch(client=client).search("   ") == []


@pytest.mark.asyncio
async def test_nominatim_http_error() -> None:
    """Test that HTTP errors surface as TransportError."""

    def mock_handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, json={"error": "Service unavailable"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(mock_handler)) as client:
        with pytest.raises(TransportError, match="place search failed"):
            await NominatimPlaceSearch(client=client).search("Berlin")


@pytest.mark.asyncio
async def test_nominatim_connect_error() -> None:
    def mock_handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Connection refused", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(mock_handler)) as client:
        with pytest.raises(TransportError):
            await NominatimPlaceSearch(client=client).search("Berlin")


@pytest.mark.asyncio
async def test_static_search_matches_city_and_country() -> None:
    search = StaticPlaceSearch()

    by_city = await search.search("ber")
    by_country = await search.search("SPAIN")

    assert [p.display_name for p in by_city] == ["Berlin"]
    assert {p.display_name for p in by_country} == {"Madrid", "Barcelona"}
    assert all(p.place_type == PlaceType.city for p in by_country)


@pytest.mark.asyncio
async def test_static_search_respects_limit_and_blank() -> None:
    search = StaticPlaceSearch(limit=2)

    assert len(await search.search("a")) == 2
    assert await search.search("") == []


def test_build_place_search_uses_settings() -> None:
    settings = Settings(
        place_search_url="https://geo.example.com/search",
        place_search_limit=3,
        place_search_user_agent="ua-test",
    )

    search = build_place_search(settings)

    assert isinstance(search, NominatimPlaceSearch)
    assert search._base_url == "https://geo.example.com/search"
    assert search._limit == 3


@pytest.mark.asyncio
async def test_nominatim_malformed_item() -> None:
    """Test that an item without coordinates or names raises DecodeError."""

    def mock_handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=[{"name": "Nowhere", "lat": "north", "lon": "0"}])

    async with httpx.AsyncClient(transport=httpx.MockTransport(mock_handler)) as client:
        with pytest.raises(DecodeError, match="nominatim: result 0"):
            await NominatimPlaceSearch(client=client).search("Nowhere")


@pytest.mark.asyncio
async def test_nominatim_missing_display_name() -> None:
    def mock_handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=[{"lat": "1.0", "lon": "2.0"}])

    async with httpx.AsyncClient(transport=httpx.MockTransport(mock_handler)) as client:
        with pytest.raises(DecodeError):
            await NominatimPlaceSearch(client=client).search("Somewhere")


@pytest.mark.asyncio
async def test_nominatim_non_json_body() -> None:
    def mock_handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>rate limited</html>")

    async with httpx.AsyncClient(transport=httpx.MockTransport(mock_handler)) as client:
        with pytest.raises(DecodeError, match="not JSON"):
            await NominatimPlaceSearch(client=client).search("Berlin")
