import httpx
import pytest

from locationmap.core.cache import FileCache
from locationmap.core.http import get_json
from locationmap.domain.models import Coordinate
from locationmap.ingestion.geocoding_client import GeocodingClient, format_place_label

PUNE_HIT = {"lat": "18.5213738", "lon": "73.8545071", "display_name": "Pune, Maharashtra, India"}


def _install(monkeypatch, responder):
    calls: list[dict] = []

    async def fake_get_json(url, *, params=None, headers=None, timeout_seconds=15):
        calls.append({"url": url, "params": dict(params or {}), "headers": dict(headers or {})})
        return responder(url, params or {})

    monkeypatch.setattr("locationmap.ingestion.geocoding_client.get_json", fake_get_json)
    return calls


@pytest.mark.asyncio
async def test_search_takes_first_result(monkeypatch, settings):
    calls = _install(monkeypatch, lambda url, params: [PUNE_HIT, {"lat": "0", "lon": "0"}])
    client = GeocodingClient(settings)

    match = await client.search("Pune")

    assert match is not None
    assert match.coordinate == Coordinate(lat=18.5213738, lon=73.8545071)
    assert match.display_name == "Pune, Maharashtra, India"
    assert calls[0]["url"] == settings.geocoding.search_url
    assert calls[0]["params"] == {"q": "Pune", "format": "json", "limit": 1}
    assert calls[0]["headers"]["User-Agent"] == settings.geocoding.user_agent


@pytest.mark.asyncio
async def test_resolve_returns_coordinate(monkeypatch, settings):
    _install(monkeypatch, lambda url, params: [PUNE_HIT])

    assert await GeocodingClient(settings).resolve("Pune") == Coordinate(lat=18.5213738, lon=73.8545071)


@pytest.mark.asyncio
async def test_search_zero_results_is_not_found(monkeypatch, settings):
    _install(monkeypatch, lambda url, params: [])

    assert await GeocodingClient(settings).search("Atlantis") is None


@pytest.mark.asyncio
async def test_blank_query_skips_the_network(monkeypatch, settings):
    calls = _install(monkeypatch, lambda url, params: [PUNE_HIT])

    assert await GeocodingClient(settings).search("   ") is None
    assert calls == []


@pytest.mark.asyncio
async def test_search_network_error_is_not_found(monkeypatch, settings):
    def boom(url, params):
        raise httpx.ConnectError("offline", request=httpx.Request("GET", url))

    _install(monkeypatch, boom)

    assert await GeocodingClient(settings).search("Pune") is None


@pytest.mark.parametrize(
    "payload",
    [
        {"error": "Unable to geocode"},
        [{"lon": "73.85"}],
        [{"lat": "north", "lon": "73.85"}],
        [{"lat": "123.0", "lon": "73.85"}],
        ["Pune"],
    ],
)
@pytest.mark.asyncio
async def test_search_malformed_payload_is_not_found(monkeypatch, settings, payload):
    _install(monkeypatch, lambda url, params: payload)

    assert await GeocodingClient(settings).search("Pune") is None


@pytest.mark.asyncio
async def test_search_caches_hits_but_not_misses(monkeypatch, settings, tmp_path):
    answers = {"Pune": [PUNE_HIT], "Atlantis": []}
    calls = _install(monkeypatch, lambda url, params: answers[params["q"]])
    client = GeocodingClient(settings, FileCache(tmp_path))

    first = await client.search("Pune")
    second = await client.search("pune")
    await client.search("Atlantis")
    await client.search("Atlantis")

    assert first is not None and second is not None
    assert second.coordinate == first.coordinate
    assert [c["params"]["q"] for c in calls] == ["Pune", "Atlantis", "Atlantis"]


@pytest.mark.asyncio
async def test_reverse_builds_place_and_pin(monkeypatch, settings):
    payload = {"address": {"city": "Pune", "state": "Maharashtra", "postcode": "411001"}}
    calls = _install(monkeypatch, lambda url, params: payload)

    label = await GeocodingClient(settings).reverse(Coordinate(lat=18.52, lon=73.85))

    assert label == "Pune, 411001"
    assert calls[0]["url"] == settings.geocoding.reverse_url
    assert calls[0]["params"] == {"lat": 18.52, "lon": 73.85, "format": "json"}


@pytest.mark.asyncio
async def test_reverse_without_address_is_none(monkeypatch, settings):
    _install(monkeypatch, lambda url, params: {"error": "Unable to geocode"})

    assert await GeocodingClient(settings).reverse(Coordinate(lat=0, lon=0)) is None


@pytest.mark.parametrize(
    "address,expected",
    [
        ({"village": "Lonavala", "town": "X", "city": "Y", "postcode": "410401"}, "Lonavala, 410401"),
        ({"town": "Panvel", "city": "Navi Mumbai"}, "Panvel, No Pin"),
        ({"city": "Mumbai", "state": "Maharashtra", "postcode": "400001"}, "Mumbai, 400001"),
        ({"state": "Goa"}, "Goa, No Pin"),
        ({"village": "", "country": "India"}, "Unknown Place, No Pin"),
        ({}, "Unknown Place, No Pin"),
    ],
)
def test_format_place_label_preference_order(address, expected):
    assert format_place_label(address) == expected


@pytest.mark.asyncio
async def test_get_json_sends_user_agent_and_decodes():
    seen: dict[str, str] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["ua"] = request.headers["User-Agent"]
        seen["q"] = request.url.params["q"]
        return httpx.Response(200, json=[PUNE_HIT])

    data = await get_json(
        "https://geocoder.test/search",
        params={"q": "Pune"},
        headers={"User-Agent": "tests/1.0"},
        transport=httpx.MockTransport(handler),
    )

    assert data == [PUNE_HIT]
    assert seen == {"ua": "tests/1.0", "q": "Pune"}


@pytest.mark.asyncio
async def test_get_json_raises_on_error_status():
    transport = httpx.MockTransport(lambda request: httpx.Response(503, json={"error": "busy"}))

    with pytest.raises(httpx.HTTPStatusError):
        await get_json("https://geocoder.test/search", transport=transport)
