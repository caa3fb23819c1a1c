"""
Geocoding client (Nominatim / OpenStreetMap).

This module is responsible only for:
- turning a free-text place name into the first matching coordinate,
- turning a coordinate back into a short "<place>, <pin>" label.

Failures never propagate: transport errors, non-2xx responses, empty result lists
and malformed payloads are logged and reported as `None`, so the view can keep
its last known good state.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx
from pydantic import ValidationError

from locationmap.config.settings import Settings
from locationmap.core.cache import FileCache
from locationmap.core.http import get_json
from locationmap.domain.models import Coordinate, GeocodeMatch

logger = logging.getLogger(__name__)

UNKNOWN_PLACE = "Unknown Place"
NO_PIN = "No Pin"

# Most specific first.
PLACE_FIELDS = ("village", "town", "city", "state")

_LOOKUP_ERRORS = (httpx.HTTPError, ValueError, KeyError, TypeError, IndexError, ValidationError)


class Geocoder(Protocol):
    """What `LocationView` needs from a geocoding collaborator."""

    async def search(self, name: str) -> GeocodeMatch | None: ...

    async def reverse(self, coordinate: Coordinate) -> str | None: ...


def parse_search_results(query: str, payload: Any) -> GeocodeMatch | None:
    """Return the first hit of a Nominatim search payload (or None for zero results)."""
    if not isinstance(payload, list):
        raise TypeError(f"expected a JSON array, got {type(payload).__name__}")
    if not payload:
        return None
    first = payload[0]
    return GeocodeMatch(
        query=query,
        coordinate=Coordinate(lat=float(first["lat"]), lon=float(first["lon"])),
        display_name=first.get("display_name"),
    )


def format_place_label(address: dict[str, Any]) -> str:
    """Build "<place>, <pin>" from a Nominatim `address` object."""
    place = next((address[f] for f in PLACE_FIELDS if address.get(f)), UNKNOWN_PLACE)
    pin = address.get("postcode") or NO_PIN
    return f"{place}, {pin}"


class GeocodingClient:
    """Async Nominatim client with an optional on-disk cache for successful lookups."""

    def __init__(self, settings: Settings, cache: FileCache | None = None):
        self._settings = settings
        self._cache = cache

    def _headers(self) -> dict[str, str]:
        cfg = self._settings.geocoding
        headers = {"User-Agent": cfg.user_agent}
        if cfg.accept_language:
            headers["Accept-Language"] = cfg.accept_language
        return headers

    async def _fetch(self, url: str, params: dict[str, Any]) -> Any:
        return await get_json(
            url,
            params=params,
            headers=self._headers(),
            timeout_seconds=self._settings.app.http_timeout_seconds,
        )

    def _cached(self, namespace: str, key: str) -> Any | None:
        if self._cache is None:
            return None
        return self._cache.get(namespace, key, ttl_seconds=self._settings.geocoding.cache_ttl_seconds)

    def _store(self, namespace: str, key: str, value: Any) -> None:
        if self._cache is None:
            return
        try:
            self._cache.set(namespace, key, value, ttl_seconds=self._settings.geocoding.cache_ttl_seconds)
        except OSError:
            logger.warning("Could not write geocoder cache entry for %s", key, exc_info=True)

    async def search(self, name: str) -> GeocodeMatch | None:
        """Look up `name` and return its first match, or None."""
        query = name.strip()
        if not query:
            return None

        cache_key = f"search:{query.lower()}"
        cached = self._cached("geocode", cache_key)
        if cached is not None:
            try:
                return GeocodeMatch.model_validate(cached)
            except ValidationError:
                logger.warning("Discarding malformed cached match for %r", query)

        cfg = self._settings.geocoding
        params = {"q": query, "format": "json", "limit": cfg.result_limit}
        try:
            logger.info("Geocoding %r", query)
            payload = await self._fetch(cfg.search_url, params)
            match = parse_search_results(query, payload)
        except _LOOKUP_ERRORS as exc:
            logger.error("Error fetching location %r: %s", query, exc)
            return None

        if match is None:
            logger.info("No geocoding result for %r", query)
            return None
        self._store("geocode", cache_key, match.model_dump(mode="json"))
        return match

    async def resolve(self, name: str) -> Coordinate | None:
        """Coordinate of the first match for `name`, or None."""
        match = await self.search(name)
        return match.coordinate if match else None

    async def reverse(self, coordinate: Coordinate) -> str | None:
        """Return a "<place>, <pin>" label for `coordinate`, or None on failure."""
        cache_key = f"reverse:{coordinate.lat:.5f}:{coordinate.lon:.5f}"
        cached = self._cached("geocode", cache_key)
        if isinstance(cached, str):
            return cached

        cfg = self._settings.geocoding
        params = {"lat": coordinate.lat, "lon": coordinate.lon, "format": "json"}
        try:
            logger.info("Reverse geocoding lat=%.5f lon=%.5f", coordinate.lat, coordinate.lon)
            payload = await self._fetch(cfg.reverse_url, params)
            address = payload["address"]
            if not isinstance(address, dict):
                raise TypeError("address is not an object")
        except _LOOKUP_ERRORS as exc:
            logger.error(
                "Error reverse geocoding lat=%.5f lon=%.5f: %s", coordinate.lat, coordinate.lon, exc
            )
            return None

        label = format_place_label(address)
        self._store("geocode", cache_key, label)
        return label
