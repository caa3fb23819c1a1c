"""
Shared test doubles.

The geocoder stub answers from an in-memory table so view, API and CLI tests
stay offline.
"""

from __future__ import annotations

import pytest

from locationmap.config.settings import get_settings
from locationmap.domain.models import Coordinate, GeocodeMatch

MUMBAI = Coordinate(lat=19.076, lon=72.8777)
PUNE = Coordinate(lat=18.5204, lon=73.8567)
DELHI = Coordinate(lat=28.6139, lon=77.209)
GOA = Coordinate(lat=15.2993, lon=74.124)


class StubGeocoder:
    def __init__(
        self,
        places: dict[str, Coordinate] | None = None,
        labels: dict[Coordinate, str] | None = None,
    ):
        self.places = dict(places or {})
        self.labels = dict(labels or {})
        self.searches: list[str] = []
        self.reverses: list[Coordinate] = []

    async def search(self, name: str) -> GeocodeMatch | None:
        self.searches.append(name)
        coordinate = self.places.get(name)
        if coordinate is None:
            return None
        return GeocodeMatch(query=name, coordinate=coordinate, display_name=name)

    async def reverse(self, coordinate: Coordinate) -> str | None:
        self.reverses.append(coordinate)
        return self.labels.get(coordinate)


@pytest.fixture
def geocoder() -> StubGeocoder:
    return StubGeocoder({"Delhi": DELHI, "Goa": GOA, "Mumbai": MUMBAI, "Pune": PUNE})


@pytest.fixture
def settings():
    return get_settings()
