"""
Device location providers.

The view asks a provider for one high-accuracy fix at a time. In the browser the
page runs the Geolocation API itself and reports the outcome to the server, so the
server side only needs a one-shot provider that replays that outcome. The CLI uses
the same provider with a coordinate given on the command line.
"""

from __future__ import annotations

from typing import Protocol

from locationmap.domain.models import Coordinate


class DeviceLocationError(Exception):
    """The device could not produce a position (denied, timed out, ...)."""


class DeviceLocationUnavailable(DeviceLocationError):
    """The platform has no geolocation capability at all."""


class DeviceLocationProvider(Protocol):
    async def locate(self, *, high_accuracy: bool = True) -> Coordinate: ...


class StaticDeviceLocation:
    """Replays a single known outcome: a coordinate, an error, or "unsupported"."""

    def __init__(self, coordinate: Coordinate | None = None, error: str | None = None):
        self._coordinate = coordinate
        self._error = error

    async def locate(self, *, high_accuracy: bool = True) -> Coordinate:
        if self._error:
            raise DeviceLocationError(self._error)
        if self._coordinate is None:
            raise DeviceLocationUnavailable("Geolocation is not supported by your browser.")
        return self._coordinate
