"""
The location view: two named places, the distance between them, and the actions
that change them (search, use device location, swap, edit labels).

The view is the only owner of its state. Collaborators (geocoder, device
location provider) hand back values; the view decides what to apply. Every change
to a coordinate goes through `_apply`, which recomputes the distance so it can
never describe a stale pair.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable

from locationmap.config.settings import ViewSettings
from locationmap.core.geo import distance_km, format_distance
from locationmap.domain.models import Coordinate, NamedLocation, ViewState
from locationmap.ingestion.device_location import (
    DeviceLocationError,
    DeviceLocationProvider,
    DeviceLocationUnavailable,
)
from locationmap.ingestion.geocoding_client import Geocoder

logger = logging.getLogger(__name__)

GEOLOCATION_UNSUPPORTED = "Geolocation is not supported by your browser."


@dataclass(frozen=True)
class SearchOutcome:
    """Which sides a search actually updated."""

    start_resolved: bool
    destination_resolved: bool


def _log_alert(message: str) -> None:
    logger.warning("Alert: %s", message)


class LocationView:
    """State and actions behind the two-location map."""

    def __init__(
        self,
        settings: ViewSettings,
        *,
        geocoder: Geocoder,
        device: DeviceLocationProvider | None = None,
        alert: Callable[[str], None] | None = None,
    ):
        self._settings = settings
        self._geocoder = geocoder
        self._device = device
        self._alert = alert or _log_alert
        self._start = settings.start
        self._destination = settings.destination
        self._distance_km: float | None = None
        self._recompute_distance()

    @property
    def start(self) -> NamedLocation:
        return self._start

    @property
    def destination(self) -> NamedLocation:
        return self._destination

    @property
    def distance_km(self) -> float | None:
        return self._distance_km

    @property
    def distance_text(self) -> str | None:
        return format_distance(self._distance_km)

    def snapshot(self) -> ViewState:
        return ViewState(start=self._start, destination=self._destination, distance_km=self._distance_km)

    def _recompute_distance(self) -> None:
        a = self._start.coordinate
        b = self._destination.coordinate
        if a is None or b is None:
            # Unset until both sides are resolved. No action clears a coordinate.
            return
        self._distance_km = distance_km(a, b)

    def _apply(self, *, start: NamedLocation | None = None, destination: NamedLocation | None = None) -> None:
        if start is not None:
            self._start = start
        if destination is not None:
            self._destination = destination
        self._recompute_distance()

    # -- label editing -----------------------------------------------------

    def set_start_label(self, label: str) -> None:
        self._start = self._start.model_copy(update={"label": label})

    def set_destination_label(self, label: str) -> None:
        self._destination = self._destination.model_copy(update={"label": label})

    # -- search --------------------------------------------------------------

    async def _lookup(self, name: str) -> tuple[Coordinate, str | None] | None:
        """Return the coordinate for `name` and, when relabelling, its reverse label."""
        match = await self._geocoder.search(name)
        if match is None:
            return None
        label = None
        if self._settings.relabel_on_search:
            label = await self._geocoder.reverse(match.coordinate)
        return match.coordinate, label

    @staticmethod
    def _resolved(current: NamedLocation, hit: tuple[Coordinate, str | None] | None) -> NamedLocation | None:
        if hit is None:
            return None
        coordinate, label = hit
        update: dict[str, object] = {"coordinate": coordinate}
        if label:
            update["label"] = label
        return current.model_copy(update=update)

    async def search(self) -> SearchOutcome:
        """Geocode both labels, then update each side that resolved.

        Both lookups run concurrently and both finish before anything is applied.
        A side that fails keeps its previous label and coordinate. A side that
        resolves only gets its coordinate, so labels edited during the lookup stay.
        """
        start_hit, destination_hit = await asyncio.gather(
            self._lookup(self._start.label), self._lookup(self._destination.label)
        )
        # Applied to the state held now, not the state the lookups started from.
        self._apply(
            start=self._resolved(self._start, start_hit),
            destination=self._resolved(self._destination, destination_hit),
        )
        outcome = SearchOutcome(
            start_resolved=start_hit is not None,
            destination_resolved=destination_hit is not None,
        )
        logger.info(
            "Search finished start=%s destination=%s distance_km=%s",
            outcome.start_resolved,
            outcome.destination_resolved,
            self._distance_km,
        )
        return outcome

    # -- device location -----------------------------------------------------

    async def use_device_location(self, device: DeviceLocationProvider | None = None) -> bool:
        """Replace the start with the device position. Returns False (and alerts) on failure.

        `device` replaces the configured provider for this one request (the web API
        passes what the browser reported).
        """
        device = device or self._device
        if device is None:
            self._alert(GEOLOCATION_UNSUPPORTED)
            return False

        cfg = self._settings.current_location
        try:
            coordinate = await device.locate(high_accuracy=cfg.high_accuracy)
        except DeviceLocationUnavailable as exc:
            self._alert(str(exc) or GEOLOCATION_UNSUPPORTED)
            return False
        except DeviceLocationError as exc:
            logger.error("Error fetching current location: %s", exc)
            self._alert(f"Unable to fetch current location: {exc}")
            return False

        label = cfg.placeholder_label
        if cfg.label_mode == "reverse":
            label = await self._geocoder.reverse(coordinate) or label
        self._apply(start=NamedLocation(label=label, coordinate=coordinate))
        return True

    # -- swap ------------------------------------------------------------------

    def swap(self) -> None:
        """Exchange start and destination (label and coordinate) in one step."""
        start, destination = self._start, self._destination
        self._apply(start=destination, destination=start)
