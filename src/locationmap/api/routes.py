"""
API routes.

Endpoints:
- POST  `/api/views`: create a location view (optional labels + settings overrides).
- GET   `/api/views/{id}`: current state.
- PATCH `/api/views/{id}/labels`: edit the start/destination text.
- POST  `/api/views/{id}/search`: geocode both labels.
- POST  `/api/views/{id}/swap`: exchange start and destination.
- POST  `/api/views/{id}/current-location`: apply what the browser's geolocation reported.
- GET   `/api/views/{id}/scene` / `/map`: render model as JSON / folium HTML.
- GET   `/api/distance`: stateless haversine distance.
- GET   `/api/settings`: public settings for the web UI.
"""

from __future__ import annotations

import logging
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from functools import lru_cache

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import HTMLResponse

from locationmap.config.overrides import apply_settings_overrides
from locationmap.config.settings import Settings, get_settings
from locationmap.core.cache import FileCache
from locationmap.core.env import resolve_project_path
from locationmap.core.geo import distance_km, format_distance
from locationmap.domain.models import (
    Coordinate,
    CreateViewRequest,
    DeviceReport,
    LabelsUpdate,
    MapScene,
    ViewResponse,
)
from locationmap.ingestion.device_location import StaticDeviceLocation
from locationmap.ingestion.geocoding_client import Geocoder, GeocodingClient
from locationmap.render.map_scene import build_scene, render_html
from locationmap.view.location_view import LocationView

logger = logging.getLogger(__name__)

router = APIRouter()


@dataclass
class ViewEntry:
    """A live view plus the settings it was built with and its pending alerts."""

    view: LocationView
    settings: Settings
    alerts: list[str] = field(default_factory=list)

    def drain_alerts(self) -> list[str]:
        # Cleared in place: the view holds a bound `append` of this list.
        out = list(self.alerts)
        self.alerts.clear()
        return out


class ViewRegistry:
    """In-process store of views, keyed by a random id.

    At most `max_views` are kept; creating one more drops the least recently used.
    """

    def __init__(self, max_views: int = 1000) -> None:
        self.max_views = max_views
        self._entries: OrderedDict[str, ViewEntry] = OrderedDict()

    def create(self, settings: Settings, geocoder: Geocoder) -> tuple[str, ViewEntry]:
        view_id = uuid.uuid4().hex
        alerts: list[str] = []
        view = LocationView(settings.view, geocoder=geocoder, alert=alerts.append)
        entry = ViewEntry(view=view, settings=settings, alerts=alerts)
        self._entries[view_id] = entry
        while len(self._entries) > self.max_views:
            evicted, _ = self._entries.popitem(last=False)
            logger.info("Evicted view %s", evicted)
        return view_id, entry

    def get(self, view_id: str) -> ViewEntry | None:
        entry = self._entries.get(view_id)
        if entry is not None:
            self._entries.move_to_end(view_id)
        return entry

    def __len__(self) -> int:
        return len(self._entries)


@lru_cache
def _registry() -> ViewRegistry:
    return ViewRegistry(max_views=get_settings().app.max_views)


@lru_cache
def _geocoder() -> Geocoder:
    settings = get_settings()
    cache = FileCache(
        resolve_project_path(settings.cache.dir),
        enabled=settings.cache.enabled,
        default_ttl_seconds=settings.cache.default_ttl_seconds,
    )
    return GeocodingClient(settings, cache)


def _entry_or_404(view_id: str) -> ViewEntry:
    entry = _registry().get(view_id)
    if entry is None:
        raise HTTPException(status_code=404, detail=f"Unknown view: {view_id}")
    return entry


def _response(view_id: str, entry: ViewEntry, **meta: object) -> ViewResponse:
    state = entry.view.snapshot()
    return ViewResponse(
        id=view_id,
        state=state,
        distance_text=state.distance_text,
        alerts=entry.drain_alerts(),
        meta=dict(meta),
    )


@router.post("/api/views", response_model=ViewResponse, status_code=201)
def create_view(request: CreateViewRequest | None = None) -> ViewResponse:
    """Create a view from the configured defaults (optionally overridden)."""
    request = request or CreateViewRequest()
    try:
        settings = apply_settings_overrides(get_settings(), request.settings_overrides)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    view_id, entry = _registry().create(settings, _geocoder())
    if request.start_label is not None:
        entry.view.set_start_label(request.start_label)
    if request.destination_label is not None:
        entry.view.set_destination_label(request.destination_label)
    logger.info("Created view %s", view_id)
    return _response(view_id, entry)


@router.get("/api/views/{view_id}", response_model=ViewResponse)
def get_view(view_id: str) -> ViewResponse:
    return _response(view_id, _entry_or_404(view_id))


@router.patch("/api/views/{view_id}/labels", response_model=ViewResponse)
def update_labels(view_id: str, update: LabelsUpdate) -> ViewResponse:
    entry = _entry_or_404(view_id)
    if update.start is not None:
        entry.view.set_start_label(update.start)
    if update.destination is not None:
        entry.view.set_destination_label(update.destination)
    return _response(view_id, entry)


@router.post("/api/views/{view_id}/search", response_model=ViewResponse)
async def search_view(view_id: str) -> ViewResponse:
    """Geocode both labels; sides that fail keep their previous coordinates."""
    entry = _entry_or_404(view_id)
    outcome = await entry.view.search()
    return _response(
        view_id,
        entry,
        search={
            "start_resolved": outcome.start_resolved,
            "destination_resolved": outcome.destination_resolved,
        },
    )


@router.post("/api/views/{view_id}/swap", response_model=ViewResponse)
def swap_view(view_id: str) -> ViewResponse:
    entry = _entry_or_404(view_id)
    entry.view.swap()
    return _response(view_id, entry)


@router.post("/api/views/{view_id}/current-location", response_model=ViewResponse)
async def use_current_location(view_id: str, report: DeviceReport) -> ViewResponse:
    """Apply the browser's geolocation outcome to the start location."""
    entry = _entry_or_404(view_id)
    device = StaticDeviceLocation(coordinate=report.coordinate(), error=report.error)
    applied = await entry.view.use_device_location(device)
    return _response(view_id, entry, current_location_applied=applied)


@router.get("/api/views/{view_id}/scene", response_model=MapScene)
def get_scene(view_id: str) -> MapScene:
    entry = _entry_or_404(view_id)
    return build_scene(entry.view.snapshot(), entry.settings.map)


@router.get("/api/views/{view_id}/map", response_class=HTMLResponse)
def get_map(view_id: str) -> HTMLResponse:
    """Folium-rendered map for the view (embedded by the web UI in an iframe)."""
    entry = _entry_or_404(view_id)
    scene = build_scene(entry.view.snapshot(), entry.settings.map)
    return HTMLResponse(content=render_html(scene))


@router.get("/api/distance")
def get_distance(
    lat1: float = Query(..., ge=-90, le=90),
    lon1: float = Query(..., ge=-180, le=180),
    lat2: float = Query(..., ge=-90, le=90),
    lon2: float = Query(..., ge=-180, le=180),
) -> dict:
    """Haversine distance between two points, rounded to 2 decimals."""
    km = distance_km(Coordinate(lat=lat1, lon=lon1), Coordinate(lat=lat2, lon=lon2))
    return {"distance_km": km, "distance_text": format_distance(km)}


@router.get("/api/settings")
def get_public_settings() -> dict:
    """Return settings the web UI may read (no endpoints or User-Agent)."""
    settings = get_settings()
    return {
        "app": {"name": settings.app.name},
        "view": settings.view.model_dump(mode="json"),
        "map": settings.map.model_dump(mode="json"),
    }
