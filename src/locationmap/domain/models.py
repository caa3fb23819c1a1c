"""
Domain models (Pydantic).

These types are the contract shared by the view, the renderer, the API and the CLI:
- `Coordinate` / `NamedLocation`: the two places the view tracks
- `ViewState`: an immutable snapshot of the view
- `MapScene` and friends: what the renderer paints
- request/response bodies of the HTTP API

The state types are frozen so a snapshot handed to a collaborator can never be
mutated behind the view's back.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from locationmap.core.geo import format_distance


class Coordinate(BaseModel):
    """A geographic point in decimal degrees."""

    model_config = ConfigDict(frozen=True)

    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)

    def as_list(self) -> list[float]:
        return [self.lat, self.lon]


class NamedLocation(BaseModel):
    """A display label plus its coordinate (`None` until the label is resolved)."""

    model_config = ConfigDict(frozen=True)

    label: str
    coordinate: Coordinate | None = None


class GeocodeMatch(BaseModel):
    """First geocoder hit for a free-text query."""

    model_config = ConfigDict(frozen=True)

    query: str
    coordinate: Coordinate
    display_name: str | None = None


class ViewState(BaseModel):
    """Snapshot of a location view."""

    model_config = ConfigDict(frozen=True)

    start: NamedLocation
    destination: NamedLocation
    distance_km: float | None = None

    @property
    def distance_text(self) -> str | None:
        return format_distance(self.distance_km)


class MapMarker(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: str
    position: Coordinate
    popup: str
    label_position: Coordinate


class MapLine(BaseModel):
    model_config = ConfigDict(frozen=True)

    positions: tuple[Coordinate, Coordinate]
    color: str
    weight: int
    opacity: float


class MapScene(BaseModel):
    """Everything the map surface needs for one paint."""

    model_config = ConfigDict(frozen=True)

    center: Coordinate
    zoom: int
    tile_url: str
    tile_attribution: str
    height_px: int
    marker_color: str
    markers: list[MapMarker] = Field(default_factory=list)
    line: MapLine | None = None
    distance_text: str | None = None


class CreateViewRequest(BaseModel):
    """Optional starting labels and per-view settings for `POST /api/views`."""

    start_label: str | None = None
    destination_label: str | None = None
    settings_overrides: dict[str, Any] | None = None


class LabelsUpdate(BaseModel):
    start: str | None = None
    destination: str | None = None


class DeviceReport(BaseModel):
    """What the browser's geolocation call produced.

    `{lat, lon}` is a fix, `{error}` a failure, and an empty body means the
    browser has no geolocation support.
    """

    lat: float | None = Field(default=None, ge=-90, le=90)
    lon: float | None = Field(default=None, ge=-180, le=180)
    error: str | None = None

    @model_validator(mode="after")
    def _validate_pair(self) -> "DeviceReport":
        if (self.lat is None) != (self.lon is None):
            raise ValueError("lat and lon must be given together")
        return self

    def coordinate(self) -> Coordinate | None:
        if self.lat is None or self.lon is None:
            return None
        return Coordinate(lat=self.lat, lon=self.lon)


class ViewResponse(BaseModel):
    """A view snapshot plus anything the last action wants the user to see."""

    id: str
    state: ViewState
    distance_text: str | None = None
    alerts: list[str] = Field(default_factory=list)
    meta: dict[str, Any] = Field(default_factory=dict)
