# src/locationmap/config/settings.py
"""
Application settings (Pydantic).

Settings are loaded from `src/locationmap/config/defaults.yaml`, then optionally overridden by:
- environment variables (e.g., `LOCATIONMAP_LOG_LEVEL`, `LOCATIONMAP_GEOCODER_USER_AGENT`)
- an external YAML file via `LOCATIONMAP_CONFIG_PATH`

Design rule:
- Default places, map styling and endpoints live in YAML, not in module constants.
"""

from __future__ import annotations

import os
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field

from locationmap.core.env import load_dotenv_if_present
from locationmap.domain.models import Coordinate, NamedLocation


def _read_package_yaml(filename: str) -> dict[str, Any]:
    """Read a YAML file packaged inside `locationmap.config`."""
    text = resources.files("locationmap.config").joinpath(filename).read_text(encoding="utf-8")
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {filename}; expected a mapping.")
    return data


def _read_yaml_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML file from disk and return its mapping root."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {path}; expected a mapping.")
    return data


class AppSettings(BaseModel):
    name: str = "LocationMap"
    http_timeout_seconds: float = 15
    log_level: str = "INFO"
    max_views: int = Field(1000, ge=1)


class CacheSettings(BaseModel):
    enabled: bool = True
    dir: str = ".cache/locationmap"
    default_ttl_seconds: int = 60 * 60 * 24


class GeocodingSettings(BaseModel):
    search_url: str = "https://nominatim.openstreetmap.org/search"
    reverse_url: str = "https://nominatim.openstreetmap.org/reverse"
    user_agent: str = "locationmap/0.1.0 (+https://local)"
    accept_language: str | None = None
    result_limit: int = Field(1, ge=1, le=50)
    cache_ttl_seconds: int = 60 * 60 * 24 * 7


class CurrentLocationSettings(BaseModel):
    label_mode: Literal["placeholder", "reverse"] = "placeholder"
    placeholder_label: str = "Current Location"
    high_accuracy: bool = True


class ViewSettings(BaseModel):
    start: NamedLocation = Field(
        default_factory=lambda: NamedLocation(
            label="Mumbai", coordinate=Coordinate(lat=19.076, lon=72.8777)
        )
    )
    destination: NamedLocation = Field(
        default_factory=lambda: NamedLocation(
            label="Pune", coordinate=Coordinate(lat=18.5204, lon=73.8567)
        )
    )
    current_location: CurrentLocationSettings = Field(default_factory=CurrentLocationSettings)
    relabel_on_search: bool = False


class TileSettings(BaseModel):
    url: str = "https://{s}.tile.opentopomap.org/{z}/{x}/{y}.png"
    attribution: str = '&copy; <a href="https://opentopomap.org">OpenTopoMap</a> contributors'


class LineSettings(BaseModel):
    color: str = "red"
    weight: int = Field(6, ge=1)
    opacity: float = Field(0.8, ge=0, le=1)


class MapSettings(BaseModel):
    tiles: TileSettings = Field(default_factory=TileSettings)
    zoom: int = Field(6, ge=0, le=19)
    height_px: int = Field(500, ge=100)
    line: LineSettings = Field(default_factory=LineSettings)
    marker_color: str = "#00008B"
    label_offset_deg: float = 0.2
    default_center: Coordinate = Field(default_factory=lambda: Coordinate(lat=19.076, lon=72.8777))


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    geocoding: GeocodingSettings = Field(default_factory=GeocodingSettings)
    view: ViewSettings = Field(default_factory=ViewSettings)
    map: MapSettings = Field(default_factory=MapSettings)


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Overlay selected environment variables onto raw settings payload.

    Note: the whitelist is small on purpose; everything else comes from YAML.
    """
    load_dotenv_if_present()
    data = dict(data)
    cache_dir = os.getenv("LOCATIONMAP_CACHE_DIR")
    if cache_dir:
        data.setdefault("cache", {})["dir"] = cache_dir

    log_level = os.getenv("LOCATIONMAP_LOG_LEVEL")
    if log_level:
        data.setdefault("app", {})["log_level"] = log_level

    user_agent = os.getenv("LOCATIONMAP_GEOCODER_USER_AGENT")
    if user_agent:
        data.setdefault("geocoding", {})["user_agent"] = user_agent

    return data


@lru_cache
def get_settings() -> Settings:
    """Load and validate settings (cached)."""
    load_dotenv_if_present()
    config_path = os.getenv("LOCATIONMAP_CONFIG_PATH")
    raw = _read_yaml_file(config_path) if config_path else _read_package_yaml("defaults.yaml")
    raw = _apply_env_overrides(raw)
    return Settings.model_validate(raw)


@lru_cache
def get_logging_config() -> dict[str, Any]:
    """Load logging configuration (cached)."""
    return _read_package_yaml("logging.yaml")
