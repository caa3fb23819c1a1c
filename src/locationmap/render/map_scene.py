"""
Map rendering.

`build_scene` turns a `ViewState` into a `MapScene` (plain data, easy to test and to
send as JSON). `render_map` / `render_html` paint a scene with folium (Leaflet):
a pin and a text label per resolved side, a line between them, and the distance.
"""

from __future__ import annotations

from html import escape

import folium

from locationmap.config.settings import MapSettings
from locationmap.domain.models import Coordinate, MapLine, MapMarker, MapScene, NamedLocation, ViewState

_PIN_SVG = """
<svg width="35" height="45" viewBox="0 0 24 24" fill="none" xmlns="http://www.w3.org/2000/svg">
  <path transform="rotate(180, 12, 12)"
    d="M12 24c-4.97 0-9-4.03-9-9 0-7 9-15 9-15s9 8 9 15c0 4.97-4.03 9-9 9zm0-11.5c-1.66 0-3 1.34-3 3s1.34 3 3 3 3-1.34 3-3-1.34-3-3-3z"
    fill="{color}"/>
</svg>"""

_LABEL_STYLE = (
    "background-color: white; padding: 5px 10px; border-radius: 5px; "
    "box-shadow: 2px 2px 6px rgba(0,0,0,0.2); font-size: 14px; font-weight: bold; "
    "white-space: nowrap;"
)


def _marker(role: str, place: NamedLocation, offset_deg: float) -> MapMarker | None:
    if place.coordinate is None:
        return None
    c = place.coordinate
    # Labels sit a little north of the pin; clamp so polar points stay valid.
    label_lat = max(-90.0, min(90.0, c.lat + offset_deg))
    return MapMarker(
        role=role,
        position=c,
        popup=place.label,
        label_position=Coordinate(lat=label_lat, lon=c.lon),
    )


def build_scene(state: ViewState, settings: MapSettings) -> MapScene:
    """Describe what the map should show for `state`."""
    markers = [
        m
        for m in (
            _marker("start", state.start, settings.label_offset_deg),
            _marker("destination", state.destination, settings.label_offset_deg),
        )
        if m is not None
    ]

    line = None
    if state.start.coordinate is not None and state.destination.coordinate is not None:
        line = MapLine(
            positions=(state.start.coordinate, state.destination.coordinate),
            color=settings.line.color,
            weight=settings.line.weight,
            opacity=settings.line.opacity,
        )

    center = state.start.coordinate or state.destination.coordinate or settings.default_center
    return MapScene(
        center=center,
        zoom=settings.zoom,
        tile_url=settings.tiles.url,
        tile_attribution=settings.tiles.attribution,
        height_px=settings.height_px,
        marker_color=settings.marker_color,
        markers=markers,
        line=line,
        distance_text=state.distance_text,
    )


def render_map(scene: MapScene) -> folium.Map:
    """Paint `scene` onto a new folium map."""
    m = folium.Map(
        location=scene.center.as_list(),
        zoom_start=scene.zoom,
        tiles=scene.tile_url,
        attr=scene.tile_attribution,
        height=f"{scene.height_px}px",
    )

    pin_html = _PIN_SVG.replace("{color}", escape(scene.marker_color))
    for marker in scene.markers:
        label = escape(marker.popup)
        folium.Marker(
            location=marker.position.as_list(),
            popup=folium.Popup(f"<b>{label}</b>"),
            tooltip=marker.role,
            icon=folium.DivIcon(
                html=pin_html,
                icon_size=(35, 45),
                icon_anchor=(17, 45),
                popup_anchor=(1, -30),
                class_name="custom-icon",
            ),
        ).add_to(m)
        folium.Marker(
            location=marker.label_position.as_list(),
            icon=folium.DivIcon(
                html=f'<div style="{_LABEL_STYLE}">{label}</div>',
                class_name="custom-label",
            ),
        ).add_to(m)

    if scene.line is not None:
        folium.PolyLine(
            locations=[p.as_list() for p in scene.line.positions],
            color=scene.line.color,
            weight=scene.line.weight,
            opacity=scene.line.opacity,
        ).add_to(m)

    if scene.distance_text:
        m.get_root().html.add_child(
            folium.Element(f'<div class="distance-info">{escape(scene.distance_text)}</div>')
        )
    return m


def render_html(scene: MapScene) -> str:
    """Standalone HTML document for `scene`."""
    return render_map(scene).get_root().render()
