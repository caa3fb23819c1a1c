from conftest import MUMBAI, PUNE
from locationmap.config.settings import MapSettings
from locationmap.domain.models import Coordinate, NamedLocation, ViewState
from locationmap.render.map_scene import build_scene, render_html


def _state(start=None, destination=None, distance=120.15):
    return ViewState(
        start=start or NamedLocation(label="Mumbai", coordinate=MUMBAI),
        destination=destination or NamedLocation(label="Pune", coordinate=PUNE),
        distance_km=distance,
    )


def test_scene_for_two_resolved_places():
    scene = build_scene(_state(), MapSettings())

    assert scene.center == MUMBAI
    assert scene.zoom == 6
    assert "opentopomap" in scene.tile_url
    assert [m.role for m in scene.markers] == ["start", "destination"]
    assert [m.popup for m in scene.markers] == ["Mumbai", "Pune"]
    assert scene.markers[0].label_position == Coordinate(lat=MUMBAI.lat + 0.2, lon=MUMBAI.lon)
    assert scene.line is not None
    assert scene.line.positions == (MUMBAI, PUNE)
    assert (scene.line.color, scene.line.weight, scene.line.opacity) == ("red", 6, 0.8)
    assert scene.distance_text == "Distance: 120.15 km"


def test_scene_skips_unresolved_side_and_line():
    state = _state(start=NamedLocation(label="Typed only"), distance=None)

    scene = build_scene(state, MapSettings())

    assert [m.role for m in scene.markers] == ["destination"]
    assert scene.line is None
    assert scene.center == PUNE
    assert scene.distance_text is None


def test_scene_falls_back_to_default_center():
    state = _state(
        start=NamedLocation(label="a"), destination=NamedLocation(label="b"), distance=None
    )
    settings = MapSettings(default_center=Coordinate(lat=10, lon=20))

    scene = build_scene(state, settings)

    assert scene.center == Coordinate(lat=10, lon=20)
    assert scene.markers == []


def test_label_position_is_clamped_at_the_pole():
    state = _state(start=NamedLocation(label="Pole", coordinate=Coordinate(lat=89.95, lon=0)))

    scene = build_scene(state, MapSettings())

    assert scene.markers[0].label_position.lat == 90.0


def test_render_html_paints_markers_line_and_distance():
    html = render_html(build_scene(_state(), MapSettings()))

    assert "opentopomap.org" in html
    assert "Mumbai" in html and "Pune" in html
    assert "Distance: 120.15 km" in html
    assert "L.polyline" in html
    assert "#00008B" in html


def test_render_html_escapes_labels():
    state = _state(start=NamedLocation(label="<script>x</script>", coordinate=MUMBAI))

    html = render_html(build_scene(state, MapSettings()))

    assert "&lt;script&gt;x&lt;/script&gt;" in html
