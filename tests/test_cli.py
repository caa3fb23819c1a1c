import json

import pytest

import locationmap.cli as cli
from conftest import DELHI, GOA, StubGeocoder


@pytest.fixture
def stub_geocoder(monkeypatch):
    stub = StubGeocoder({"Delhi": DELHI, "Goa": GOA}, labels={DELHI: "New Delhi, 110001"})
    monkeypatch.setattr(cli, "build_geocoder", lambda: stub)
    return stub


def test_distance_command(capsys):
    code = cli.main(["distance", "--from", "19.076,72.8777", "--to", "18.5204, 73.8567"])

    assert code == 0
    assert capsys.readouterr().out.strip() == "Distance: 120.15 km"


def test_distance_rejects_bad_coordinates():
    with pytest.raises(SystemExit):
        cli.main(["distance", "--from", "19.076", "--to", "18.5204,73.8567"])
    with pytest.raises(SystemExit):
        cli.main(["distance", "--from", "95,0", "--to", "18.5204,73.8567"])


def test_route_json_and_html(stub_geocoder, capsys, tmp_path):
    out_html = tmp_path / "map.html"

    code = cli.main(
        ["route", "--start", "Delhi", "--destination", "Goa", "--json", "--html", str(out_html)]
    )

    assert code == 0
    data = json.loads(capsys.readouterr().out)
    assert data["start"]["coordinate"] == {"lat": DELHI.lat, "lon": DELHI.lon}
    assert data["destination"]["label"] == "Goa"
    assert data["distance_text"].startswith("Distance: ")
    assert "Delhi" in out_html.read_text(encoding="utf-8")


def test_route_with_nothing_resolved_exits_nonzero(stub_geocoder, capsys):
    code = cli.main(["route", "--start", "Atlantis", "--destination", "El Dorado"])

    assert code == 1
    out = capsys.readouterr().out
    assert "Atlantis" in out
    assert "Distance: 120.15 km" in out


def test_route_current_location_and_swap(stub_geocoder, capsys):
    code = cli.main(["route", "--use-current-location", "--here", "18.9,72.8", "--swap", "--json"])

    assert code == 0
    data = json.loads(capsys.readouterr().out)
    assert data["destination"]["label"] == "Current Location"
    assert data["start"]["label"] == "Pune"
    assert stub_geocoder.searches == []


def test_route_current_location_without_position_alerts(stub_geocoder, capsys):
    code = cli.main(["route", "--use-current-location"])

    assert code == 0
    out = capsys.readouterr().out
    assert "! Geolocation is not supported by your browser." in out
    assert "start: Mumbai" in out


def test_reverse_command(stub_geocoder, capsys):
    assert cli.main(["reverse", "28.6139,77.209"]) == 0
    assert capsys.readouterr().out.strip() == "New Delhi, 110001"

    assert cli.main(["reverse", "0,0"]) == 1
