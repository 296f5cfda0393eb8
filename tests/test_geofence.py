from ponto import config
from ponto.utils.geofence import check_within_geofence, haversine_distance, validate_location

OFFICE = {"name": "Head office", "latitude": -23.5505, "longitude": -46.6333, "radius": 100}
SQUARE = "-23.50,-46.70;-23.50,-46.60;-23.60,-46.60;-23.60,-46.70"


def test_haversine_distance():
    assert haversine_distance(-23.5505, -46.6333, -23.5505, -46.6333) == 0
    # one hundredth of a degree of latitude is about 1.1 km
    assert 1100 < haversine_distance(-23.55, -46.63, -23.56, -46.63) < 1120


def test_point_inside_polygon():
    assert check_within_geofence(-23.55, -46.65, SQUARE)
    assert not check_within_geofence(-23.70, -46.65, SQUARE)


def test_polygon_needs_three_points():
    assert not check_within_geofence(-23.55, -46.65, "-23.50,-46.70;-23.60,-46.60")


def test_inside_radius_is_valid():
    result = validate_location(-23.5506, -46.6334, [OFFICE])
    assert result["isValid"]
    assert result["distance"] < 100


def test_outside_radius_is_invalid():
    result = validate_location(-23.5605, -46.6333, [OFFICE])
    assert not result["isValid"]
    assert "Head office" in result["reason"]
    assert result["distance"] > 1000


def test_geo_boundary_takes_precedence():
    location = {"name": "Warehouse", "latitude": 0, "longitude": 0, "radius": 1, "geoBoundary": SQUARE}
    assert validate_location(-23.55, -46.65, [location])["isValid"]


def test_default_company_location(monkeypatch):
    monkeypatch.setattr(config, "DEFAULT_LATITUDE", -23.5505)
    monkeypatch.setattr(config, "DEFAULT_LONGITUDE", -46.6333)
    assert validate_location(-23.5505, -46.6333, [])["isValid"]
    assert not validate_location(-22.9, -43.2, None)["isValid"]


def test_validation_can_be_disabled(monkeypatch):
    monkeypatch.setattr(config, "SKIP_LOCATION_VALIDATION", True)
    assert validate_location(0, 0, [OFFICE])["isValid"]
