import pytest

from marketplace.utils.geometry import format_wkt_point, parse_wkt_point


@pytest.mark.parametrize("value, expected", [
    ("POINT(-122.4194 37.7749)", {"longitude": -122.4194, "latitude": 37.7749}),
    ("POINT (1 2)", {"longitude": 1.0, "latitude": 2.0}),
    ("point(10.5 -3.25)", {"longitude": 10.5, "latitude": -3.25}),
    ("  POINT(0 0)  ", {"longitude": 0.0, "latitude": 0.0}),
])
def test_parses_points(value, expected):
    assert parse_wkt_point(value) == expected


@pytest.mark.parametrize("value", [
    None,
    "",
    42,
    "not wkt",
    "POINT(abc def)",
    "POINT EMPTY",
    "LINESTRING(0 0, 1 1)",
    "POINT(1)",
    "POINT(1 2 3)",
    "POINT Z (1 2 3)",
    "POINT M (1 2 3)",
    "POINT ZM (1 2 3 4)",
])
def test_bad_values_return_none(value):
    assert parse_wkt_point(value) is None


def test_format_is_readable_by_parser():
    stored = format_wkt_point(-97.7431, 30.2672)
    assert stored.upper().startswith("POINT")
    assert parse_wkt_point(stored) == {"longitude": -97.7431, "latitude": 30.2672}
