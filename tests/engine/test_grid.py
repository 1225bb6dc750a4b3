from __future__ import annotations

import math

import pytest

from grid_crawler.engine import KM_PER_DEGREE, generate_grid
from grid_crawler.engine.grid import axis_steps
from grid_crawler.errors import ConfigurationError
from grid_crawler.models import GeoPoint

CENTER = GeoPoint(19.4326, -99.1332)


def test_five_km_radius_yields_sixteen_points() -> None:
    points = generate_grid(CENTER, 5.0, 2.5)
    assert len(points) == 16
    assert len(set(points)) == 16


def test_grid_is_deterministic() -> None:
    assert generate_grid(CENTER, 7.0, 2.5) == generate_grid(CENTER, 7.0, 2.5)


def test_zero_radius_returns_center_only() -> None:
    assert generate_grid(CENTER, 0.0, 2.5) == [CENTER]


def test_radius_smaller_than_half_step_collapses_to_center() -> None:
    assert axis_steps(1.0, 2.5) == 1
    assert generate_grid(CENTER, 1.0, 2.5) == [CENTER]


def test_points_are_row_major_and_span_the_bounding_box() -> None:
    radius = 5.0
    points = generate_grid(CENTER, radius, 2.5)
    lat_delta = radius / KM_PER_DEGREE
    lon_delta = radius / (KM_PER_DEGREE * math.cos(math.radians(CENTER.lat)))

    first_row = points[:4]
    assert {point.lat for point in first_row} == {first_row[0].lat}
    assert [point.lon for point in first_row] == sorted(point.lon for point in first_row)
    assert points[0].lat < points[4].lat

    assert points[0].lat == pytest.approx(CENTER.lat - lat_delta)
    assert points[0].lon == pytest.approx(CENTER.lon - lon_delta)
    assert points[-1].lat == pytest.approx(CENTER.lat + lat_delta)
    assert points[-1].lon == pytest.approx(CENTER.lon + lon_delta)


def test_longitude_spread_widens_with_latitude() -> None:
    equator = generate_grid(GeoPoint(0.0, 10.0), 5.0, 2.5)
    north = generate_grid(GeoPoint(60.0, 10.0), 5.0, 2.5)
    equator_span = equator[3].lon - equator[0].lon
    north_span = north[3].lon - north[0].lon
    assert north_span == pytest.approx(equator_span * 2, rel=1e-6)


@pytest.mark.parametrize("step", [0.0, -2.5])
def test_non_positive_step_is_rejected(step: float) -> None:
    with pytest.raises(ConfigurationError):
        generate_grid(CENTER, 5.0, step)


def test_negative_radius_is_rejected() -> None:
    with pytest.raises(ConfigurationError):
        generate_grid(CENTER, -1.0, 2.5)


@pytest.mark.parametrize(
    ("center", "radius", "step"),
    [
        (CENTER, float("nan"), 2.5),
        (CENTER, 5.0, float("nan")),
        (GeoPoint(float("nan"), 0.0), 5.0, 2.5),
    ],
)
def test_non_finite_arguments_are_rejected(center: GeoPoint, radius: float, step: float) -> None:
    with pytest.raises(ConfigurationError):
        generate_grid(center, radius, step)
