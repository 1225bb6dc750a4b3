"""Tile a circular search area into a square grid of sub-search centers."""

from __future__ import annotations

import math

import structlog

from ..errors import ConfigurationError
from ..models import GeoPoint

KM_PER_DEGREE = 111.0

log = structlog.get_logger("grid_crawler.grid")


def axis_steps(radius_km: float, step_km: float) -> int:
    """Number of grid positions along one axis, never fewer than one."""

    return max(1, math.ceil(2 * radius_km / step_km))


def _axis(center: float, delta: float, steps: int) -> list[float]:
    # A single position has no spacing to divide; it sits on the center.
    if steps == 1:
        return [center]
    return [center - delta + (2 * delta * index / (steps - 1)) for index in range(steps)]


def generate_grid(center: GeoPoint, radius_km: float, step_km: float) -> list[GeoPoint]:
    """
    Cover the bounding box of ``radius_km`` around ``center`` with points.

    Points run evenly from ``center - delta`` to ``center + delta`` on both
    axes and are returned row-major (latitude outer, longitude inner).
    Corners outside the true radius are kept; each sub-search covers its own
    smaller radius, so the overlap is what gives full coverage.

    radius_km=5, step_km=2.5  → 4 x 4 → 16 points
    radius_km=0               → [center]
    """
    if not all(math.isfinite(value) for value in (center.lat, center.lon, radius_km, step_km)):
        raise ConfigurationError("grid arguments must be finite numbers")
    if step_km <= 0:
        raise ConfigurationError("grid step must be greater than 0")
    if radius_km < 0:
        raise ConfigurationError("grid radius must be >= 0")

    lat_delta = radius_km / KM_PER_DEGREE
    # Longitude degrees shrink with latitude; poles are out of scope.
    lon_delta = radius_km / (KM_PER_DEGREE * math.cos(math.radians(center.lat)))

    lat_steps = axis_steps(radius_km, step_km)
    lon_steps = axis_steps(radius_km, step_km)

    latitudes = _axis(center.lat, lat_delta, lat_steps)
    longitudes = _axis(center.lon, lon_delta, lon_steps)
    points = [GeoPoint(lat=lat, lon=lon) for lat in latitudes for lon in longitudes]

    log.debug(
        "grid.built",
        center=str(center),
        radius_km=radius_km,
        step_km=step_km,
        lat_steps=lat_steps,
        lon_steps=lon_steps,
        total_points=len(points),
    )
    return points


__all__ = ["KM_PER_DEGREE", "axis_steps", "generate_grid"]
