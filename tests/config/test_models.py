from __future__ import annotations

from datetime import timedelta

import pytest
from pydantic import ValidationError

from grid_crawler.config import GlobalConfig, RunPlan
from grid_crawler.errors import ConfigurationError
from grid_crawler.models import GeoPoint


def test_global_config_defaults() -> None:
    config = GlobalConfig()
    assert config.max_radius_km == 25.0
    assert config.default_radius_km == 2.0
    assert config.grid_step_km == 2.5
    assert config.max_workers == 4
    assert config.per_task_timeout_s == 45.0
    assert config.output_format == "csv"


@pytest.mark.parametrize(
    "overrides",
    [
        {"max_workers": 0},
        {"grid_step_km": 0},
        {"per_task_timeout_s": -1},
        {"zoom": 22},
        {"default_radius_km": 30.0},
        {"output_format": "xml"},
        {"grid_step_km": float("nan")},
        {"default_radius_km": float("nan")},
    ],
)
def test_global_config_rejects_invalid_values(overrides) -> None:
    with pytest.raises(ValidationError):
        GlobalConfig(**overrides)


def test_build_plan_uses_global_defaults() -> None:
    plan = RunPlan.build(GlobalConfig(), lat=19.4326, lon=-99.1332, query="  tacos  ")
    assert plan.center == GeoPoint(19.4326, -99.1332)
    assert plan.query == "tacos"
    assert plan.radius_km == 2.0
    assert plan.per_task_timeout == timedelta(seconds=45)
    assert plan.inter_batch_pause == timedelta(seconds=2)


def test_build_plan_accepts_overrides() -> None:
    plan = RunPlan.build(GlobalConfig(), lat=0, lon=0, query="gym", radius_km=5, max_workers=2)
    assert plan.radius_km == 5
    assert plan.max_workers == 2


def test_radius_above_maximum_is_rejected() -> None:
    with pytest.raises(ConfigurationError) as excinfo:
        RunPlan.build(GlobalConfig(), lat=0, lon=0, query="gym", radius_km=30)
    assert "exceeds the maximum of 25 km" in str(excinfo.value)


def test_radius_at_maximum_is_allowed() -> None:
    plan = RunPlan.build(GlobalConfig(), lat=0, lon=0, query="gym", radius_km=25)
    assert plan.radius_km == 25


@pytest.mark.parametrize(
    "kwargs",
    [
        {"lat": 91, "lon": 0, "query": "gym"},
        {"lat": 0, "lon": -181, "query": "gym"},
        {"lat": 0, "lon": 0, "query": "   "},
        {"lat": 0, "lon": 0, "query": "gym", "radius_km": -1},
        {"lat": 0, "lon": 0, "query": "gym", "radius_km": float("nan")},
        {"lat": 0, "lon": 0, "query": "gym", "radius_km": float("inf")},
        {"lat": float("nan"), "lon": 0, "query": "gym"},
        {"lat": 0, "lon": float("nan"), "query": "gym"},
        {"lat": 0, "lon": 0, "query": "gym", "grid_step_km": float("nan")},
    ],
)
def test_invalid_plans_raise_configuration_error(kwargs) -> None:
    with pytest.raises(ConfigurationError):
        RunPlan.build(GlobalConfig(), **kwargs)


def test_configuration_error_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        RunPlan.build(GlobalConfig(), lat=0, lon=0, query="")


def test_plan_is_frozen() -> None:
    plan = RunPlan.build(GlobalConfig(), lat=0, lon=0, query="gym")
    with pytest.raises(ValidationError):
        plan.radius_km = 3
