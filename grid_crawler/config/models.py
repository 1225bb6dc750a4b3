"""Pydantic models used across the grid-crawler configuration flow."""

from __future__ import annotations

import math
from datetime import timedelta
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from ..errors import ConfigurationError
from ..models import GeoPoint

OutputFormat = Literal["csv", "json", "sqlite"]


class GlobalConfig(BaseModel):
    """Global controls shared by every run."""

    model_config = ConfigDict(allow_inf_nan=False)

    # Dispatch
    max_radius_km: float = 25.0
    default_radius_km: float = 2.0
    grid_step_km: float = 2.5
    sub_search_radius_km: float = 1.0
    max_workers: int = 4
    per_task_timeout_s: float = 45.0
    inter_batch_pause_s: float = 2.0
    task_duration_estimate_s: float = 45.0

    # Browser
    zoom: int = 15
    headless: bool = True
    scroll_rounds: int = 10
    scroll_pause_ms: int = 500
    navigation_timeout_ms: int = 30000
    user_agent: str | None = None

    # Output
    output_format: OutputFormat = "csv"
    output_slug: str = "prospects"
    enable_progress_bar: bool = True
    outputs_dir: Path = Field(default=Path("data/outputs"))

    @field_validator("outputs_dir", mode="before")
    @classmethod
    def _coerce_dirs(cls, value: Any) -> Path:
        return Path(value)

    @field_validator("max_radius_km", "grid_step_km", "sub_search_radius_km", "per_task_timeout_s")
    @classmethod
    def _positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("must be greater than 0")
        return value

    @field_validator("inter_batch_pause_s", "task_duration_estimate_s", "default_radius_km")
    @classmethod
    def _non_negative(cls, value: float) -> float:
        if value < 0:
            raise ValueError("must be >= 0")
        return value

    @model_validator(mode="after")
    def _validate_limits(self) -> "GlobalConfig":
        if self.max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        if self.scroll_rounds < 0:
            raise ValueError("scroll_rounds must be >= 0")
        if self.scroll_pause_ms < 0:
            raise ValueError("scroll_pause_ms must be >= 0")
        if not 1 <= self.zoom <= 21:
            raise ValueError("zoom must be between 1 and 21")
        if self.default_radius_km > self.max_radius_km:
            raise ValueError("default_radius_km cannot exceed max_radius_km")
        return self


class RunPlan(BaseModel):
    """Immutable configuration snapshot for a single grid run."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    center: GeoPoint
    radius_km: float
    query: str
    grid_step_km: float = 2.5
    sub_search_radius_km: float = 1.0
    max_workers: int = 4
    per_task_timeout: timedelta = timedelta(seconds=45)
    inter_batch_pause: timedelta = timedelta(seconds=2)
    max_radius_km: float = 25.0

    @field_validator("query")
    @classmethod
    def _strip_query(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("query cannot be empty")
        return value

    @model_validator(mode="after")
    def _validate_plan(self) -> "RunPlan":
        numbers = {
            "lat": self.center.lat,
            "lon": self.center.lon,
            "radius_km": self.radius_km,
            "grid_step_km": self.grid_step_km,
            "sub_search_radius_km": self.sub_search_radius_km,
            "max_radius_km": self.max_radius_km,
        }
        for name, value in numbers.items():
            if not math.isfinite(value):
                raise ValueError(f"{name} must be a finite number, got {value}")
        if not -90.0 <= self.center.lat <= 90.0:
            raise ValueError(f"latitude out of range: {self.center.lat}")
        if not -180.0 <= self.center.lon <= 180.0:
            raise ValueError(f"longitude out of range: {self.center.lon}")
        if self.radius_km < 0:
            raise ValueError("radius_km must be >= 0")
        if self.radius_km > self.max_radius_km:
            raise ValueError(
                f"radius {self.radius_km:g} km exceeds the maximum of {self.max_radius_km:g} km"
            )
        if self.grid_step_km <= 0:
            raise ValueError("grid_step_km must be greater than 0")
        if self.sub_search_radius_km <= 0:
            raise ValueError("sub_search_radius_km must be greater than 0")
        if self.max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        if self.per_task_timeout <= timedelta(0):
            raise ValueError("per_task_timeout must be positive")
        if self.inter_batch_pause < timedelta(0):
            raise ValueError("inter_batch_pause must be >= 0")
        return self

    @classmethod
    def build(
        cls,
        global_config: GlobalConfig,
        *,
        lat: float,
        lon: float,
        query: str,
        radius_km: float | None = None,
        **overrides: Any,
    ) -> "RunPlan":
        """Derive a validated plan from global defaults plus per-run values.

        Raises:
            ConfigurationError: when any value is rejected; nothing has been
                dispatched at that point.
        """

        payload: dict[str, Any] = {
            "center": GeoPoint(lat=lat, lon=lon),
            "radius_km": global_config.default_radius_km if radius_km is None else radius_km,
            "query": query,
            "grid_step_km": global_config.grid_step_km,
            "sub_search_radius_km": global_config.sub_search_radius_km,
            "max_workers": global_config.max_workers,
            "per_task_timeout": timedelta(seconds=global_config.per_task_timeout_s),
            "inter_batch_pause": timedelta(seconds=global_config.inter_batch_pause_s),
            "max_radius_km": global_config.max_radius_km,
        }
        payload.update(overrides)
        try:
            return cls.model_validate(payload)
        except ValidationError as exc:
            messages = "; ".join(
                f"{'.'.join(str(part) for part in error['loc']) or 'plan'}: {error['msg']}"
                for error in exc.errors()
            )
            raise ConfigurationError(f"Invalid run plan: {messages}") from exc


__all__ = ["GlobalConfig", "OutputFormat", "RunPlan"]
