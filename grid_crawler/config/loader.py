"""Locate the working directories and persist ``GlobalConfig`` as YAML."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .models import GlobalConfig

HOME_ENV_VAR = "GRID_CRAWLER_HOME"
GLOBAL_CONFIG_FILENAME = "global_config.yaml"


def _slugify(name: str) -> str:
    return "".join(ch.lower() if ch.isalnum() else "-" for ch in name).strip("-")


def _load_yaml(path: Path) -> dict[str, Any]:
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected a mapping at the top of {path}")
    return data


def _dump_yaml(path: Path, payload: dict[str, Any]) -> None:
    path.write_text(
        yaml.safe_dump(payload, allow_unicode=True, sort_keys=False),
        encoding="utf-8",
    )


def project_root() -> Path:
    """``GRID_CRAWLER_HOME`` when set, else the checkout containing the package."""

    override = os.environ.get(HOME_ENV_VAR)
    if override:
        return Path(override).expanduser().resolve()
    return Path(__file__).resolve().parents[2]


@dataclass(slots=True)
class ConfigLocator:
    """Working layout: ``data/``, ``data/outputs/`` and ``logs/`` under one root.

    The environment override wins over an explicit ``project_root``.
    """

    project_root: Path | None = None
    data_dir: Path | None = None
    outputs_dir: Path | None = None
    logs_dir: Path | None = None

    def __post_init__(self) -> None:
        explicit = self.project_root
        root = project_root() if os.environ.get(HOME_ENV_VAR) or explicit is None else explicit.resolve()
        self.project_root = root
        self.data_dir = root / "data"
        self.outputs_dir = self.data_dir / "outputs"
        self.logs_dir = root / "logs"
        for directory in (self.data_dir, self.outputs_dir, self.logs_dir):
            directory.mkdir(parents=True, exist_ok=True)

    def global_config_path(self) -> Path:
        return self.data_dir / GLOBAL_CONFIG_FILENAME

    def resolve_outputs_dir(self, configured: Path) -> Path:
        return configured if configured.is_absolute() else (self.project_root / configured).resolve()


class ConfigRepository:
    """Read and write ``global_config.yaml``, caching the validated model."""

    def __init__(self, locator: ConfigLocator | None = None) -> None:
        self.locator = locator or ConfigLocator()
        self._cached: GlobalConfig | None = None

    def load_global_config(self) -> GlobalConfig:
        """Return the cached config, writing defaults on first use.

        Raises:
            pydantic.ValidationError: when the stored file holds invalid values.
        """

        if self._cached is None:
            path = self.locator.global_config_path()
            if path.exists():
                self._cached = GlobalConfig.model_validate(_load_yaml(path))
            else:
                self.save_global_config(GlobalConfig())
        return self._cached

    def save_global_config(self, config: GlobalConfig) -> None:
        _dump_yaml(self.locator.global_config_path(), config.model_dump(mode="json"))
        self._cached = config

    def outputs_dir(self) -> Path:
        return self.locator.resolve_outputs_dir(Path(self.load_global_config().outputs_dir))


__all__ = ["ConfigLocator", "ConfigRepository", "HOME_ENV_VAR", "project_root"]
