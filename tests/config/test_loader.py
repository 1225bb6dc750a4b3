from __future__ import annotations

from pathlib import Path

import yaml

from grid_crawler.config import ConfigLocator, ConfigRepository, GlobalConfig


def test_locator_creates_directories(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("GRID_CRAWLER_HOME", str(tmp_path))
    locator = ConfigLocator()
    assert locator.project_root == tmp_path.resolve()
    assert locator.outputs_dir.is_dir()
    assert locator.logs_dir.is_dir()
    assert locator.global_config_path() == tmp_path.resolve() / "data" / "global_config.yaml"


def test_first_load_writes_default_config(temp_config_repository: ConfigRepository) -> None:
    config = temp_config_repository.load_global_config()
    path = temp_config_repository.locator.global_config_path()
    assert path.exists()
    payload = yaml.safe_load(path.read_text(encoding="utf-8"))
    assert payload["max_workers"] == config.max_workers == 4
    assert payload["outputs_dir"] == "data/outputs"


def test_load_reads_existing_file(temp_config_repository: ConfigRepository) -> None:
    path = temp_config_repository.locator.global_config_path()
    path.write_text(yaml.safe_dump({"max_workers": 2, "output_format": "json"}), encoding="utf-8")

    config = temp_config_repository.load_global_config()
    assert config.max_workers == 2
    assert config.output_format == "json"
    assert config.grid_step_km == 2.5


def test_save_round_trip_updates_cache(temp_config_repository: ConfigRepository) -> None:
    updated = GlobalConfig(max_radius_km=10, default_radius_km=3)
    temp_config_repository.save_global_config(updated)
    assert temp_config_repository.load_global_config() is updated

    fresh = ConfigRepository(temp_config_repository.locator)
    assert fresh.load_global_config().max_radius_km == 10


def test_outputs_dir_resolves_relative_to_root(temp_config_repository: ConfigRepository, tmp_path: Path) -> None:
    assert temp_config_repository.outputs_dir() == (tmp_path / "data" / "outputs").resolve()

    absolute = tmp_path / "elsewhere"
    temp_config_repository.save_global_config(GlobalConfig(outputs_dir=absolute))
    assert temp_config_repository.outputs_dir() == absolute
