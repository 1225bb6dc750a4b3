from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest
from typer.testing import CliRunner

from grid_crawler.app import AppState, app
from grid_crawler.orchestrator import Orchestrator


@pytest.fixture
def install_state(monkeypatch, sample_global_config, stub_fetcher):
    def _install(handler) -> AppState:
        repository = MagicMock()
        repository.load_global_config.return_value = sample_global_config
        repository.outputs_dir.return_value = sample_global_config.outputs_dir
        fetcher = stub_fetcher(handler)
        orchestrator = Orchestrator(
            config_repository=repository,
            fetcher_factory=lambda global_config, logger: fetcher,
            sleep=lambda seconds: None,
        )
        state = AppState(repository=repository, orchestrator=orchestrator)
        monkeypatch.setattr("grid_crawler.app.build_state", lambda verbose: state)
        return state

    return _install


def test_cli_run_exports_results(install_state, make_record, tmp_path: Path) -> None:
    install_state(lambda task, cancel_event: [make_record()])
    runner = CliRunner()
    result = runner.invoke(
        app,
        ["run", "--lat", "19.4326", "--lon=-99.1332", "--query", "cafe", "--radius", "2.5",
         "--output-dir", str(tmp_path)],
    )
    assert result.exit_code == 0, result.stdout
    assert "Searching 4 locations" in result.stdout
    assert "Unique places" in result.stdout
    assert "places saved" in result.stdout
    assert len(list(tmp_path.glob("prospects-*.csv"))) == 1


def test_cli_run_quiet_prints_single_line(install_state, make_record, tmp_path: Path) -> None:
    install_state(lambda task, cancel_event: [make_record()])
    result = CliRunner().invoke(
        app,
        ["run", "-a", "0", "-o", "0", "-q", "cafe", "-r", "0", "-f", "json",
         "--output-dir", str(tmp_path), "--quiet"],
    )
    assert result.exit_code == 0, result.stdout
    assert "Searching" not in result.stdout
    assert "1 places saved" in result.stdout
    assert len(list(tmp_path.glob("prospects-*.jsonl"))) == 1


def test_cli_run_with_no_results(install_state, tmp_path: Path) -> None:
    install_state(lambda task, cancel_event: [])
    result = CliRunner().invoke(
        app, ["run", "--lat", "0", "--lon", "0", "--query", "nothing", "--output-dir", str(tmp_path)]
    )
    assert result.exit_code == 0, result.stdout
    assert "0 results" in result.stdout
    assert list(tmp_path.iterdir()) == []


def test_cli_run_rejects_oversized_radius(install_state) -> None:
    state = install_state(lambda task, cancel_event: [])
    result = CliRunner().invoke(
        app, ["run", "--lat", "0", "--lon", "0", "--query", "cafe", "--radius", "40"]
    )
    assert result.exit_code == 2
    assert "Configuration error" in result.stdout
    assert state.orchestrator.fetcher_factory(None, None).tasks == []


def test_cli_run_rejects_unknown_format(install_state) -> None:
    install_state(lambda task, cancel_event: [])
    result = CliRunner().invoke(
        app, ["run", "--lat", "0", "--lon", "0", "--query", "cafe", "--format", "xml"]
    )
    assert result.exit_code == 2
    assert "Unsupported output format" in result.stdout


def test_cli_plan_shows_grid(install_state) -> None:
    install_state(lambda task, cancel_event: [])
    result = CliRunner().invoke(app, ["plan", "--lat", "0", "--lon", "0", "--query", "gym", "--radius", "5"])
    assert result.exit_code == 0, result.stdout
    assert "Grid points" in result.stdout
    assert "16" in result.stdout
    assert "3m00s" in result.stdout


def test_cli_config_show(install_state) -> None:
    install_state(lambda task, cancel_event: [])
    result = CliRunner().invoke(app, ["config", "show"])
    assert result.exit_code == 0, result.stdout
    assert "max_workers: 4" in result.stdout
    assert "grid_step_km: 2.5" in result.stdout


def test_cli_log_list_after_run(install_state, make_record, tmp_path: Path) -> None:
    install_state(lambda task, cancel_event: [make_record()])
    runner = CliRunner()
    runner.invoke(
        app, ["run", "--lat", "0", "--lon", "0", "--query", "Log Check", "--output-dir", str(tmp_path)]
    )
    result = runner.invoke(app, ["log", "list"])
    assert result.exit_code == 0, result.stdout
    assert "log-check.log" in result.stdout

    shown = runner.invoke(app, ["log", "show", "--run", "Log Check", "--tail", "5"])
    assert shown.exit_code == 0, shown.stdout
    assert "run_exported" in shown.stdout


def test_cli_plan_rejects_nan_radius(install_state) -> None:
    install_state(lambda task, cancel_event: [])
    result = CliRunner().invoke(app, ["plan", "--lat", "0", "--lon", "0", "--query", "gym", "--radius", "nan"])
    assert result.exit_code == 2
    assert "Configuration error" in result.stdout
