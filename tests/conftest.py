"""Shared fixtures for grid-crawler tests."""

from __future__ import annotations

from pathlib import Path
from threading import Event
from typing import Any, Callable, Iterable

import pytest

from grid_crawler.config import ConfigLocator, ConfigRepository, GlobalConfig
from grid_crawler.engine import BaseFetcher
from grid_crawler.models import GeoPoint, Record, SearchTask


@pytest.fixture(autouse=True, scope="session")
def _isolated_home(tmp_path_factory: pytest.TempPathFactory) -> Iterable[Path]:
    home = tmp_path_factory.mktemp("grid-home")
    with pytest.MonkeyPatch.context() as patch:
        patch.setenv("GRID_CRAWLER_HOME", str(home))
        yield home


@pytest.fixture
def sample_global_config(tmp_path: Path) -> GlobalConfig:
    return GlobalConfig(
        outputs_dir=tmp_path / "outputs",
        inter_batch_pause_s=0,
        per_task_timeout_s=5,
        enable_progress_bar=False,
    )


@pytest.fixture
def temp_config_repository(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterable[ConfigRepository]:
    monkeypatch.setenv("GRID_CRAWLER_HOME", str(tmp_path))
    locator = ConfigLocator(project_root=tmp_path)
    repository = ConfigRepository(locator)
    yield repository


@pytest.fixture
def make_record() -> Callable[..., Record]:
    def _builder(**overrides: Any) -> Record:
        base: dict[str, Any] = {
            "name": "Cafe Uno",
            "address": "Calle 1 #23",
            "rating": 4.5,
            "review_count": 120,
            "coordinates": GeoPoint(19.4326, -99.1332),
            "hours": "Open",
            "phone": "55 1234 5678",
            "website": "https://cafe.example",
        }
        base.update(overrides)
        return Record(**base)

    return _builder


class StubFetcher(BaseFetcher):
    """Fetcher returning canned records, optionally per grid point."""

    def __init__(self, handler: Callable[[SearchTask, Event], list[Record]]) -> None:
        self.handler = handler
        self.tasks: list[SearchTask] = []
        self.closed = False

    def fetch(self, task: SearchTask, cancel_event: Event) -> list[Record]:
        self.tasks.append(task)
        return self.handler(task, cancel_event)

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def stub_fetcher() -> Callable[[Callable[[SearchTask, Event], list[Record]]], StubFetcher]:
    return StubFetcher
