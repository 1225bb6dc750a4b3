"""structlog setup: JSON lines to the console, a global log, an error log and per-query run logs."""

from __future__ import annotations

import logging
import logging.config
import os
from collections import deque
from pathlib import Path
from typing import Any, Iterable

import structlog

from .config.loader import _slugify, project_root

ROOT_LOGGER = "grid_crawler"
RUN_LOGGER_PREFIX = f"{ROOT_LOGGER}.run"
JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

_configured = False


def _log_dir() -> Path:
    return project_root() / "logs"


def _runs_dir() -> Path:
    return _log_dir() / "runs"


def _file_handler(path: Path, level: str) -> dict[str, Any]:
    return {
        "class": "logging.FileHandler",
        "level": level,
        "filename": str(path),
        "encoding": "utf-8",
        "formatter": "json",
    }


def _dict_config(log_dir: Path, verbose: bool) -> dict[str, Any]:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {"()": "pythonjsonlogger.jsonlogger.JsonFormatter", "fmt": JSON_FORMAT},
        },
        "handlers": {
            # Console stays quiet unless --verbose.
            "console": {
                "class": "logging.StreamHandler",
                "level": "DEBUG" if verbose else "WARNING",
                "formatter": "json",
            },
            "global_file": _file_handler(log_dir / "crawler.log", "INFO"),
            "error_file": _file_handler(log_dir / "error.log", "ERROR"),
        },
        "loggers": {
            ROOT_LOGGER: {
                "handlers": ["console", "global_file", "error_file"],
                "level": "DEBUG" if verbose else "INFO",
                "propagate": False,
            },
        },
    }


def configure_logging(verbose: bool = False) -> structlog.BoundLogger:
    """Install handlers once per process and return the application logger.

    Later calls only make sure the log directories exist; the first call's
    ``verbose`` flag decides the levels.
    """

    global _configured
    log_dir = _log_dir()
    _runs_dir().mkdir(parents=True, exist_ok=True)
    if _configured:
        return structlog.get_logger(ROOT_LOGGER)

    logging.config.dictConfig(_dict_config(log_dir, verbose))
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _configured = True
    return structlog.get_logger(ROOT_LOGGER)


def _ensure_run_handler(logger: logging.Logger, path: Path) -> None:
    target = os.path.abspath(path)
    for handler in logger.handlers:
        if isinstance(handler, logging.FileHandler) and handler.baseFilename == target:
            return
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(logging.INFO)
    parent_handlers = logging.getLogger(ROOT_LOGGER).handlers
    if parent_handlers:
        handler.setFormatter(parent_handlers[0].formatter)
    logger.addHandler(handler)


def run_logger(query: str, verbose: bool = False) -> structlog.BoundLogger:
    """Logger bound to ``query`` that also writes to ``logs/runs/<slug>.log``.

    Records still propagate to the global handlers.
    """

    configure_logging(verbose)
    slug = _slugify(query) or "run"
    name = f"{RUN_LOGGER_PREFIX}.{slug}"
    _ensure_run_handler(logging.getLogger(name), _runs_dir() / f"{slug}.log")
    return structlog.get_logger(name).bind(query=query)


def tail_log(path: Path, line_count: int = 100) -> list[str]:
    if not path.exists():
        return []
    with path.open("r", encoding="utf-8", errors="ignore") as stream:
        return list(deque(stream, maxlen=line_count))


def available_run_logs() -> Iterable[Path]:
    runs = _runs_dir()
    if not runs.exists():
        return []
    return sorted(runs.glob("*.log"))


def log_path_for(query: str | None) -> Path:
    """Run log for ``query``, or the global log when no query is given."""

    if query:
        return _runs_dir() / f"{_slugify(query) or 'run'}.log"
    return _log_dir() / "crawler.log"


__all__ = [
    "available_run_logs",
    "configure_logging",
    "log_path_for",
    "run_logger",
    "tail_log",
]
