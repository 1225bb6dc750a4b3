"""Exporter Service Provider Interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from ...errors import ExportError
from ..dedup import ResultSet


class BaseExporter(ABC):
    """Uniform exporter contract: one atomic write of the final result set."""

    def export(self, result_set: ResultSet) -> Path:
        """Persist every record and return the destination.

        Raises:
            ExportError: wrapping whatever the destination raised; export is
                never retried.
        """

        try:
            return self._write(result_set)
        except ExportError:
            raise
        except Exception as exc:  # noqa: BLE001
            raise ExportError(f"Failed to export {len(result_set)} records: {exc}") from exc

    @abstractmethod
    def _write(self, result_set: ResultSet) -> Path:
        """Write all records in a single transaction or file swap."""

    def close(self) -> None:
        """Release underlying resources."""


__all__ = ["BaseExporter"]
