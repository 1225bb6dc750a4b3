"""File based exporter supporting CSV and JSON lines."""

from __future__ import annotations

import csv
import json
import os
import re
import tempfile
from datetime import datetime
from pathlib import Path

from ...models import EXPORT_COLUMNS
from ..dedup import ResultSet
from .base import BaseExporter

RUN_TAG_FORMAT = "%Y-%m-%d_%H-%M-%S"


class FileExporter(BaseExporter):
    """Write the result set to a local file with fixed columns."""

    def __init__(
        self, output_dir: Path, slug: str = "prospects", fmt: str = "csv", run_tag: str | None = None
    ) -> None:
        if fmt not in ("csv", "json"):
            raise ValueError(f"Unsupported file format: {fmt}")
        self.output_dir = output_dir
        self.format = fmt
        self.run_tag = run_tag or datetime.now().strftime(RUN_TAG_FORMAT)
        self.slug = re.sub(r"[^0-9A-Za-z_-]+", "_", slug.strip()) or "prospects"
        self.path = self.output_dir / f"{self.slug}-{self.run_tag}.{self._extension}"

    @property
    def _extension(self) -> str:
        return "jsonl" if self.format == "json" else "csv"

    def _write(self, result_set: ResultSet) -> Path:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        # Write beside the target and swap in, so readers never see a partial file.
        fd, tmp_name = tempfile.mkstemp(
            dir=self.output_dir, prefix=f".{self.slug}-", suffix=".tmp"
        )
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as stream:
                if self.format == "csv":
                    writer = csv.DictWriter(stream, fieldnames=list(EXPORT_COLUMNS))
                    writer.writeheader()
                    writer.writerows(result_set.rows())
                else:
                    for row in result_set.rows():
                        json.dump(row, stream, ensure_ascii=False)
                        stream.write("\n")
            os.replace(tmp_path, self.path)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise
        return self.path


__all__ = ["FileExporter", "RUN_TAG_FORMAT"]
