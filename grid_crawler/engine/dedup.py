"""Deduplication layer folding record batches into one result set."""

from __future__ import annotations

from typing import Iterable, Iterator

from ..models import Record


class ResultSet:
    """Insertion-ordered records, unique on ``(name, address)``."""

    def __init__(self) -> None:
        self._records: dict[tuple[str, str], Record] = {}
        self.duplicates = 0

    def add(self, record: Record) -> bool:
        """Keep ``record`` unless its key was already seen; first seen wins."""

        if record.key in self._records:
            self.duplicates += 1
            return False
        self._records[record.key] = record
        return True

    def __contains__(self, record: object) -> bool:
        return isinstance(record, Record) and record.key in self._records

    def __iter__(self) -> Iterator[Record]:
        return iter(self._records.values())

    def __len__(self) -> int:
        return len(self._records)

    def records(self) -> list[Record]:
        return list(self._records.values())

    def rows(self) -> list[dict[str, str]]:
        return [record.as_row() for record in self._records.values()]


class DedupMerger:
    """Merge collected batches in order.

    Duplicate detection is purely structural, so the surviving copy is the
    earliest one in collection order, not necessarily the most complete.
    """

    def merge(self, batches: Iterable[Iterable[Record]], into: ResultSet | None = None) -> ResultSet:
        result = into if into is not None else ResultSet()
        for batch in batches:
            for record in batch:
                result.add(record)
        return result


__all__ = ["DedupMerger", "ResultSet"]
