"""
External Delights - Sheet Store

Append-only row storage behind the recorder. CsvSheetStore renders the
spreadsheet as a CSV file: one row per accepted submission, no header row.
"""

from __future__ import annotations

import csv
import logging
import threading
from pathlib import Path
from typing import Protocol, Sequence

logger = logging.getLogger(__name__)


class SheetStore(Protocol):
    """Anything that can append a row and report its 1-based position."""

    def append(self, row: Sequence[str]) -> int: ...


class CsvSheetStore:
    """Append rows to a CSV file; appends are serialized by a lock."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._lock = threading.Lock()
        self._row_count: int | None = None

    def _count_rows(self) -> int:
        if not self.path.exists():
            return 0
        with self.path.open(newline="", encoding="utf-8") as f:
            return sum(1 for _ in csv.reader(f))

    def append(self, row: Sequence[str]) -> int:
        """
        Append one row.

        Returns:
            1-based row number of the appended row

        Raises:
            OSError: if the file cannot be written
        """
        with self._lock:
            if self._row_count is None:
                self._row_count = self._count_rows()

            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", newline="", encoding="utf-8") as f:
                csv.writer(f).writerow(list(row))

            self._row_count += 1
            logger.debug(f"Appended row {self._row_count} to {self.path}")
            return self._row_count

    def rows(self) -> list[list[str]]:
        """Read back every stored row."""
        if not self.path.exists():
            return []
        with self.path.open(newline="", encoding="utf-8") as f:
            return [list(r) for r in csv.reader(f)]
