"""Public interface for the CSV import adapter."""

from __future__ import annotations

from .reader import CsvImportError, parse_rows, read_csv_candidates
from .schema import CsvRow
from .translator import translate_row

__all__ = [
    "CsvImportError",
    "CsvRow",
    "parse_rows",
    "read_csv_candidates",
    "translate_row",
]
