"""Read import candidates from CSV files."""

from __future__ import annotations

import csv
from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import ValidationError

from ledgerdesk.domain.model import TransactionSource

from .schema import REQUIRED_COLUMNS, CsvRow
from .translator import translate_row

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from ledgerdesk.domain.import_review.contracts import ImportCandidate

log = getLogger(__name__)


class CsvImportError(ValueError):
    """Raised when a CSV file cannot be turned into candidates."""

    def __init__(self, message: str, *, row_number: int | None = None) -> None:
        self.row_number = row_number
        super().__init__(message if row_number is None else f"Row {row_number}: {message}")


def parse_rows(
    lines: Iterable[str],
    *,
    source: TransactionSource = TransactionSource.CSV_IMPORT,
) -> list[ImportCandidate]:
    """Parse CSV text lines (header first) into candidates.

    Row numbers count data rows from 1, so the header is row 0.
    """

    reader = csv.DictReader(lines)
    header = [column.strip().lower() for column in reader.fieldnames or ()]
    missing = [column for column in REQUIRED_COLUMNS if column not in header]
    if missing:
        raise CsvImportError(f"Missing required columns: {', '.join(missing)}")
    reader.fieldnames = header

    candidates: list[ImportCandidate] = []
    for row_number, raw in enumerate(reader, start=1):
        fields = {key: value for key, value in raw.items() if key is not None}
        if not any((value or "").strip() for value in fields.values()):
            continue
        try:
            row = CsvRow.model_validate(fields)
        except ValidationError as exc:
            invalid = ", ".join(str(error["loc"][0]) for error in exc.errors() if error["loc"])
            raise CsvImportError(f"invalid {invalid or 'row'}", row_number=row_number) from exc
        candidates.append(translate_row(row, row_number=row_number, source=source))

    log.info("Parsed %d candidates from CSV", len(candidates))
    return candidates


def read_csv_candidates(
    path: Path,
    *,
    source: TransactionSource = TransactionSource.CSV_IMPORT,
    encoding: str = "utf-8-sig",
) -> list[ImportCandidate]:
    try:
        with path.open(newline="", encoding=encoding) as handle:
            return parse_rows(handle, source=source)
    except OSError as exc:
        raise CsvImportError(f"Cannot read {path}: {exc}") from exc
