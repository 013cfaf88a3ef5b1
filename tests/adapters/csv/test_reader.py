from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

import pytest

from ledgerdesk.adapters.csv import CsvImportError, parse_rows, read_csv_candidates
from ledgerdesk.domain.model import TransactionSource, TransactionType

if TYPE_CHECKING:
    from pathlib import Path


def test_rows_become_candidates() -> None:
    lines = [
        "Date,Amount,Description,Reference,External_ID,Type,Category,Notes\n",
        "2024-01-01,-25.50,Restaurant Purchase,R1,TXN001,,Dining,\n",
        "2024-01-02T08:30:00+02:00,\"1,200.00\",Salary,,,income,,monthly\n",
    ]

    first, second = parse_rows(lines)

    assert first.amount == Decimal("-25.50")
    assert first.date == datetime(2024, 1, 1, tzinfo=UTC)
    assert first.type is TransactionType.EXPENSE
    assert first.reference_id == "R1"
    assert first.external_reference_id == "TXN001"
    assert first.category == "Dining"
    assert first.notes is None
    assert first.source is TransactionSource.CSV_IMPORT
    assert first.source_row_number == 1

    assert second.amount == Decimal("1200.00")
    assert second.date == datetime(2024, 1, 2, 6, 30, tzinfo=UTC)
    assert second.type is TransactionType.INCOME
    assert second.notes == "monthly"
    assert second.source_row_number == 2


def test_missing_type_uses_amount_sign() -> None:
    (candidate,) = parse_rows(["date,amount,description\n", "2024-05-01,42.00,Refund\n"])

    assert candidate.type is TransactionType.INCOME


def test_blank_lines_are_skipped() -> None:
    candidates = parse_rows(["date,amount,description\n", ",,\n", "2024-05-01,-1,Snack\n"])

    assert [candidate.description for candidate in candidates] == ["Snack"]


def test_missing_columns_are_reported() -> None:
    with pytest.raises(CsvImportError, match="Missing required columns: amount"):
        parse_rows(["date,description\n", "2024-01-01,Coffee\n"])


def test_invalid_row_names_row_and_field() -> None:
    lines = [
        "date,amount,description\n",
        "2024-01-01,-3.00,Coffee\n",
        "2024-01-02,lots,Tea\n",
    ]

    with pytest.raises(CsvImportError) as excinfo:
        parse_rows(lines)

    assert excinfo.value.row_number == 2
    assert str(excinfo.value) == "Row 2: invalid amount"


def test_read_csv_candidates_from_file(tmp_path: Path) -> None:
    path = tmp_path / "statement.csv"
    path.write_text("\ufeffdate,amount,description\n2024-01-01,-9.99,Music\n", encoding="utf-8")

    (candidate,) = read_csv_candidates(path)

    assert candidate.description == "Music"


def test_unreadable_file_raises(tmp_path: Path) -> None:
    with pytest.raises(CsvImportError, match="Cannot read"):
        read_csv_candidates(tmp_path / "missing.csv")
