"""Translate validated CSV rows into import candidates."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ledgerdesk.domain.import_review.contracts import ImportCandidate
from ledgerdesk.domain.model import TransactionSource, TransactionType

if TYPE_CHECKING:
    from .schema import CsvRow


def translate_row(
    row: CsvRow,
    *,
    row_number: int,
    source: TransactionSource = TransactionSource.CSV_IMPORT,
) -> ImportCandidate:
    """Build a candidate; without an explicit type the amount's sign decides."""

    transaction_type = row.type
    if transaction_type is None:
        transaction_type = TransactionType.EXPENSE if row.amount < 0 else TransactionType.INCOME
    return ImportCandidate(
        amount=row.amount,
        date=row.date,
        description=row.description,
        type=transaction_type,
        source=source,
        reference_id=row.reference,
        external_reference_id=row.external_id,
        category=row.category,
        notes=row.notes,
        source_row_number=row_number,
    )
