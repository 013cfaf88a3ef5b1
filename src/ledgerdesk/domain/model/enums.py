"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class TransactionType(StrEnum):
    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER_COMPONENT = "transfer_component"


class TransactionSource(StrEnum):
    """Where a ledger entry came from."""

    MANUAL = "manual"
    CSV_IMPORT = "csv_import"
    OFX_IMPORT = "ofx_import"
    BANK_SYNC = "bank_sync"

    @property
    def is_import(self) -> bool:
        return self is not TransactionSource.MANUAL


class TransactionStatus(StrEnum):
    PENDING = "pending"
    CLEARED = "cleared"
    RECONCILED = "reconciled"
    CANCELLED = "cancelled"
