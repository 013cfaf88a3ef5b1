"""Ledger entries owned by an account."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from ledgerdesk.domain.model.enums import TransactionSource, TransactionStatus, TransactionType

if TYPE_CHECKING:
    from datetime import datetime
    from decimal import Decimal
    from uuid import UUID


@dataclass(eq=False, kw_only=True)
class Transaction:
    """A persisted money movement.

    ``amount`` is signed: positive for income, negative for expenses. ``id`` stays
    ``None`` until the persistence layer assigns one.
    """

    account_id: int
    user_id: UUID
    amount: Decimal
    transaction_date: datetime
    description: str = ""
    type: TransactionType = TransactionType.EXPENSE
    status: TransactionStatus = TransactionStatus.CLEARED
    source: TransactionSource = TransactionSource.MANUAL
    reference_number: str | None = None
    external_id: str | None = None
    bank_category: str | None = None
    notes: str | None = None
    transfer_id: UUID | None = None
    is_reviewed: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None
    id: int | None = None

    def is_transfer(self) -> bool:
        return self.transfer_id is not None

    def mark_reviewed(self, *, at: datetime) -> None:
        self.is_reviewed = True
        self.updated_at = at
