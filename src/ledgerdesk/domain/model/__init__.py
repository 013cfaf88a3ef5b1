"""Public domain model surface."""

from __future__ import annotations

from ledgerdesk.domain.model.enums import TransactionSource, TransactionStatus, TransactionType
from ledgerdesk.domain.model.ledger import Transaction

__all__ = [
    "Transaction",
    "TransactionSource",
    "TransactionStatus",
    "TransactionType",
]
