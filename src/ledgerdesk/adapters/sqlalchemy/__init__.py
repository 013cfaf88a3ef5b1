"""SQLAlchemy adapter package for the ledger."""

from __future__ import annotations

from .mappings import (
    ledger_transaction_table,
    mapper_registry,
    start_mappers,
)
from .repositories import SqlAlchemyLedgerRepository

__all__ = [
    "SqlAlchemyLedgerRepository",
    "ledger_transaction_table",
    "mapper_registry",
    "start_mappers",
]
