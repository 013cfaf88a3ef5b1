"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import select

from ledgerdesk.adapters.sqlalchemy.mappings import ledger_transaction_table
from ledgerdesk.domain.model import Transaction

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime
    from uuid import UUID

    from sqlalchemy.orm import Session


class SqlAlchemyLedgerRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: Transaction) -> None:
        self.session.add(entity)
        # ids are needed by callers before the unit of work commits
        self.session.flush([entity])

    def get(self, transaction_id: int, *, user_id: UUID) -> Transaction | None:
        stmt = (
            select(Transaction)
            .where(ledger_transaction_table.c.id == transaction_id)
            .where(ledger_transaction_table.c.user_id == user_id)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def list_by_date_range(
        self,
        account_id: int,
        start: datetime,
        end: datetime,
        *,
        user_id: UUID,
    ) -> Sequence[Transaction]:
        """Entries of one account whose date lies in ``[start, end]``, oldest first."""

        date_column = ledger_transaction_table.c.transaction_date
        stmt = (
            select(Transaction)
            .where(ledger_transaction_table.c.account_id == account_id)
            .where(ledger_transaction_table.c.user_id == user_id)
            .where(date_column >= start)
            .where(date_column <= end)
            .order_by(date_column, ledger_transaction_table.c.id)
        )
        return self.session.execute(stmt).scalars().all()
