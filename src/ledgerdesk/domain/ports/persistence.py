"""Ports for persisting ledger entries."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from ledgerdesk.domain.model import Transaction

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime
    from uuid import UUID


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...


@runtime_checkable
class LedgerRepository(Repository[Transaction], Protocol):
    """Persistence contract for ledger transactions.

    Entities returned by ``get`` are live: attribute changes are persisted on the
    next unit-of-work commit.
    """

    def get(self, transaction_id: int, *, user_id: UUID) -> Transaction | None: ...

    def list_by_date_range(
        self,
        account_id: int,
        start: datetime,
        end: datetime,
        *,
        user_id: UUID,
    ) -> Sequence[Transaction]: ...
