"""Transaction boundary used by analysis and execution.

Analysis opens one unit of work to read a consistent ledger window. Execution
keeps one open for the whole batch and commits or rolls back after every
decision, so a failed item never leaves partial writes behind.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from ledgerdesk.domain.ports.persistence import LedgerRepository


@dataclass(slots=True)
class LedgerRepositories:
    transactions: LedgerRepository


@runtime_checkable
class LedgerUnitOfWork(Protocol):
    """Context manager over the ledger repositories.

    Leaving the block with an exception discards anything not yet committed.
    """

    @property
    def repositories(self) -> LedgerRepositories: ...

    def __enter__(self) -> LedgerUnitOfWork: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...
