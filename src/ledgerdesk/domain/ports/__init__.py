"""Domain port definitions for adapters."""

from __future__ import annotations

from .cache import AnalysisCache
from .persistence import LedgerRepository, Repository
from .unit_of_work import LedgerRepositories, LedgerUnitOfWork

__all__ = [
    "AnalysisCache",
    "LedgerRepositories",
    "LedgerRepository",
    "LedgerUnitOfWork",
    "Repository",
]
