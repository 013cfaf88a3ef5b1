"""Port for storing analyses between review and execution."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from datetime import datetime

    from ledgerdesk.domain.import_review.contracts import ImportAnalysisResult


@runtime_checkable
class AnalysisCache(Protocol):
    """Key-value store of analyses keyed by analysis id.

    ``pop`` must be atomic: of two concurrent callers at most one receives the
    entry. ``put_if_present`` writes back only while the entry is still live, so
    an analysis consumed by an execution stays gone. A missing key is a normal
    outcome (expired, evicted or consumed).
    """

    def put(self, analysis: ImportAnalysisResult) -> None: ...

    def put_if_present(self, analysis: ImportAnalysisResult) -> bool: ...

    def get(self, analysis_id: str) -> ImportAnalysisResult | None: ...

    def pop(self, analysis_id: str) -> ImportAnalysisResult | None: ...

    def expires_at(self, analysis_id: str) -> datetime | None: ...
