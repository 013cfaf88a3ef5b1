"""Facade binding the import review stages to their collaborators."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from ledgerdesk.domain.ports import AnalysisCache, LedgerUnitOfWork
from ledgerdesk.domain.time_windows import Clock, utcnow

from .analyze import analyze_import
from .bulk import apply_bulk_action, decisions_for
from .contracts import AnalysisStatus, ConflictResolution, ImportAnalysisOptions
from .detect import DetectConflicts, detect_conflicts
from .execute import execute_import

if TYPE_CHECKING:
    from .contracts import (
        AnalyzeImportRequest,
        BulkActionRequest,
        BulkActionResult,
        ImportAnalysisResult,
        ImportDecision,
        ImportExecutionRequest,
        ImportExecutionResult,
    )


@dataclass(slots=True, kw_only=True)
class ImportReviewService:
    """Analyse, review and apply imports against one ledger store.

    The cache is shared between analysis and execution, so one service instance
    (or at least one cache) must back both calls for an analysis to be found.
    """

    unit_of_work_factory: Callable[[], LedgerUnitOfWork]
    cache: AnalysisCache
    detect: DetectConflicts = detect_conflicts
    default_options: ImportAnalysisOptions = field(default_factory=ImportAnalysisOptions)
    clock: Clock = utcnow

    def analyze(self, request: AnalyzeImportRequest) -> ImportAnalysisResult:
        if request.options is None:
            request = _with_options(request, self.default_options)
        return analyze_import(
            request,
            unit_of_work_factory=self.unit_of_work_factory,
            cache=self.cache,
            detect=self.detect,
            clock=self.clock,
        )

    def execute(self, request: ImportExecutionRequest) -> ImportExecutionResult:
        return execute_import(
            request,
            unit_of_work_factory=self.unit_of_work_factory,
            cache=self.cache,
            detect=self.detect,
            fallback_options=self.default_options,
            clock=self.clock,
        )

    def apply_bulk_action(self, request: BulkActionRequest) -> BulkActionResult:
        return apply_bulk_action(request, cache=self.cache)

    def analysis_status(self, analysis_id: str) -> AnalysisStatus:
        analysis = self.cache.get(analysis_id)
        if analysis is None:
            return AnalysisStatus(analysis_id=analysis_id, is_available=False)
        pending = sum(
            1
            for item in analysis.review_items
            if item.review_decision is ConflictResolution.PENDING and not item.is_processed
        )
        return AnalysisStatus(
            analysis_id=analysis_id,
            is_available=True,
            expires_at=self.cache.expires_at(analysis_id),
            pending_items=pending,
        )

    def decisions_for(self, analysis_id: str) -> list[ImportDecision]:
        """Decisions currently recorded on a cached analysis; empty if it is gone."""

        analysis = self.cache.get(analysis_id)
        if analysis is None:
            return []
        return decisions_for(analysis)


def _with_options(
    request: AnalyzeImportRequest,
    options: ImportAnalysisOptions,
) -> AnalyzeImportRequest:
    return replace(request, options=options)
