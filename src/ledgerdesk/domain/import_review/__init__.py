"""Import review: detect conflicts between imported rows and the ledger, then apply decisions."""

from __future__ import annotations

from .analyze import analyze_import
from .bulk import apply_bulk_action, decisions_for
from .contracts import (
    AnalysisNotFoundError,
    AnalysisStatus,
    AnalyzeImportRequest,
    BulkActionRequest,
    BulkActionResult,
    BulkActionType,
    ConflictInfo,
    ConflictResolution,
    ConflictSeverity,
    ConflictType,
    ExistingTransaction,
    ImportAnalysisOptions,
    ImportAnalysisResult,
    ImportAnalysisStatistics,
    ImportCandidate,
    ImportDecision,
    ImportedTransaction,
    ImportExecutionRequest,
    ImportExecutionResult,
    ImportExecutionStatistics,
    ImportReviewItem,
    ItemOutcome,
    OutcomeStatus,
)
from .detect import DetectConflicts, description_similarity, detect_conflicts
from .execute import execute_import
from .normalize import normalize_amount, normalize_candidate, normalize_candidates
from .service import ImportReviewService

__all__ = [
    "AnalysisNotFoundError",
    "AnalysisStatus",
    "AnalyzeImportRequest",
    "BulkActionRequest",
    "BulkActionResult",
    "BulkActionType",
    "ConflictInfo",
    "ConflictResolution",
    "ConflictSeverity",
    "ConflictType",
    "DetectConflicts",
    "ExistingTransaction",
    "ImportAnalysisOptions",
    "ImportAnalysisResult",
    "ImportAnalysisStatistics",
    "ImportCandidate",
    "ImportDecision",
    "ImportExecutionRequest",
    "ImportExecutionResult",
    "ImportExecutionStatistics",
    "ImportReviewItem",
    "ImportReviewService",
    "ImportedTransaction",
    "ItemOutcome",
    "OutcomeStatus",
    "analyze_import",
    "apply_bulk_action",
    "decisions_for",
    "description_similarity",
    "detect_conflicts",
    "execute_import",
    "normalize_amount",
    "normalize_candidate",
    "normalize_candidates",
]
