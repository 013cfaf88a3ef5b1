"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from ledgerdesk.adapters.csv import read_csv_candidates
from ledgerdesk.adapters.memory_cache import InMemoryAnalysisCache
from ledgerdesk.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyLedgerUnitOfWork,
    is_started,
    startup,
)
from ledgerdesk.config import get_review_config
from ledgerdesk.domain.import_review import (
    AnalyzeImportRequest,
    BulkActionRequest,
    BulkActionType,
    ImportAnalysisOptions,
    ImportExecutionRequest,
    ImportReviewService,
)
from ledgerdesk.domain.ports.unit_of_work import LedgerUnitOfWork

if TYPE_CHECKING:
    from pathlib import Path
    from uuid import UUID

    from ledgerdesk.config import ReviewConfig
    from ledgerdesk.domain.import_review import ImportAnalysisResult, ImportExecutionResult
    from ledgerdesk.domain.ports import AnalysisCache

UnitOfWorkFactory = Callable[[], LedgerUnitOfWork]


log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CsvImportOutcome:
    analysis: ImportAnalysisResult
    execution: ImportExecutionResult | None = None


def default_options(config: ReviewConfig | None = None) -> ImportAnalysisOptions:
    effective = config or get_review_config()
    return ImportAnalysisOptions(
        date_tolerance_days=effective.date_tolerance_days,
        amount_tolerance=effective.amount_tolerance,
        description_similarity_threshold=effective.similarity_threshold,
    )


def build_import_review_service(
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    cache: AnalysisCache | None = None,
    config: ReviewConfig | None = None,
) -> ImportReviewService:
    """Wire the import review service to the configured adapters."""

    effective_config = config or get_review_config()
    if unit_of_work_factory is None and not is_started():
        startup()
    return ImportReviewService(
        unit_of_work_factory=unit_of_work_factory or SqlAlchemyLedgerUnitOfWork,
        cache=cache
        or InMemoryAnalysisCache(
            ttl_seconds=effective_config.analysis_ttl_seconds,
            max_entries=effective_config.analysis_cache_size,
        ),
        default_options=default_options(effective_config),
    )


def import_csv_file(
    path: Path,
    *,
    account_id: int,
    user_id: UUID,
    options: ImportAnalysisOptions | None = None,
    apply: bool = False,
    service: ImportReviewService | None = None,
) -> CsvImportOutcome:
    """Analyse a CSV export and optionally apply the uncontroversial decisions.

    With ``apply`` conflict-free rows are imported and exact duplicates skipped;
    every other conflicted row stays pending and is left out of the execution.
    """

    effective_service = service or build_import_review_service()
    candidates = read_csv_candidates(path)
    log.info("Analysing %d rows from %s for account %s", len(candidates), path, account_id)
    analysis = effective_service.analyze(
        AnalyzeImportRequest(
            account_id=account_id,
            user_id=user_id,
            candidates=candidates,
            options=options,
        )
    )
    if not apply or not analysis.review_items:
        return CsvImportOutcome(analysis=analysis)

    for action in (
        BulkActionType.IMPORT_ALL_NON_CONFLICTS,
        BulkActionType.SKIP_ALL_EXACT_DUPLICATES,
    ):
        effective_service.apply_bulk_action(
            BulkActionRequest(analysis_id=analysis.analysis_id, action_type=action)
        )
    decisions = effective_service.decisions_for(analysis.analysis_id)
    execution = effective_service.execute(
        ImportExecutionRequest(
            analysis_id=analysis.analysis_id,
            decisions=decisions,
            account_id=account_id,
            user_id=user_id,
        )
    )
    log.info(
        "Finished CSV import from %s: %s (imported=%d, skipped=%d)",
        path,
        execution.message,
        execution.statistics.imported_count,
        execution.statistics.skipped_count,
    )
    return CsvImportOutcome(analysis=analysis, execution=execution)
