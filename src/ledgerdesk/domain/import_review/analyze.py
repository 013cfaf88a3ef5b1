"""Batch analysis of import candidates against the ledger."""

from __future__ import annotations

from collections import Counter
from datetime import timedelta
from decimal import Decimal
from logging import getLogger
from typing import TYPE_CHECKING, Final
from uuid import uuid4

from ledgerdesk.domain.time_windows import DateWindow, utcnow, years_before

from .contracts import (
    ConflictType,
    ExistingTransaction,
    ImportAnalysisOptions,
    ImportAnalysisResult,
    ImportAnalysisStatistics,
    ImportReviewItem,
)
from .detect import detect_conflicts
from .normalize import normalize_candidates

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from datetime import datetime
    from uuid import UUID

    from ledgerdesk.domain.ports import AnalysisCache, LedgerUnitOfWork
    from ledgerdesk.domain.time_windows import Clock

    from .contracts import AnalyzeImportRequest, ImportCandidate
    from .detect import DetectConflicts

log = getLogger(__name__)

HIGH_CONFIDENCE_NOTE_THRESHOLD: Final = Decimal("0.9")
LARGE_AMOUNT_THRESHOLD: Final = Decimal(100_000)
WIDE_DATE_TOLERANCE_NOTE_DAYS: Final = 5
WIDE_DATE_TOLERANCE_WARNING_DAYS: Final = 7
WIDE_AMOUNT_TOLERANCE: Final = Decimal("1.00")
FUTURE_GRACE: Final = timedelta(days=1)
VERY_OLD_YEARS: Final = 5

EMPTY_IMPORT_NOTE: Final = "No transactions found in the import data"
EMPTY_IMPORT_WARNING: Final = (
    "Import file appears to be empty or no valid transactions were found"
)


def new_analysis_id() -> str:
    return uuid4().hex


def analyze_import(
    request: AnalyzeImportRequest,
    *,
    unit_of_work_factory: Callable[[], LedgerUnitOfWork],
    cache: AnalysisCache,
    detect: DetectConflicts = detect_conflicts,
    clock: Clock = utcnow,
) -> ImportAnalysisResult:
    """Detect conflicts for every candidate and cache the resulting review.

    Any failure propagates to the caller and nothing is cached.
    """

    options = request.options or ImportAnalysisOptions()
    analysis_id = new_analysis_id()
    try:
        candidates = normalize_candidates(request.candidates)
        log.info(
            "Starting import analysis %s for %d candidates (account=%s)",
            analysis_id,
            len(candidates),
            request.account_id,
        )

        if not candidates:
            log.warning("No candidates provided for import analysis %s", analysis_id)
            return ImportAnalysisResult(
                analysis_id=analysis_id,
                account_id=request.account_id,
                user_id=request.user_id,
                notes=(EMPTY_IMPORT_NOTE,),
                warnings=(EMPTY_IMPORT_WARNING,),
                analyzed_at=clock(),
            )

        existing = _fetch_existing(
            candidates,
            account_id=request.account_id,
            user_id=request.user_id,
            options=options,
            unit_of_work_factory=unit_of_work_factory,
        )
        review_items = [
            ImportReviewItem(
                candidate=candidate,
                conflicts=tuple(detect(candidate, existing, options)),
            )
            for candidate in candidates
        ]

        now = clock()
        result = ImportAnalysisResult(
            analysis_id=analysis_id,
            account_id=request.account_id,
            user_id=request.user_id,
            review_items=review_items,
            summary=calculate_statistics(review_items),
            notes=tuple(generate_analysis_notes(review_items, options)),
            warnings=tuple(collect_warnings(review_items, options, now=now)),
            analyzed_at=now,
        )
    except Exception:
        log.exception("Error analyzing import for account %s", request.account_id)
        raise

    cache.put(result)
    log.info(
        "Finished import analysis %s: total=%d, clean=%d, requires_review=%d",
        analysis_id,
        result.summary.total_candidates,
        result.summary.clean_imports,
        result.summary.requires_review,
    )
    return result


def _fetch_existing(
    candidates: Sequence[ImportCandidate],
    *,
    account_id: int,
    user_id: UUID,
    options: ImportAnalysisOptions,
    unit_of_work_factory: Callable[[], LedgerUnitOfWork],
) -> list[ExistingTransaction]:
    window = DateWindow.covering(
        (candidate.date for candidate in candidates),
        tolerance_days=options.date_tolerance_days,
    )
    with unit_of_work_factory() as uow:
        transactions = uow.repositories.transactions.list_by_date_range(
            account_id,
            window.start,
            window.end,
            user_id=user_id,
        )
        existing = [ExistingTransaction.from_transaction(tx) for tx in transactions]

    log.info(
        "Found %d existing transactions for account %s between %s and %s",
        len(existing),
        account_id,
        window.start.date(),
        window.end.date(),
    )
    return existing


def calculate_statistics(review_items: Sequence[ImportReviewItem]) -> ImportAnalysisStatistics:
    clean = sum(1 for item in review_items if not item.has_conflicts)
    by_type = Counter(
        conflict_type
        for item in review_items
        for conflict_type in {conflict.type for conflict in item.conflicts}
    )
    return ImportAnalysisStatistics(
        total_candidates=len(review_items),
        clean_imports=clean,
        exact_duplicates=by_type[ConflictType.EXACT_DUPLICATE],
        potential_duplicates=by_type[ConflictType.POTENTIAL_DUPLICATE],
        transfer_conflicts=by_type[ConflictType.TRANSFER_CONFLICT],
        manual_conflicts=by_type[ConflictType.MANUAL_ENTRY_CONFLICT],
        requires_review=len(review_items) - clean,
    )


def generate_analysis_notes(
    review_items: Sequence[ImportReviewItem],
    options: ImportAnalysisOptions,
) -> list[str]:
    notes: list[str] = []
    if any(
        conflict.confidence_score > HIGH_CONFIDENCE_NOTE_THRESHOLD
        for item in review_items
        for conflict in item.conflicts
    ):
        notes.append("High-confidence duplicate matches detected - review recommended")

    transfer_conflicts = sum(
        1 for item in review_items if item.has_conflict(ConflictType.TRANSFER_CONFLICT)
    )
    if transfer_conflicts:
        notes.append(f"{transfer_conflicts} potential transfer conflicts detected")

    if options.date_tolerance_days > WIDE_DATE_TOLERANCE_NOTE_DAYS:
        notes.append("Large date tolerance may result in false positive matches")
    return notes


def collect_warnings(
    review_items: Sequence[ImportReviewItem],
    options: ImportAnalysisOptions,
    *,
    now: datetime,
) -> list[str]:
    """Data-quality and settings warnings; none of them block execution."""

    warnings: list[str] = []
    candidates = [item.candidate for item in review_items]

    reference_counts = Counter(
        candidate.external_reference_id
        for candidate in candidates
        if candidate.external_reference_id
    )
    duplicated = [reference for reference, count in reference_counts.items() if count > 1]
    if duplicated:
        warnings.append(f"Duplicate external reference IDs found: {', '.join(duplicated)}")

    missing_descriptions = sum(1 for candidate in candidates if not candidate.description.strip())
    if missing_descriptions:
        warnings.append(f"{missing_descriptions} transactions have missing or empty descriptions")

    large_amounts = sum(
        1 for candidate in candidates if abs(candidate.amount) > LARGE_AMOUNT_THRESHOLD
    )
    if large_amounts:
        warnings.append(
            f"{large_amounts} transactions have amounts over 100,000 - "
            "please verify these are correct"
        )

    future_dated = sum(1 for candidate in candidates if candidate.date > now + FUTURE_GRACE)
    if future_dated:
        warnings.append(f"{future_dated} transactions are dated in the future")

    cutoff = years_before(now, VERY_OLD_YEARS)
    very_old = sum(1 for candidate in candidates if candidate.date < cutoff)
    if very_old:
        warnings.append(f"{very_old} transactions are older than {VERY_OLD_YEARS} years")

    if options.date_tolerance_days > WIDE_DATE_TOLERANCE_WARNING_DAYS:
        warnings.append("Large date tolerance may result in false positive matches")
    if options.amount_tolerance > WIDE_AMOUNT_TOLERANCE:
        warnings.append("Large amount tolerance may result in false positive matches")
    return warnings
