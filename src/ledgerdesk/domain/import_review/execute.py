"""Apply reviewer decisions from an analysis to the ledger.

The cached analysis is consumed by the first execution that asks for it. When
it is missing (expired, evicted or already consumed) execution continues in a
degraded mode that relies on candidates embedded in the decisions and, for
merge/replace, re-runs detection against a fresh ledger window.

Every decision is committed on its own. A failing item is rolled back, reported
against its review item id and does not stop the batch.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Final, assert_never

from ledgerdesk.config.errors import UnresolvedAccountError
from ledgerdesk.domain.model import Transaction, TransactionSource
from ledgerdesk.domain.time_windows import DateWindow, utcnow

from .contracts import (
    ConflictResolution,
    ExistingTransaction,
    ImportAnalysisOptions,
    ImportedTransaction,
    ImportExecutionResult,
    ImportExecutionStatistics,
    ItemOutcome,
    OutcomeStatus,
)
from .detect import detect_conflicts
from .normalize import normalize_amount, normalize_candidate

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime
    from uuid import UUID

    from ledgerdesk.domain.ports import AnalysisCache, LedgerRepository, LedgerUnitOfWork
    from ledgerdesk.domain.time_windows import Clock

    from .contracts import (
        ImportAnalysisResult,
        ImportCandidate,
        ImportDecision,
        ImportExecutionRequest,
        ImportReviewItem,
    )
    from .detect import DetectConflicts

log = getLogger(__name__)

FALLBACK_WINDOW_DAYS: Final = 3
MERGE_MARKER: Final = "(merged from import)"
MERGED_PREFIX: Final = "(merged"


class ItemResolutionError(Exception):
    """A decision that cannot be applied; reported per item, never batch-fatal."""


@dataclass(slots=True)
class _Applied:
    status: OutcomeStatus
    transaction: Transaction | None = None
    warning: str | None = None


@dataclass(slots=True)
class _ExecutionTally:
    imported: int = 0
    skipped: int = 0
    merged: int = 0
    outcomes: list[ItemOutcome] = field(default_factory=list[ItemOutcome])
    imported_transactions: list[ImportedTransaction] = field(
        default_factory=list[ImportedTransaction]
    )
    warnings: list[str] = field(default_factory=list[str])
    errors: list[str] = field(default_factory=list[str])

    def record(self, decision: ImportDecision, applied: _Applied) -> None:
        transaction = applied.transaction
        match applied.status:
            case OutcomeStatus.IMPORTED:
                self.imported += 1
                if transaction is not None:
                    self.imported_transactions.append(
                        ImportedTransaction.from_transaction(transaction, is_new=True)
                    )
            case OutcomeStatus.REPLACED:
                self.imported += 1
                if transaction is not None:
                    self.imported_transactions.append(
                        ImportedTransaction.from_transaction(transaction, is_new=False)
                    )
            case OutcomeStatus.MERGED:
                self.merged += 1
            case OutcomeStatus.SKIPPED:
                self.skipped += 1
            case OutcomeStatus.FAILED:
                raise ValueError("Failed outcomes are recorded through fail()")
            case _:
                assert_never(applied.status)
        if applied.warning:
            self.warnings.append(applied.warning)
        self.outcomes.append(
            ItemOutcome(
                review_item_id=decision.review_item_id,
                decision=str(decision.decision),
                status=applied.status,
                transaction_id=transaction.id if transaction is not None else None,
            )
        )

    def fail(self, decision: ImportDecision, message: str) -> None:
        self.errors.append(message)
        self.outcomes.append(
            ItemOutcome(
                review_item_id=decision.review_item_id,
                decision=str(decision.decision),
                status=OutcomeStatus.FAILED,
                error=message,
            )
        )

    def result(self, *, total: int, executed_at: datetime) -> ImportExecutionResult:
        error_count = len(self.errors)
        return ImportExecutionResult(
            is_success=error_count == 0,
            message=(
                "Import completed successfully"
                if error_count == 0
                else f"Import completed with {error_count} errors"
            ),
            statistics=ImportExecutionStatistics(
                total_decisions=total,
                imported_count=self.imported,
                skipped_count=self.skipped,
                merged_count=self.merged,
                error_count=error_count,
                executed_at=executed_at,
            ),
            outcomes=tuple(self.outcomes),
            imported_transactions=tuple(self.imported_transactions),
            warnings=tuple(self.warnings),
            errors=tuple(self.errors),
        )


@dataclass(slots=True, kw_only=True)
class _ExecutionContext:
    account_id: int
    user_id: UUID
    ledger: LedgerRepository
    detect: DetectConflicts
    fallback_options: ImportAnalysisOptions
    now: datetime


def execute_import(
    request: ImportExecutionRequest,
    *,
    unit_of_work_factory: Callable[[], LedgerUnitOfWork],
    cache: AnalysisCache,
    detect: DetectConflicts = detect_conflicts,
    fallback_options: ImportAnalysisOptions | None = None,
    clock: Clock = utcnow,
) -> ImportExecutionResult:
    """Apply ``request.decisions`` and return aggregate and per-item outcomes.

    Raises ``UnresolvedAccountError`` before touching the ledger when neither the
    request nor the cached analysis names an account. If the batch is abandoned
    by an exception the claimed analysis is put back, with the items applied so
    far already marked processed.
    """

    analysis = cache.pop(request.analysis_id)
    try:
        return _execute_batch(
            request,
            analysis,
            unit_of_work_factory=unit_of_work_factory,
            detect=detect,
            fallback_options=fallback_options,
            clock=clock,
        )
    except Exception:
        if analysis is not None:
            cache.put(analysis)
            log.warning("Execution of analysis %s aborted; analysis restored", request.analysis_id)
        raise


def _execute_batch(
    request: ImportExecutionRequest,
    analysis: ImportAnalysisResult | None,
    *,
    unit_of_work_factory: Callable[[], LedgerUnitOfWork],
    detect: DetectConflicts,
    fallback_options: ImportAnalysisOptions | None,
    clock: Clock,
) -> ImportExecutionResult:
    account_id = request.account_id or (analysis.account_id if analysis is not None else None)
    if not account_id:
        raise UnresolvedAccountError(request.analysis_id)

    if analysis is None:
        log.warning(
            "Analysis %s not found in cache; processing with candidate data from decisions",
            request.analysis_id,
        )
    log.info(
        "Executing import for account %s with analysis %s (cached=%s, decisions=%d)",
        account_id,
        request.analysis_id,
        analysis is not None,
        len(request.decisions),
    )

    review_items = analysis.items_by_id() if analysis is not None else {}
    processed: set[str] = {item_id for item_id, item in review_items.items() if item.is_processed}
    tally = _ExecutionTally()

    with unit_of_work_factory() as uow:
        context = _ExecutionContext(
            account_id=account_id,
            user_id=request.user_id,
            ledger=uow.repositories.transactions,
            detect=detect,
            fallback_options=fallback_options or ImportAnalysisOptions(),
            now=clock(),
        )
        for decision in request.decisions:
            review_item = review_items.get(decision.review_item_id)
            try:
                if decision.review_item_id in processed:
                    raise ItemResolutionError(
                        f"Review item {decision.review_item_id} has already been processed"
                    )
                resolution = _parse_resolution(decision)
                candidate = _resolve_candidate(decision, review_item)
                applied = _apply(resolution, decision, candidate, review_item, context)
                uow.commit()
            except ItemResolutionError as exc:
                uow.rollback()
                log.info("Decision for item %s failed: %s", decision.review_item_id, exc)
                tally.fail(decision, str(exc))
                continue
            except Exception as exc:  # noqa: BLE001
                uow.rollback()
                log.exception("Error processing decision for item %s", decision.review_item_id)
                tally.fail(decision, f"Error processing item {decision.review_item_id}: {exc}")
                continue

            processed.add(decision.review_item_id)
            if review_item is not None:
                review_item.resolve(resolution, user_notes=decision.user_notes)
            tally.record(decision, applied)

    result = tally.result(total=len(request.decisions), executed_at=clock())
    log.info(
        "Import execution completed: %d imported, %d skipped, %d merged, %d errors",
        result.statistics.imported_count,
        result.statistics.skipped_count,
        result.statistics.merged_count,
        result.statistics.error_count,
    )
    return result


def _parse_resolution(decision: ImportDecision) -> ConflictResolution:
    try:
        return ConflictResolution(decision.decision)
    except ValueError:
        raise ItemResolutionError(
            f"Invalid decision {decision.decision} for item {decision.review_item_id}"
        ) from None


def _resolve_candidate(
    decision: ImportDecision,
    review_item: ImportReviewItem | None,
) -> ImportCandidate:
    if review_item is not None:
        return review_item.candidate
    if decision.candidate is not None:
        log.debug(
            "Using candidate data from decision for review item %s (cache miss)",
            decision.review_item_id,
        )
        return normalize_candidate(decision.candidate)
    raise ItemResolutionError(
        f"Review item {decision.review_item_id} not found in analysis "
        "and no candidate data provided"
    )


def _apply(
    resolution: ConflictResolution,
    decision: ImportDecision,
    candidate: ImportCandidate,
    review_item: ImportReviewItem | None,
    context: _ExecutionContext,
) -> _Applied:
    item_id = decision.review_item_id
    match resolution:
        case ConflictResolution.IMPORT:
            transaction = _create_transaction(candidate, context)
            log.info("Imported transaction for %s on %s", candidate.amount, candidate.date.date())
            return _Applied(OutcomeStatus.IMPORTED, transaction)
        case ConflictResolution.SKIP:
            log.debug("Skipped transaction for review item %s", item_id)
            return _Applied(OutcomeStatus.SKIPPED)
        case ConflictResolution.MERGE_WITH_EXISTING:
            target = _find_target(candidate, review_item, context)
            if target is None:
                raise ItemResolutionError(
                    f"No existing transaction found to merge with for item {item_id}"
                )
            transaction = _merge_transaction(candidate, target, context)
            return _Applied(
                OutcomeStatus.MERGED,
                transaction,
                warning=f"Merged transaction data for item {item_id}",
            )
        case ConflictResolution.REPLACE_EXISTING:
            target = _find_target(candidate, review_item, context)
            if target is None:
                raise ItemResolutionError(
                    f"No existing transaction found to replace for item {item_id}"
                )
            transaction = _replace_transaction(candidate, target, context)
            return _Applied(
                OutcomeStatus.REPLACED,
                transaction,
                warning=f"Replaced existing transaction for item {item_id}",
            )
        case ConflictResolution.PENDING:
            raise ItemResolutionError(f"Invalid decision {resolution} for item {item_id}")
        case _:
            assert_never(resolution)


def _find_target(
    candidate: ImportCandidate,
    review_item: ImportReviewItem | None,
    context: _ExecutionContext,
) -> ExistingTransaction | None:
    if review_item is not None:
        return review_item.conflict_target()

    # cold cache: rebuild the conflicts from a fresh window around the candidate
    window = DateWindow.around(candidate.date, days=FALLBACK_WINDOW_DAYS)
    transactions = context.ledger.list_by_date_range(
        context.account_id,
        window.start,
        window.end,
        user_id=context.user_id,
    )
    existing = [ExistingTransaction.from_transaction(tx) for tx in transactions]
    for conflict in context.detect(candidate, existing, context.fallback_options):
        if conflict.conflicting_transaction is not None:
            return conflict.conflicting_transaction
    return None


def _load_live(target: ExistingTransaction, context: _ExecutionContext) -> Transaction:
    transaction = context.ledger.get(target.id, user_id=context.user_id)
    if transaction is None:
        raise ItemResolutionError(f"Existing transaction {target.id} not found")
    return transaction


def _import_source(candidate: ImportCandidate) -> TransactionSource:
    if candidate.source.is_import:
        return candidate.source
    return TransactionSource.CSV_IMPORT


def _create_transaction(candidate: ImportCandidate, context: _ExecutionContext) -> Transaction:
    transaction = Transaction(
        account_id=context.account_id,
        user_id=context.user_id,
        amount=candidate.amount,
        transaction_date=candidate.date,
        description=candidate.description,
        type=candidate.type,
        status=candidate.status,
        source=_import_source(candidate),
        reference_number=candidate.reference_id,
        external_id=candidate.external_reference_id,
        bank_category=candidate.category,
        notes=candidate.notes,
        is_reviewed=False,
        created_at=context.now,
        updated_at=context.now,
    )
    context.ledger.add(transaction)
    return transaction


def _merge_transaction(
    candidate: ImportCandidate,
    target: ExistingTransaction,
    context: _ExecutionContext,
) -> Transaction:
    transaction = _load_live(target, context)
    if candidate.external_reference_id and not transaction.external_id:
        transaction.external_id = candidate.external_reference_id
    if candidate.reference_id and not transaction.reference_number:
        transaction.reference_number = candidate.reference_id
    if MERGED_PREFIX not in transaction.description:
        transaction.description = f"{transaction.description} {MERGE_MARKER}".lstrip()
    transaction.mark_reviewed(at=context.now)
    log.info("Merged import candidate into existing transaction %s", transaction.id)
    return transaction


def _replace_transaction(
    candidate: ImportCandidate,
    target: ExistingTransaction,
    context: _ExecutionContext,
) -> Transaction:
    transaction = _load_live(target, context)
    transaction.amount = normalize_amount(candidate.amount, candidate.type)
    transaction.transaction_date = candidate.date
    transaction.description = candidate.description
    transaction.reference_number = candidate.reference_id
    transaction.external_id = candidate.external_reference_id
    transaction.status = candidate.status
    transaction.type = candidate.type
    transaction.source = _import_source(candidate)
    transaction.mark_reviewed(at=context.now)
    log.info("Replaced existing transaction %s with import candidate data", transaction.id)
    return transaction

