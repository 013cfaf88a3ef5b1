"""Value types shared by the import review stages.

Candidates, conflicts and review items are produced by analysis; decisions and
execution results belong to the resolution stage. Amounts are ``Decimal`` and
timestamps are timezone-aware UTC datetimes throughout.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime  # noqa: TC003
from decimal import Decimal
from enum import StrEnum
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from ledgerdesk.domain.model import TransactionSource, TransactionStatus, TransactionType
from ledgerdesk.domain.time_windows import ensure_aware, utcnow

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ledgerdesk.domain.model import Transaction


def new_item_id() -> str:
    return uuid4().hex


class ConflictType(StrEnum):
    EXACT_DUPLICATE = "exact_duplicate"
    POTENTIAL_DUPLICATE = "potential_duplicate"
    TRANSFER_CONFLICT = "transfer_conflict"
    MANUAL_ENTRY_CONFLICT = "manual_entry_conflict"


class ConflictSeverity(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ConflictResolution(StrEnum):
    """Reviewer decision for one review item."""

    PENDING = "pending"
    IMPORT = "import"
    SKIP = "skip"
    MERGE_WITH_EXISTING = "merge_with_existing"
    REPLACE_EXISTING = "replace_existing"


class AnalysisNotFoundError(LookupError):
    """Raised when an operation requires a cached analysis that is gone."""

    def __init__(self, analysis_id: str) -> None:
        self.analysis_id = analysis_id
        super().__init__(f"Analysis {analysis_id} not found or expired")


@dataclass(frozen=True, slots=True)
class ImportAnalysisOptions:
    """Match tolerances for conflict detection."""

    date_tolerance_days: int = 3
    amount_tolerance: Decimal = Decimal("0.01")
    description_similarity_threshold: Decimal = Decimal("0.8")

    def __post_init__(self) -> None:
        if self.date_tolerance_days < 0:
            raise ValueError("date_tolerance_days must be non-negative")
        if self.amount_tolerance < 0:
            raise ValueError("amount_tolerance must be non-negative")
        if not Decimal(0) <= self.description_similarity_threshold <= Decimal(1):
            raise ValueError("description_similarity_threshold must be within [0, 1]")


@dataclass(frozen=True, slots=True, kw_only=True)
class ImportCandidate:
    """A transaction proposed for import, not yet persisted."""

    amount: Decimal
    date: datetime
    description: str = ""
    type: TransactionType = TransactionType.EXPENSE
    status: TransactionStatus = TransactionStatus.CLEARED
    source: TransactionSource = TransactionSource.CSV_IMPORT
    reference_id: str | None = None
    external_reference_id: str | None = None
    category: str | None = None
    notes: str | None = None
    source_row_number: int = 0
    confidence_score: Decimal | None = None
    temp_id: str = field(default_factory=new_item_id)

    def __post_init__(self) -> None:
        object.__setattr__(self, "date", ensure_aware(self.date))


@dataclass(frozen=True, slots=True, kw_only=True)
class ExistingTransaction:
    """Snapshot of a ledger entry taken at analysis time."""

    id: int
    amount: Decimal
    date: datetime
    description: str = ""
    reference_id: str | None = None
    external_reference_id: str | None = None
    source: TransactionSource = TransactionSource.MANUAL
    status: TransactionStatus = TransactionStatus.CLEARED
    created_at: datetime | None = None
    transfer_id: UUID | None = None

    @property
    def is_transfer(self) -> bool:
        return self.transfer_id is not None

    @classmethod
    def from_transaction(cls, transaction: Transaction) -> ExistingTransaction:
        if transaction.id is None:
            raise ValueError("Cannot snapshot a transaction that has not been persisted")
        return cls(
            id=transaction.id,
            amount=transaction.amount,
            date=transaction.transaction_date,
            description=transaction.description,
            reference_id=transaction.reference_number,
            external_reference_id=transaction.external_id,
            source=transaction.source,
            status=transaction.status,
            created_at=transaction.created_at,
            transfer_id=transaction.transfer_id,
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class ConflictInfo:
    type: ConflictType
    severity: ConflictSeverity
    message: str
    confidence_score: Decimal
    conflicting_transaction: ExistingTransaction | None = None

    def __post_init__(self) -> None:
        if not Decimal(0) <= self.confidence_score <= Decimal(1):
            raise ValueError(f"Confidence score out of range: {self.confidence_score}")


@dataclass(slots=True, kw_only=True)
class ImportReviewItem:
    """One candidate, its conflicts and the reviewer's decision."""

    candidate: ImportCandidate
    conflicts: tuple[ConflictInfo, ...] = ()
    review_decision: ConflictResolution | None = None
    user_notes: str | None = None
    is_processed: bool = False
    id: str = field(default_factory=new_item_id)

    def __post_init__(self) -> None:
        if self.review_decision is None:
            self.review_decision = (
                ConflictResolution.PENDING if self.conflicts else ConflictResolution.IMPORT
            )

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)

    def has_conflict(self, conflict_type: ConflictType) -> bool:
        return any(conflict.type is conflict_type for conflict in self.conflicts)

    def conflict_target(self) -> ExistingTransaction | None:
        """First existing transaction referenced by a conflict, in detection order."""

        for conflict in self.conflicts:
            if conflict.conflicting_transaction is not None:
                return conflict.conflicting_transaction
        return None

    def resolve(self, decision: ConflictResolution, *, user_notes: str | None = None) -> None:
        self.review_decision = decision
        if user_notes is not None:
            self.user_notes = user_notes
        self.is_processed = True


@dataclass(frozen=True, slots=True)
class ImportAnalysisStatistics:
    total_candidates: int = 0
    clean_imports: int = 0
    exact_duplicates: int = 0
    potential_duplicates: int = 0
    transfer_conflicts: int = 0
    manual_conflicts: int = 0
    requires_review: int = 0


@dataclass(slots=True, kw_only=True)
class ImportAnalysisResult:
    analysis_id: str
    account_id: int
    user_id: UUID | None = None
    review_items: list[ImportReviewItem] = field(default_factory=list[ImportReviewItem])
    summary: ImportAnalysisStatistics = field(default_factory=ImportAnalysisStatistics)
    notes: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    errors: tuple[str, ...] = ()
    analyzed_at: datetime = field(default_factory=utcnow)

    def items_by_id(self) -> dict[str, ImportReviewItem]:
        return {review_item.id: review_item for review_item in self.review_items}


@dataclass(frozen=True, slots=True, kw_only=True)
class AnalyzeImportRequest:
    account_id: int
    user_id: UUID
    candidates: Sequence[ImportCandidate]
    options: ImportAnalysisOptions | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class ImportDecision:
    """Reviewer decision, optionally carrying the candidate for cache misses.

    ``decision`` may arrive as a raw string from an outer layer; unknown values
    are reported per item during execution.
    """

    review_item_id: str
    decision: ConflictResolution | str
    user_notes: str | None = None
    candidate: ImportCandidate | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class ImportExecutionRequest:
    analysis_id: str
    decisions: Sequence[ImportDecision]
    user_id: UUID
    account_id: int | None = None


class OutcomeStatus(StrEnum):
    IMPORTED = "imported"
    SKIPPED = "skipped"
    MERGED = "merged"
    REPLACED = "replaced"
    FAILED = "failed"


@dataclass(frozen=True, slots=True, kw_only=True)
class ImportedTransaction:
    id: int | None
    amount: Decimal
    transaction_date: datetime
    description: str
    external_id: str | None = None
    is_new: bool = True

    @classmethod
    def from_transaction(cls, transaction: Transaction, *, is_new: bool) -> ImportedTransaction:
        return cls(
            id=transaction.id,
            amount=transaction.amount,
            transaction_date=transaction.transaction_date,
            description=transaction.description,
            external_id=transaction.external_id,
            is_new=is_new,
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class ItemOutcome:
    """What happened to one decision; failed items carry the error text."""

    review_item_id: str
    decision: str
    status: OutcomeStatus
    transaction_id: int | None = None
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status is not OutcomeStatus.FAILED


@dataclass(frozen=True, slots=True)
class ImportExecutionStatistics:
    total_decisions: int = 0
    imported_count: int = 0
    skipped_count: int = 0
    merged_count: int = 0
    error_count: int = 0
    executed_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True, slots=True, kw_only=True)
class ImportExecutionResult:
    is_success: bool
    message: str
    statistics: ImportExecutionStatistics
    outcomes: tuple[ItemOutcome, ...] = ()
    imported_transactions: tuple[ImportedTransaction, ...] = ()
    warnings: tuple[str, ...] = ()
    errors: tuple[str, ...] = ()

    def failed_item_ids(self) -> tuple[str, ...]:
        return tuple(outcome.review_item_id for outcome in self.outcomes if not outcome.succeeded)


class BulkActionType(StrEnum):
    SKIP_ALL_EXACT_DUPLICATES = "skip_all_exact_duplicates"
    IMPORT_ALL_NON_CONFLICTS = "import_all_non_conflicts"
    SKIP_ALL_BY_CONFLICT_TYPE = "skip_all_by_conflict_type"
    IMPORT_ALL_BY_CONFLICT_TYPE = "import_all_by_conflict_type"


@dataclass(frozen=True, slots=True, kw_only=True)
class BulkActionRequest:
    analysis_id: str
    action_type: BulkActionType
    target_conflict_type: ConflictType | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class BulkActionResult:
    is_success: bool
    affected_items_count: int
    message: str


@dataclass(frozen=True, slots=True, kw_only=True)
class AnalysisStatus:
    analysis_id: str
    is_available: bool
    expires_at: datetime | None = None
    pending_items: int = 0
