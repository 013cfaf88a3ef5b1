"""Pairwise conflict detection between a candidate and existing ledger entries.

Each (candidate, existing) pair is checked in a fixed order:

1. exact duplicate: same non-empty external reference id; ends the pair
2. potential duplicate: date and amount within tolerance, then scored
3. transfer conflict: existing entry belongs to a transfer and is within tolerance

Checks 2 and 3 are not exclusive, so one pair can yield two conflicts.
"""

from __future__ import annotations

from decimal import ROUND_HALF_EVEN, Decimal
from logging import getLogger
from typing import TYPE_CHECKING, Final, Protocol

from .contracts import ConflictInfo, ConflictSeverity, ConflictType, ImportAnalysisOptions

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from .contracts import ExistingTransaction, ImportCandidate

log = getLogger(__name__)

ZERO: Final = Decimal(0)
ONE: Final = Decimal(1)
CLOSE_MATCH_DAYS: Final = Decimal(1)
CLOSE_MATCH_AMOUNT: Final = Decimal("0.01")
MEDIUM_SEVERITY_CONFIDENCE: Final = Decimal("0.7")
INEXACT_TRANSFER_CONFIDENCE: Final = Decimal("0.7")
DATE_AMOUNT_WEIGHT: Final = Decimal("0.8")
DESCRIPTION_WEIGHT: Final = Decimal("0.2")
CONFIDENCE_QUANTUM: Final = Decimal("0.0001")
_SECONDS_PER_DAY: Final = Decimal(86_400)


class DetectConflicts(Protocol):
    """Compare one candidate against a snapshot of existing transactions."""

    def __call__(
        self,
        candidate: ImportCandidate,
        existing_transactions: Iterable[ExistingTransaction],
        options: ImportAnalysisOptions,
    ) -> list[ConflictInfo]: ...


def description_similarity(first: str | None, second: str | None) -> Decimal:
    """Word-set Jaccard similarity, case-insensitive; blank input scores 0."""

    if not first or not first.strip() or not second or not second.strip():
        return ZERO
    left = first.strip().lower()
    right = second.strip().lower()
    if left == right:
        return ONE
    left_words = set(left.split())
    right_words = set(right.split())
    union = left_words | right_words
    if not union:
        return ZERO
    return Decimal(len(left_words & right_words)) / Decimal(len(union))


def days_between(first: datetime, second: datetime) -> Decimal:
    """Absolute distance in fractional days."""

    delta = abs(first - second)
    seconds = Decimal(delta.days) * _SECONDS_PER_DAY + Decimal(delta.seconds)
    seconds += Decimal(delta.microseconds) / Decimal(1_000_000)
    return seconds / _SECONDS_PER_DAY


def detect_conflicts(
    candidate: ImportCandidate,
    existing_transactions: Iterable[ExistingTransaction],
    options: ImportAnalysisOptions | None = None,
) -> list[ConflictInfo]:
    """Return all conflicts for ``candidate`` in detection order.

    ``candidate.amount`` must already be sign-normalized.
    """

    effective = options or ImportAnalysisOptions()
    conflicts: list[ConflictInfo] = []
    for existing in existing_transactions:
        if _is_exact_duplicate(candidate, existing):
            conflicts.append(
                ConflictInfo(
                    type=ConflictType.EXACT_DUPLICATE,
                    severity=ConflictSeverity.HIGH,
                    message="Transaction with same external reference ID already exists",
                    confidence_score=ONE,
                    conflicting_transaction=existing,
                )
            )
            continue

        days_diff = days_between(candidate.date, existing.date)
        amount_diff = abs(candidate.amount - existing.amount)
        if days_diff > effective.date_tolerance_days or amount_diff > effective.amount_tolerance:
            continue

        potential = _potential_duplicate(candidate, existing, days_diff, amount_diff, effective)
        if potential is not None:
            conflicts.append(potential)
        if existing.is_transfer:
            conflicts.append(_transfer_conflict(existing, days_diff, amount_diff, effective))

    if conflicts:
        log.debug(
            "Candidate %r (%s on %s): %d conflicts",
            candidate.description,
            candidate.amount,
            candidate.date.date(),
            len(conflicts),
        )
    return conflicts


def _is_exact_duplicate(candidate: ImportCandidate, existing: ExistingTransaction) -> bool:
    reference = candidate.external_reference_id
    return bool(reference) and reference == existing.external_reference_id


def _potential_duplicate(
    candidate: ImportCandidate,
    existing: ExistingTransaction,
    days_diff: Decimal,
    amount_diff: Decimal,
    options: ImportAnalysisOptions,
) -> ConflictInfo | None:
    similarity = description_similarity(candidate.description, existing.description)
    is_exact_amount_and_date = amount_diff == ZERO and days_diff == ZERO
    is_close_match = days_diff <= CLOSE_MATCH_DAYS and amount_diff <= CLOSE_MATCH_AMOUNT
    if not (
        is_exact_amount_and_date
        or is_close_match
        or similarity >= options.description_similarity_threshold
    ):
        return None

    date_confidence = _proximity(days_diff, Decimal(options.date_tolerance_days))
    amount_confidence = _proximity(amount_diff, options.amount_tolerance)
    base_confidence = (date_confidence + amount_confidence) / 2
    confidence = _bounded(base_confidence * DATE_AMOUNT_WEIGHT + similarity * DESCRIPTION_WEIGHT)

    if is_exact_amount_and_date:
        severity = ConflictSeverity.HIGH
        message = "Transaction with same amount and date found"
    else:
        severity = (
            ConflictSeverity.MEDIUM
            if confidence > MEDIUM_SEVERITY_CONFIDENCE
            else ConflictSeverity.LOW
        )
        message = f"Similar transaction found ({_format_days(days_diff)} apart)"

    if similarity > ZERO:
        percent = (similarity * 100).quantize(ONE, rounding=ROUND_HALF_EVEN)
        message += f" - {percent}% description match"
    elif not candidate.description.strip() or not existing.description.strip():
        message += " - empty description"

    return ConflictInfo(
        type=ConflictType.POTENTIAL_DUPLICATE,
        severity=severity,
        message=message,
        confidence_score=confidence,
        conflicting_transaction=existing,
    )


def _transfer_conflict(
    existing: ExistingTransaction,
    days_diff: Decimal,
    amount_diff: Decimal,
    options: ImportAnalysisOptions,
) -> ConflictInfo:
    exact_amount = amount_diff == ZERO
    severity = (
        ConflictSeverity.HIGH
        if exact_amount and days_diff <= CLOSE_MATCH_DAYS
        else ConflictSeverity.MEDIUM
    )
    if exact_amount:
        confidence = _bounded(_proximity(days_diff, Decimal(options.date_tolerance_days)))
    else:
        confidence = INEXACT_TRANSFER_CONFIDENCE
    return ConflictInfo(
        type=ConflictType.TRANSFER_CONFLICT,
        severity=severity,
        message=f"Transfer with same amount already exists ({_format_days(days_diff)} apart)",
        confidence_score=confidence,
        conflicting_transaction=existing,
    )


def _proximity(difference: Decimal, tolerance: Decimal) -> Decimal:
    # a zero tolerance only lets zero differences through
    if difference == ZERO or tolerance == ZERO:
        return ONE
    return ONE - difference / tolerance


def _bounded(value: Decimal) -> Decimal:
    clamped = min(ONE, max(ZERO, value))
    return clamped.quantize(CONFIDENCE_QUANTUM, rounding=ROUND_HALF_EVEN)


def _format_days(days: Decimal) -> str:
    if days == days.to_integral_value():
        whole = int(days)
        return f"{whole} day" if whole == 1 else f"{whole} days"
    return f"{days.quantize(Decimal('0.01'), rounding=ROUND_HALF_EVEN).normalize()} days"
