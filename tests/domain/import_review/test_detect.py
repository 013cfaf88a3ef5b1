from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from ledgerdesk.domain.import_review.contracts import (
    ConflictSeverity,
    ConflictType,
    ExistingTransaction,
    ImportAnalysisOptions,
)
from ledgerdesk.domain.import_review.detect import (
    days_between,
    description_similarity,
    detect_conflicts,
)
from ledgerdesk.domain.model import TransactionType
from tests.helpers.ledger import day, make_candidate


def _existing(
    amount: str = "-50.00",
    *,
    date_day: int = 10,
    month: int = 3,
    description: str = "Grocery Store",
    external_id: str | None = None,
    transfer: bool = False,
    transaction_id: int = 1,
) -> ExistingTransaction:
    return ExistingTransaction(
        id=transaction_id,
        amount=Decimal(amount),
        date=day(date_day, month=month),
        description=description,
        external_reference_id=external_id,
        transfer_id=uuid4() if transfer else None,
    )


def test_no_existing_transactions_yields_no_conflicts() -> None:
    candidate = make_candidate("-25.50", date=day(1), external_id="TXN001")

    assert detect_conflicts(candidate, []) == []


def test_identical_amount_and_date_is_high_potential_duplicate() -> None:
    candidate = make_candidate("-50.00", date=day(10, month=3), description="Grocery Store")

    conflicts = detect_conflicts(candidate, [_existing()])

    assert len(conflicts) == 1
    conflict = conflicts[0]
    assert conflict.type is ConflictType.POTENTIAL_DUPLICATE
    assert conflict.severity is ConflictSeverity.HIGH
    assert conflict.confidence_score == Decimal(1)
    assert conflict.message == (
        "Transaction with same amount and date found - 100% description match"
    )


def test_transfer_with_equal_amount_one_day_apart() -> None:
    candidate = make_candidate(
        "100.00",
        date=day(10, month=3),
        description="Incoming",
        type=TransactionType.INCOME,
    )
    existing = _existing("100.00", date_day=11, description="Savings move", transfer=True)

    conflicts = detect_conflicts(candidate, [existing], ImportAnalysisOptions(date_tolerance_days=3))

    transfers = [c for c in conflicts if c.type is ConflictType.TRANSFER_CONFLICT]
    assert len(transfers) == 1
    assert transfers[0].severity is ConflictSeverity.HIGH
    assert transfers[0].confidence_score == Decimal("0.6667")
    assert transfers[0].message == "Transfer with same amount already exists (1 day apart)"


def test_transfer_with_different_amount_has_flat_confidence() -> None:
    candidate = make_candidate("100.00", date=day(10, month=3), type=TransactionType.INCOME)
    existing = _existing("100.50", date_day=12, description="Other", transfer=True)
    options = ImportAnalysisOptions(amount_tolerance=Decimal("1.00"))

    conflicts = detect_conflicts(candidate, [existing], options)

    transfers = [c for c in conflicts if c.type is ConflictType.TRANSFER_CONFLICT]
    assert len(transfers) == 1
    assert transfers[0].severity is ConflictSeverity.MEDIUM
    assert transfers[0].confidence_score == Decimal("0.7")


def test_exact_duplicate_takes_precedence_for_the_pair() -> None:
    candidate = make_candidate("-50.00", date=day(10, month=3), external_id="EXT-1")
    existing = _existing(external_id="EXT-1", transfer=True)

    conflicts = detect_conflicts(candidate, [existing])

    assert [c.type for c in conflicts] == [ConflictType.EXACT_DUPLICATE]
    assert conflicts[0].confidence_score == Decimal(1)
    assert conflicts[0].conflicting_transaction is existing


def test_exact_duplicate_ignores_tolerance_window() -> None:
    candidate = make_candidate("-1.00", date=day(1, month=1), external_id="EXT-9")
    existing = _existing("-999.00", date_day=30, month=6, external_id="EXT-9")

    conflicts = detect_conflicts(candidate, [existing])

    assert [c.type for c in conflicts] == [ConflictType.EXACT_DUPLICATE]


def test_blank_external_ids_never_match() -> None:
    candidate = make_candidate("-5.00", date=day(1), external_id="")
    existing = _existing("-900.00", date_day=20, month=1, external_id="")

    assert detect_conflicts(candidate, [existing]) == []


def test_date_tolerance_boundary_is_inclusive() -> None:
    existing = _existing("-50.00", date_day=10, description="Grocery Store")
    options = ImportAnalysisOptions(date_tolerance_days=3)

    inside = make_candidate("-50.00", date=day(13, month=3), description="Grocery Store")
    outside = make_candidate(
        "-50.00",
        date=day(13, month=3) + timedelta(days=1),
        description="Grocery Store",
    )

    inside_conflicts = detect_conflicts(inside, [existing], options)
    assert len(inside_conflicts) == 1
    assert inside_conflicts[0].message.startswith("Similar transaction found (3 days apart)")
    assert detect_conflicts(outside, [existing], options) == []


def test_amount_tolerance_boundary_is_inclusive() -> None:
    existing = _existing("-50.00", description="Grocery Store")

    inside = make_candidate("-50.01", date=day(10, month=3), description="Grocery Store")
    outside = make_candidate("-50.02", date=day(10, month=3), description="Grocery Store")

    assert len(detect_conflicts(inside, [existing])) == 1
    assert detect_conflicts(outside, [existing]) == []


def test_distant_dates_with_unrelated_description_are_not_flagged() -> None:
    existing = _existing("-50.00", date_day=10, description="Grocery Store")
    candidate = make_candidate("-50.00", date=day(12, month=3), description="Petrol station")

    assert detect_conflicts(candidate, [existing]) == []


def test_similar_description_flags_distant_dates() -> None:
    existing = _existing("-50.00", date_day=10, description="Grocery Store")
    candidate = make_candidate("-50.00", date=day(12, month=3), description="grocery store")

    conflicts = detect_conflicts(candidate, [existing])

    assert len(conflicts) == 1
    conflict = conflicts[0]
    # date 1 - 2/3, amount 1, description 1
    assert conflict.confidence_score == Decimal("0.7333")
    assert conflict.severity is ConflictSeverity.MEDIUM
    assert conflict.message == "Similar transaction found (2 days apart) - 100% description match"


def test_empty_description_is_reported() -> None:
    existing = _existing("-50.00", description="")
    candidate = make_candidate("-50.00", date=day(10, month=3), description="")

    conflicts = detect_conflicts(candidate, [existing])

    assert conflicts[0].message == "Transaction with same amount and date found - empty description"
    assert conflicts[0].confidence_score == Decimal("0.8")


def test_zero_tolerances_only_match_exact_values() -> None:
    options = ImportAnalysisOptions(date_tolerance_days=0, amount_tolerance=Decimal(0))
    existing = _existing("-50.00", description="Grocery Store")

    same = make_candidate("-50.00", date=day(10, month=3), description="Grocery Store")
    off_by_cent = make_candidate("-50.01", date=day(10, month=3), description="Grocery Store")

    conflicts = detect_conflicts(same, [existing], options)
    assert len(conflicts) == 1
    assert conflicts[0].confidence_score == Decimal(1)
    assert detect_conflicts(off_by_cent, [existing], options) == []


def test_confidence_stays_in_unit_range() -> None:
    options = ImportAnalysisOptions(
        date_tolerance_days=7,
        amount_tolerance=Decimal("5.00"),
        description_similarity_threshold=Decimal(0),
    )
    existing = [
        _existing(f"-{50 + offset}.00", date_day=3 + offset, transaction_id=offset + 1)
        for offset in range(6)
    ]
    candidate = make_candidate("-52.00", date=day(6, month=3), description="Something else")

    conflicts = detect_conflicts(candidate, existing, options)

    assert conflicts
    for conflict in conflicts:
        assert Decimal(0) <= conflict.confidence_score <= Decimal(1)


def test_one_pair_can_yield_duplicate_and_transfer() -> None:
    existing = _existing("-50.00", description="Grocery Store", transfer=True)
    candidate = make_candidate("-50.00", date=day(10, month=3), description="Grocery Store")

    conflicts = detect_conflicts(candidate, [existing])

    assert [c.type for c in conflicts] == [
        ConflictType.POTENTIAL_DUPLICATE,
        ConflictType.TRANSFER_CONFLICT,
    ]


@pytest.mark.parametrize(
    ("first", "second", "expected"),
    [
        ("Coffee Shop", "coffee shop", Decimal(1)),
        ("Coffee Shop Downtown", "Coffee Shop", Decimal(2) / Decimal(3)),
        ("Coffee", "Tea", Decimal(0)),
        ("", "Tea", Decimal(0)),
        ("   ", "   ", Decimal(0)),
        (None, "Tea", Decimal(0)),
    ],
)
def test_description_similarity(first: str | None, second: str | None, expected: Decimal) -> None:
    assert description_similarity(first, second) == expected


def test_days_between_is_symmetric_and_fractional() -> None:
    start = day(1)
    later = start + timedelta(hours=36)

    assert days_between(start, later) == Decimal("1.5")
    assert days_between(later, start) == Decimal("1.5")
