from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import uuid4

import pytest

from ledgerdesk.adapters.memory_cache import InMemoryAnalysisCache
from ledgerdesk.domain.import_review.analyze import (
    EMPTY_IMPORT_NOTE,
    EMPTY_IMPORT_WARNING,
    analyze_import,
)
from ledgerdesk.domain.import_review.contracts import (
    AnalyzeImportRequest,
    ConflictResolution,
    ConflictType,
    ImportAnalysisOptions,
)
from ledgerdesk.domain.model import TransactionType
from tests.helpers.ledger import (
    ACCOUNT_ID,
    OTHER_USER_ID,
    USER_ID,
    FakeLedgerRepository,
    FakeLedgerUnitOfWork,
    day,
    fixed_clock,
    make_candidate,
    make_transaction,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from ledgerdesk.domain.import_review.contracts import ImportCandidate


@pytest.fixture
def cache() -> InMemoryAnalysisCache:
    return InMemoryAnalysisCache(clock=fixed_clock)


def _request(
    *candidates: ImportCandidate,
    options: ImportAnalysisOptions | None = None,
) -> AnalyzeImportRequest:
    return AnalyzeImportRequest(
        account_id=ACCOUNT_ID,
        user_id=USER_ID,
        candidates=list(candidates),
        options=options,
    )


def test_clean_candidate_defaults_to_import(
    fake_unit_of_work: Callable[[], FakeLedgerUnitOfWork],
    cache: InMemoryAnalysisCache,
) -> None:
    candidate = make_candidate("-25.50", date=day(1), external_id="TXN001")

    result = analyze_import(
        _request(candidate),
        unit_of_work_factory=fake_unit_of_work,
        cache=cache,
        clock=fixed_clock,
    )

    assert len(result.review_items) == 1
    item = result.review_items[0]
    assert item.conflicts == ()
    assert item.review_decision is ConflictResolution.IMPORT
    assert result.summary.total_candidates == 1
    assert result.summary.clean_imports == 1
    assert result.summary.requires_review == 0
    assert cache.get(result.analysis_id) is result


def test_conflicted_candidate_is_pending_and_counted(
    ledger: FakeLedgerRepository,
    fake_unit_of_work: Callable[[], FakeLedgerUnitOfWork],
    cache: InMemoryAnalysisCache,
) -> None:
    ledger.seed(
        make_transaction("-50.00", date=day(5), description="Grocery Store", external_id="A"),
        make_transaction("-12.00", date=day(6), description="Cinema", transfer_id=uuid4()),
    )
    candidates = [
        make_candidate("-50.00", date=day(5), description="Grocery Store", external_id="A"),
        make_candidate("-12.00", date=day(6), description="Tickets"),
        make_candidate("-99.00", date=day(8), description="Unrelated"),
    ]

    result = analyze_import(
        _request(*candidates),
        unit_of_work_factory=fake_unit_of_work,
        cache=cache,
        clock=fixed_clock,
    )

    decisions = [item.review_decision for item in result.review_items]
    assert decisions == [
        ConflictResolution.PENDING,
        ConflictResolution.PENDING,
        ConflictResolution.IMPORT,
    ]
    summary = result.summary
    assert summary.total_candidates == 3
    assert summary.clean_imports == 1
    assert summary.exact_duplicates == 1
    assert summary.potential_duplicates == 1
    assert summary.transfer_conflicts == 1
    assert summary.requires_review == 2
    assert "High-confidence duplicate matches detected - review recommended" in result.notes
    assert "1 potential transfer conflicts detected" in result.notes


def test_candidates_are_normalized_before_matching(
    ledger: FakeLedgerRepository,
    fake_unit_of_work: Callable[[], FakeLedgerUnitOfWork],
    cache: InMemoryAnalysisCache,
) -> None:
    ledger.seed(make_transaction("-40.00", date=day(3), description="Gym"))
    candidate = make_candidate("40.00", date=day(3), description="Gym", type=TransactionType.EXPENSE)

    result = analyze_import(
        _request(candidate),
        unit_of_work_factory=fake_unit_of_work,
        cache=cache,
        clock=fixed_clock,
    )

    item = result.review_items[0]
    assert item.candidate.amount == Decimal("-40.00")
    assert item.has_conflict(ConflictType.POTENTIAL_DUPLICATE)


def test_existing_window_spans_candidates_plus_tolerance(
    ledger: FakeLedgerRepository,
    fake_unit_of_work: Callable[[], FakeLedgerUnitOfWork],
    cache: InMemoryAnalysisCache,
) -> None:
    candidates = [make_candidate(date=day(5)), make_candidate(date=day(9))]

    analyze_import(
        _request(*candidates, options=ImportAnalysisOptions(date_tolerance_days=2)),
        unit_of_work_factory=fake_unit_of_work,
        cache=cache,
        clock=fixed_clock,
    )

    assert ledger.range_calls == [(ACCOUNT_ID, day(3), day(11))]


def test_other_users_transactions_are_ignored(
    ledger: FakeLedgerRepository,
    fake_unit_of_work: Callable[[], FakeLedgerUnitOfWork],
    cache: InMemoryAnalysisCache,
) -> None:
    ledger.seed(make_transaction("-25.50", date=day(1), user_id=OTHER_USER_ID))

    result = analyze_import(
        _request(make_candidate("-25.50", date=day(1))),
        unit_of_work_factory=fake_unit_of_work,
        cache=cache,
        clock=fixed_clock,
    )

    assert result.summary.clean_imports == 1


def test_empty_import_is_reported_and_not_cached(
    ledger: FakeLedgerRepository,
    fake_unit_of_work: Callable[[], FakeLedgerUnitOfWork],
    cache: InMemoryAnalysisCache,
) -> None:
    result = analyze_import(
        _request(),
        unit_of_work_factory=fake_unit_of_work,
        cache=cache,
        clock=fixed_clock,
    )

    assert result.review_items == []
    assert result.notes == (EMPTY_IMPORT_NOTE,)
    assert result.warnings == (EMPTY_IMPORT_WARNING,)
    assert cache.get(result.analysis_id) is None
    assert ledger.range_calls == []


def test_data_quality_warnings(
    fake_unit_of_work: Callable[[], FakeLedgerUnitOfWork],
    cache: InMemoryAnalysisCache,
) -> None:
    candidates = [
        make_candidate("-1.00", date=day(2), external_id="DUP", description=""),
        make_candidate("-2.00", date=day(3), external_id="DUP"),
        make_candidate("-150000.00", date=day(4), description="House"),
        make_candidate("-3.00", date=day(20), description="Future"),
        make_candidate("-4.00", date=day(1, year=2015), description="Ancient"),
    ]
    options = ImportAnalysisOptions(date_tolerance_days=8, amount_tolerance=Decimal("2.00"))

    result = analyze_import(
        _request(*candidates, options=options),
        unit_of_work_factory=fake_unit_of_work,
        cache=cache,
        clock=fixed_clock,
    )

    assert result.warnings == (
        "Duplicate external reference IDs found: DUP",
        "1 transactions have missing or empty descriptions",
        "1 transactions have amounts over 100,000 - please verify these are correct",
        "1 transactions are dated in the future",
        "1 transactions are older than 5 years",
        "Large date tolerance may result in false positive matches",
        "Large amount tolerance may result in false positive matches",
    )
    assert "Large date tolerance may result in false positive matches" in result.notes


def test_repository_failure_propagates_and_caches_nothing(
    cache: InMemoryAnalysisCache,
) -> None:
    class BrokenLedger(FakeLedgerRepository):
        def list_by_date_range(self, *args: object, **kwargs: object) -> list[object]:
            raise RuntimeError("database unavailable")

    def factory() -> FakeLedgerUnitOfWork:
        return FakeLedgerUnitOfWork(BrokenLedger())

    with pytest.raises(RuntimeError, match="database unavailable"):
        analyze_import(
            _request(make_candidate()),
            unit_of_work_factory=factory,
            cache=cache,
            clock=fixed_clock,
        )

    assert len(cache) == 0
