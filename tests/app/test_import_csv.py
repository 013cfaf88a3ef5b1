from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from ledgerdesk.adapters.memory_cache import InMemoryAnalysisCache
from ledgerdesk.app import build_import_review_service, import_csv_file
from ledgerdesk.config import ReviewConfig
from ledgerdesk.domain.import_review import ConflictResolution
from tests.helpers.ledger import ACCOUNT_ID, USER_ID, day, make_transaction

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from ledgerdesk.adapters.sqlalchemy.unit_of_work import SqlAlchemyLedgerUnitOfWork

STATEMENT = """date,amount,description,external_id
2024-01-01,-25.50,Restaurant Purchase,TXN001
2024-01-05,-40.00,Gym,TXN002
2024-01-07,-12.00,Coffee beans,TXN003
"""


def _write(tmp_path: Path) -> Path:
    path = tmp_path / "statement.csv"
    path.write_text(STATEMENT, encoding="utf-8")
    return path


def test_apply_imports_clean_rows_and_skips_exact_duplicates(
    tmp_path: Path,
    sqlite_unit_of_work: Callable[[], SqlAlchemyLedgerUnitOfWork],
) -> None:
    with sqlite_unit_of_work() as uow:
        uow.repositories.transactions.add(
            make_transaction("-25.50", date=day(1), description="Dinner", external_id="TXN001")
        )
        uow.repositories.transactions.add(
            make_transaction("-12.00", date=day(7), description="Coffee beans")
        )
        uow.commit()
    service = build_import_review_service(
        unit_of_work_factory=sqlite_unit_of_work,
        cache=InMemoryAnalysisCache(),
        config=ReviewConfig(),
    )

    outcome = import_csv_file(
        _write(tmp_path),
        account_id=ACCOUNT_ID,
        user_id=USER_ID,
        apply=True,
        service=service,
    )

    assert outcome.analysis.summary.exact_duplicates == 1
    assert outcome.analysis.summary.potential_duplicates == 1
    execution = outcome.execution
    assert execution is not None
    assert execution.is_success
    assert execution.statistics.imported_count == 1
    assert execution.statistics.skipped_count == 1
    pending = [
        item
        for item in outcome.analysis.review_items
        if item.review_decision is ConflictResolution.PENDING
    ]
    assert [item.candidate.description for item in pending] == ["Coffee beans"]

    with sqlite_unit_of_work() as uow:
        stored = uow.repositories.transactions.list_by_date_range(
            ACCOUNT_ID, day(1), day(31), user_id=USER_ID
        )
        assert sorted((tx.description, tx.amount) for tx in stored) == [
            ("Coffee beans", Decimal("-12.00")),
            ("Dinner", Decimal("-25.50")),
            ("Gym", Decimal("-40.00")),
        ]


def test_without_apply_nothing_is_written(
    tmp_path: Path,
    sqlite_unit_of_work: Callable[[], SqlAlchemyLedgerUnitOfWork],
) -> None:
    service = build_import_review_service(
        unit_of_work_factory=sqlite_unit_of_work,
        config=ReviewConfig(),
    )

    outcome = import_csv_file(
        _write(tmp_path),
        account_id=ACCOUNT_ID,
        user_id=USER_ID,
        service=service,
    )

    assert outcome.execution is None
    assert outcome.analysis.summary.clean_imports == 3
    assert service.analysis_status(outcome.analysis.analysis_id).is_available
    with sqlite_unit_of_work() as uow:
        assert (
            uow.repositories.transactions.list_by_date_range(
                ACCOUNT_ID, day(1), day(31), user_id=USER_ID
            )
            == []
        )
