#!/usr/bin/env python3

# ruff: noqa: T201

from __future__ import annotations

import argparse
import logging
import sys
from decimal import Decimal, InvalidOperation
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING
from uuid import UUID

from dotenv import load_dotenv

from ledgerdesk.app import CsvImportOutcome, default_options, import_csv_file
from ledgerdesk.config import configure_logging
from ledgerdesk.domain.import_review import ImportAnalysisOptions

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _decimal(value: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation as exc:
        raise argparse.ArgumentTypeError(f"Invalid decimal: {value}") from exc


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Review and apply ledger imports")
    subparsers = parser.add_subparsers(dest="command", required=True)

    import_csv = subparsers.add_parser("import-csv", help="Analyse (and optionally apply) a CSV")
    import_csv.add_argument("path", type=Path, help="CSV file with date, amount, description")
    import_csv.add_argument("--account-id", type=int, required=True, help="Target account id")
    import_csv.add_argument("--user-id", type=str, required=True, help="Owning user id (UUID)")
    import_csv.add_argument(
        "--date-tolerance-days",
        type=int,
        help="Days either side of a row to search for matches (defaults to config)",
    )
    import_csv.add_argument(
        "--amount-tolerance",
        type=_decimal,
        help="Largest amount difference still treated as a match (defaults to config)",
    )
    import_csv.add_argument(
        "--similarity-threshold",
        type=_decimal,
        help="Description similarity in [0, 1] that flags a match (defaults to config)",
    )
    import_csv.add_argument(
        "--apply",
        action="store_true",
        help="Import conflict-free rows and skip exact duplicates",
    )
    return parser.parse_args(list(argv))


def _parse_uuid(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError as exc:
        raise ValueError(f"Invalid UUID: {value}") from exc


def _build_options(args: argparse.Namespace) -> ImportAnalysisOptions | None:
    overrides = (args.date_tolerance_days, args.amount_tolerance, args.similarity_threshold)
    if all(value is None for value in overrides):
        return None
    base = default_options()
    return ImportAnalysisOptions(
        date_tolerance_days=(
            base.date_tolerance_days
            if args.date_tolerance_days is None
            else args.date_tolerance_days
        ),
        amount_tolerance=(
            base.amount_tolerance if args.amount_tolerance is None else args.amount_tolerance
        ),
        description_similarity_threshold=(
            base.description_similarity_threshold
            if args.similarity_threshold is None
            else args.similarity_threshold
        ),
    )


def _print_outcome(outcome: CsvImportOutcome) -> None:
    summary = outcome.analysis.summary
    print(f"Analysis {outcome.analysis.analysis_id}")
    print(
        f"  rows={summary.total_candidates} clean={summary.clean_imports} "
        f"exact={summary.exact_duplicates} potential={summary.potential_duplicates} "
        f"transfer={summary.transfer_conflicts} review={summary.requires_review}"
    )
    for note in outcome.analysis.notes:
        print(f"  note: {note}")
    for warning in outcome.analysis.warnings:
        print(f"  warning: {warning}")
    for item in outcome.analysis.review_items:
        for conflict in item.conflicts:
            print(
                f"  row {item.candidate.source_row_number}: {conflict.type} "
                f"[{conflict.severity}, {conflict.confidence_score}] {conflict.message}"
            )

    execution = outcome.execution
    if execution is None:
        return
    stats = execution.statistics
    print(execution.message)
    print(
        f"  imported={stats.imported_count} skipped={stats.skipped_count} "
        f"merged={stats.merged_count} errors={stats.error_count}"
    )
    for error in execution.errors:
        print(f"  error: {error}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    parsed_args: argparse.Namespace
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        if parsed_args.account_id <= 0:
            raise ValueError("--account-id must be positive")  # noqa: TRY301
        user_id = _parse_uuid(parsed_args.user_id)
        options = _build_options(parsed_args)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        outcome = import_csv_file(
            parsed_args.path,
            account_id=parsed_args.account_id,
            user_id=user_id,
            options=options,
            apply=parsed_args.apply,
        )
    except Exception:
        log.exception("Fatal error during import")
        sys.exit(1)

    _print_outcome(outcome)
    if outcome.execution is not None and not outcome.execution.is_success:
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
