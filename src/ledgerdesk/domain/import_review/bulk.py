"""Apply one decision to many review items of a cached analysis."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, assert_never

from .contracts import (
    AnalysisNotFoundError,
    BulkActionResult,
    BulkActionType,
    ConflictResolution,
    ConflictType,
    ImportDecision,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from ledgerdesk.domain.ports import AnalysisCache

    from .contracts import BulkActionRequest, ImportAnalysisResult, ImportReviewItem

log = getLogger(__name__)

type ItemFilter = Callable[[ImportReviewItem], bool]


def apply_bulk_action(request: BulkActionRequest, *, cache: AnalysisCache) -> BulkActionResult:
    """Set the review decision of every matching unprocessed item.

    Raises ``AnalysisNotFoundError`` when the analysis is no longer cached and
    ``ValueError`` when a by-type action lacks its target conflict type.
    """

    analysis = cache.get(request.analysis_id)
    if analysis is None:
        raise AnalysisNotFoundError(request.analysis_id)

    matches, decision = _plan(request)
    affected = 0
    for item in analysis.review_items:
        if item.is_processed or not matches(item):
            continue
        item.review_decision = decision
        affected += 1

    if not cache.put_if_present(analysis):
        # consumed by an execution while the decisions were being rewritten
        raise AnalysisNotFoundError(request.analysis_id)
    log.info(
        "Bulk action %s on analysis %s affected %d items",
        request.action_type,
        request.analysis_id,
        affected,
    )
    return BulkActionResult(
        is_success=True,
        affected_items_count=affected,
        message=f"Bulk action applied to {affected} items",
    )


def _plan(request: BulkActionRequest) -> tuple[ItemFilter, ConflictResolution]:
    match request.action_type:
        case BulkActionType.SKIP_ALL_EXACT_DUPLICATES:
            return _with_conflict(ConflictType.EXACT_DUPLICATE), ConflictResolution.SKIP
        case BulkActionType.IMPORT_ALL_NON_CONFLICTS:
            return (lambda item: not item.has_conflicts), ConflictResolution.IMPORT
        case BulkActionType.SKIP_ALL_BY_CONFLICT_TYPE:
            return _with_conflict(_target_type(request)), ConflictResolution.SKIP
        case BulkActionType.IMPORT_ALL_BY_CONFLICT_TYPE:
            return _with_conflict(_target_type(request)), ConflictResolution.IMPORT
        case _:
            assert_never(request.action_type)


def _target_type(request: BulkActionRequest) -> ConflictType:
    if request.target_conflict_type is None:
        raise ValueError(f"Bulk action {request.action_type} requires a target conflict type")
    return request.target_conflict_type


def _with_conflict(conflict_type: ConflictType) -> ItemFilter:
    return lambda item: item.has_conflict(conflict_type)


def decisions_for(analysis: ImportAnalysisResult) -> list[ImportDecision]:
    """Turn the current review decisions into execution input.

    Pending and already processed items are left out. Candidates are embedded so
    the decisions survive a cache miss at execution time.
    """

    return [
        ImportDecision(
            review_item_id=item.id,
            decision=item.review_decision,
            user_notes=item.user_notes,
            candidate=item.candidate,
        )
        for item in analysis.review_items
        if item.review_decision is not None
        and item.review_decision is not ConflictResolution.PENDING
        and not item.is_processed
    ]
