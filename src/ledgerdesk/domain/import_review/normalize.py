"""Sign normalization for incoming candidates.

Existing ledger entries store expenses as negative amounts, so every candidate
must pass through here before it is compared against them.
"""

from __future__ import annotations

from dataclasses import replace
from logging import getLogger
from typing import TYPE_CHECKING

from ledgerdesk.domain.model import TransactionType

if TYPE_CHECKING:
    from collections.abc import Iterable
    from decimal import Decimal

    from .contracts import ImportCandidate

log = getLogger(__name__)


def normalize_amount(amount: Decimal, transaction_type: TransactionType) -> Decimal:
    """Return ``amount`` with the sign implied by ``transaction_type``."""

    magnitude = abs(amount)
    if transaction_type is TransactionType.EXPENSE:
        return -magnitude
    return magnitude


def normalize_candidate(candidate: ImportCandidate) -> ImportCandidate:
    normalized = normalize_amount(candidate.amount, candidate.type)
    if normalized == candidate.amount:
        return candidate
    log.debug(
        "Normalized candidate amount: %r from %s to %s (type=%s)",
        candidate.description,
        candidate.amount,
        normalized,
        candidate.type,
    )
    return replace(candidate, amount=normalized)


def normalize_candidates(candidates: Iterable[ImportCandidate]) -> list[ImportCandidate]:
    return [normalize_candidate(candidate) for candidate in candidates]
