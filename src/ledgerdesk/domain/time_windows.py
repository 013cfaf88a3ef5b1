"""Date windows used to scope ledger lookups around imported transactions."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Iterable


class Clock(Protocol):
    def __call__(self) -> datetime: ...


def utcnow() -> datetime:
    return datetime.now(UTC)


def ensure_aware(value: datetime) -> datetime:
    """Return ``value`` in UTC, rejecting naive datetimes."""

    if value.tzinfo is None:
        raise ValueError("Datetime values must include timezone information")
    return value.astimezone(UTC)


@dataclass(frozen=True, slots=True)
class DateWindow:
    """Inclusive ``[start, end]`` range of UTC timestamps."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        start = ensure_aware(self.start)
        end = ensure_aware(self.end)
        if start > end:
            raise ValueError("Date window start must be before end")
        object.__setattr__(self, "start", start)
        object.__setattr__(self, "end", end)

    @classmethod
    def covering(cls, dates: Iterable[datetime], *, tolerance_days: int) -> DateWindow:
        """Span all ``dates``, padded by ``tolerance_days`` on both sides."""

        if tolerance_days < 0:
            raise ValueError("Tolerance must be non-negative")
        resolved = [ensure_aware(value) for value in dates]
        if not resolved:
            raise ValueError("Cannot build a date window from no dates")
        padding = timedelta(days=tolerance_days)
        return cls(start=min(resolved) - padding, end=max(resolved) + padding)

    @classmethod
    def around(cls, anchor: datetime, *, days: int) -> DateWindow:
        return cls.covering((anchor,), tolerance_days=days)

    def contains(self, value: datetime) -> bool:
        return self.start <= ensure_aware(value) <= self.end


def years_before(anchor: datetime, years: int) -> datetime:
    """Shift ``anchor`` back by calendar years, clamping Feb 29 to Feb 28."""

    try:
        return anchor.replace(year=anchor.year - years)
    except ValueError:
        return anchor.replace(year=anchor.year - years, day=28)


__all__ = ["Clock", "DateWindow", "ensure_aware", "utcnow", "years_before"]
