"""Process-local analysis cache with expiry and a size bound."""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
from datetime import timedelta
from logging import getLogger
from threading import Lock
from typing import TYPE_CHECKING, Final

from ledgerdesk.domain.time_windows import utcnow

if TYPE_CHECKING:
    from datetime import datetime

    from ledgerdesk.domain.import_review.contracts import ImportAnalysisResult
    from ledgerdesk.domain.time_windows import Clock

log = getLogger(__name__)

DEFAULT_TTL_SECONDS: Final = 30 * 60
DEFAULT_MAX_ENTRIES: Final = 256


@dataclass(slots=True)
class _Entry:
    analysis: ImportAnalysisResult
    expires_at: datetime


class InMemoryAnalysisCache:
    """Thread-safe ``AnalysisCache`` holding analyses for ``ttl_seconds``.

    Reads and writes refresh recency; once ``max_entries`` is exceeded the least
    recently used analysis is evicted. Expired entries are dropped lazily.
    """

    def __init__(
        self,
        *,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Clock = utcnow,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._ttl = timedelta(seconds=ttl_seconds)
        self._max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[str, _Entry] = OrderedDict()
        self._lock = Lock()

    def __len__(self) -> int:
        with self._lock:
            self._purge_expired()
            return len(self._entries)

    def put(self, analysis: ImportAnalysisResult) -> None:
        with self._lock:
            self._purge_expired()
            self._entries[analysis.analysis_id] = _Entry(
                analysis=analysis,
                expires_at=self._clock() + self._ttl,
            )
            self._entries.move_to_end(analysis.analysis_id)
            while len(self._entries) > self._max_entries:
                evicted, _ = self._entries.popitem(last=False)
                log.info("Evicted analysis %s from cache", evicted)

    def put_if_present(self, analysis: ImportAnalysisResult) -> bool:
        """Replace a live entry, keeping its expiry; return False if it is gone."""

        with self._lock:
            entry = self._live_entry(analysis.analysis_id)
            if entry is None:
                return False
            entry.analysis = analysis
            self._entries.move_to_end(analysis.analysis_id)
            return True

    def get(self, analysis_id: str) -> ImportAnalysisResult | None:
        with self._lock:
            entry = self._live_entry(analysis_id)
            if entry is None:
                return None
            self._entries.move_to_end(analysis_id)
            return entry.analysis

    def pop(self, analysis_id: str) -> ImportAnalysisResult | None:
        with self._lock:
            entry = self._live_entry(analysis_id)
            if entry is None:
                return None
            del self._entries[analysis_id]
            return entry.analysis

    def expires_at(self, analysis_id: str) -> datetime | None:
        with self._lock:
            entry = self._live_entry(analysis_id)
            return entry.expires_at if entry is not None else None

    def _live_entry(self, analysis_id: str) -> _Entry | None:
        entry = self._entries.get(analysis_id)
        if entry is None:
            return None
        if entry.expires_at <= self._clock():
            del self._entries[analysis_id]
            log.debug("Analysis %s expired", analysis_id)
            return None
        return entry

    def _purge_expired(self) -> None:
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.expires_at <= now]
        for key in expired:
            del self._entries[key]
