"""Import review defaults: match tolerances and analysis cache bounds."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from .env import optional_env_var
from .errors import ConfigurationError

DEFAULT_DATE_TOLERANCE_DAYS = 3
DEFAULT_AMOUNT_TOLERANCE = Decimal("0.01")
DEFAULT_SIMILARITY_THRESHOLD = Decimal("0.8")
DEFAULT_ANALYSIS_TTL_SECONDS = 30 * 60.0
DEFAULT_ANALYSIS_CACHE_SIZE = 256


@dataclass(frozen=True, slots=True)
class ReviewConfig:
    date_tolerance_days: int = DEFAULT_DATE_TOLERANCE_DAYS
    amount_tolerance: Decimal = DEFAULT_AMOUNT_TOLERANCE
    similarity_threshold: Decimal = DEFAULT_SIMILARITY_THRESHOLD
    analysis_ttl_seconds: float = DEFAULT_ANALYSIS_TTL_SECONDS
    analysis_cache_size: int = DEFAULT_ANALYSIS_CACHE_SIZE


def _int_setting(name: str, default: int, *, minimum: int) -> int:
    raw = optional_env_var(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc
    if value < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {value}")
    return value


def _decimal_setting(
    name: str,
    default: Decimal,
    *,
    minimum: Decimal,
    maximum: Decimal | None = None,
) -> Decimal:
    raw = optional_env_var(name)
    if raw is None:
        return default
    try:
        value = Decimal(raw)
    except InvalidOperation as exc:
        raise ConfigurationError(f"{name} must be a decimal number, got {raw!r}") from exc
    if not value.is_finite() or value < minimum or (maximum is not None and value > maximum):
        bounds = f"[{minimum}, {maximum}]" if maximum is not None else f">= {minimum}"
        raise ConfigurationError(f"{name} must be {bounds}, got {raw!r}")
    return value


def get_review_config() -> ReviewConfig:
    ttl = _decimal_setting(
        "LEDGERDESK_ANALYSIS_TTL_SECONDS",
        Decimal(str(DEFAULT_ANALYSIS_TTL_SECONDS)),
        minimum=Decimal(1),
    )
    return ReviewConfig(
        date_tolerance_days=_int_setting(
            "LEDGERDESK_DATE_TOLERANCE_DAYS", DEFAULT_DATE_TOLERANCE_DAYS, minimum=0
        ),
        amount_tolerance=_decimal_setting(
            "LEDGERDESK_AMOUNT_TOLERANCE", DEFAULT_AMOUNT_TOLERANCE, minimum=Decimal(0)
        ),
        similarity_threshold=_decimal_setting(
            "LEDGERDESK_SIMILARITY_THRESHOLD",
            DEFAULT_SIMILARITY_THRESHOLD,
            minimum=Decimal(0),
            maximum=Decimal(1),
        ),
        analysis_ttl_seconds=float(ttl),
        analysis_cache_size=_int_setting(
            "LEDGERDESK_ANALYSIS_CACHE_SIZE", DEFAULT_ANALYSIS_CACHE_SIZE, minimum=1
        ),
    )
