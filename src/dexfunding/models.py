"""Shared data models for the funding monitor.

All rates use Decimal. Wire values go through ``to_decimal`` and every
datum is built with ``build_datum``, which drops points that cannot be
normalized instead of emitting them with a fallback.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

MS_PER_HOUR = 3_600_000
_MS_PER_MINUTE = 60_000


class AdapterStatus(str, Enum):
    """Connection / fetch state reported by an adapter."""

    IDLE = "idle"
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"
    OK = "ok"
    ERROR = "error"


class AdapterKind(str, Enum):
    """How an adapter obtains data. Metadata only."""

    PULL = "pull"
    PUSH = "push"


@dataclass(frozen=True)
class FundingDatum:
    """One venue's current funding-rate reading for one symbol."""

    exchange: str
    symbol: str  # normalized base ticker, e.g. "BTC"
    raw_rate: Decimal  # rate for the native period
    period_ms: int  # native period length

    def __post_init__(self) -> None:
        if not self.symbol:
            raise ValueError("symbol must not be empty")
        if self.period_ms <= 0:
            raise ValueError(f"period_ms must be positive, got {self.period_ms}")
        if not self.raw_rate.is_finite():
            raise ValueError(f"raw_rate must be finite, got {self.raw_rate}")

    @property
    def rate_per_hour(self) -> Decimal:
        """Rate linearly rescaled to a one-hour period."""
        return self.raw_rate * (Decimal(MS_PER_HOUR) / Decimal(self.period_ms))


@dataclass(frozen=True)
class ArbitrageRow:
    """Long/short pairing for one symbol across two distinct venues."""

    symbol: str
    long_exchange: str
    long_rate_per_hour: Decimal
    long_period: str
    short_exchange: str
    short_rate_per_hour: Decimal
    short_period: str
    diff_per_hour: Decimal  # short - long


@dataclass(frozen=True)
class DataEvent:
    """Complete current datum list published by one adapter."""

    adapter_id: str
    data: tuple[FundingDatum, ...]


@dataclass(frozen=True)
class StatusEvent:
    """Status transition published by one adapter."""

    adapter_id: str
    status: AdapterStatus


AdapterEvent = DataEvent | StatusEvent


def to_decimal(value: Any) -> Decimal | None:
    """Parse a finite number from a wire value.

    Accepts ints, floats and numeric strings. Returns None for booleans,
    blank strings, NaN/Infinity and anything else.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        text = str(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
    else:
        return None

    try:
        number = Decimal(text)
    except InvalidOperation:
        return None
    return number if number.is_finite() else None


def build_datum(
    exchange: str,
    symbol: str | None,
    raw_rate: Decimal | None,
    period_ms: int | None,
) -> FundingDatum | None:
    """Build a FundingDatum, or None when the point must be dropped."""
    if not symbol or raw_rate is None or period_ms is None:
        return None
    if period_ms <= 0 or not raw_rate.is_finite():
        return None
    datum = FundingDatum(
        exchange=exchange,
        symbol=symbol,
        raw_rate=raw_rate,
        period_ms=period_ms,
    )
    # Finite wire values can still overflow once rescaled to an hour.
    try:
        hourly = datum.rate_per_hour
    except ArithmeticError:
        return None
    return datum if hourly.is_finite() else None


def hours_to_ms(hours: Decimal) -> int:
    """Convert a period in (possibly fractional) hours to whole milliseconds."""
    return int(hours * MS_PER_HOUR)


def format_period(period_ms: int | None) -> str:
    """Human label for a funding period: "8h", "30m", or "-" when unknown."""
    if not period_ms or period_ms <= 0:
        return "-"
    minutes = round(period_ms / _MS_PER_MINUTE)
    if minutes % 60 == 0:
        return f"{minutes // 60}h"
    return f"{minutes}m"
