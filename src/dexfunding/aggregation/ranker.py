"""Cross-venue funding arbitrage ranking.

For each symbol quoted by at least two venues, every ordered venue pair
(A long, B short) is scored by the hourly spread it collects::

    diff_per_hour = B.rate_per_hour - A.rate_per_hour

Which pairs survive depends on the RankingPolicy:

- ALL_PROFITABLE: every pair with a positive spread (several rows per symbol);
- BEST_PER_SYMBOL: the single widest pair per symbol, even when negative.

Rows are sorted by diff_per_hour descending; ties keep generation order.
"""

from collections.abc import Iterable
from enum import Enum

from dexfunding.models import ArbitrageRow, FundingDatum, format_period


class RankingPolicy(str, Enum):
    """Which pairings of a symbol are reported."""

    ALL_PROFITABLE = "all_profitable"
    BEST_PER_SYMBOL = "best_per_symbol"


def group_by_symbol(data: Iterable[FundingDatum]) -> dict[str, list[FundingDatum]]:
    """Group datums by symbol, keeping the last datum per exchange."""
    grouped: dict[str, dict[str, FundingDatum]] = {}
    for datum in data:
        grouped.setdefault(datum.symbol, {})[datum.exchange] = datum
    return {symbol: list(by_exchange.values()) for symbol, by_exchange in grouped.items()}


def _pair(symbol: str, long_leg: FundingDatum, short_leg: FundingDatum) -> ArbitrageRow:
    long_rate = long_leg.rate_per_hour
    short_rate = short_leg.rate_per_hour
    return ArbitrageRow(
        symbol=symbol,
        long_exchange=long_leg.exchange,
        long_rate_per_hour=long_rate,
        long_period=format_period(long_leg.period_ms),
        short_exchange=short_leg.exchange,
        short_rate_per_hour=short_rate,
        short_period=format_period(short_leg.period_ms),
        diff_per_hour=short_rate - long_rate,
    )


def symbol_pairs(symbol: str, quotes: list[FundingDatum]) -> list[ArbitrageRow]:
    """All ordered long/short pairings between distinct venues of one symbol.

    Pairs whose spread overflows the decimal context are skipped.
    """
    pairs: list[ArbitrageRow] = []
    for long_leg in quotes:
        for short_leg in quotes:
            if long_leg.exchange == short_leg.exchange:
                continue
            try:
                pairs.append(_pair(symbol, long_leg, short_leg))
            except ArithmeticError:
                continue
    return pairs


def rank_opportunities(
    data: Iterable[FundingDatum],
    policy: RankingPolicy = RankingPolicy.ALL_PROFITABLE,
) -> list[ArbitrageRow]:
    """Rank arbitrage pairings across venues.

    Args:
        data: Merged datums from every venue; may contain duplicates per
            (symbol, exchange), in which case the last one wins.
        policy: Row selection policy.

    Returns:
        Rows sorted by diff_per_hour descending. Empty input gives an
        empty list; symbols quoted by a single venue contribute nothing.
    """
    rows: list[ArbitrageRow] = []

    for symbol, quotes in group_by_symbol(data).items():
        if len(quotes) < 2:
            continue
        pairs = symbol_pairs(symbol, quotes)
        if not pairs:
            continue

        if policy is RankingPolicy.BEST_PER_SYMBOL:
            rows.append(max(pairs, key=lambda row: row.diff_per_hour))
        else:
            rows.extend(row for row in pairs if row.diff_per_hour > 0)

    rows.sort(key=lambda row: row.diff_per_hour, reverse=True)
    return rows
