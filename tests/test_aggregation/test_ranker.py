"""Tests for cross-venue arbitrage ranking.

Verifies:
- diff_per_hour = short leg hourly rate - long leg hourly rate
- Rates with different native periods compared on an hourly basis
- Symbols quoted by a single venue contribute nothing
- ALL_PROFITABLE keeps every positive pair; BEST_PER_SYMBOL keeps one per symbol
- Rows sorted by diff_per_hour descending
"""

from decimal import Decimal

from dexfunding.aggregation.ranker import (
    RankingPolicy,
    group_by_symbol,
    rank_opportunities,
    symbol_pairs,
)


class TestRankAllProfitable:
    def test_two_venue_spread(self, make_datum) -> None:
        rows = rank_opportunities(
            [make_datum("A", "BTC", "0.01"), make_datum("B", "BTC", "0.02")]
        )

        assert len(rows) == 1
        row = rows[0]
        assert (row.symbol, row.long_exchange, row.short_exchange) == ("BTC", "A", "B")
        assert row.diff_per_hour == Decimal("0.01")
        assert row.long_period == row.short_period == "1h"

    def test_periods_normalized_before_comparing(self, make_datum) -> None:
        rows = rank_opportunities(
            [
                make_datum("Lighter", "ETH", "0.0001"),
                make_datum("Hyperliquid", "ETH", "0.0016", period_hours=8),
            ]
        )

        assert len(rows) == 1
        assert rows[0].long_exchange == "Lighter"
        assert rows[0].short_exchange == "Hyperliquid"
        assert rows[0].short_rate_per_hour == Decimal("0.0002")
        assert rows[0].short_period == "8h"
        assert rows[0].diff_per_hour == Decimal("0.0001")

    def test_single_venue_symbols_excluded(self, make_datum) -> None:
        rows = rank_opportunities(
            [
                make_datum("A", "BTC", "0.01"),
                make_datum("B", "BTC", "0.02"),
                make_datum("A", "DOGE", "0.5"),
            ]
        )

        assert {row.symbol for row in rows} == {"BTC"}

    def test_equal_rates_produce_no_rows(self, make_datum) -> None:
        rows = rank_opportunities(
            [make_datum("A", "BTC", "0.01"), make_datum("B", "BTC", "0.01")]
        )
        assert rows == []

    def test_multiple_pairs_per_symbol_sorted(self, make_datum) -> None:
        rows = rank_opportunities(
            [
                make_datum("A", "BTC", "0.01"),
                make_datum("B", "BTC", "0.03"),
                make_datum("C", "BTC", "0.06"),
                make_datum("A", "ETH", "-0.02"),
                make_datum("B", "ETH", "0.02"),
            ]
        )

        assert [row.diff_per_hour for row in rows] == [
            Decimal("0.05"),
            Decimal("0.04"),
            Decimal("0.03"),
            Decimal("0.02"),
        ]
        assert [(row.symbol, row.long_exchange, row.short_exchange) for row in rows] == [
            ("BTC", "A", "C"),
            ("ETH", "A", "B"),
            ("BTC", "B", "C"),
            ("BTC", "A", "B"),
        ]
        assert all(row.diff_per_hour > 0 for row in rows)

    def test_empty_input(self) -> None:
        assert rank_opportunities([]) == []

    def test_last_duplicate_wins(self, make_datum) -> None:
        rows = rank_opportunities(
            [
                make_datum("A", "BTC", "0.05"),
                make_datum("B", "BTC", "0.02"),
                make_datum("A", "BTC", "0.01"),
            ]
        )

        assert len(rows) == 1
        assert rows[0].long_exchange == "A"
        assert rows[0].diff_per_hour == Decimal("0.01")


class TestRankBestPerSymbol:
    def test_one_row_per_symbol(self, make_datum) -> None:
        rows = rank_opportunities(
            [
                make_datum("A", "BTC", "0.01"),
                make_datum("B", "BTC", "0.03"),
                make_datum("C", "BTC", "0.06"),
                make_datum("A", "ETH", "0.01"),
                make_datum("B", "ETH", "0.03"),
            ],
            RankingPolicy.BEST_PER_SYMBOL,
        )

        assert [(row.symbol, row.diff_per_hour) for row in rows] == [
            ("BTC", Decimal("0.05")),
            ("ETH", Decimal("0.02")),
        ]

    def test_zero_spread_still_reported(self, make_datum) -> None:
        rows = rank_opportunities(
            [make_datum("A", "BTC", "0.01"), make_datum("B", "BTC", "0.01")],
            RankingPolicy.BEST_PER_SYMBOL,
        )

        assert len(rows) == 1
        assert rows[0].diff_per_hour == Decimal("0")


class TestHelpers:
    def test_group_by_symbol(self, make_datum) -> None:
        grouped = group_by_symbol(
            [make_datum("A", "BTC", "0.01"), make_datum("B", "ETH", "0.02")]
        )
        assert set(grouped) == {"BTC", "ETH"}

    def test_symbol_pairs_are_ordered_and_distinct(self, make_datum) -> None:
        pairs = symbol_pairs(
            "BTC", [make_datum("A", "BTC", "0.01"), make_datum("B", "BTC", "0.02")]
        )

        assert [(p.long_exchange, p.short_exchange) for p in pairs] == [("A", "B"), ("B", "A")]
        assert [p.diff_per_hour for p in pairs] == [Decimal("0.01"), Decimal("-0.01")]
