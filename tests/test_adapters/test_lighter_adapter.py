"""Tests for the Lighter stream parser and the shared market directory."""

import asyncio
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from dexfunding.adapters.base import StartContext
from dexfunding.adapters.lighter import LighterAdapter
from dexfunding.adapters.market_directory import MarketDirectory
from dexfunding.exceptions import FetchError, MalformedPayloadError
from dexfunding.exchange.http_client import JsonHttpClient
from dexfunding.models import MS_PER_HOUR

DETAILS = {
    "code": 200,
    "order_book_details": [
        {"market_id": 0, "symbol": "ETH"},
        {"market_id": 1, "symbol": "btc"},
        {"market_id": True, "symbol": "BOOL"},
        {"market_id": "2", "symbol": "STR"},
        {"market_id": 3, "symbol": ""},
    ],
}


@pytest.fixture
def http() -> AsyncMock:
    client = AsyncMock(spec=JsonHttpClient)
    client.get_json = AsyncMock(return_value=DETAILS)
    return client


@pytest.fixture
def directory(http: AsyncMock) -> MarketDirectory:
    return MarketDirectory(http, "https://lighter.test/orderBookDetails")


@pytest.fixture
def adapter(directory: MarketDirectory) -> LighterAdapter:
    return LighterAdapter("wss://lighter.test/stream", directory)


def _stats_frame(stats: dict, frame_type: str = "update/market_stats") -> dict:
    return {"type": frame_type, "channel": "market_stats:all", "market_stats": stats}


# ---------------------------------------------------------------------------
# MarketDirectory
# ---------------------------------------------------------------------------


class TestMarketDirectory:
    @pytest.mark.asyncio
    async def test_load_keeps_valid_integer_ids(self, directory: MarketDirectory) -> None:
        symbols = await directory.load()

        assert symbols == {0: "ETH", 1: "BTC"}
        assert directory.loaded

    @pytest.mark.asyncio
    async def test_concurrent_loads_share_one_fetch(
        self, directory: MarketDirectory, http: AsyncMock
    ) -> None:
        first, second = await asyncio.gather(directory.load(), directory.load())
        await directory.load()

        assert first == second == {0: "ETH", 1: "BTC"}
        assert http.get_json.await_count == 1

    @pytest.mark.asyncio
    async def test_failed_load_raises_and_can_retry(
        self, directory: MarketDirectory, http: AsyncMock
    ) -> None:
        http.get_json.side_effect = FetchError("timeout")
        with pytest.raises(FetchError):
            await directory.load()
        assert not directory.loaded
        assert not directory.loading

        http.get_json.side_effect = None
        assert await directory.load() == {0: "ETH", 1: "BTC"}

    @pytest.mark.asyncio
    async def test_wrong_shape_is_malformed(
        self, directory: MarketDirectory, http: AsyncMock
    ) -> None:
        http.get_json.return_value = {"code": 200}
        with pytest.raises(MalformedPayloadError):
            await directory.load()

    @pytest.mark.asyncio
    async def test_rest_load_never_overwrites_known_ids(
        self, directory: MarketDirectory
    ) -> None:
        assert directory.add(1, "WBTC") == "WBTC"

        await directory.load()

        assert directory.get(1) == "WBTC"
        assert directory.get(0) == "ETH"

    def test_add_is_append_only(self, directory: MarketDirectory) -> None:
        directory.add(5, "DOGE")
        assert directory.add(5, "SHIB") == "DOGE"
        assert len(directory) == 1

    @pytest.mark.asyncio
    async def test_request_load_is_single_flight(
        self, directory: MarketDirectory, http: AsyncMock
    ) -> None:
        directory.request_load()
        directory.request_load()
        assert directory.loading

        await directory.load()
        directory.request_load()

        assert http.get_json.await_count == 1
        assert not directory.loading


# ---------------------------------------------------------------------------
# LighterAdapter parsing
# ---------------------------------------------------------------------------


class TestLighterParsing:
    def test_subscribe_and_pong(self, adapter: LighterAdapter) -> None:
        assert adapter.subscribe_message() == {"type": "subscribe", "channel": "market_stats/all"}
        assert adapter.pong_for({"type": "ping"}) == {"type": "pong"}
        assert adapter.pong_for({"type": "update/market_stats"}) is None

    def test_percentage_rates_resolved_through_directory(
        self, adapter: LighterAdapter, directory: MarketDirectory
    ) -> None:
        directory.add(0, "ETH")
        directory.add(1, "BTC")

        data = list(
            adapter.parse_message(
                _stats_frame(
                    {
                        "0": {"market_id": 0, "funding_rate": "0.0012"},
                        "1": {"market_id": 1, "funding_rate": -0.01},
                    }
                )
            )
        )

        assert [(d.exchange, d.symbol, d.raw_rate, d.period_ms) for d in data] == [
            ("Lighter", "ETH", Decimal("0.000012"), MS_PER_HOUR),
            ("Lighter", "BTC", Decimal("-0.0001"), MS_PER_HOUR),
        ]

    def test_subscribed_snapshot_accepted(
        self, adapter: LighterAdapter, directory: MarketDirectory
    ) -> None:
        directory.add(1, "BTC")
        frame = {
            "type": "subscribed/market_stats",
            "market_stats": {"1": {"market_id": 1, "funding_rate": "0.01"}},
        }

        assert [d.symbol for d in adapter.parse_message(frame)] == ["BTC"]

    def test_key_used_when_entry_has_no_id(
        self, adapter: LighterAdapter, directory: MarketDirectory
    ) -> None:
        directory.add(7, "ARB")

        data = list(adapter.parse_message(_stats_frame({"7": {"funding_rate": "0.02"}})))

        assert [d.symbol for d in data] == ["ARB"]

    def test_single_entry_stats(
        self, adapter: LighterAdapter, directory: MarketDirectory
    ) -> None:
        directory.add(1, "BTC")

        data = list(
            adapter.parse_message(_stats_frame({"market_id": 1, "funding_rate": "0.01"}))
        )

        assert [d.symbol for d in data] == ["BTC"]

    def test_single_entry_numeric_string_id(
        self, adapter: LighterAdapter, directory: MarketDirectory
    ) -> None:
        directory.add(5, "DOGE")

        data = list(
            adapter.parse_message(_stats_frame({"market_id": "5", "funding_rate": "0.01"}))
        )

        assert [d.symbol for d in data] == ["DOGE"]

    def test_fractional_market_id_dropped(
        self, adapter: LighterAdapter, directory: MarketDirectory
    ) -> None:
        directory.add(5, "DOGE")

        data = list(
            adapter.parse_message(_stats_frame({"market_id": "5.5", "funding_rate": "0.01"}))
        )

        assert data == []

    def test_current_funding_rate_fallback(
        self, adapter: LighterAdapter, directory: MarketDirectory
    ) -> None:
        directory.add(1, "BTC")

        data = list(
            adapter.parse_message(
                _stats_frame({"1": {"market_id": 1, "current_funding_rate": "0.05"}})
            )
        )

        assert data[0].raw_rate == Decimal("0.0005")

    def test_inline_symbol_recorded_for_unknown_id(
        self, adapter: LighterAdapter, directory: MarketDirectory
    ) -> None:
        data = list(
            adapter.parse_message(
                _stats_frame({"9": {"market_id": 9, "symbol": "hype", "funding_rate": "0.01"}})
            )
        )

        assert [d.symbol for d in data] == ["HYPE"]
        assert directory.get(9) == "HYPE"

    @pytest.mark.asyncio
    async def test_unknown_id_without_symbol_skipped_and_triggers_load(
        self, adapter: LighterAdapter, directory: MarketDirectory
    ) -> None:
        data = list(adapter.parse_message(_stats_frame({"1": {"market_id": 1, "funding_rate": "0.01"}})))

        assert data == []
        assert directory.loading

        await directory.load()
        data = list(adapter.parse_message(_stats_frame({"1": {"market_id": 1, "funding_rate": "0.01"}})))
        assert [d.symbol for d in data] == ["BTC"]

    def test_ignores_other_frames(self, adapter: LighterAdapter, directory: MarketDirectory) -> None:
        directory.add(1, "BTC")
        stats = {"1": {"market_id": 1, "funding_rate": "0.01"}}

        assert list(adapter.parse_message({"type": "update/order_book", "market_stats": stats})) == []
        assert list(adapter.parse_message({"type": "update/market_stats"})) == []

    def test_entries_without_rate_dropped(
        self, adapter: LighterAdapter, directory: MarketDirectory
    ) -> None:
        directory.add(1, "BTC")
        frame = _stats_frame({"1": {"market_id": 1, "funding_rate": None}, "x": "junk"})

        assert list(adapter.parse_message(frame)) == []

    @pytest.mark.asyncio
    async def test_start_requests_directory_load(self, directory: MarketDirectory) -> None:
        connector = AsyncMock(side_effect=OSError("offline"))
        adapter = LighterAdapter("wss://lighter.test", directory, connector=connector)

        control = adapter.start(StartContext(on_data=lambda data, _id: None))
        assert directory.loading

        control.stop()
        await control.wait_closed()
        await directory.load()
        assert directory.loaded
