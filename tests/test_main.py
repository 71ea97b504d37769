"""Tests for component wiring in the entry point."""

import pytest

from dexfunding.aggregation.ranker import RankingPolicy
from dexfunding.config import AppSettings, FeedSettings
from dexfunding.hub import FundingHub
from dexfunding.main import _build_components, _proxy_targets


class TestBuildComponents:
    @pytest.mark.asyncio
    async def test_wires_hub_from_settings(self, mock_settings: AppSettings) -> None:
        components = _build_components(mock_settings)
        try:
            hub = components["funding_hub"]
            assert isinstance(hub, FundingHub)
            assert hub.interval_sec == 0
            assert hub.enabled_ids == [
                "lighter",
                "edgex",
                "backpack",
                "paradex",
                "hyperliquid",
            ]
            lighter = next(a for a in hub.adapters if a.adapter_id == "lighter")
            assert lighter.directory is components["directory"]
        finally:
            await components["http"].close()

    @pytest.mark.asyncio
    async def test_policy_and_enabled_subset(self) -> None:
        settings = AppSettings(
            feed=FeedSettings(
                ranking_policy="best_per_symbol",
                enabled_adapters=["backpack", "hyperliquid"],
            )
        )
        components = _build_components(settings)
        try:
            assert components["aggregator"].policy is RankingPolicy.BEST_PER_SYMBOL
            assert components["funding_hub"].enabled_ids == ["backpack", "hyperliquid"]
        finally:
            await components["http"].close()

    def test_proxy_targets(self, mock_settings: AppSettings) -> None:
        targets = _proxy_targets(mock_settings)

        assert set(targets) == {"backpack", "hyperliquid", "lighter"}
        assert targets["lighter"] == ("Lighter", mock_settings.venues.lighter_rest_url)
