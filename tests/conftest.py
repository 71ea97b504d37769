"""Shared test fixtures for the DEX funding monitor."""

from collections.abc import Callable
from decimal import Decimal

import pytest

from dexfunding.config import AppSettings, DashboardSettings, FeedSettings, VenueSettings
from dexfunding.models import MS_PER_HOUR, FundingDatum


@pytest.fixture
def mock_settings() -> AppSettings:
    """Return AppSettings with test defaults (fast reconnects, no polling)."""
    return AppSettings(
        log_level="DEBUG",
        venues=VenueSettings(),
        feed=FeedSettings(refresh_interval_sec=0, reconnect_delay=0.01),
        dashboard=DashboardSettings(host="127.0.0.1", port=0),
    )


@pytest.fixture
def make_datum() -> Callable[..., FundingDatum]:
    """Factory for FundingDatum with a 1h period by default."""

    def _make(
        exchange: str,
        symbol: str,
        rate: str,
        period_hours: int = 1,
    ) -> FundingDatum:
        return FundingDatum(
            exchange=exchange,
            symbol=symbol,
            raw_rate=Decimal(rate),
            period_ms=period_hours * MS_PER_HOUR,
        )

    return _make
