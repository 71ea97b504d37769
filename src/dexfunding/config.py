"""Configuration system using pydantic-settings with environment variable loading.

Only the entry point reads these; the adapters, the aggregator and the hub
take plain constructor arguments.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class VenueSettings(BaseSettings):
    """Upstream endpoints for every supported venue."""

    model_config = SettingsConfigDict(env_prefix="VENUE_")

    backpack_url: str = "https://api.backpack.exchange/api/v1/markPrices"
    hyperliquid_url: str = "https://mainnet.zklighter.elliot.ai/api/v1/funding-rates"
    lighter_rest_url: str = "https://mainnet.zklighter.elliot.ai/api/v1/funding-rates"
    lighter_markets_url: str = (
        "https://mainnet.zklighter.elliot.ai/api/v1/orderBookDetails"
    )
    lighter_ws_url: str = "wss://mainnet.zklighter.elliot.ai/stream"
    edgex_ws_url: str = "wss://quote.edgex.exchange/api/v1/public/ws"
    paradex_ws_url: str = "wss://ws.api.prod.paradex.trade/v1"


class FeedSettings(BaseSettings):
    """Adapter cadence, reconnect policy and ranking behaviour."""

    model_config = SettingsConfigDict(env_prefix="FEED_")

    refresh_interval_sec: int = Field(default=30, ge=0)  # 0 disables polling
    reconnect_delay: float = 2.0  # fixed, not exponential
    http_timeout: float = 10.0
    min_enabled_adapters: int = Field(default=2, ge=1)
    ranking_policy: Literal["all_profitable", "best_per_symbol"] = "all_profitable"
    enabled_adapters: list[str] = []  # empty = every registered adapter


class DashboardSettings(BaseSettings):
    """HTTP/WebSocket service configuration."""

    model_config = SettingsConfigDict(env_prefix="DASHBOARD_")

    host: str = "0.0.0.0"
    port: int = 8080


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    venues: VenueSettings = VenueSettings()
    feed: FeedSettings = FeedSettings()
    dashboard: DashboardSettings = DashboardSettings()
