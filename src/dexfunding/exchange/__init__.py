"""Exchange transport layer -- JSON over HTTPS via aiohttp."""

from dexfunding.exchange.http_client import JsonHttpClient

__all__ = ["JsonHttpClient"]
