"""Custom exceptions for the funding monitor.

Adapters raise these internally; the adapter controls catch them and turn
them into ``error`` statuses, so none of them reach data consumers.
"""


class DexFundingError(Exception):
    """Base exception for all funding monitor errors."""


class FetchError(DexFundingError):
    """Raised when an upstream request fails at the network/transport level."""


class UpstreamStatusError(FetchError):
    """Raised when an upstream answers with a non-success HTTP status."""

    def __init__(self, status: int, url: str) -> None:
        super().__init__(f"HTTP {status} from {url}")
        self.status = status
        self.url = url


class MalformedPayloadError(DexFundingError):
    """Raised when an upstream body cannot be decoded or has the wrong shape."""


class UnknownAdapterError(DexFundingError):
    """Raised when an adapter id is not registered with the hub."""
