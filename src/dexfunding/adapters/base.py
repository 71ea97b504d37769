"""Abstract exchange adapter interface.

Every venue adapter implements ``start(context) -> AdapterControl``. The
hub depends only on this interface and never branches on the adapter kind.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from dexfunding.models import AdapterKind, AdapterStatus, FundingDatum

DataCallback = Callable[[Sequence[FundingDatum], str], None]
StatusCallback = Callable[[AdapterStatus, str], None]


@dataclass
class StartContext:
    """Callbacks and cadence handed to an adapter when it starts.

    ``on_data`` always receives the complete current list for the adapter.
    ``interval_sec`` only matters to pull adapters; 0 or None disables
    periodic polling (the initial fetch still happens).
    """

    on_data: DataCallback
    on_status: StatusCallback | None = None
    interval_sec: float | None = None


class AdapterControl(ABC):
    """Handle returned by ``ExchangeAdapter.start``."""

    @abstractmethod
    def stop(self) -> None:
        """Terminate all activity. Idempotent; no callbacks fire afterwards."""
        ...

    @abstractmethod
    async def wait_closed(self) -> None:
        """Wait until every task cancelled by ``stop`` has unwound."""
        ...

    @property
    @abstractmethod
    def active(self) -> bool:
        """False once ``stop`` has been called."""
        ...

    def set_interval_sec(self, sec: float | None) -> None:
        """Change the polling cadence. Push controls ignore it."""

    async def manual_refresh(self) -> None:
        """Run one out-of-band fetch. Push controls ignore it."""


class ExchangeAdapter(ABC):
    """One venue's wire format and normalization rules."""

    adapter_id: str
    label: str
    kind: AdapterKind

    @abstractmethod
    def start(self, context: StartContext) -> AdapterControl:
        """Begin fetching/streaming. Must be called inside a running event loop."""
        ...

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.adapter_id} kind={self.kind.value}>"
