"""Timer-driven REST adapters.

A pull adapter fetches the venue's full funding list once on start and then
once per tick. Each attempt is atomic: the whole response becomes the new
list, or the attempt fails and only an ``error`` status is reported so the
last good data stays visible.
"""

import asyncio
from abc import abstractmethod
from typing import Any

from dexfunding.adapters.base import AdapterControl, ExchangeAdapter, StartContext
from dexfunding.exchange.http_client import JsonHttpClient
from dexfunding.logging import get_logger
from dexfunding.models import AdapterKind, AdapterStatus, FundingDatum

logger = get_logger(__name__)


class PullAdapter(ExchangeAdapter):
    """Base class for REST polling adapters.

    Subclasses set ``adapter_id``/``label`` and implement ``parse_payload``.

    Args:
        http: Shared JSON client.
        url: Endpoint to poll (upstream or local proxy).
    """

    kind = AdapterKind.PULL

    def __init__(self, http: JsonHttpClient, url: str) -> None:
        self._http = http
        self.url = url

    async def fetch(self) -> list[FundingDatum]:
        """Fetch and normalize the full list. Raises on any failure."""
        payload = await self._http.get_json(self.url)
        return self.parse_payload(payload)

    @abstractmethod
    def parse_payload(self, payload: Any) -> list[FundingDatum]:
        """Turn a decoded response into datums.

        Raises MalformedPayloadError when the payload has the wrong shape;
        individual unusable entries are skipped.
        """
        ...

    def start(self, context: StartContext) -> "PullControl":
        control = PullControl(self, context)
        control.begin()
        return control


class PullControl(AdapterControl):
    """Polling state for one started pull adapter."""

    def __init__(self, adapter: PullAdapter, context: StartContext) -> None:
        self._adapter = adapter
        self._context = context
        self._active = True
        self._timer: asyncio.Task | None = None  # type: ignore[type-arg]
        self._in_flight: set[asyncio.Task] = set()  # type: ignore[type-arg]
        self._interval_sec: float | None = None

    @property
    def active(self) -> bool:
        return self._active

    @property
    def interval_sec(self) -> float | None:
        return self._interval_sec

    def begin(self) -> None:
        """Fire the initial fetch and arm the timer."""
        self._spawn_fetch()
        self.set_interval_sec(self._context.interval_sec)

    def set_interval_sec(self, sec: float | None) -> None:
        if not self._active:
            return
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._interval_sec = sec
        if sec and sec > 0:
            self._timer = asyncio.get_running_loop().create_task(self._tick(sec))
        logger.debug(
            "adapter_interval_set", adapter=self._adapter.adapter_id, interval_sec=sec
        )

    async def manual_refresh(self) -> None:
        """Fetch now and wait until the attempt settles, whatever its outcome."""
        if not self._active:
            return
        task = self._spawn_fetch()
        await asyncio.wait({task})

    def stop(self) -> None:
        if not self._active:
            return
        self._active = False
        if self._timer is not None:
            self._timer.cancel()
        for task in self._in_flight:
            task.cancel()
        logger.debug("adapter_stopped", adapter=self._adapter.adapter_id)

    async def wait_closed(self) -> None:
        pending = [t for t in (self._timer, *self._in_flight) if t is not None]
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._timer = None

    async def _tick(self, sec: float) -> None:
        while self._active:
            await asyncio.sleep(sec)
            if not self._active:
                break
            self._spawn_fetch()

    def _spawn_fetch(self) -> asyncio.Task:  # type: ignore[type-arg]
        task = asyncio.get_running_loop().create_task(self._fetch_once())
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
        return task

    async def _fetch_once(self) -> None:
        adapter_id = self._adapter.adapter_id
        try:
            data = await self._adapter.fetch()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if not self._active:
                return
            logger.warning("adapter_fetch_failed", adapter=adapter_id, error=str(e))
            self._emit_status(AdapterStatus.ERROR)
            return

        if not self._active:
            return
        self._context.on_data(data, adapter_id)
        self._emit_status(AdapterStatus.OK)
        logger.debug("adapter_fetch_ok", adapter=adapter_id, count=len(data))

    def _emit_status(self, status: AdapterStatus) -> None:
        if self._active and self._context.on_status is not None:
            self._context.on_status(status, self._adapter.adapter_id)
