"""Streaming WebSocket adapters.

A push adapter keeps one connection per start and runs an explicit state
machine::

    connecting -> open -> closed -> (fixed delay) -> connecting -> ...

The inactive flag is checked before every transition, so nothing is emitted
once ``stop`` returns. Updates are folded into a running symbol map that
survives reconnects; the full map is re-emitted whenever any entry changes
by value. Keep-alive probes are answered before the next frame is read.
"""

import asyncio
import json
from abc import abstractmethod
from collections.abc import Awaitable, Callable, Iterable
from typing import Any, Protocol

import websockets

from dexfunding.adapters.base import AdapterControl, ExchangeAdapter, StartContext
from dexfunding.logging import get_logger
from dexfunding.models import AdapterKind, AdapterStatus, FundingDatum

logger = get_logger(__name__)

DEFAULT_RECONNECT_DELAY = 2.0

# Errors a venue parser may raise on an unexpected frame shape.
_PARSE_ERRORS = (ValueError, TypeError, KeyError, AttributeError, ArithmeticError)


class StreamConnection(Protocol):
    """The subset of a websockets client connection the adapters use."""

    async def send(self, message: str) -> None: ...

    async def close(self) -> None: ...

    def __aiter__(self) -> Any: ...


Connector = Callable[[str], Awaitable[StreamConnection]]


async def open_websocket(url: str) -> StreamConnection:
    """Default connector: a websockets client with library-level keep-alive."""
    return await websockets.connect(
        url,
        ping_interval=20,
        ping_timeout=20,
        close_timeout=5,
        max_size=2**22,
    )


class PushAdapter(ExchangeAdapter):
    """Base class for WebSocket streaming adapters.

    Subclasses provide the URL, the subscribe frame, the keep-alive reply
    and the frame parser.

    Args:
        url: WebSocket endpoint.
        connector: Coroutine opening a connection; tests inject fakes.
        reconnect_delay: Seconds to wait after a close before reconnecting.
    """

    kind = AdapterKind.PUSH

    def __init__(
        self,
        url: str,
        connector: Connector | None = None,
        reconnect_delay: float = DEFAULT_RECONNECT_DELAY,
    ) -> None:
        self.url = url
        self._connector = connector or open_websocket
        self._reconnect_delay = reconnect_delay

    def connect_url(self) -> str:
        """URL for the next connection attempt."""
        return self.url

    @abstractmethod
    def subscribe_message(self) -> dict[str, Any]:
        """Frame sent right after the connection opens."""
        ...

    @abstractmethod
    def pong_for(self, message: dict[str, Any]) -> dict[str, Any] | None:
        """Reply to a keep-alive probe, or None if ``message`` is not one."""
        ...

    @abstractmethod
    def parse_message(self, message: dict[str, Any]) -> Iterable[FundingDatum]:
        """Extract the datums carried by one decoded frame.

        Frames that carry no funding data yield nothing. Unusable entries
        are skipped individually.
        """
        ...

    def on_start(self) -> None:
        """Hook run once per ``start`` before the first connection attempt."""

    def start(self, context: StartContext) -> "PushControl":
        control = PushControl(
            self, context, self._connector, self._reconnect_delay
        )
        self.on_start()
        control.begin()
        return control


class PushControl(AdapterControl):
    """Connection state machine for one started push adapter."""

    def __init__(
        self,
        adapter: PushAdapter,
        context: StartContext,
        connector: Connector,
        reconnect_delay: float,
    ) -> None:
        self._adapter = adapter
        self._context = context
        self._connector = connector
        self._reconnect_delay = reconnect_delay
        self._active = True
        self._state = AdapterStatus.IDLE
        self._latest: dict[str, FundingDatum] = {}
        self._task: asyncio.Task | None = None  # type: ignore[type-arg]
        self.connect_attempts = 0

    @property
    def active(self) -> bool:
        return self._active

    @property
    def state(self) -> AdapterStatus:
        return self._state

    def snapshot(self) -> list[FundingDatum]:
        """Current contents of the running symbol map."""
        return list(self._latest.values())

    def begin(self) -> None:
        self._task = asyncio.get_running_loop().create_task(self._run())

    def stop(self) -> None:
        if not self._active:
            return
        self._active = False
        if self._task is not None:
            self._task.cancel()
        logger.debug("adapter_stopped", adapter=self._adapter.adapter_id)

    async def wait_closed(self) -> None:
        if self._task is not None:
            await asyncio.gather(self._task, return_exceptions=True)
            self._task = None

    async def _run(self) -> None:
        while self._transition(AdapterStatus.CONNECTING):
            await self._connect_and_stream()
            if not self._transition(AdapterStatus.CLOSED):
                break
            logger.info(
                "adapter_reconnect_scheduled",
                adapter=self._adapter.adapter_id,
                delay=self._reconnect_delay,
            )
            await asyncio.sleep(self._reconnect_delay)

    async def _connect_and_stream(self) -> None:
        adapter_id = self._adapter.adapter_id
        self.connect_attempts += 1
        try:
            ws = await self._connector(self._adapter.connect_url())
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning("adapter_connect_failed", adapter=adapter_id, error=str(e))
            self._transition(AdapterStatus.ERROR)
            return

        try:
            if not self._transition(AdapterStatus.OPEN):
                return
            await ws.send(json.dumps(self._adapter.subscribe_message()))
            async for raw in ws:
                if not self._active:
                    break
                await self._handle_frame(ws, raw)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning("adapter_stream_error", adapter=adapter_id, error=str(e))
            self._transition(AdapterStatus.ERROR)
        finally:
            try:
                await ws.close()
            except Exception:
                logger.debug("adapter_close_failed", adapter=adapter_id, exc_info=True)

    async def _handle_frame(self, ws: StreamConnection, raw: str | bytes) -> None:
        adapter_id = self._adapter.adapter_id
        try:
            message = json.loads(raw)
        except ValueError:
            logger.debug("adapter_frame_undecodable", adapter=adapter_id)
            return
        if not isinstance(message, dict):
            return

        reply = self._adapter.pong_for(message)
        if reply is not None:
            await ws.send(json.dumps(reply))
            return

        try:
            updates = list(self._adapter.parse_message(message))
        except _PARSE_ERRORS:
            logger.debug("adapter_frame_malformed", adapter=adapter_id, exc_info=True)
            return

        changed = False
        for datum in updates:
            if self._latest.get(datum.symbol) != datum:
                self._latest[datum.symbol] = datum
                changed = True

        if changed and self._active:
            self._context.on_data(list(self._latest.values()), adapter_id)

    def _transition(self, status: AdapterStatus) -> bool:
        """Move to ``status`` and report it. Returns False once stopped."""
        if not self._active:
            return False
        self._state = status
        if self._context.on_status is not None:
            self._context.on_status(status, self._adapter.adapter_id)
        return True
