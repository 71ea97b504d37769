"""Funding hub -- runs the adapters and keeps the ranked view current.

Each started adapter gets a StartContext whose callbacks publish typed
events (DataEvent / StatusEvent) onto one asyncio.Queue. A single
aggregation task consumes the queue: data events replace the adapter's
snapshot in the FundingAggregator and recompute the ranked rows; status
events update the status table. Events from adapters that have since been
disabled or restarted are dropped.

The hub also owns the orchestration policy around the core:
  1. ENABLE / DISABLE: at least ``min_enabled`` adapters stay enabled;
     disabling below the floor is a no-op that returns False.
  2. CADENCE: the refresh interval is pushed to every running adapter and
     used for adapters started later.
  3. REFRESH-ALL: every pull adapter fetches now; the call returns when
     all attempts have settled.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Sequence
from typing import Any

from dexfunding.adapters.base import AdapterControl, ExchangeAdapter, StartContext
from dexfunding.adapters.registry import index_adapters
from dexfunding.aggregation.aggregator import FundingAggregator
from dexfunding.exceptions import UnknownAdapterError
from dexfunding.logging import get_logger
from dexfunding.models import (
    AdapterEvent,
    AdapterStatus,
    ArbitrageRow,
    DataEvent,
    FundingDatum,
    StatusEvent,
)

logger = get_logger(__name__)

MIN_ENABLED_ADAPTERS = 2


class FundingHub:
    """Adapter lifecycle plus the event channel into the aggregator.

    Args:
        adapters: Every registered adapter, in display order.
        aggregator: Snapshot store and ranker; a default one is created
            when omitted.
        interval_sec: Initial pull cadence (0 disables periodic polling).
        min_enabled: Floor on the number of enabled adapters.
        enabled_ids: Adapters enabled at start; all of them when omitted.
    """

    def __init__(
        self,
        adapters: Sequence[ExchangeAdapter],
        aggregator: FundingAggregator | None = None,
        interval_sec: float = 30,
        min_enabled: int = MIN_ENABLED_ADAPTERS,
        enabled_ids: Sequence[str] | None = None,
    ) -> None:
        self._adapters = index_adapters(list(adapters))
        self._aggregator = aggregator or FundingAggregator()
        self._interval_sec = interval_sec
        self._min_enabled = min_enabled

        wanted = list(enabled_ids) if enabled_ids else list(self._adapters)
        for adapter_id in wanted:
            self._require(adapter_id)
        self._enabled = [a for a in self._adapters if a in wanted]
        if len(self._enabled) < min_enabled:
            raise ValueError(
                f"At least {min_enabled} adapters must be enabled, got {len(self._enabled)}"
            )

        self._controls: dict[str, AdapterControl] = {}
        self._generations: dict[str, int] = {}
        self._statuses: dict[str, AdapterStatus] = {}
        self._queue: asyncio.Queue[tuple[int, AdapterEvent]] = asyncio.Queue()
        self._consumer: asyncio.Task | None = None  # type: ignore[type-arg]
        self._closing: set[asyncio.Task] = set()  # type: ignore[type-arg]
        self._running = False
        self._last_update: float | None = None
        self._version = 0
        self._update_event = asyncio.Event()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the aggregation task and every enabled adapter."""
        if self._running:
            logger.warning("funding_hub_already_running")
            return
        self._running = True
        self._consumer = asyncio.create_task(self._consume())
        for adapter_id in self._enabled:
            self._start_adapter(adapter_id)
        logger.info(
            "funding_hub_started",
            enabled=self._enabled,
            interval_sec=self._interval_sec,
            policy=self._aggregator.policy.value,
        )

    async def stop(self) -> None:
        """Stop every adapter, wait for them to unwind, stop aggregating.

        Snapshots and statuses of the stopped adapters are discarded.
        """
        if not self._running:
            return
        self._running = False
        for adapter_id in list(self._controls):
            self._stop_adapter(adapter_id)
        if self._closing:
            await asyncio.gather(*self._closing, return_exceptions=True)

        if self._consumer is not None:
            self._consumer.cancel()
            try:
                await self._consumer
            except asyncio.CancelledError:
                pass
            self._consumer = None

        self._aggregator.clear()
        self._statuses.clear()
        self._mark_changed(data_changed=False)
        logger.info("funding_hub_stopped")

    # ------------------------------------------------------------------
    # Orchestration controls
    # ------------------------------------------------------------------

    def enable(self, adapter_id: str) -> bool:
        """Enable an adapter, starting it if the hub is running."""
        self._require(adapter_id)
        if adapter_id not in self._enabled:
            self._enabled = [a for a in self._adapters if a in self._enabled or a == adapter_id]
            logger.info("adapter_enabled", adapter=adapter_id)
        if self._running and adapter_id not in self._controls:
            self._start_adapter(adapter_id)
        return True

    def disable(self, adapter_id: str) -> bool:
        """Disable an adapter and drop its data.

        Returns False, leaving everything unchanged, when the adapter is
        enabled and disabling it would go below the floor.
        """
        self._require(adapter_id)
        if adapter_id not in self._enabled:
            return True
        if len(self._enabled) <= self._min_enabled:
            logger.info(
                "adapter_disable_rejected",
                adapter=adapter_id,
                min_enabled=self._min_enabled,
            )
            return False

        self._enabled.remove(adapter_id)
        self._stop_adapter(adapter_id)
        self._statuses.pop(adapter_id, None)
        self._aggregator.remove(adapter_id)
        self._mark_changed(data_changed=True)
        logger.info("adapter_disabled", adapter=adapter_id)
        return True

    def set_interval_sec(self, sec: float) -> None:
        """Change the pull cadence of every running and future adapter."""
        if sec < 0:
            raise ValueError(f"interval_sec must be >= 0, got {sec}")
        self._interval_sec = sec
        for control in self._controls.values():
            control.set_interval_sec(sec)
        logger.info("refresh_interval_changed", interval_sec=sec)

    async def refresh_all(self) -> None:
        """Fetch now on every running pull adapter and wait for all of them."""
        controls = list(self._controls.values())
        await asyncio.gather(*(control.manual_refresh() for control in controls))
        logger.debug("refresh_all_completed", adapters=len(controls))

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------

    @property
    def interval_sec(self) -> float:
        return self._interval_sec

    @property
    def min_enabled(self) -> int:
        return self._min_enabled

    @property
    def last_update(self) -> float | None:
        return self._last_update

    @property
    def version(self) -> int:
        return self._version

    @property
    def enabled_ids(self) -> list[str]:
        return list(self._enabled)

    @property
    def adapters(self) -> list[ExchangeAdapter]:
        return list(self._adapters.values())

    def get_rows(self) -> list[ArbitrageRow]:
        return self._aggregator.rows

    def get_funding_data(self) -> list[FundingDatum]:
        return self._aggregator.combined()

    def get_statuses(self) -> dict[str, AdapterStatus]:
        return dict(self._statuses)

    def describe_adapters(self) -> list[dict[str, Any]]:
        """One entry per registered adapter, for status displays."""
        return [
            {
                "id": adapter.adapter_id,
                "label": adapter.label,
                "kind": adapter.kind.value,
                "enabled": adapter.adapter_id in self._enabled,
                "status": (
                    self._statuses[adapter.adapter_id].value
                    if adapter.adapter_id in self._statuses
                    else None
                ),
            }
            for adapter in self._adapters.values()
        ]

    def get_status(self) -> dict[str, Any]:
        return {
            "running": self._running,
            "enabled": list(self._enabled),
            "interval_sec": self._interval_sec,
            "min_enabled": self._min_enabled,
            "policy": self._aggregator.policy.value,
            "rows": len(self._aggregator.rows),
            "last_update": self._last_update,
            "version": self._version,
        }

    async def wait_for_update(self, after_version: int) -> int:
        """Wait until the view changes past ``after_version``; return the new version."""
        while self._version <= after_version:
            await self._update_event.wait()
        return self._version

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require(self, adapter_id: str) -> ExchangeAdapter:
        adapter = self._adapters.get(adapter_id)
        if adapter is None:
            raise UnknownAdapterError(f"Unknown adapter: {adapter_id}")
        return adapter

    def _start_adapter(self, adapter_id: str) -> None:
        adapter = self._adapters[adapter_id]
        generation = self._generations.get(adapter_id, 0) + 1
        self._generations[adapter_id] = generation

        def on_data(data: Sequence[FundingDatum], source_id: str) -> None:
            self._queue.put_nowait((generation, DataEvent(source_id, tuple(data))))

        def on_status(status: AdapterStatus, source_id: str) -> None:
            self._queue.put_nowait((generation, StatusEvent(source_id, status)))

        context = StartContext(
            on_data=on_data, on_status=on_status, interval_sec=self._interval_sec
        )
        self._controls[adapter_id] = adapter.start(context)
        self._aggregator.update(adapter_id, ())
        logger.info("adapter_started", adapter=adapter_id, kind=adapter.kind.value)

    def _stop_adapter(self, adapter_id: str) -> None:
        control = self._controls.pop(adapter_id, None)
        if control is None:
            return
        control.stop()
        task = asyncio.create_task(control.wait_closed())
        self._closing.add(task)
        task.add_done_callback(self._closing.discard)

    async def _consume(self) -> None:
        while True:
            generation, event = await self._queue.get()
            try:
                if generation == self._generations.get(event.adapter_id):
                    self._apply_event(event)
            except Exception:
                logger.error("funding_hub_event_error", exc_info=True)
            finally:
                self._queue.task_done()

    def _apply_event(self, event: AdapterEvent) -> None:
        adapter_id = event.adapter_id
        if adapter_id not in self._enabled:
            return
        if isinstance(event, DataEvent):
            rows = self._aggregator.update(adapter_id, event.data)
            self._mark_changed(data_changed=True)
            logger.debug(
                "funding_view_updated",
                adapter=adapter_id,
                data=len(event.data),
                rows=len(rows),
            )
        else:
            if self._statuses.get(adapter_id) is event.status:
                return
            self._statuses[adapter_id] = event.status
            self._mark_changed(data_changed=False)
            logger.info("adapter_status", adapter=adapter_id, status=event.status.value)

    def _mark_changed(self, data_changed: bool) -> None:
        if data_changed:
            self._last_update = time.time()
        self._version += 1
        event, self._update_event = self._update_event, asyncio.Event()
        event.set()
