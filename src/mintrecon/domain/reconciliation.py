"""Orchestrate full re-aggregation passes and publish the resulting view."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from .errors import AggregationError

if TYPE_CHECKING:
    from collections.abc import Callable

    from .aggregation import AssetStatusAggregator
    from .correlation import CorrelationStore
    from .model import AssetView, CorrelationRecord, StoredRecords
    from .tracker import MintRequestTracker

log = getLogger(__name__)


@dataclass(slots=True, frozen=True)
class DebugSnapshot:
    identity: str | None
    pending_request: str | None
    records: StoredRecords
    views: tuple[AssetView, ...]


@dataclass(slots=True)
class ReconciliationDriver:
    """Run a full ``aggregate()`` on every trigger.

    There is no incremental update path and passes are not serialized: the
    last pass to complete publishes its view. A hard failure keeps the
    previous view and records a single error message.
    """

    aggregator: AssetStatusAggregator
    store: CorrelationStore
    tracker: MintRequestTracker
    post_match_delay: float = 0.5
    identity: str | None = None
    views: list[AssetView] = field(default_factory=list)
    error: str | None = None
    minting: dict[str, bool] = field(default_factory=dict)
    _listeners: list[Callable[[list[AssetView]], None]] = field(default_factory=list, init=False)
    _scheduled: set[asyncio.Task[None]] = field(default_factory=set, init=False)
    _in_flight: int = field(default=0, init=False)

    @property
    def connected(self) -> bool:
        return self.identity is not None

    @property
    def loading(self) -> bool:
        return self._in_flight > 0

    def current_identity(self) -> str | None:
        return self.identity

    def subscribe(self, listener: Callable[[list[AssetView]], None]) -> None:
        self._listeners.append(listener)

    async def refresh(self) -> list[AssetView]:
        """Manual refresh: re-aggregate for the connected identity."""

        identity = self.identity
        if identity is None:
            return self.views
        self.error = None
        self._in_flight += 1
        try:
            views = await self.aggregator.aggregate(identity)
        except AggregationError as exc:
            log.warning("Aggregation for %s failed: %s", identity, exc)
            self.error = str(exc) or "load error"
            return self.views
        finally:
            self._in_flight -= 1
        self._publish(views)
        return views

    async def force_refresh(self) -> DebugSnapshot:
        """Refresh and report everything the store currently knows."""

        await self.refresh()
        return await self.debug_records()

    async def change_identity(self, identity: str | None) -> list[AssetView]:
        """Reset the view for a new (or no) connected identity."""

        self.identity = identity
        self.error = None
        self._publish([])
        if identity is None:
            return self.views
        return await self.refresh()

    async def on_transaction_confirmed(self) -> list[AssetView]:
        self.minting.clear()
        return await self.refresh()

    def on_transaction_failed(self, message: str | None) -> None:
        """Surface a transaction failure and reset every minting indicator."""

        self.error = message or "Transaction failed"
        self.minting.clear()

    def schedule_reconciliation(self, record: CorrelationRecord | None = None) -> asyncio.Task[None]:
        """Re-aggregate after the post-match delay."""

        if record is not None:
            log.info(
                "Scheduling refresh in %.1fs after resolving %s",
                self.post_match_delay,
                record.asset_id,
            )
        task = asyncio.get_running_loop().create_task(self._delayed_refresh())
        self._scheduled.add(task)
        task.add_done_callback(self._scheduled.discard)
        return task

    async def debug_records(self) -> DebugSnapshot:
        return DebugSnapshot(
            identity=self.identity,
            pending_request=self.tracker.current_request(),
            records=await self.store.all_mappings(),
            views=tuple(self.views),
        )

    @property
    def pending_reconciliations(self) -> int:
        return len(self._scheduled)

    async def aclose(self) -> None:
        for task in list(self._scheduled):
            task.cancel()
        await asyncio.gather(*self._scheduled, return_exceptions=True)
        self._scheduled.clear()

    async def _delayed_refresh(self) -> None:
        await asyncio.sleep(self.post_match_delay)
        await self.refresh()

    def _publish(self, views: list[AssetView]) -> None:
        self.views = views
        for listener in self._listeners:
            listener(views)
