"""Composition of the reconciliation components.

The engine wires the tracker, store, matcher, aggregator and driver around
injected ports. It owns the queue that forms the boundary between the event
feed and the matcher, so feed callbacks never touch shared state directly.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from .aggregation import AssetStatusAggregator
from .correlation import CorrelationStore
from .errors import TransferFeedError
from .matcher import EventMatcher
from .minting import MintService
from .reconciliation import ReconciliationDriver
from .tracker import MintRequestTracker

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .model import AssetView, MatchOutcome, TransferEvent
    from .ports.backend import AssetBackend
    from .ports.chain import MintSubmitter, TokenUriReader, TransferFeed
    from .ports.persistence import KeyValueStore

log = getLogger(__name__)

TransferQueue = asyncio.Queue["Sequence[TransferEvent] | None"]


@dataclass(slots=True)
class ReconciliationEngine:
    tracker: MintRequestTracker
    store: CorrelationStore
    matcher: EventMatcher
    aggregator: AssetStatusAggregator
    driver: ReconciliationDriver
    minting: MintService | None = None
    queue: TransferQueue = field(default_factory=asyncio.Queue)

    @classmethod
    def build(
        cls,
        *,
        backend: AssetBackend,
        kv_store: KeyValueStore,
        token_uris: TokenUriReader | None = None,
        submitter: MintSubmitter | None = None,
        post_match_delay: float = 0.5,
    ) -> ReconciliationEngine:
        tracker = MintRequestTracker()
        store = CorrelationStore(kv_store)
        aggregator = AssetStatusAggregator(backend=backend, store=store, token_uris=token_uris)
        driver = ReconciliationDriver(
            aggregator=aggregator,
            store=store,
            tracker=tracker,
            post_match_delay=post_match_delay,
        )
        matcher = EventMatcher(
            tracker=tracker,
            store=store,
            identity=driver.current_identity,
            on_resolved=driver.schedule_reconciliation,
        )
        minting = (
            MintService(tracker=tracker, submitter=submitter, driver=driver)
            if submitter is not None
            else None
        )
        return cls(
            tracker=tracker,
            store=store,
            matcher=matcher,
            aggregator=aggregator,
            driver=driver,
            minting=minting,
        )

    async def connect(self, identity: str | None) -> list[AssetView]:
        return await self.driver.change_identity(identity)

    async def watch(self, feed: TransferFeed, *, stop: asyncio.Event) -> MatchOutcome:
        """Run ``feed`` into the matcher until ``stop`` is set.

        Raises ``TransferFeedError`` if the feed ends before that.
        """

        feed_task = asyncio.create_task(feed.run(self.queue), name="transfer-feed")
        matcher_task = asyncio.create_task(self.matcher.run(self.queue), name="event-matcher")
        stop_task = asyncio.create_task(stop.wait(), name="watch-stop")
        try:
            await asyncio.wait({feed_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            stop_task.cancel()
            feed_task.cancel()
            await asyncio.gather(feed_task, stop_task, return_exceptions=True)
            await self.queue.put(None)
            outcome = await matcher_task
            await self.driver.aclose()

        if not feed_task.cancelled():
            failure = feed_task.exception()
            log.error("Transfer feed stopped: %r", failure)
            raise TransferFeedError("transfer feed stopped") from failure
        return outcome

    async def wait_until_resolved(self, asset_id: str, *, poll_interval: float = 0.2) -> str | None:
        """Wait for ``asset_id`` to stop being the pending request, then look it up.

        Returns ``None`` when another submission replaced the request first.
        """

        while self.tracker.current_request() == asset_id:
            await asyncio.sleep(poll_interval)
        return await self.store.lookup(asset_id)
