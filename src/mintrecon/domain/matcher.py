"""Match newly minted token transfers to the pending mint request.

Correlation is heuristic: the on-chain transaction and the request that caused
it are decoupled, so the most recent pending request wins whenever a mint to
the current identity is observed. This is a best-effort match, not a proof of
causality. Mints observed with nothing pending are kept as orphan records for
manual recovery.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from .model import MatchOutcome, same_address

if TYPE_CHECKING:
    import asyncio
    from collections.abc import Callable, Iterable, Sequence

    from .correlation import CorrelationStore
    from .model import CorrelationRecord, TransferEvent
    from .tracker import MintRequestTracker

log = getLogger(__name__)


def parse_token_id(raw: object) -> str | None:
    """Return the stringified unsigned token id, or ``None`` if it is not one."""

    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return str(raw) if raw >= 0 else None
    if isinstance(raw, str):
        candidate = raw.strip()
        if candidate.isascii() and candidate.isdigit():
            return str(int(candidate))
    return None


@dataclass(slots=True)
class EventMatcher:
    """Consume transfer notifications and resolve them against the tracker."""

    tracker: MintRequestTracker
    store: CorrelationStore
    identity: Callable[[], str | None]
    on_resolved: Callable[[CorrelationRecord], object] | None = None

    async def process(self, events: Iterable[TransferEvent]) -> MatchOutcome:
        """Handle one delivered batch in order.

        A failing event is logged and counted; the rest of the batch still runs.
        """

        outcome = MatchOutcome()
        for event in events:
            try:
                await self._handle(event, outcome)
            except Exception:
                log.exception("Failed to handle transfer event %r", event)
                outcome.failed += 1
        return outcome

    async def run(self, queue: asyncio.Queue[Sequence[TransferEvent] | None]) -> MatchOutcome:
        """Consume batches from ``queue`` until a ``None`` sentinel arrives."""

        total = MatchOutcome()
        while True:
            batch = await queue.get()
            try:
                if batch is None:
                    return total
                total.merge(await self.process(batch))
            finally:
                queue.task_done()

    async def _handle(self, event: TransferEvent, outcome: MatchOutcome) -> None:
        identity = self.identity()
        if identity is None or not event.is_mint or not same_address(event.to_address, identity):
            outcome.dropped += 1
            return

        token_id = parse_token_id(event.token_id)
        if token_id is None:
            log.debug("Dropping mint event without a usable token id: %r", event.token_id)
            outcome.dropped += 1
            return

        pending = self.tracker.current_request()
        if pending is None:
            orphan = await self.store.record_orphan(token_id, identity)
            log.info("No pending request for token %s, stored orphan %s", token_id, orphan.key)
            outcome.orphaned.append(orphan)
            return

        # Claim the slot first so a later event in this batch cannot match it again.
        self.tracker.clear_request()
        try:
            record = await self.store.resolve(pending, token_id)
        except Exception:
            if self.tracker.current_request() is None:
                self.tracker.begin_request(pending)
            raise
        log.info("Mapped request %s to token %s", pending, token_id)
        outcome.resolved.append(record)
        if self.on_resolved is not None:
            self.on_resolved(record)
