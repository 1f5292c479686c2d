"""Single-slot tracking of the mint request awaiting on-chain resolution."""

from __future__ import annotations

from logging import getLogger

log = getLogger(__name__)


class MintRequestTracker:
    """Hold at most one pending request; a new submission replaces the old one.

    A replaced request is no longer tracked and can only show up later as an
    orphan record.
    """

    def __init__(self) -> None:
        self._pending: str | None = None

    def begin_request(self, asset_id: str) -> None:
        if self._pending is not None and self._pending != asset_id:
            log.info("Pending request %s replaced by %s", self._pending, asset_id)
        self._pending = asset_id

    def current_request(self) -> str | None:
        return self._pending

    def clear_request(self) -> None:
        self._pending = None
