"""Ports for the contract-call layer and the transfer event feed."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    import asyncio
    from collections.abc import Sequence

    from mintrecon.domain.model import TransferEvent


@runtime_checkable
class MintTransaction(Protocol):
    """Handle for a submitted mint transaction."""

    @property
    def tx_hash(self) -> str: ...

    async def wait(self) -> None:
        """Return once confirmed; raise ``MintSubmissionError`` if it failed."""
        ...


@runtime_checkable
class MintSubmitter(Protocol):
    async def submit_mint(
        self,
        *,
        asset_id: str,
        value_in_usd: str,
        identity: str,
        token_uri: str,
    ) -> MintTransaction: ...


@runtime_checkable
class TokenUriReader(Protocol):
    async def token_uri(self, token_id: str) -> str: ...


@runtime_checkable
class TransferFeed(Protocol):
    """Pushes batches of transfer notifications onto a queue until cancelled."""

    async def run(self, queue: asyncio.Queue[Sequence[TransferEvent] | None]) -> None: ...
