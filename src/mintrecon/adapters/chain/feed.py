"""Polling feed of ERC-721 ``Transfer`` events."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from web3 import AsyncWeb3
from web3.exceptions import Web3Exception

from mintrecon.domain.model import TransferEvent

from .abi import NFT_ABI

if TYPE_CHECKING:
    from collections.abc import Sequence

log = getLogger(__name__)


def transfer_event_from_log(entry: Mapping[str, object]) -> TransferEvent:
    """Translate a decoded ``Transfer`` log; missing fields stay ``None``."""

    args = entry.get("args")
    if not isinstance(args, Mapping):
        return TransferEvent(from_address=None, to_address=None, token_id=None)
    from_address = args.get("from")
    to_address = args.get("to")
    return TransferEvent(
        from_address=from_address if isinstance(from_address, str) else None,
        to_address=to_address if isinstance(to_address, str) else None,
        token_id=args.get("tokenId"),
    )


@dataclass(slots=True)
class Web3TransferFeed:
    """Poll ``eth_getLogs`` and push each non-empty block range as one batch.

    Starts after the current head unless ``start_block`` is given, so only
    transfers observed from now on are delivered.
    """

    w3: AsyncWeb3
    nft_address: str
    poll_interval: float = 2.0
    start_block: int | None = None

    async def run(self, queue: asyncio.Queue[Sequence[TransferEvent] | None]) -> None:
        contract = self.w3.eth.contract(
            address=AsyncWeb3.to_checksum_address(self.nft_address),
            abi=NFT_ABI,
        )
        next_block = self.start_block
        while next_block is None:
            try:
                next_block = await self.w3.eth.block_number + 1
            except (Web3Exception, ValueError, OSError) as exc:
                log.warning("Cannot read chain head, retrying: %s", exc)
                await asyncio.sleep(self.poll_interval)

        log.info("Watching Transfer events on %s from block %s", self.nft_address, next_block)
        while True:
            try:
                latest = await self.w3.eth.block_number
                if latest >= next_block:
                    logs = await contract.events.Transfer.get_logs(
                        from_block=next_block, to_block=latest
                    )
                    batch = [transfer_event_from_log(entry) for entry in logs]
                    if batch:
                        log.debug(
                            "Blocks %s-%s: %s transfer events", next_block, latest, len(batch)
                        )
                        await queue.put(batch)
                    next_block = latest + 1
            except (Web3Exception, ValueError, OSError) as exc:
                log.warning("Transfer poll failed, retrying: %s", exc)
            await asyncio.sleep(self.poll_interval)
