"""In-process stand-ins for the backend, chain and feed ports."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from mintrecon.domain.errors import MintSubmissionError
from mintrecon.domain.model import ZERO_ADDRESS, Asset, AssetMetadata, TransferEvent

if TYPE_CHECKING:
    from collections.abc import Sequence

IDENTITY = "0xAbCdEf0000000000000000000000000000000001"
OTHER = "0x9999999999999999999999999999999999999999"


def make_asset(asset_id: str, owner: str = IDENTITY, **overrides: object) -> Asset:
    values: dict[str, object] = {
        "asset_id": asset_id,
        "asset_type": 1,
        "asset_name": f"Asset {asset_id}",
        "value_in_usd": "1000",
        "owner": owner,
    }
    values.update(overrides)
    return Asset(**values)  # type: ignore[arg-type]


def mint_event(token_id: object, to: str = IDENTITY) -> TransferEvent:
    return TransferEvent(from_address=ZERO_ADDRESS, to_address=to, token_id=token_id)


@dataclass
class FakeBackend:
    registry: str | None = "0xR"
    assets: list[Asset] = field(default_factory=list)
    minted: dict[str, bool] = field(default_factory=dict)
    metadata: dict[str, AssetMetadata] = field(default_factory=dict)
    fail_registry: bool = False
    fail_listing: bool = False
    fail_status_for: set[str] = field(default_factory=set)
    fail_metadata_for: set[str] = field(default_factory=set)
    calls: list[str] = field(default_factory=list)

    async def registry_address(self) -> str:
        self.calls.append("registry")
        if self.fail_registry or self.registry is None:
            raise ConnectionError("registry down")
        return self.registry

    async def list_assets(self, owner: str) -> list[Asset]:
        self.calls.append(f"list:{owner}")
        if self.fail_listing:
            raise ConnectionError("listing down")
        return list(self.assets)

    async def minted_status(self, *, user: str, request_id: str) -> bool:
        self.calls.append(f"status:{user}:{request_id}")
        if request_id in self.fail_status_for:
            raise ConnectionError("status down")
        return self.minted.get(request_id, False)

    async def asset_metadata(self, asset_id: str) -> AssetMetadata | None:
        self.calls.append(f"metadata:{asset_id}")
        if asset_id in self.fail_metadata_for:
            raise ConnectionError("metadata down")
        return self.metadata.get(asset_id)


@dataclass
class FakeTokenUris:
    uris: dict[str, str] = field(default_factory=dict)
    failing: bool = False

    async def token_uri(self, token_id: str) -> str:
        if self.failing:
            raise ConnectionError("rpc down")
        return self.uris.get(token_id, f"ipfs://token/{token_id}")


@dataclass
class FakeTransaction:
    tx_hash: str = "0xfeed"
    error: str | None = None
    waited: bool = False

    async def wait(self) -> None:
        self.waited = True
        if self.error is not None:
            raise MintSubmissionError(self.error)


@dataclass
class FakeSubmitter:
    transaction: FakeTransaction = field(default_factory=FakeTransaction)
    submit_error: str | None = None
    submitted: list[dict[str, str]] = field(default_factory=list)

    async def submit_mint(
        self,
        *,
        asset_id: str,
        value_in_usd: str,
        identity: str,
        token_uri: str,
    ) -> FakeTransaction:
        self.submitted.append(
            {
                "asset_id": asset_id,
                "value_in_usd": value_in_usd,
                "identity": identity,
                "token_uri": token_uri,
            }
        )
        if self.submit_error is not None:
            raise MintSubmissionError(self.submit_error)
        return self.transaction


@dataclass
class ScriptedFeed:
    """Deliver fixed batches, then idle until cancelled."""

    batches: list[Sequence[TransferEvent]] = field(default_factory=list)

    async def run(self, queue: asyncio.Queue[Sequence[TransferEvent] | None]) -> None:
        for batch in self.batches:
            await queue.put(batch)
        await asyncio.Event().wait()


@dataclass
class FailingFeed:
    """Deliver fixed batches, then fail the way a broken RPC endpoint does."""

    batches: list[Sequence[TransferEvent]] = field(default_factory=list)
    error: Exception = field(default_factory=lambda: ValueError("invalid NFT address"))

    async def run(self, queue: asyncio.Queue[Sequence[TransferEvent] | None]) -> None:
        for batch in self.batches:
            await queue.put(batch)
        raise self.error
