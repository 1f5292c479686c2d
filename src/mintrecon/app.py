"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from mintrecon.adapters.backend import HttpAssetBackend
from mintrecon.adapters.chain import (
    Web3MintSubmitter,
    Web3TokenUriReader,
    Web3TransferFeed,
    build_web3,
)
from mintrecon.adapters.sqlalchemy import SqlAlchemyKeyValueStore, is_started, startup
from mintrecon.config import (
    ConfigurationError,
    get_backend_config,
    get_chain_config,
    get_reconciliation_config,
)
from mintrecon.domain.engine import ReconciliationEngine

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from mintrecon.config import BackendConfig, ChainConfig
    from mintrecon.domain.model import AssetView, MatchOutcome
    from mintrecon.domain.reconciliation import DebugSnapshot

log = getLogger(__name__)


class MintRequestError(RuntimeError):
    """Raised when a mint cannot be started for the requested asset."""


@dataclass(slots=True)
class MintResult:
    asset_id: str
    token_id: str | None
    view: AssetView | None


@dataclass(slots=True)
class Runtime:
    engine: ReconciliationEngine
    chain: ChainConfig | None
    submitter: Web3MintSubmitter | None = None

    def transfer_feed(self) -> Web3TransferFeed:
        if self.chain is None:
            raise ConfigurationError("Chain configuration is required to watch transfers")
        return Web3TransferFeed(
            w3=build_web3(self.chain),
            nft_address=self.chain.nft_address,
            poll_interval=self.chain.poll_interval_seconds,
        )


def _optional_chain_config() -> ChainConfig | None:
    try:
        return get_chain_config()
    except ConfigurationError as exc:
        log.debug("Chain access disabled: %s", exc)
        return None


@asynccontextmanager
async def open_runtime(
    *,
    backend_config: BackendConfig | None = None,
    chain_config: ChainConfig | None = None,
    require_chain: bool = False,
) -> AsyncIterator[Runtime]:
    """Wire the configured adapters into an engine and close them afterwards."""

    if not is_started():
        startup()
    chain = chain_config or (get_chain_config() if require_chain else _optional_chain_config())
    token_uris: Web3TokenUriReader | None = None
    submitter: Web3MintSubmitter | None = None
    if chain is not None:
        w3 = build_web3(chain)
        token_uris = Web3TokenUriReader(w3=w3, nft_address=chain.nft_address)
        if chain.private_key:
            submitter = Web3MintSubmitter(
                w3=w3,
                manager_address=chain.manager_address,
                private_key=chain.private_key,
                chain_id=chain.chain_id,
            )

    async with HttpAssetBackend(config=backend_config or get_backend_config()) as backend:
        engine = ReconciliationEngine.build(
            backend=backend,
            kv_store=SqlAlchemyKeyValueStore(),
            token_uris=token_uris,
            submitter=submitter,
            post_match_delay=get_reconciliation_config().post_match_delay_seconds,
        )
        yield Runtime(engine=engine, chain=chain, submitter=submitter)


def load_assets(identity: str) -> tuple[list[AssetView], str | None]:
    """Aggregate the views for ``identity``; returns the views and any error."""

    async def run() -> tuple[list[AssetView], str | None]:
        async with open_runtime() as runtime:
            views = await runtime.engine.connect(identity)
            return views, runtime.engine.driver.error

    return asyncio.run(run())


def list_records(identity: str | None = None, *, refresh: bool = False) -> DebugSnapshot:
    """Enumerate stored correlation and orphan records."""

    async def run() -> DebugSnapshot:
        async with open_runtime() as runtime:
            driver = runtime.engine.driver
            driver.identity = identity
            if refresh:
                return await driver.force_refresh()
            return await driver.debug_records()

    return asyncio.run(run())


async def watch_transfers(identity: str, *, stop: asyncio.Event) -> None:
    """Keep matching transfer events for ``identity`` until ``stop`` is set."""

    async with open_runtime(require_chain=True) as runtime:
        engine = runtime.engine
        engine.driver.subscribe(
            lambda views: log.info("View refreshed: %s assets for %s", len(views), identity)
        )
        await engine.connect(identity)
        outcome = await engine.watch(runtime.transfer_feed(), stop=stop)
        log.info(
            "Stopped watching: resolved=%s, orphaned=%s, dropped=%s, failed=%s",
            len(outcome.resolved),
            len(outcome.orphaned),
            outcome.dropped,
            outcome.failed,
        )


async def mint_asset(
    asset_id: str,
    *,
    identity: str | None = None,
    resolve_timeout: float = 300.0,
) -> MintResult:
    """Submit a mint for ``asset_id`` and wait for its token id to be captured."""

    async with open_runtime(require_chain=True) as runtime:
        engine = runtime.engine
        if runtime.submitter is None or engine.minting is None:
            raise ConfigurationError("MINTRECON_PRIVATE_KEY is required to submit mints")
        effective_identity = identity or runtime.submitter.account_address

        views = await engine.connect(effective_identity)
        if engine.driver.error:
            raise MintRequestError(engine.driver.error)
        view = next((item for item in views if item.asset_id == asset_id), None)
        if view is None:
            raise MintRequestError(f"Asset {asset_id} is not owned by {effective_identity}")
        if view.minted:
            raise MintRequestError(f"Asset {asset_id} is already minted")

        feed = runtime.transfer_feed()
        # Pin the start block before submitting so the mint block cannot be skipped.
        feed.start_block = await feed.w3.eth.block_number + 1
        stop = asyncio.Event()
        watcher = asyncio.create_task(engine.watch(feed, stop=stop))
        try:
            if not await engine.minting.mint(view.asset):
                raise MintRequestError(engine.driver.error or "mint failed")
            token_id = await _await_token_id(engine, watcher, asset_id, resolve_timeout)
            await engine.driver.refresh()
        finally:
            stop.set()
            # A feed failure has already been raised or logged by watch().
            await asyncio.gather(watcher, return_exceptions=True)

        refreshed = next((item for item in engine.driver.views if item.asset_id == asset_id), None)
        return MintResult(asset_id=asset_id, token_id=token_id, view=refreshed)


async def _await_token_id(
    engine: ReconciliationEngine,
    watcher: asyncio.Task[MatchOutcome],
    asset_id: str,
    timeout: float,
) -> str | None:
    """Wait for the request to resolve; a dead watcher ends the wait early."""

    resolver = asyncio.create_task(engine.wait_until_resolved(asset_id))
    try:
        done, _ = await asyncio.wait(
            {resolver, watcher}, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
        )
    finally:
        resolver.cancel()
    if resolver in done:
        return resolver.result()
    if watcher in done:
        watcher.result()
    raise TimeoutError(f"No token id observed for asset {asset_id} within {timeout}s")
