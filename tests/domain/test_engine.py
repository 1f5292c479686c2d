from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest

from mintrecon.adapters.memory import InMemoryKeyValueStore
from mintrecon.domain.engine import ReconciliationEngine
from mintrecon.domain.errors import TransferFeedError
from tests.helpers.fakes import (
    IDENTITY,
    OTHER,
    FailingFeed,
    FakeBackend,
    FakeTokenUris,
    ScriptedFeed,
    make_asset,
    mint_event,
)

if TYPE_CHECKING:
    from collections.abc import Callable


def test_build_wires_matcher_to_driver_identity(
    engine_factory: Callable[..., ReconciliationEngine],
) -> None:
    engine = engine_factory()
    assert engine.matcher.identity() is None

    asyncio.run(engine.connect(IDENTITY))

    assert engine.matcher.identity() == IDENTITY
    assert engine.minting is not None


def test_build_without_submitter_has_no_minting(backend: FakeBackend) -> None:
    engine = ReconciliationEngine.build(backend=backend, kv_store=InMemoryKeyValueStore())

    assert engine.minting is None
    assert engine.aggregator.token_uris is None


def test_registry_scope_filters_foreign_assets() -> None:
    backend = FakeBackend(
        registry="0xR",
        assets=[make_asset("1"), make_asset("2", owner=IDENTITY.lower()), make_asset("3", OTHER)],
        minted={"1": True},
    )
    engine = ReconciliationEngine.build(
        backend=backend,
        kv_store=InMemoryKeyValueStore(),
        token_uris=FakeTokenUris(),
        post_match_delay=0.0,
    )

    views = asyncio.run(engine.connect(IDENTITY))

    assert [view.asset_id for view in views] == ["1", "2"]
    assert views[0].minted is True
    assert views[1].minted is False
    assert "list:0xR" in backend.calls
    assert f"status:{IDENTITY}:3" not in backend.calls


def test_watch_resolves_pending_request_from_feed(
    engine_factory: Callable[..., ReconciliationEngine],
    backend: FakeBackend,
) -> None:
    backend.assets = [make_asset("42")]
    engine = engine_factory()
    feed = ScriptedFeed(batches=[[mint_event(777)]])

    async def scenario() -> None:
        await engine.connect(IDENTITY)
        engine.tracker.begin_request("42")
        backend.minted["42"] = True
        stop = asyncio.Event()
        watcher = asyncio.create_task(engine.watch(feed, stop=stop))
        token_id = await asyncio.wait_for(
            engine.wait_until_resolved("42", poll_interval=0.01), timeout=5
        )
        assert token_id == "777"
        await asyncio.sleep(0.05)
        stop.set()
        outcome = await watcher
        assert [record.token_id for record in outcome.resolved] == ["777"]

    asyncio.run(scenario())

    assert engine.tracker.current_request() is None
    (view,) = engine.driver.views
    assert view.token_id == "777"
    assert view.nft_uri == "ipfs://token/777"
    assert not view.awaiting_token_id


def test_watch_keeps_unmatched_mints_as_orphans(
    engine_factory: Callable[..., ReconciliationEngine],
) -> None:
    engine = engine_factory()
    feed = ScriptedFeed(batches=[[mint_event(5), mint_event(6, to=OTHER)]])

    async def scenario() -> None:
        await engine.connect(IDENTITY)
        stop = asyncio.Event()
        watcher = asyncio.create_task(engine.watch(feed, stop=stop))
        await asyncio.sleep(0.01)
        await engine.queue.join()
        stop.set()
        outcome = await watcher
        assert [orphan.token_id for orphan in outcome.orphaned] == ["5"]
        assert outcome.dropped == 1

    asyncio.run(scenario())

    records = asyncio.run(engine.store.all_mappings())
    assert records.correlations == ()
    assert [orphan.identity for orphan in records.orphans] == [IDENTITY]


def test_wait_until_resolved_returns_none_when_request_replaced(
    engine_factory: Callable[..., ReconciliationEngine],
) -> None:
    engine = engine_factory()
    engine.tracker.begin_request("1")

    async def scenario() -> str | None:
        waiter = asyncio.create_task(engine.wait_until_resolved("1", poll_interval=0.01))
        await asyncio.sleep(0.02)
        engine.tracker.begin_request("2")
        return await waiter

    assert asyncio.run(scenario()) is None


def test_watch_raises_when_feed_dies(
    engine_factory: Callable[..., ReconciliationEngine],
) -> None:
    engine = engine_factory()
    feed = FailingFeed(batches=[[mint_event(5)]])

    async def scenario() -> None:
        await engine.connect(IDENTITY)
        never_set = asyncio.Event()
        await asyncio.wait_for(engine.watch(feed, stop=never_set), timeout=2)

    with pytest.raises(TransferFeedError) as excinfo:
        asyncio.run(scenario())

    assert isinstance(excinfo.value.__cause__, ValueError)
    records = asyncio.run(engine.store.all_mappings())
    assert [orphan.token_id for orphan in records.orphans] == ["5"]
