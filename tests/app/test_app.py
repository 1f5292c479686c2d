from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Self

import pytest

from mintrecon import app as app_module
from mintrecon.adapters.sqlalchemy import SqlAlchemyKeyValueStore, shutdown, startup
from mintrecon.config import MissingConfigurationError
from mintrecon.domain.correlation import CorrelationStore
from mintrecon.domain.errors import TransferFeedError
from tests.helpers.fakes import IDENTITY, FailingFeed, FakeBackend, make_asset

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from pathlib import Path

    from mintrecon.domain.engine import ReconciliationEngine


class _ContextBackend(FakeBackend):
    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *_: object) -> None:
        return None


@pytest.fixture
def configured_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[_ContextBackend]:
    backend = _ContextBackend(assets=[make_asset("1"), make_asset("2")], minted={"1": True})
    monkeypatch.setenv("DATABASE_URI", f"sqlite+pysqlite:///{tmp_path / 'app.db'}")
    monkeypatch.setenv("MINTRECON_BACKEND_URL", "http://backend.test")
    for name in ("MINTRECON_RPC_URL", "MINTRECON_NFT_ADDRESS", "MINTRECON_MANAGER_ADDRESS"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(app_module, "HttpAssetBackend", lambda **_: backend)
    shutdown()
    try:
        yield backend
    finally:
        shutdown()


def test_load_assets_merges_persisted_token_ids(configured_env: _ContextBackend) -> None:
    startup()
    asyncio.run(CorrelationStore(SqlAlchemyKeyValueStore()).resolve("1", "777"))

    views, error = app_module.load_assets(IDENTITY)

    assert error is None
    assert [(view.asset_id, view.token_id) for view in views] == [("1", "777"), ("2", None)]
    assert views[0].nft_uri is None
    assert "registry" in configured_env.calls


def test_load_assets_reports_registry_failure(configured_env: _ContextBackend) -> None:
    configured_env.fail_registry = True

    views, error = app_module.load_assets(IDENTITY)

    assert views == []
    assert error is not None


def test_list_records_without_refresh_skips_backend(configured_env: _ContextBackend) -> None:
    startup()
    asyncio.run(CorrelationStore(SqlAlchemyKeyValueStore()).record_orphan("9", IDENTITY))

    snapshot = app_module.list_records()

    assert snapshot.identity is None
    assert [orphan.token_id for orphan in snapshot.records.orphans] == ["9"]
    assert configured_env.calls == []


def test_mint_requires_chain_configuration(configured_env: _ContextBackend) -> None:  # noqa: ARG001
    with pytest.raises(MissingConfigurationError):
        asyncio.run(app_module.mint_asset("1", identity=IDENTITY))


def test_token_id_wait_ends_when_feed_dies(
    engine_factory: Callable[..., ReconciliationEngine],
) -> None:
    engine = engine_factory()

    async def scenario() -> str | None:
        await engine.connect(IDENTITY)
        engine.tracker.begin_request("1")
        watcher = asyncio.create_task(engine.watch(FailingFeed(), stop=asyncio.Event()))
        return await asyncio.wait_for(
            app_module._await_token_id(engine, watcher, "1", 300.0),  # noqa: SLF001  # type: ignore[reportPrivateUsage]
            timeout=2,
        )

    with pytest.raises(TransferFeedError):
        asyncio.run(scenario())
