from __future__ import annotations

import os
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002

from mintrecon.adapters.memory import InMemoryKeyValueStore
from mintrecon.adapters.sqlalchemy import create_all_tables, shutdown, startup
from mintrecon.domain.correlation import CorrelationStore
from mintrecon.domain.engine import ReconciliationEngine
from tests.helpers.fakes import FakeBackend, FakeSubmitter, FakeTokenUris, make_asset

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from pathlib import Path

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")


class TickingClock:
    """Deterministic clock advancing one second per call."""

    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2024, 5, 1, 12, tzinfo=UTC)

    def __call__(self) -> datetime:
        value = self.current
        self.current += timedelta(seconds=1)
        return value


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture
def kv_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def correlation_store(kv_store: InMemoryKeyValueStore, clock: TickingClock) -> CorrelationStore:
    return CorrelationStore(kv_store, clock=clock)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend(assets=[make_asset("1"), make_asset("2")])


@pytest.fixture
def submitter() -> FakeSubmitter:
    return FakeSubmitter()


@pytest.fixture
def engine_factory(
    backend: FakeBackend,
    kv_store: InMemoryKeyValueStore,
    submitter: FakeSubmitter,
) -> Callable[..., ReconciliationEngine]:
    def factory(**overrides: object) -> ReconciliationEngine:
        options: dict[str, object] = {
            "backend": backend,
            "kv_store": kv_store,
            "token_uris": FakeTokenUris(),
            "submitter": submitter,
            "post_match_delay": 0.0,
        }
        options.update(overrides)
        return ReconciliationEngine.build(**options)  # type: ignore[arg-type]

    return factory


@pytest.fixture
def sqlite_engine(tmp_path: Path) -> Iterator[Engine]:
    engine = create_engine(f"sqlite+pysqlite:///{tmp_path / 'mintrecon.db'}", future=True)
    create_all_tables(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def started_store(sqlite_engine: Engine) -> Iterator[Engine]:
    startup(engine=sqlite_engine, force=True)
    try:
        yield sqlite_engine
    finally:
        shutdown()
