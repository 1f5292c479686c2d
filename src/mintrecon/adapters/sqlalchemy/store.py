"""Key-value store persisted through SQLAlchemy."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import create_engine, insert, select, update
from sqlalchemy.orm import Session, sessionmaker

from mintrecon.config.storage import get_database_config

from .mappings import create_all_tables, kv_entry_table

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from sqlalchemy.engine import Engine


class StartupError(RuntimeError):
    """Raised when the SQLAlchemy store is used before initialisation."""


@dataclass(slots=True)
class _AdapterState:
    _engine: Engine | None = None
    _session_factory: sessionmaker[Session] | None = None

    @property
    def engine(self) -> Engine | None:
        return self._engine

    @engine.setter
    def engine(self, value: Engine | None) -> None:
        self._session_factory = None
        self._engine = value

    @property
    def session_factory(self) -> sessionmaker[Session]:
        if self._engine is None:
            raise StartupError(
                "SQLAlchemy adapter not initialised. Call mintrecon.adapters.sqlalchemy."
                "startup() before opening a store."
            )
        if self._session_factory is None:
            self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        return self._session_factory


_STATE = _AdapterState()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Initialise the SQLAlchemy engine and create the key-value table."""

    if _STATE.engine is not None and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )

    resolved_engine = engine or create_engine(
        database_uri or get_database_config().uri, future=True
    )
    create_all_tables(resolved_engine)
    _STATE.engine = resolved_engine


def is_started() -> bool:
    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and reset state (primarily for tests)."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None


def _utcnow() -> datetime:
    return datetime.now(UTC)


class SqlAlchemyKeyValueStore:
    """Durable key-value scope; blocking database work runs in a worker thread."""

    def __init__(self, session_factory: sessionmaker[Session] | None = None) -> None:
        self.session_factory = session_factory or _STATE.session_factory

    async def get(self, key: str) -> str | None:
        return await asyncio.to_thread(self._get, key)

    async def set(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._set, key, value)

    async def iterate(self, prefix: str = "") -> AsyncIterator[tuple[str, str]]:
        rows = await asyncio.to_thread(self._rows, prefix)
        for key, value in rows:
            yield key, value

    def _get(self, key: str) -> str | None:
        with self.session_factory() as session:
            stmt = select(kv_entry_table.c.value).where(kv_entry_table.c.key == key)
            return session.execute(stmt).scalar_one_or_none()

    def _set(self, key: str, value: str) -> None:
        now = _utcnow()
        with self.session_factory() as session, session.begin():
            result = session.execute(
                update(kv_entry_table)
                .where(kv_entry_table.c.key == key)
                .values(value=value, updated_at=now)
            )
            if result.rowcount == 0:
                session.execute(
                    insert(kv_entry_table).values(key=key, value=value, updated_at=now)
                )

    def _rows(self, prefix: str) -> list[tuple[str, str]]:
        stmt = select(kv_entry_table.c.key, kv_entry_table.c.value).order_by(kv_entry_table.c.key)
        if prefix:
            stmt = stmt.where(kv_entry_table.c.key.startswith(prefix, autoescape=True))
        with self.session_factory() as session:
            return [(row.key, row.value) for row in session.execute(stmt)]
