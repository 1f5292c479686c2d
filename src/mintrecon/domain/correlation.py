"""Durable request-id to token-id correlation records."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING, Final

from .model import CorrelationRecord, OrphanRecord, StoredRecords

if TYPE_CHECKING:
    from collections.abc import Callable

    from .ports.persistence import KeyValueStore

log = getLogger(__name__)

CORRELATION_PREFIX: Final[str] = "correlation:"
ORPHAN_PREFIX: Final[str] = "orphan:"


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _parse_datetime(value: object) -> datetime | None:
    if not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def _load_object(key: str, raw: str) -> dict[str, object] | None:
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError:
        log.warning("Skipping unparseable record %s", key)
        return None
    if not isinstance(payload, dict):
        log.warning("Skipping malformed record %s", key)
        return None
    return payload


def _decode_correlation(key: str, raw: str) -> CorrelationRecord | None:
    payload = _load_object(key, raw)
    if payload is None:
        return None
    token_id = payload.get("token_id")
    if not isinstance(token_id, str) or not token_id:
        log.warning("Skipping correlation record %s without token id", key)
        return None
    return CorrelationRecord(
        asset_id=key.removeprefix(CORRELATION_PREFIX),
        token_id=token_id,
        resolved_at=_parse_datetime(payload.get("resolved_at")),
    )


def _decode_orphan(key: str, raw: str) -> OrphanRecord | None:
    payload = _load_object(key, raw)
    if payload is None:
        return None
    token_id = payload.get("token_id")
    observed_at = _parse_datetime(payload.get("observed_at"))
    identity = payload.get("identity")
    if not isinstance(token_id, str) or observed_at is None or not isinstance(identity, str):
        log.warning("Skipping incomplete orphan record %s", key)
        return None
    return OrphanRecord(
        key=key.removeprefix(ORPHAN_PREFIX),
        token_id=token_id,
        observed_at=observed_at,
        identity=identity,
    )


@dataclass(slots=True)
class CorrelationStore:
    """Own the persisted correlation and orphan records.

    Every mutation is a single read-merge-write step serialized by a lock, so
    two matches landing in the same tick cannot lose each other's writes.
    Correlations follow last-write-wins; orphans are append-only.
    """

    backend: KeyValueStore
    clock: Callable[[], datetime] = _utcnow
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False, repr=False)

    async def resolve(self, asset_id: str, token_id: str) -> CorrelationRecord:
        key = CORRELATION_PREFIX + asset_id
        async with self._lock:
            raw = await self.backend.get(key)
            existing = _decode_correlation(key, raw) if raw is not None else None
            if existing is not None and existing.token_id == token_id:
                return existing
            if existing is not None:
                log.info(
                    "Request %s re-resolved: token %s replaces %s",
                    asset_id,
                    token_id,
                    existing.token_id,
                )
            resolved_at = self.clock()
            payload = {"token_id": token_id, "resolved_at": resolved_at.isoformat()}
            await self.backend.set(key, json.dumps(payload, sort_keys=True))
        return CorrelationRecord(asset_id=asset_id, token_id=token_id, resolved_at=resolved_at)

    async def lookup(self, asset_id: str) -> str | None:
        key = CORRELATION_PREFIX + asset_id
        raw = await self.backend.get(key)
        if raw is None:
            return None
        record = _decode_correlation(key, raw)
        return record.token_id if record else None

    async def record_orphan(self, token_id: str, identity: str) -> OrphanRecord:
        async with self._lock:
            observed_at = self.clock()
            base = f"tokenId_{token_id}_{int(observed_at.timestamp() * 1000)}_{identity}"
            key = base
            suffix = 1
            while await self.backend.get(ORPHAN_PREFIX + key) is not None:
                key = f"{base}_{suffix}"
                suffix += 1
            payload = {
                "token_id": token_id,
                "observed_at": observed_at.isoformat(),
                "identity": identity,
            }
            await self.backend.set(ORPHAN_PREFIX + key, json.dumps(payload, sort_keys=True))
        return OrphanRecord(key=key, token_id=token_id, observed_at=observed_at, identity=identity)

    async def all_mappings(self) -> StoredRecords:
        correlations: list[CorrelationRecord] = []
        async for key, raw in self.backend.iterate(CORRELATION_PREFIX):
            record = _decode_correlation(key, raw)
            if record is not None:
                correlations.append(record)
        orphans: list[OrphanRecord] = []
        async for key, raw in self.backend.iterate(ORPHAN_PREFIX):
            orphan = _decode_orphan(key, raw)
            if orphan is not None:
                orphans.append(orphan)
        return StoredRecords(correlations=tuple(correlations), orphans=tuple(orphans))
