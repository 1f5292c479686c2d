"""In-memory key-value scope for ephemeral runs and tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import AsyncIterator


class InMemoryKeyValueStore:
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        self.data[key] = value

    async def iterate(self, prefix: str = "") -> AsyncIterator[tuple[str, str]]:
        for key in sorted(self.data):
            if key.startswith(prefix):
                yield key, self.data[key]
