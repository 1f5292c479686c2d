"""Port for the durable key-value scope backing the correlation store."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import AsyncIterator


@runtime_checkable
class KeyValueStore(Protocol):
    """String-to-string persistence scoped to one profile/process."""

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...

    def iterate(self, prefix: str = "") -> AsyncIterator[tuple[str, str]]: ...
