from __future__ import annotations

import asyncio

from mintrecon.adapters.memory import InMemoryKeyValueStore


def test_iterate_is_sorted_and_prefixed() -> None:
    store = InMemoryKeyValueStore({"orphan:2": "b", "correlation:1": "a", "orphan:1": "c"})

    async def collect() -> list[str]:
        return [key async for key, _ in store.iterate("orphan:")]

    assert asyncio.run(collect()) == ["orphan:1", "orphan:2"]


def test_initial_mapping_is_copied() -> None:
    initial = {"correlation:1": "{}"}
    store = InMemoryKeyValueStore(initial)

    asyncio.run(store.set("correlation:2", "{}"))

    assert initial == {"correlation:1": "{}"}
    assert asyncio.run(store.get("correlation:2")) == "{}"
