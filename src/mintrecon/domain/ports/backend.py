"""Port for the HTTP backend serving asset listings and status."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from mintrecon.domain.model import Asset, AssetMetadata


@runtime_checkable
class AssetBackend(Protocol):
    async def registry_address(self) -> str: ...

    async def list_assets(self, owner: str) -> Sequence[Asset]: ...

    async def minted_status(self, *, user: str, request_id: str) -> bool: ...

    async def asset_metadata(self, asset_id: str) -> AssetMetadata | None: ...
