"""Merge registry listings, backend status, metadata and local token ids."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from .errors import AssetListingError, RegistryUnavailableError
from .model import AssetView, same_address

if TYPE_CHECKING:
    from .correlation import CorrelationStore
    from .model import Asset, AssetMetadata
    from .ports.backend import AssetBackend
    from .ports.chain import TokenUriReader

log = getLogger(__name__)


@dataclass(slots=True)
class AssetStatusAggregator:
    """Build one ``AssetView`` per asset owned by an identity.

    Only the registry scope and the listing are hard dependencies. The
    per-asset lookups run concurrently and each one degrades to an unknown
    field on failure without affecting the others.
    """

    backend: AssetBackend
    store: CorrelationStore
    token_uris: TokenUriReader | None = None

    async def aggregate(self, identity: str) -> list[AssetView]:
        try:
            scope = await self.backend.registry_address()
        except Exception as exc:
            raise RegistryUnavailableError(f"registry unavailable: {exc}") from exc
        if not scope:
            raise RegistryUnavailableError("registry unavailable")

        try:
            listed = await self.backend.list_assets(scope)
        except Exception as exc:
            raise AssetListingError(f"load failed: {exc}") from exc

        mine = [asset for asset in listed if same_address(asset.owner, identity)]
        log.debug(
            "Registry %s lists %s assets, %s owned by %s", scope, len(listed), len(mine), identity
        )
        return list(await asyncio.gather(*(self._view(asset, identity) for asset in mine)))

    async def _view(self, asset: Asset, identity: str) -> AssetView:
        minted, metadata, token_id = await asyncio.gather(
            self._minted(asset, identity),
            self._metadata(asset),
            self._token_id(asset),
        )
        nft_uri = await self._nft_uri(token_id) if token_id is not None else None
        return AssetView(
            asset=asset,
            minted=minted,
            metadata=metadata,
            token_id=token_id,
            nft_uri=nft_uri,
        )

    async def _minted(self, asset: Asset, identity: str) -> bool | None:
        try:
            return await self.backend.minted_status(user=identity, request_id=asset.asset_id)
        except Exception as exc:  # noqa: BLE001
            log.debug("Minted status unavailable for %s: %s", asset.asset_id, exc)
            return None

    async def _metadata(self, asset: Asset) -> AssetMetadata | None:
        try:
            return await self.backend.asset_metadata(asset.asset_id)
        except Exception as exc:  # noqa: BLE001
            log.debug("Metadata unavailable for %s: %s", asset.asset_id, exc)
            return None

    async def _token_id(self, asset: Asset) -> str | None:
        try:
            return await self.store.lookup(asset.asset_id)
        except Exception as exc:  # noqa: BLE001
            log.debug("Token id lookup failed for %s: %s", asset.asset_id, exc)
            return None

    async def _nft_uri(self, token_id: str) -> str | None:
        if self.token_uris is None:
            return None
        try:
            return await self.token_uris.token_uri(token_id) or None
        except Exception as exc:  # noqa: BLE001
            log.debug("tokenURI unavailable for token %s: %s", token_id, exc)
            return None
