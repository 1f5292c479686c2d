"""HTTP client for the asset backend."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from mintrecon.adapters.http_resilience import ResilientClient

from .schema import (
    AssetListResponse,
    AssetPayload,
    BackendBaseModel,
    MetadataResponse,
    MintStatusResponse,
    RegistryResponse,
)

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from mintrecon.config.backend import BackendConfig
    from mintrecon.config.http_resilience import ResilienceConfig
    from mintrecon.domain.model import Asset, AssetMetadata

log = getLogger(__name__)


class BackendAPIError(RuntimeError):
    """Raised when the backend returns an error or an unexpected payload."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


def _json_object(response: httpx.Response) -> dict[str, object]:
    try:
        payload = response.json()
    except ValueError as exc:
        raise BackendAPIError(
            f"Backend returned a non-JSON body for {response.request.url.path}",
            status_code=response.status_code,
        ) from exc
    if not isinstance(payload, dict):
        raise BackendAPIError(
            f"Unexpected backend payload for {response.request.url.path}",
            status_code=response.status_code,
        )
    return payload


@dataclass(slots=True)
class HttpAssetBackend:
    """Asset backend reached over HTTP through one long-lived resilient client."""

    config: BackendConfig
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )
    _client: ResilientClient | None = field(default=None, init=False)

    async def __aenter__(self) -> HttpAssetBackend:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def registry_address(self) -> str:
        response = await self._get("/assets/registry")
        payload = _json_object(response)
        registry = _validate(RegistryResponse, payload)
        if not response.is_success or not registry.address:
            raise BackendAPIError(
                registry.error or "registry unavailable", status_code=response.status_code
            )
        return registry.address

    async def list_assets(self, owner: str) -> list[Asset]:
        response = await self._get("/assets/list", params={"owner": owner})
        payload = _json_object(response)
        listing = _validate(AssetListResponse, payload)
        if not response.is_success:
            raise BackendAPIError(listing.error or "load failed", status_code=response.status_code)
        assets: list[Asset] = []
        for index, row in enumerate(listing.assets):
            try:
                assets.append(AssetPayload.model_validate(row).to_domain())
            except ValidationError as exc:
                log.warning("Skipping invalid asset row %s: %s", index, exc.errors()[0]["msg"])
        return assets

    async def minted_status(self, *, user: str, request_id: str) -> bool:
        response = await self._get(
            "/manager/status", params={"user": user, "requestId": request_id}
        )
        response.raise_for_status()
        status = _validate(MintStatusResponse, _json_object(response))
        return bool(status.minted)

    async def asset_metadata(self, asset_id: str) -> AssetMetadata | None:
        response = await self._get(f"/assets/metadata/{quote(asset_id, safe='')}")
        if not response.is_success:
            log.debug("No metadata for %s (HTTP %s)", asset_id, response.status_code)
            return None
        document = _validate(MetadataResponse, _json_object(response))
        return document.metadata.to_domain() if document.metadata else None

    async def _get(self, path: str, *, params: dict[str, str] | None = None) -> httpx.Response:
        if self._client is None:
            self._client = self.client_factory(self.config.resilience)
        url = f"{self.config.base_url}{path}"
        return await self._client.get(url, params=params)


def _validate[TModel: BackendBaseModel](model: type[TModel], payload: dict[str, object]) -> TModel:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise BackendAPIError(f"Unexpected {model.__name__} payload: {exc}") from exc
