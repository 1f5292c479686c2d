"""Asset backend response schemas."""

from __future__ import annotations

import logging
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from mintrecon.domain.model import Asset, AssetMetadata

log = logging.getLogger(__name__)


class BackendBaseModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)
    _logged_extra_keys: ClassVar[set[str]] = set()

    def model_post_init(self, _context: object, /) -> None:
        extras = self.__pydantic_extra__
        if not extras:
            return
        new_keys = set(extras).difference(self._logged_extra_keys)
        if not new_keys:
            return
        self._logged_extra_keys.update(new_keys)
        log.debug(
            "Backend %s: unmodeled keys: %s",
            type(self).__name__,
            ", ".join(sorted(new_keys)),
        )


class RegistryResponse(BackendBaseModel):
    address: str | None = None
    error: str | None = None


class AssetPayload(BackendBaseModel):
    asset_type: int = Field(default=0, alias="assetType")
    asset_name: str = Field(default="", alias="assetName")
    asset_id: str = Field(alias="assetId")
    is_locked: bool = Field(default=False, alias="isLocked")
    is_verified: bool = Field(default=False, alias="isVerified")
    value_in_usd: str = Field(default="0", alias="valueInUSD")
    owner: str | None = None
    tradable: bool = False

    @field_validator("asset_id", "value_in_usd", mode="before")
    @classmethod
    def _stringify(cls, value: object) -> object:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    def to_domain(self) -> Asset:
        return Asset(
            asset_id=self.asset_id,
            asset_type=self.asset_type,
            asset_name=self.asset_name,
            value_in_usd=self.value_in_usd,
            owner=self.owner or "",
            is_locked=self.is_locked,
            is_verified=self.is_verified,
            tradable=self.tradable,
        )


class AssetListResponse(BackendBaseModel):
    # Rows are validated individually by the client; invalid rows are skipped.
    assets: list[object] = Field(default_factory=list)
    error: str | None = None


class MintStatusResponse(BackendBaseModel):
    minted: bool | None = None


class MetadataPayload(BackendBaseModel):
    ipfs_urls: list[str] = Field(default_factory=list, alias="ipfsUrls")
    local_files: list[str] = Field(default_factory=list, alias="localFiles")
    timestamp: str | None = None

    def to_domain(self) -> AssetMetadata:
        return AssetMetadata(
            ipfs_urls=tuple(self.ipfs_urls),
            local_files=tuple(self.local_files),
            timestamp=self.timestamp,
        )


class MetadataResponse(BackendBaseModel):
    metadata: MetadataPayload | None = None
