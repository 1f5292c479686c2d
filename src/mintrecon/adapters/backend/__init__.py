"""Public interface for the asset backend adapter."""

from __future__ import annotations

from .client import BackendAPIError, HttpAssetBackend
from .schema import AssetListResponse, AssetPayload, MetadataResponse, RegistryResponse

__all__ = [
    "AssetListResponse",
    "AssetPayload",
    "BackendAPIError",
    "HttpAssetBackend",
    "MetadataResponse",
    "RegistryResponse",
]
