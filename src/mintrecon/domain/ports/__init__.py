"""Domain port definitions for adapters."""

from __future__ import annotations

from .backend import AssetBackend
from .chain import MintSubmitter, MintTransaction, TokenUriReader, TransferFeed
from .persistence import KeyValueStore

__all__ = [
    "AssetBackend",
    "KeyValueStore",
    "MintSubmitter",
    "MintTransaction",
    "TokenUriReader",
    "TransferFeed",
]
