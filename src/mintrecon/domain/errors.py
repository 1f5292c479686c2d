"""Domain error definitions."""

from __future__ import annotations


class AggregationError(RuntimeError):
    """Raised when an aggregation pass cannot produce any view at all."""


class RegistryUnavailableError(AggregationError):
    """Raised when the registry scope cannot be resolved."""


class AssetListingError(AggregationError):
    """Raised when the asset listing for the registry scope cannot be loaded."""


class MintSubmissionError(RuntimeError):
    """Raised by the contract layer when a mint transaction fails."""


class TransferFeedError(RuntimeError):
    """Raised when the transfer event feed stops on its own."""
