"""web3.py adapters for the transfer feed and the contract-call layer."""

from __future__ import annotations

from .contracts import (
    Web3MintSubmitter,
    Web3MintTransaction,
    Web3TokenUriReader,
    build_web3,
)
from .feed import Web3TransferFeed, transfer_event_from_log

__all__ = [
    "Web3MintSubmitter",
    "Web3MintTransaction",
    "Web3TokenUriReader",
    "Web3TransferFeed",
    "build_web3",
    "transfer_event_from_log",
]
