"""Minimal contract ABIs used by the web3 adapter."""

from __future__ import annotations

from typing import Final

TRANSFER_EVENT_ABI: Final[dict[str, object]] = {
    "anonymous": False,
    "inputs": [
        {"indexed": True, "internalType": "address", "name": "from", "type": "address"},
        {"indexed": True, "internalType": "address", "name": "to", "type": "address"},
        {"indexed": True, "internalType": "uint256", "name": "tokenId", "type": "uint256"},
    ],
    "name": "Transfer",
    "type": "event",
}

TOKEN_URI_ABI: Final[dict[str, object]] = {
    "inputs": [{"internalType": "uint256", "name": "tokenId", "type": "uint256"}],
    "name": "tokenURI",
    "outputs": [{"internalType": "string", "name": "", "type": "string"}],
    "stateMutability": "view",
    "type": "function",
}

DEPOSIT_AND_MINT_ABI: Final[dict[str, object]] = {
    "inputs": [
        {"internalType": "uint256", "name": "requestId", "type": "uint256"},
        {"internalType": "uint256", "name": "valueInUSD", "type": "uint256"},
        {"internalType": "address", "name": "owner", "type": "address"},
        {"internalType": "string", "name": "tokenURI", "type": "string"},
    ],
    "name": "depositRWAAndMintNFT",
    "outputs": [],
    "stateMutability": "nonpayable",
    "type": "function",
}

NFT_ABI: Final[list[dict[str, object]]] = [TRANSFER_EVENT_ABI, TOKEN_URI_ABI]
MANAGER_ABI: Final[list[dict[str, object]]] = [DEPOSIT_AND_MINT_ABI]
