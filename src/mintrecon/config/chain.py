"""On-chain contract and RPC configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_env_var, optional_float_env_var, optional_int_env_var, require_env_vars

DEFAULT_POLL_INTERVAL_SECONDS = 2.0


@dataclass(frozen=True, slots=True)
class ChainConfig:
    rpc_url: str
    nft_address: str
    manager_address: str
    private_key: str | None = None
    chain_id: int | None = None
    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS


def get_chain_config() -> ChainConfig:
    values = require_env_vars(
        (
            "MINTRECON_RPC_URL",
            "MINTRECON_NFT_ADDRESS",
            "MINTRECON_MANAGER_ADDRESS",
        )
    )
    return ChainConfig(
        rpc_url=values["MINTRECON_RPC_URL"],
        nft_address=values["MINTRECON_NFT_ADDRESS"],
        manager_address=values["MINTRECON_MANAGER_ADDRESS"],
        private_key=optional_env_var("MINTRECON_PRIVATE_KEY"),
        chain_id=optional_int_env_var("MINTRECON_CHAIN_ID"),
        poll_interval_seconds=optional_float_env_var(
            "MINTRECON_POLL_INTERVAL", DEFAULT_POLL_INTERVAL_SECONDS
        ),
    )
