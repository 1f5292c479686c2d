"""Contract-call layer: mint submission and ``tokenURI`` reads via web3.py."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from web3 import AsyncWeb3
from web3.exceptions import Web3Exception

from mintrecon.domain.errors import MintSubmissionError

from .abi import MANAGER_ABI, NFT_ABI

if TYPE_CHECKING:
    from eth_account.signers.local import LocalAccount
    from hexbytes import HexBytes

    from mintrecon.config.chain import ChainConfig

log = getLogger(__name__)

_RPC_ERRORS = (Web3Exception, ValueError, OSError)


def build_web3(config: ChainConfig) -> AsyncWeb3:
    return AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(config.rpc_url))


@dataclass(slots=True)
class Web3TokenUriReader:
    w3: AsyncWeb3
    nft_address: str

    async def token_uri(self, token_id: str) -> str:
        contract = self.w3.eth.contract(
            address=AsyncWeb3.to_checksum_address(self.nft_address),
            abi=NFT_ABI,
        )
        return str(await contract.functions.tokenURI(int(token_id)).call())


@dataclass(slots=True)
class Web3MintTransaction:
    w3: AsyncWeb3
    raw_hash: HexBytes
    timeout_seconds: float = 120.0

    @property
    def tx_hash(self) -> str:
        return self.raw_hash.to_0x_hex()

    async def wait(self) -> None:
        try:
            receipt = await self.w3.eth.wait_for_transaction_receipt(
                self.raw_hash, timeout=self.timeout_seconds
            )
        except _RPC_ERRORS as exc:
            raise MintSubmissionError(f"Transaction {self.tx_hash} not confirmed: {exc}") from exc
        if receipt["status"] != 1:
            raise MintSubmissionError(f"Transaction {self.tx_hash} failed on chain")


@dataclass(slots=True)
class Web3MintSubmitter:
    """Sign ``depositRWAAndMintNFT`` calls with a local private key."""

    w3: AsyncWeb3
    manager_address: str
    private_key: str
    chain_id: int | None = None
    _account: LocalAccount | None = field(default=None, init=False)

    @property
    def account_address(self) -> str:
        return self._local_account().address

    async def submit_mint(
        self,
        *,
        asset_id: str,
        value_in_usd: str,
        identity: str,
        token_uri: str,
    ) -> Web3MintTransaction:
        try:
            account = self._local_account()
            contract = self.w3.eth.contract(
                address=AsyncWeb3.to_checksum_address(self.manager_address),
                abi=MANAGER_ABI,
            )
            call = contract.functions.depositRWAAndMintNFT(
                int(asset_id),
                int(value_in_usd),
                AsyncWeb3.to_checksum_address(identity),
                token_uri,
            )
            nonce = await self.w3.eth.get_transaction_count(account.address, "pending")
            tx_params: dict[str, object] = {"from": account.address, "nonce": nonce}
            if self.chain_id is not None:
                tx_params["chainId"] = self.chain_id
            tx = await call.build_transaction(tx_params)  # type: ignore[arg-type]
            signed = account.sign_transaction(tx)
            raw_hash = await self.w3.eth.send_raw_transaction(signed.raw_transaction)
        except _RPC_ERRORS as exc:
            raise MintSubmissionError(getattr(exc, "message", None) or str(exc)) from exc
        log.debug("Sent depositRWAAndMintNFT for request %s", asset_id)
        return Web3MintTransaction(w3=self.w3, raw_hash=raw_hash)

    def _local_account(self) -> LocalAccount:
        if self._account is None:
            self._account = self.w3.eth.account.from_key(self.private_key)
        return self._account
