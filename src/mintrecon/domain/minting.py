"""Mint trigger: track the request, submit it, and react to the outcome."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from .errors import MintSubmissionError

if TYPE_CHECKING:
    from .model import Asset
    from .ports.chain import MintSubmitter, MintTransaction
    from .reconciliation import ReconciliationDriver
    from .tracker import MintRequestTracker

log = getLogger(__name__)


def token_uri_for(asset_id: str) -> str:
    return f"asset-{asset_id}"


@dataclass(slots=True)
class MintService:
    tracker: MintRequestTracker
    submitter: MintSubmitter
    driver: ReconciliationDriver

    async def submit(self, asset: Asset) -> MintTransaction | None:
        """Start tracking ``asset`` and submit its mint transaction.

        Returns ``None`` when nothing was submitted; the reason is left on
        ``driver.error``.
        """

        identity = self.driver.identity
        if identity is None:
            return None
        self.driver.error = None
        self.driver.minting[asset.asset_id] = True
        self.tracker.begin_request(asset.asset_id)
        log.info("Starting mint for request %s", asset.asset_id)

        try:
            transaction = await self.submitter.submit_mint(
                asset_id=asset.asset_id,
                value_in_usd=asset.value_in_usd,
                identity=identity,
                token_uri=token_uri_for(asset.asset_id),
            )
        except MintSubmissionError as exc:
            log.warning("Mint submission for %s failed: %s", asset.asset_id, exc)
            self._submit_failed(asset, str(exc))
            return None
        except Exception as exc:
            log.exception("Unexpected error submitting mint for %s", asset.asset_id)
            self._submit_failed(asset, str(exc))
            return None
        log.info("Mint for request %s submitted as %s", asset.asset_id, transaction.tx_hash)
        return transaction

    async def await_confirmation(self, transaction: MintTransaction) -> bool:
        try:
            await transaction.wait()
        except MintSubmissionError as exc:
            log.warning("Mint transaction %s failed: %s", transaction.tx_hash, exc)
            self.driver.on_transaction_failed(str(exc))
            return False
        except Exception as exc:
            log.exception("Unexpected error awaiting mint transaction %s", transaction.tx_hash)
            self.driver.on_transaction_failed(str(exc))
            return False
        log.info("Mint transaction %s confirmed", transaction.tx_hash)
        await self.driver.on_transaction_confirmed()
        return True

    async def mint(self, asset: Asset) -> bool:
        transaction = await self.submit(asset)
        if transaction is None:
            return False
        return await self.await_confirmation(transaction)

    def _submit_failed(self, asset: Asset, message: str) -> None:
        self.driver.error = message or "mint failed"
        self.driver.minting[asset.asset_id] = False
