from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from signal import SIGINT, SIGTERM, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from mintrecon.app import list_records, load_assets, mint_asset, watch_transfers
from mintrecon.config import configure_logging

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from mintrecon.domain.model import AssetView
    from mintrecon.domain.reconciliation import DebugSnapshot

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile asset mint requests with token ids")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    assets = subparsers.add_parser("assets", help="Show the merged view of owned assets")
    assets.add_argument("--identity", required=True, help="Wallet address owning the assets")

    records = subparsers.add_parser("records", help="List stored token id records")
    records.add_argument("--identity", help="Wallet address to report alongside the records")
    records.add_argument(
        "--refresh",
        action="store_true",
        help="Re-aggregate the asset view before listing (requires --identity)",
    )

    watch = subparsers.add_parser("watch", help="Capture token ids from Transfer events")
    watch.add_argument("--identity", required=True, help="Wallet address receiving mints")

    mint = subparsers.add_parser("mint", help="Mint an asset and capture its token id")
    mint.add_argument("--asset-id", required=True, help="Registry asset id to mint")
    mint.add_argument(
        "--identity",
        help="Recipient wallet address (defaults to the signing account)",
    )
    mint.add_argument(
        "--timeout",
        type=float,
        default=300.0,
        help="Seconds to wait for the token id (default: %(default)s)",
    )

    args = parser.parse_args(list(argv))
    if args.command == "records" and args.refresh and not args.identity:
        parser.error("--refresh requires --identity")
    return args


def _describe(view: AssetView) -> str:
    if view.minted is None:
        minted = "unknown"
    else:
        minted = "yes" if view.minted else "no"
    parts = [
        f"asset={view.asset_id}",
        f"name={view.asset.asset_name!r}",
        f"value_usd={view.asset.value_in_usd}",
        f"minted={minted}",
        f"token_id={view.token_id or '-'}",
    ]
    if view.nft_uri:
        parts.append(f"uri={view.nft_uri}")
    if view.metadata is not None:
        parts.append(f"files={len(view.metadata.ipfs_urls) + len(view.metadata.local_files)}")
    if view.awaiting_token_id:
        parts.append("(minted but token id not captured)")
    return " ".join(parts)


def _log_snapshot(snapshot: DebugSnapshot) -> None:
    log.info(
        "identity=%s pending=%s correlations=%s orphans=%s",
        snapshot.identity,
        snapshot.pending_request,
        len(snapshot.records.correlations),
        len(snapshot.records.orphans),
    )
    for record in snapshot.records.correlations:
        log.info("request %s -> token %s (%s)", record.asset_id, record.token_id, record.resolved_at)
    for orphan in snapshot.records.orphans:
        log.info(
            "orphan token %s seen by %s at %s [%s]",
            orphan.token_id,
            orphan.identity,
            orphan.observed_at,
            orphan.key,
        )
    for view in snapshot.views:
        log.info("asset %s: token=%s", view.asset_id, view.token_id or "-")


async def _watch_until_signalled(identity: str) -> None:
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (SIGINT, SIGTERM):
        loop.add_signal_handler(sig, stop.set)
    await watch_transfers(identity, stop=stop)


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        if parsed_args.command == "assets":
            views, error = load_assets(parsed_args.identity)
            if error:
                raise RuntimeError(error)  # noqa: TRY301
            log.info("%s assets owned by %s", len(views), parsed_args.identity)
            for view in views:
                log.info(_describe(view))
        elif parsed_args.command == "records":
            _log_snapshot(list_records(parsed_args.identity, refresh=parsed_args.refresh))
        elif parsed_args.command == "watch":
            asyncio.run(_watch_until_signalled(parsed_args.identity))
        elif parsed_args.command == "mint":
            result = asyncio.run(
                mint_asset(
                    parsed_args.asset_id,
                    identity=parsed_args.identity,
                    resolve_timeout=parsed_args.timeout,
                )
            )
            log.info("Request %s resolved to token %s", result.asset_id, result.token_id or "-")
            if result.view is not None:
                log.info(_describe(result.view))
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
