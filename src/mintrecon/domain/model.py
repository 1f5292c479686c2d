"""Domain data model (pure, dependency-light)."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Final

ZERO_ADDRESS: Final[str] = "0x0000000000000000000000000000000000000000"


def same_address(left: str | None, right: str | None) -> bool:
    """Compare two address strings case-insensitively; missing values never match."""

    if not left or not right:
        return False
    return left.lower() == right.lower()


@dataclass(frozen=True, slots=True)
class Asset:
    """Registry record for a real-world asset."""

    asset_id: str
    asset_type: int
    asset_name: str
    value_in_usd: str
    owner: str
    is_locked: bool = False
    is_verified: bool = False
    tradable: bool = False


@dataclass(frozen=True, slots=True)
class AssetMetadata:
    ipfs_urls: tuple[str, ...] = ()
    local_files: tuple[str, ...] = ()
    timestamp: str | None = None


@dataclass(frozen=True, slots=True)
class TransferEvent:
    """Ownership-transfer notification as delivered by the event feed.

    ``token_id`` is kept raw; the matcher validates it.
    """

    from_address: str | None
    to_address: str | None
    token_id: object = None

    @property
    def is_mint(self) -> bool:
        return same_address(self.from_address, ZERO_ADDRESS)


@dataclass(frozen=True, slots=True)
class CorrelationRecord:
    asset_id: str
    token_id: str
    resolved_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class OrphanRecord:
    key: str
    token_id: str
    observed_at: datetime
    identity: str


@dataclass(frozen=True, slots=True)
class StoredRecords:
    """Diagnostic snapshot of everything the correlation store holds."""

    correlations: tuple[CorrelationRecord, ...] = ()
    orphans: tuple[OrphanRecord, ...] = ()

    def __len__(self) -> int:
        return len(self.correlations) + len(self.orphans)


@dataclass(frozen=True, slots=True)
class AssetView:
    """Merged view of an asset, its mint status and its resolved token id.

    ``minted`` is ``None`` when the backend status could not be fetched.
    """

    asset: Asset
    minted: bool | None = None
    metadata: AssetMetadata | None = None
    token_id: str | None = None
    nft_uri: str | None = None

    @property
    def asset_id(self) -> str:
        return self.asset.asset_id

    @property
    def awaiting_token_id(self) -> bool:
        """Minted according to the backend but no token id was captured locally."""

        return self.minted is True and self.token_id is None


@dataclass(slots=True)
class MatchOutcome:
    resolved: list[CorrelationRecord] = field(default_factory=list["CorrelationRecord"])
    orphaned: list[OrphanRecord] = field(default_factory=list["OrphanRecord"])
    dropped: int = 0
    failed: int = 0

    def merge(self, other: MatchOutcome) -> None:
        self.resolved.extend(other.resolved)
        self.orphaned.extend(other.orphaned)
        self.dropped += other.dropped
        self.failed += other.failed
