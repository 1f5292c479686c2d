"""Reconciliation timing defaults."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_float_env_var

DEFAULT_POST_MATCH_DELAY_SECONDS = 0.5


@dataclass(frozen=True, slots=True)
class ReconciliationConfig:
    # Gives the backend's own minted flag time to catch up after a match.
    post_match_delay_seconds: float = DEFAULT_POST_MATCH_DELAY_SECONDS


def get_reconciliation_config() -> ReconciliationConfig:
    return ReconciliationConfig(
        post_match_delay_seconds=optional_float_env_var(
            "MINTRECON_POST_MATCH_DELAY", DEFAULT_POST_MATCH_DELAY_SECONDS
        )
    )
