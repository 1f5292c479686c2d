"""Asset backend configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_float_env_var, require_env_vars
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig

BACKEND_TIMEOUT_SECONDS = 30.0


def should_cache_backend_payload(payload: object) -> bool:
    """Only asset metadata documents are immutable enough to cache."""

    return isinstance(payload, dict) and "metadata" in payload


@dataclass(frozen=True, slots=True)
class BackendConfig:
    """Holds the asset backend connection settings."""

    base_url: str
    resilience: ResilienceConfig


def get_backend_config(*, resilience: ResilienceConfig | None = None) -> BackendConfig:
    values = require_env_vars(("MINTRECON_BACKEND_URL",))
    base_url = values["MINTRECON_BACKEND_URL"].rstrip("/")
    timeout = optional_float_env_var("MINTRECON_BACKEND_TIMEOUT", BACKEND_TIMEOUT_SECONDS)
    return BackendConfig(
        base_url=base_url,
        resilience=resilience
        or ResilienceConfig(
            name="backend",
            base_url=base_url,
            timeout_seconds=timeout,
            ratelimit=RateLimit(max_calls=10, per_seconds=1.0),
            cache=CacheConfig(should_cache=should_cache_backend_payload),
        ),
    )
