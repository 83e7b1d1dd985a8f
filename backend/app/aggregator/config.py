"""Environment-driven settings for the aggregator."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field

from .providers import DEFAULT_PROVIDERS

_TRUTHY = {"1", "true", "yes", "on"}


def _float(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def _int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


@dataclass(frozen=True, slots=True)
class AggregatorSettings:
    cache_ttl: float = 30.0
    cycle_deadline: float = 25.0
    fetch_timeout: float = 8.0
    fetch_attempts: int = 3
    backoff_base: float = 1.0
    refresh_interval: float = 30.0  # 0 disables the scheduler
    volatility_threshold: float = 5.0
    broadcast_cap: int = 10
    snapshot_retention: float = 3600.0
    native_price_usd: float = 180.0
    simulate: bool = False
    redis_url: str | None = None
    provider_urls: dict[str, str] = field(
        default_factory=lambda: {p.name: p.default_url for p in DEFAULT_PROVIDERS}
    )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> AggregatorSettings:
        env = os.environ if environ is None else environ
        provider_urls = {
            p.name: env.get(p.url_env, "").strip() or p.default_url for p in DEFAULT_PROVIDERS
        }
        return cls(
            cache_ttl=_float(env, "AGGREGATOR_CACHE_TTL", 30.0),
            cycle_deadline=_float(env, "AGGREGATOR_CYCLE_DEADLINE", 25.0),
            fetch_timeout=_float(env, "AGGREGATOR_FETCH_TIMEOUT", 8.0),
            fetch_attempts=_int(env, "AGGREGATOR_FETCH_ATTEMPTS", 3),
            backoff_base=_float(env, "AGGREGATOR_BACKOFF_BASE", 1.0),
            refresh_interval=_float(env, "AGGREGATOR_REFRESH_INTERVAL", 30.0),
            volatility_threshold=_float(env, "AGGREGATOR_VOLATILITY_THRESHOLD", 5.0),
            broadcast_cap=_int(env, "AGGREGATOR_BROADCAST_CAP", 10),
            snapshot_retention=_float(env, "AGGREGATOR_SNAPSHOT_RETENTION", 3600.0),
            native_price_usd=_float(env, "AGGREGATOR_NATIVE_PRICE_USD", 180.0),
            simulate=env.get("AGGREGATOR_SIMULATE", "").strip().lower() in _TRUTHY,
            redis_url=env.get("REDIS_URL", "").strip() or None,
            provider_urls=provider_urls,
        )
