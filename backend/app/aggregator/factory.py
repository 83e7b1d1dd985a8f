"""Factory for assembling the aggregator from settings."""

from __future__ import annotations

import logging

from .broadcaster import DeltaBroadcaster
from .config import AggregatorSettings
from .interface import KeyValueStore, ProviderSource
from .merge import MergeEngine
from .providers import DEFAULT_PROVIDERS
from .service import AggregatorService

logger = logging.getLogger(__name__)


def create_store(settings: AggregatorSettings) -> KeyValueStore:
    """REDIS_URL set → RedisKeyValueStore, otherwise an in-process store."""
    if settings.redis_url:
        from .store import RedisKeyValueStore

        logger.info("Key-value store: Redis")
        return RedisKeyValueStore(url=settings.redis_url)

    from .store import InMemoryKeyValueStore

    logger.info("Key-value store: in-memory")
    return InMemoryKeyValueStore()


def create_sources(settings: AggregatorSettings) -> list[ProviderSource]:
    """Simulated providers when AGGREGATOR_SIMULATE is set, HTTP otherwise."""
    if settings.simulate:
        from .simulator import SimulatedMarket, SimulatedProviderSource

        logger.info("Provider sources: simulated")
        market = SimulatedMarket(step_seconds=settings.refresh_interval or settings.cache_ttl)
        return [SimulatedProviderSource(market, p.name, p.role) for p in DEFAULT_PROVIDERS]

    from .http_source import HttpProviderSource

    logger.info("Provider sources: HTTP (%s)", ", ".join(p.name for p in DEFAULT_PROVIDERS))
    return [
        HttpProviderSource(
            p.name,
            settings.provider_urls.get(p.name, p.default_url),
            p.role,
            payload_key=p.payload_key,
            timeout=settings.fetch_timeout,
            attempts=settings.fetch_attempts,
            backoff_base=settings.backoff_base,
        )
        for p in DEFAULT_PROVIDERS
    ]


def create_aggregator_service(settings: AggregatorSettings | None = None) -> AggregatorService:
    """Build a ready-to-use service. Nothing is fetched until the first read."""
    settings = settings or AggregatorSettings.from_env()
    store = create_store(settings)
    broadcaster = DeltaBroadcaster(
        store,
        threshold=settings.volatility_threshold,
        cap=settings.broadcast_cap,
    )
    return AggregatorService(
        create_sources(settings),
        merge_engine=MergeEngine(native_price_usd=settings.native_price_usd),
        broadcaster=broadcaster,
        store=store,
        ttl=settings.cache_ttl,
        cycle_deadline=settings.cycle_deadline,
        retention=settings.snapshot_retention,
    )
