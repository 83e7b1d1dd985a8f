"""Refresh-cycle orchestration and the query entry point."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from .broadcaster import DeltaBroadcaster
from .cache import SnapshotCache
from .errors import AggregationFailure
from .fetcher import fetch_all
from .interface import PRIMARY, KeyValueStore, ProviderSource
from .merge import MergeEngine, ProviderPayload
from .models import Page, Snapshot
from .pagination import paginate

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RefreshReport:
    success: bool
    tokens_count: int
    updates_count: int
    duration_ms: int

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "tokensCount": self.tokens_count,
            "updatesCount": self.updates_count,
            "duration": self.duration_ms,
        }


class AggregatorService:
    """Wires sources, merge engine, snapshot cache and broadcaster together.

    Exactly one source must have the primary role; its data is authoritative.
    Every refresh, whether triggered by a stale read or by refresh(), goes
    through the cache's single-flight guard.
    """

    def __init__(
        self,
        sources: Sequence[ProviderSource],
        *,
        merge_engine: MergeEngine | None = None,
        broadcaster: DeltaBroadcaster | None = None,
        store: KeyValueStore | None = None,
        ttl: float = 30.0,
        cycle_deadline: float = 25.0,
        retention: float = 3600.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        primaries = [s for s in sources if s.role == PRIMARY]
        if len(primaries) != 1:
            raise ValueError(f"expected exactly one primary source, got {len(primaries)}")
        self._sources = list(sources)
        self._merge = merge_engine or MergeEngine(clock=clock)
        self._broadcaster = broadcaster
        self._store = store
        self._deadline = cycle_deadline
        self._last_broadcast = 0  # Size of the batch scheduled on the last commit
        self.cache = SnapshotCache(
            self.run_cycle,
            ttl,
            clock=clock,
            store=store,
            retention=retention,
            on_commit=self._on_commit,
        )

    @property
    def sources(self) -> list[ProviderSource]:
        return list(self._sources)

    @property
    def broadcaster(self) -> DeltaBroadcaster | None:
        return self._broadcaster

    @property
    def store(self) -> KeyValueStore | None:
        return self._store

    async def run_cycle(self) -> Snapshot:
        """Fetch every provider and merge. Never commits anything itself.

        Each provider gets the cycle deadline; one that overruns it is
        abandoned and contributes nothing, the others are merged as usual.
        Raises AggregationFailure when every provider failed or when no
        provider returned any entries.
        """
        started = time.perf_counter()
        outcomes = await fetch_all(self._sources, deadline=self._deadline)

        if not any(outcome.ok for outcome in outcomes):
            raise AggregationFailure("all providers failed")
        if not any(outcome.entries for outcome in outcomes):
            raise AggregationFailure("providers returned empty datasets")

        primary = next(o for o in outcomes if o.source.role == PRIMARY)
        snapshot = self._merge.merge(
            ProviderPayload(primary.source.name, primary.entries),
            [
                ProviderPayload(o.source.name, o.entries)
                for o in outcomes
                if o.source.role != PRIMARY
            ],
        )
        logger.info(
            "Aggregated %d assets in %.0fms",
            len(snapshot),
            (time.perf_counter() - started) * 1000,
        )
        return snapshot

    async def get_page(self, cursor: str | int | None = None, limit: int | None = None) -> Page:
        """Serve one page from the current snapshot.

        Raises InvalidCursor for a malformed cursor and AggregationFailure when
        no snapshot exists and none can be built.
        """
        snapshot = await self.cache.get()
        return paginate(snapshot, cursor, limit)

    async def refresh(self) -> RefreshReport:
        """External trigger: run (or join) a refresh and report on it."""
        started = time.perf_counter()
        generation = self.cache.generation
        self._last_broadcast = 0  # An adopted shared snapshot is not broadcast here.
        snapshot = await self.cache.refresh()
        success = self.cache.generation != generation
        return RefreshReport(
            success=success,
            tokens_count=len(snapshot),
            # A fallback broadcasts nothing.
            updates_count=self._last_broadcast if success else 0,
            duration_ms=int((time.perf_counter() - started) * 1000),
        )

    def _on_commit(self, snapshot: Snapshot) -> None:
        self._last_broadcast = 0
        if self._broadcaster is not None:
            self._last_broadcast = len(self._broadcaster.schedule(snapshot))

    async def close(self) -> None:
        if self._broadcaster is not None:
            await self._broadcaster.drain()
        for source in self._sources:
            await source.close()
        if self._store is not None:
            await self._store.close()
