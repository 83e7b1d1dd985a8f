"""Cache-aside snapshot store with stale reads and single-flight refresh."""

from __future__ import annotations

import asyncio
import enum
import json
import logging
import time
from collections.abc import Awaitable, Callable

from .errors import AggregationFailure, CacheUnavailable
from .interface import KeyValueStore
from .models import Snapshot

logger = logging.getLogger(__name__)

SNAPSHOT_KEY = "aggregated:tokens:solana"


class CacheState(str, enum.Enum):
    EMPTY = "empty"
    FRESH = "fresh"
    STALE = "stale"
    REFRESHING = "refreshing"


class SnapshotCache:
    """Owns the current Snapshot, its TTL clock and the refresh lock.

    Readers:  query endpoint (get), broadcaster (via on_commit).
    Writers:  refresh cycles only, one at a time.

    - EMPTY: get() waits for a full refresh and raises AggregationFailure if
      it fails.
    - FRESH: get() returns the snapshot without any I/O.
    - STALE: get() returns the stale snapshot immediately and starts a
      background refresh.
    - REFRESHING: every caller, including refresh() from a scheduler, joins
      the refresh already in flight instead of starting another.

    A failed refresh keeps the previous snapshot. When a KeyValueStore is
    given, committed snapshots are also written to it so other processes can
    adopt them; an unreachable store only loses that sharing.
    """

    def __init__(
        self,
        loader: Callable[[], Awaitable[Snapshot]],
        ttl: float = 30.0,
        *,
        clock: Callable[[], float] = time.time,
        store: KeyValueStore | None = None,
        key: str = SNAPSHOT_KEY,
        retention: float = 3600.0,
        on_commit: Callable[[Snapshot], None] | None = None,
    ) -> None:
        self._loader = loader
        self._ttl = ttl
        self._clock = clock
        self._store = store
        self._key = key
        self._retention = retention
        self._on_commit = on_commit
        self._snapshot: Snapshot | None = None
        self._refresh_task: asyncio.Task[Snapshot] | None = None
        self._generation: int = 0  # Bumped on every swap

    @property
    def snapshot(self) -> Snapshot | None:
        return self._snapshot

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def ttl(self) -> float:
        return self._ttl

    @property
    def state(self) -> CacheState:
        if self._refresh_task is not None and not self._refresh_task.done():
            return CacheState.REFRESHING
        if self._snapshot is None:
            return CacheState.EMPTY
        if self._is_fresh(self._snapshot):
            return CacheState.FRESH
        return CacheState.STALE

    async def get(self) -> Snapshot:
        """Return the best available snapshot, refreshing as needed."""
        snapshot = self._snapshot
        if snapshot is None:
            logger.info("Snapshot cache empty, waiting for refresh")
            return await self.refresh()

        if self._is_fresh(snapshot):
            logger.debug("Snapshot cache hit (generation %d)", self._generation)
            return snapshot

        logger.debug(
            "Snapshot stale (age %.1fs >= ttl %.1fs), serving it and refreshing",
            snapshot.age(self._clock()),
            self._ttl,
        )
        self._start_refresh()
        return snapshot

    async def refresh(self) -> Snapshot:
        """Run a refresh cycle, or join the one already running.

        Returns the new snapshot, or the previous one if the cycle failed.
        Raises AggregationFailure when the cycle failed and there is nothing
        to fall back on.
        """
        # Shielded so a cancelled caller does not abort the shared refresh.
        return await asyncio.shield(self._start_refresh())

    # --- Internals ---

    def _is_fresh(self, snapshot: Snapshot) -> bool:
        return snapshot.age(self._clock()) < self._ttl

    def _start_refresh(self) -> asyncio.Task[Snapshot]:
        if self._refresh_task is None or self._refresh_task.done():
            self._refresh_task = asyncio.create_task(
                self._run_refresh(), name="snapshot-refresh"
            )
            self._refresh_task.add_done_callback(self._on_refresh_done)
        return self._refresh_task

    async def _run_refresh(self) -> Snapshot:
        previous = self._snapshot

        # Another process may have committed a newer snapshot.
        shared = await self._read_shared()
        if shared is not None and (previous is None or shared.created_at > previous.created_at):
            if self._is_fresh(shared):
                logger.info("Adopted shared snapshot with %d records", len(shared))
                self._swap(shared)
                return shared
            previous = shared

        try:
            snapshot = await self._loader()
        except AggregationFailure as exc:
            if previous is None:
                logger.error("Refresh failed with no snapshot to fall back on: %s", exc)
                raise
            logger.warning(
                "Refresh failed (%s); serving previous snapshot aged %.1fs",
                exc,
                previous.age(self._clock()),
            )
            if previous is not self._snapshot:
                self._swap(previous)
            return previous

        self._swap(snapshot)
        await self._write_shared(snapshot)
        if self._on_commit is not None:
            try:
                self._on_commit(snapshot)
            except Exception:
                logger.exception("Snapshot commit listener failed")
        return snapshot

    def _swap(self, snapshot: Snapshot) -> None:
        self._snapshot = snapshot
        self._generation += 1

    def _on_refresh_done(self, task: asyncio.Task[Snapshot]) -> None:
        # Background refreshes have no awaiting caller; consume their errors.
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None and not isinstance(exc, AggregationFailure):
            logger.error("Snapshot refresh crashed", exc_info=exc)

    async def _read_shared(self) -> Snapshot | None:
        if self._store is None:
            return None
        try:
            raw = await self._store.get(self._key)
        except CacheUnavailable as exc:
            logger.warning("Shared snapshot unavailable: %s", exc)
            return None
        if raw is None:
            return None
        try:
            return Snapshot.from_dict(json.loads(raw))
        except (ValueError, KeyError, TypeError) as exc:
            logger.warning("Discarding unreadable shared snapshot: %s", exc)
            return None

    async def _write_shared(self, snapshot: Snapshot) -> None:
        if self._store is None:
            return
        data = json.dumps(snapshot.to_dict()).encode("utf-8")
        try:
            await self._store.set(self._key, data, self._retention)
        except CacheUnavailable as exc:
            logger.warning("Could not share snapshot: %s", exc)
