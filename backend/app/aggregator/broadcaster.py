"""Volatility-based price-delta broadcasting."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from collections.abc import Callable

from .interface import KeyValueStore
from .models import PartialUpdate, Snapshot

logger = logging.getLogger(__name__)

UPDATE_CHANNEL = "tokens:updates"


def select_volatile(
    snapshot: Snapshot,
    threshold: float = 5.0,
    cap: int = 10,
    now: float | None = None,
) -> list[PartialUpdate]:
    """Records whose 1h move exceeds threshold, in snapshot order, at most cap."""
    stamp = time.time() if now is None else now
    updates: list[PartialUpdate] = []
    if cap <= 0:
        return updates
    for record in snapshot.records:
        if abs(record.price_change_1h) > threshold:
            updates.append(
                PartialUpdate(
                    address=record.address,
                    price_usd=record.price_usd,
                    price_native=record.price_native,
                    last_updated=stamp,
                )
            )
            if len(updates) >= cap:
                break
    return updates


def encode_updates(updates: list[PartialUpdate]) -> bytes:
    return json.dumps([update.to_dict() for update in updates]).encode("utf-8")


class DeltaBroadcaster:
    """Publishes volatile-asset deltas to a notification channel.

    Delivery is at-most-once: no acknowledgement and no replay. Publish
    failures are logged and never reach the caller.
    """

    def __init__(
        self,
        store: KeyValueStore,
        channel: str = UPDATE_CHANNEL,
        threshold: float = 5.0,
        cap: int = 10,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._channel = channel
        self._threshold = threshold
        self._cap = cap
        self._clock = clock
        self._pending: set[asyncio.Task] = set()

    @property
    def channel(self) -> str:
        return self._channel

    def select(self, snapshot: Snapshot) -> list[PartialUpdate]:
        return select_volatile(snapshot, self._threshold, self._cap, now=self._clock())

    async def publish(self, snapshot: Snapshot) -> list[PartialUpdate]:
        """Publish one batch for snapshot. Returns the batch, possibly empty."""
        updates = self.select(snapshot)
        await self._send(updates)
        return updates

    def schedule(self, snapshot: Snapshot) -> list[PartialUpdate]:
        """Fire-and-forget publish; returns the batch without waiting for delivery."""
        updates = self.select(snapshot)
        if updates:
            task = asyncio.get_running_loop().create_task(
                self._send(updates), name="delta-broadcast"
            )
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)
        else:
            logger.debug("No volatile assets to broadcast")
        return updates

    async def drain(self) -> None:
        """Wait for scheduled publishes. Used at shutdown and in tests."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    async def _send(self, updates: list[PartialUpdate]) -> None:
        if not updates:
            logger.debug("No volatile assets to broadcast")
            return
        try:
            receivers = await self._store.publish(self._channel, encode_updates(updates))
        except Exception as exc:
            logger.warning("Broadcast on %s failed: %s", self._channel, exc)
            return
        logger.info(
            "Broadcast %d volatile updates to %d listeners", len(updates), receivers
        )
