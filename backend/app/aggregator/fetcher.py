"""Concurrent fetch across every configured provider."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from .errors import FetchError, FetchTimeout
from .interface import ProviderSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FetchOutcome:
    """Result of one provider fetch. A failed provider has no entries."""

    source: ProviderSource
    entries: list[dict[str, Any]] = field(default_factory=list)
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def _fetch_within(source: ProviderSource, deadline: float | None) -> list[dict[str, Any]]:
    if deadline is None:
        return await source.fetch()
    try:
        return await asyncio.wait_for(source.fetch(), timeout=deadline)
    except asyncio.TimeoutError:
        logger.warning(
            "%s: abandoned at the %.1fs cycle deadline",
            source.name,
            deadline,
            extra={"provider": source.name, "outcome": "exhausted"},
        )
        raise FetchTimeout(source.name, deadline) from None


async def fetch_all(
    sources: Sequence[ProviderSource], deadline: float | None = None
) -> list[FetchOutcome]:
    """Fetch all sources in parallel and wait for every outcome.

    A failing provider never aborts the others; its outcome carries the error
    and an empty entry list. A provider still running after `deadline`
    seconds is cancelled and fails with FetchTimeout. Outcomes are returned
    in `sources` order.
    """
    results = await asyncio.gather(
        *(_fetch_within(source, deadline) for source in sources), return_exceptions=True
    )

    outcomes: list[FetchOutcome] = []
    for source, result in zip(sources, results):
        if isinstance(result, FetchError):
            outcomes.append(FetchOutcome(source=source, error=result))
        elif isinstance(result, BaseException):
            logger.error(
                "%s: unexpected fetch failure",
                source.name,
                exc_info=result,
                extra={"provider": source.name, "outcome": "exhausted"},
            )
            outcomes.append(FetchOutcome(source=source, error=result))
        else:
            outcomes.append(FetchOutcome(source=source, entries=result))

    failed = [o.source.name for o in outcomes if not o.ok]
    if failed:
        logger.warning("Providers failed this cycle: %s", ", ".join(failed))
    return outcomes
