"""Tests for concurrent provider fetching."""

import asyncio
import logging
import time

import pytest

from app.aggregator.errors import FetchTimeout, RateLimited
from app.aggregator.fetcher import fetch_all
from app.aggregator.interface import SECONDARY

from fakes import FakeSource, make_pair


class SlowSource(FakeSource):
    """FakeSource that takes `delay` seconds to answer."""

    def __init__(self, name: str, delay: float, **kwargs) -> None:
        super().__init__(name, **kwargs)
        self.delay = delay

    async def fetch(self):
        await asyncio.sleep(self.delay)
        return await super().fetch()


class BrokenSource(FakeSource):
    async def fetch(self):
        raise KeyError("provider bug")


@pytest.mark.asyncio
class TestFetchAll:
    """Unit tests for fetch_all."""

    async def test_all_succeed(self, primary_source, secondary_source):
        outcomes = await fetch_all([primary_source, secondary_source])

        assert [o.source for o in outcomes] == [primary_source, secondary_source]
        assert all(o.ok for o in outcomes)
        assert len(outcomes[0].entries) == 3
        assert len(outcomes[1].entries) == 2

    async def test_failure_is_isolated(self, primary_source, secondary_source):
        secondary_source.error = RateLimited("Jupiter")

        outcomes = await fetch_all([primary_source, secondary_source])

        assert outcomes[0].ok
        assert len(outcomes[0].entries) == 3
        assert not outcomes[1].ok
        assert isinstance(outcomes[1].error, RateLimited)
        assert outcomes[1].entries == []

    async def test_every_source_is_called_once(self, primary_source, secondary_source):
        primary_source.fail()

        await fetch_all([primary_source, secondary_source])

        assert primary_source.calls == 1
        assert secondary_source.calls == 1

    async def test_unexpected_exception_is_recorded(self, primary_source, caplog):
        broken = BrokenSource("Broken", SECONDARY)

        with caplog.at_level(logging.ERROR, logger="app.aggregator.fetcher"):
            outcomes = await fetch_all([primary_source, broken])

        assert outcomes[0].ok
        assert isinstance(outcomes[1].error, KeyError)
        assert "Broken: unexpected fetch failure" in caplog.text

    async def test_failed_providers_are_logged(self, caplog):
        sources = [
            FakeSource("DexScreener", error=FetchTimeout("DexScreener", 8.0)),
            FakeSource("Jupiter", SECONDARY, entries=[{"address": "A"}]),
        ]

        with caplog.at_level(logging.WARNING, logger="app.aggregator.fetcher"):
            await fetch_all(sources)

        assert "Providers failed this cycle: DexScreener" in caplog.text

    async def test_sources_are_fetched_concurrently(self):
        sources = [
            SlowSource("DexScreener", 0.2, entries=[make_pair("A")]),
            SlowSource("Jupiter", 0.2, role=SECONDARY, entries=[{"address": "A"}]),
        ]

        started = time.perf_counter()
        outcomes = await fetch_all(sources)
        elapsed = time.perf_counter() - started

        assert all(o.ok for o in outcomes)
        assert elapsed < 0.35

    async def test_order_follows_sources_not_completion(self):
        sources = [
            SlowSource("DexScreener", 0.1, entries=[make_pair("A")]),
            SlowSource("Jupiter", 0.0, role=SECONDARY, entries=[{"address": "B"}]),
        ]

        outcomes = await fetch_all(sources)

        assert [o.source.name for o in outcomes] == ["DexScreener", "Jupiter"]

    async def test_no_sources(self):
        assert await fetch_all([]) == []

    async def test_deadline_abandons_only_the_slow_source(self, primary_source, caplog):
        slow = SlowSource("Jupiter", 5.0, role=SECONDARY, entries=[{"address": "A"}])

        with caplog.at_level(logging.WARNING, logger="app.aggregator.fetcher"):
            started = time.perf_counter()
            outcomes = await fetch_all([primary_source, slow], deadline=0.1)
            elapsed = time.perf_counter() - started

        assert outcomes[0].ok
        assert len(outcomes[0].entries) == 3
        assert isinstance(outcomes[1].error, FetchTimeout)
        assert outcomes[1].entries == []
        assert elapsed < 1.0
        assert "Jupiter: abandoned at the 0.1s cycle deadline" in caplog.text

    async def test_deadline_not_reached(self, primary_source):
        outcomes = await fetch_all([primary_source], deadline=5.0)
        assert outcomes[0].ok
