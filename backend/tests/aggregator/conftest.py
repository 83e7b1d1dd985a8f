"""Fixtures for aggregator tests."""

import pytest

from app.aggregator.interface import PRIMARY, SECONDARY

from fakes import FakeClock, FakeSource, make_pair


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def primary_source() -> FakeSource:
    return FakeSource(
        "DexScreener",
        PRIMARY,
        entries=[
            make_pair("A", volume=1000.0, change_1h=7.5),
            make_pair("B", price_usd="2.00", price_native="0.02", volume=5000.0),
            make_pair("C", volume=1000.0, change_1h=-12.0),
        ],
    )


@pytest.fixture
def secondary_source() -> FakeSource:
    return FakeSource(
        "Jupiter",
        SECONDARY,
        entries=[
            {"address": "A", "logoURI": "a.png"},
            {"address": "Z", "name": "Zed", "symbol": "ZED", "price": 0.5},
        ],
    )
