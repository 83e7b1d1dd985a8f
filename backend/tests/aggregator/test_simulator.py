"""Tests for the simulated providers."""

import pytest

from app.aggregator.interface import PRIMARY, SECONDARY
from app.aggregator.merge import MergeEngine, ProviderPayload
from app.aggregator.seed_tokens import SECONDARY_ONLY_TOKENS, SEED_TOKENS
from app.aggregator.simulator import NATIVE_ADDRESS, SimulatedMarket, SimulatedProviderSource


class TestSimulatedMarket:
    """Unit tests for the GBM market model."""

    def test_step_returns_every_asset(self):
        market = SimulatedMarket(seed=1)
        assert set(market.step()) == set(SEED_TOKENS)

    def test_prices_are_positive(self):
        market = SimulatedMarket(event_probability=0.5, seed=2)
        for _ in range(2_000):
            assert all(price > 0 for price in market.step().values())

    def test_initial_prices_match_seeds(self):
        market = SimulatedMarket(seed=3)
        for address, (_, _, price) in SEED_TOKENS.items():
            assert market.price(address) == price

    def test_unknown_address(self):
        assert SimulatedMarket(seed=4).price("nope") is None

    def test_seeded_runs_are_reproducible(self):
        first = SimulatedMarket(seed=42)
        second = SimulatedMarket(seed=42)
        for _ in range(5):
            assert first.step() == second.step()

    def test_shock_moves_price_sharply(self):
        market = SimulatedMarket(event_probability=1.0, seed=5)
        before = {a: market.price(a) for a in market.addresses}

        after = market.step()

        for address, price in after.items():
            assert abs(price / before[address] - 1) > 0.04

    def test_no_shocks_stay_close(self):
        market = SimulatedMarket(event_probability=0.0, seed=6)
        before = {a: market.price(a) for a in market.addresses}

        after = market.step()

        for address, price in after.items():
            assert abs(price / before[address] - 1) < 0.02


class TestPayloadShapes:
    """Payloads look like the real providers' responses."""

    def test_pairs(self):
        market = SimulatedMarket(seed=7)
        market.step()

        pairs = market.pairs()

        assert len(pairs) == len(SEED_TOKENS)
        pair = pairs[0]
        assert pair["baseToken"]["address"] == NATIVE_ADDRESS
        assert isinstance(pair["priceUsd"], str)
        assert float(pair["priceNative"]) == pytest.approx(1.0)
        assert set(pair["priceChange"]) == {"h1", "h24"}
        assert pair["txns"]["h24"]["buys"] >= pair["txns"]["h24"]["sells"]

    def test_shock_shows_in_hourly_change(self):
        market = SimulatedMarket(event_probability=1.0, seed=8)
        market.step()

        assert all(abs(p["priceChange"]["h1"]) > 4.0 for p in market.pairs())

    def test_listings(self):
        market = SimulatedMarket(seed=9)

        listings = market.listings()
        addresses = [entry["address"] for entry in listings]

        assert set(SECONDARY_ONLY_TOKENS) <= set(addresses)
        assert all(entry["price"] > 0 for entry in listings if entry["address"] in SECONDARY_ONLY_TOKENS)
        assert any("logoURI" in entry for entry in listings)

    def test_merged_snapshot(self):
        market = SimulatedMarket(seed=10)
        market.step()

        snapshot = MergeEngine().merge(
            ProviderPayload("DexScreener", market.pairs()),
            [ProviderPayload("Jupiter", market.listings())],
        )

        assert len(snapshot) == len(SEED_TOKENS) + len(SECONDARY_ONLY_TOKENS)
        assert snapshot.records[0].address == NATIVE_ADDRESS
        tail = {r.address for r in snapshot.records[-len(SECONDARY_ONLY_TOKENS):]}
        assert tail == set(SECONDARY_ONLY_TOKENS)
        assert any(r.venue == "Raydium CLMM" for r in snapshot.records)


@pytest.mark.asyncio
class TestSimulatedProviderSource:
    """Integration tests for SimulatedProviderSource."""

    async def test_primary_steps_market(self):
        market = SimulatedMarket(seed=11)
        source = SimulatedProviderSource(market, "DexScreener", PRIMARY)
        before = market.price(NATIVE_ADDRESS)

        entries = await source.fetch()

        assert len(entries) == len(SEED_TOKENS)
        assert market.price(NATIVE_ADDRESS) != before

    async def test_secondary_only_reads(self):
        market = SimulatedMarket(seed=12)
        source = SimulatedProviderSource(market, "Jupiter", SECONDARY)
        before = market.price(NATIVE_ADDRESS)

        entries = await source.fetch()

        assert entries
        assert market.price(NATIVE_ADDRESS) == before
