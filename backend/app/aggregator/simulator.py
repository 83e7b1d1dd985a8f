"""Simulated providers for running without network access.

A GBM price model stands in for live markets. It only ever produces provider
payloads; the merge engine treats them exactly like real responses.
"""

from __future__ import annotations

import logging
import math
from collections import deque
from typing import Any

import numpy as np

from .interface import PRIMARY, ProviderSource
from .seed_tokens import (
    DEFAULT_PARAMS,
    SECONDARY_ONLY_TOKENS,
    SEED_TOKENS,
    SIMULATED_VENUES,
    TOKEN_PARAMS,
)

logger = logging.getLogger(__name__)

NATIVE_ADDRESS = "So11111111111111111111111111111111111111112"


class SimulatedMarket:
    """Geometric Brownian Motion over the seed assets.

    Math:
        S(t+dt) = S(t) * exp(-sigma^2/2 * dt + sigma * sqrt(dt) * Z)

    Markets trade around the clock, so dt is the step length as a fraction of
    a calendar year. Occasional shocks of 5-12% give the broadcaster something
    to report. The 1h change compares against the price one hour of steps ago.
    """

    SECONDS_PER_YEAR = 365 * 24 * 3600

    def __init__(
        self,
        step_seconds: float = 30.0,
        event_probability: float = 0.02,
        seed: int | None = None,
    ) -> None:
        self._rng = np.random.default_rng(seed)
        self._dt = step_seconds / self.SECONDS_PER_YEAR
        self._event_prob = event_probability
        self._addresses = list(SEED_TOKENS)
        self._prices = np.array([SEED_TOKENS[a][2] for a in self._addresses], dtype=float)
        params = [TOKEN_PARAMS.get(a, DEFAULT_PARAMS) for a in self._addresses]
        self._sigmas = np.array([p["sigma"] for p in params])
        self._volumes = np.array([p["volume"] for p in params], dtype=float)
        self._liquidity = np.array([p["liquidity"] for p in params], dtype=float)
        self._open = self._prices.copy()
        window = max(1, int(3600 / step_seconds))
        self._history: deque[np.ndarray] = deque([self._prices.copy()], maxlen=window + 1)

    @property
    def addresses(self) -> list[str]:
        return list(self._addresses)

    def step(self) -> dict[str, float]:
        """Advance every asset by one step. Returns {address: usd_price}."""
        n = len(self._addresses)
        z = self._rng.standard_normal(n)
        drift = -0.5 * self._sigmas**2 * self._dt
        diffusion = self._sigmas * math.sqrt(self._dt) * z
        self._prices *= np.exp(drift + diffusion)

        shocked = self._rng.random(n) < self._event_prob
        if shocked.any():
            magnitude = self._rng.uniform(0.05, 0.12, n)
            sign = self._rng.choice([-1.0, 1.0], n)
            self._prices[shocked] *= 1 + magnitude[shocked] * sign[shocked]
            logger.debug("Simulated shock on %d assets", int(shocked.sum()))

        self._volumes *= np.exp(self._rng.normal(0.0, 0.02, n))
        self._history.append(self._prices.copy())
        return dict(zip(self._addresses, self._prices.tolist()))

    def price(self, address: str) -> float | None:
        try:
            return float(self._prices[self._addresses.index(address)])
        except ValueError:
            return None

    def pairs(self) -> list[dict[str, Any]]:
        """Primary-provider shaped entries (DexScreener pair objects)."""
        native_usd = self.price(NATIVE_ADDRESS) or 1.0
        change_1h = (self._prices / self._history[0] - 1) * 100
        change_24h = (self._prices / self._open - 1) * 100
        pairs = []
        for i, address in enumerate(self._addresses):
            name, symbol, _ = SEED_TOKENS[address]
            price = float(self._prices[i])
            trades = int(self._volumes[i] / 900)
            pairs.append(
                {
                    "chainId": "solana",
                    "dexId": SIMULATED_VENUES[i % len(SIMULATED_VENUES)],
                    "baseToken": {"address": address, "name": name, "symbol": symbol},
                    "priceUsd": f"{price:.10g}",
                    "priceNative": f"{price / native_usd:.10g}",
                    "volume": {"h24": round(float(self._volumes[i]), 2)},
                    "liquidity": {"usd": round(float(self._liquidity[i]), 2)},
                    "fdv": round(price * 1_000_000_000, 2),
                    "txns": {"h24": {"buys": trades // 2 + trades % 2, "sells": trades // 2}},
                    "priceChange": {
                        "h1": round(float(change_1h[i]), 2),
                        "h24": round(float(change_24h[i]), 2),
                    },
                }
            )
        return pairs

    def listings(self) -> list[dict[str, Any]]:
        """Secondary-provider shaped entries (token list with logos)."""
        listings = [
            {
                "address": address,
                "name": SEED_TOKENS[address][0],
                "symbol": SEED_TOKENS[address][1],
                "logoURI": f"https://static.example/tokens/{address}.png",
            }
            for address in self._addresses[::2]
        ]
        for address, (name, symbol, price) in SECONDARY_ONLY_TOKENS.items():
            listings.append(
                {
                    "address": address,
                    "name": name,
                    "symbol": symbol,
                    "price": price * float(np.exp(self._rng.normal(0.0, 0.01))),
                }
            )
        return listings


class SimulatedProviderSource(ProviderSource):
    """ProviderSource that serves payloads from a shared SimulatedMarket.

    The primary source advances the market once per fetch; secondary sources
    only read it, so all sources in one cycle agree on prices.
    """

    def __init__(self, market: SimulatedMarket, name: str, role: str = PRIMARY) -> None:
        self.name = name
        self.role = role
        self._market = market

    async def fetch(self) -> list[dict[str, Any]]:
        if self.role == PRIMARY:
            self._market.step()
            entries = self._market.pairs()
        else:
            entries = self._market.listings()
        logger.debug("%s (simulated): %d entries", self.name, len(entries))
        return entries
