"""Seed assets and per-asset parameters for the simulated providers."""

# address -> (name, ticker, starting USD price)
SEED_TOKENS: dict[str, tuple[str, str, float]] = {
    "So11111111111111111111111111111111111111112": ("Wrapped SOL", "SOL", 180.00),
    "JUPyiwrYJFskUPiHCxpBWVTZxv6uPJpfZbGmBYGcjvK": ("Jupiter", "JUP", 0.85),
    "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263": ("Bonk", "BONK", 0.000021),
    "EKpQGSJtjMFqKZ9KQanSqYXRcF8fBopzLHYxdM65zcjm": ("dogwifhat", "WIF", 1.90),
    "4k3Dyjzvzp8eMZWUXbBCjEvwSkkk59S5iCNLY3QrkX6R": ("Raydium", "RAY", 2.10),
    "HZ1JovNiVvGrGNiiYvEozEVgZ58xaU3RKwX8eACQBCt3": ("Pyth Network", "PYTH", 0.35),
    "7GCihgDB8fe6KNjn2MYtkzZcRjQy3t9GHdC8uHYmW2hr": ("POPCAT", "POPCAT", 0.62),
    "MEW1gQWJ3nEXg2qgERiKu7FAFj79PHvQVREQUzScPP5": ("cat in a dogs world", "MEW", 0.0045),
}

# Listed only by the secondary provider; exercises low-confidence records.
SECONDARY_ONLY_TOKENS: dict[str, tuple[str, str, float]] = {
    "8wXtPeU6557ETkp9WHFY1n1EcU6NxDvbAggHGsMYiHsB": ("Gecko", "GECKO", 0.012),
    "A3eME5CetyZPBoWbRUwY3tSe25S6tb18ba9ZPbWk9eFJ": ("Peng", "PENG", 0.07),
}

# Per-asset simulation parameters
# sigma: annualized volatility
# volume: starting 24h USD volume
# liquidity: pool liquidity in USD
TOKEN_PARAMS: dict[str, dict[str, float]] = {
    "So11111111111111111111111111111111111111112": {"sigma": 0.70, "volume": 95_000_000, "liquidity": 40_000_000},
    "JUPyiwrYJFskUPiHCxpBWVTZxv6uPJpfZbGmBYGcjvK": {"sigma": 1.10, "volume": 12_000_000, "liquidity": 6_000_000},
    "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263": {"sigma": 1.60, "volume": 18_000_000, "liquidity": 4_500_000},
    "EKpQGSJtjMFqKZ9KQanSqYXRcF8fBopzLHYxdM65zcjm": {"sigma": 1.80, "volume": 25_000_000, "liquidity": 5_000_000},
}

DEFAULT_PARAMS: dict[str, float] = {"sigma": 1.50, "volume": 2_000_000, "liquidity": 750_000}

SIMULATED_VENUES: tuple[str, ...] = ("raydium", "orca", "meteora")
