"""Known market-data providers."""

from __future__ import annotations

from dataclasses import dataclass

from .interface import PRIMARY, SECONDARY


@dataclass(frozen=True, slots=True)
class ProviderSpec:
    name: str
    default_url: str
    role: str
    payload_key: str | None = None
    url_env: str = ""


DEXSCREENER = ProviderSpec(
    name="DexScreener",
    default_url="https://api.dexscreener.com/latest/dex/search?q=solana",
    role=PRIMARY,
    payload_key="pairs",
    url_env="DEXSCREENER_URL",
)

JUPITER = ProviderSpec(
    name="Jupiter",
    default_url="https://lite-api.jup.ag/tokens/v2/search?query=SOL",
    role=SECONDARY,
    url_env="JUPITER_URL",
)

# Fetch order; the first primary provider is the authoritative one.
DEFAULT_PROVIDERS: tuple[ProviderSpec, ...] = (DEXSCREENER, JUPITER)
