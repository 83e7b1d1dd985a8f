"""Reconciliation of provider payloads into one ordered snapshot.

Conflict policy:
  - The primary provider is authoritative for every price, volume and market
    field. Secondary providers never overwrite those.
  - A secondary provider may fill a missing logo and is appended to the
    record's sources.
  - An address only a secondary provider knows is admitted as a low-confidence
    record (zero volume, liquidity and transaction count) if it carries a
    positive price.
  - Records are ordered by volume_usd descending; ties keep insertion order,
    which is primary payload order followed by secondary-only records.
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace
from typing import Any

from .models import AssetRecord, Snapshot

logger = logging.getLogger(__name__)

# Display names for DEX identifiers; unknown ids pass through unchanged.
VENUE_LABELS: dict[str, str] = {
    "raydium": "Raydium CLMM",
}


@dataclass(frozen=True, slots=True)
class ProviderPayload:
    """Entries returned by one provider, tagged with the provider's name."""

    provider: str
    entries: Sequence[dict[str, Any]]


def normalize_address(value: Any) -> str | None:
    """Strip whitespace; addresses are case-sensitive so case is preserved."""
    if value is None:
        return None
    address = str(value).strip()
    return address or None


def _to_float(value: Any) -> float:
    """Parse provider numbers, which may arrive as strings. Bad input is 0."""
    if isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def _non_negative(value: Any) -> float:
    return max(0.0, _to_float(value))


def _nested(entry: dict[str, Any], *keys: str) -> Any:
    current: Any = entry
    for key in keys:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


class MergeEngine:
    """Builds a Snapshot from one primary and any number of secondary payloads."""

    def __init__(
        self,
        native_price_usd: float = 180.0,
        default_chain: str = "solana",
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._native_price_usd = native_price_usd
        self._default_chain = default_chain
        self._clock = clock

    def merge(
        self,
        primary: ProviderPayload,
        secondaries: Sequence[ProviderPayload] = (),
    ) -> Snapshot:
        now = self._clock()
        registry: dict[str, AssetRecord] = {}

        for entry in primary.entries:
            record = self._from_primary(entry, primary.provider, now)
            if record is not None:
                # Repeated pairs for one asset: later values, first position.
                registry[record.address] = record
        primary_count = len(registry)

        enriched = added = 0
        for payload in secondaries:
            for entry in payload.entries:
                address = normalize_address(
                    entry.get("address") or entry.get("mint") or entry.get("id")
                )
                if address is None:
                    continue
                logo = entry.get("logoURI") or entry.get("icon") or None

                existing = registry.get(address)
                if existing is not None:
                    registry[address] = self._enrich(existing, payload.provider, logo)
                    enriched += 1
                    continue

                record = self._from_secondary(entry, address, payload.provider, logo, now)
                if record is not None:
                    registry[address] = record
                    added += 1

        records = sorted(registry.values(), key=lambda r: r.volume_usd, reverse=True)
        logger.debug(
            "Merged %d primary, %d enrichments, %d secondary-only records",
            primary_count,
            enriched,
            added,
        )
        return Snapshot(records=tuple(records), created_at=now)

    # --- Internals ---

    def _from_primary(self, pair: dict[str, Any], provider: str, now: float) -> AssetRecord | None:
        address = normalize_address(_nested(pair, "baseToken", "address"))
        if address is None:
            return None

        price_usd = _non_negative(pair.get("priceUsd"))
        price_native = _non_negative(pair.get("priceNative"))
        # USD per native unit; a zero or missing denominator is replaced by 1.
        usd_per_native = (price_usd / (price_native or 1.0)) or 1.0
        volume_usd = _non_negative(_nested(pair, "volume", "h24"))
        buys = int(_non_negative(_nested(pair, "txns", "h24", "buys")))
        sells = int(_non_negative(_nested(pair, "txns", "h24", "sells")))
        dex_id = str(pair.get("dexId") or "")

        return AssetRecord(
            address=address,
            name=str(_nested(pair, "baseToken", "name") or "Unknown"),
            ticker=str(_nested(pair, "baseToken", "symbol") or "?"),
            price_usd=price_usd,
            price_native=price_native,
            market_cap_native=_non_negative(pair.get("fdv")) / usd_per_native,
            volume_usd=volume_usd,
            volume_native=volume_usd / usd_per_native,
            liquidity_native=_non_negative(_nested(pair, "liquidity", "usd")) / usd_per_native,
            transaction_count=buys + sells,
            price_change_1h=_to_float(_nested(pair, "priceChange", "h1")),
            price_change_24h=_to_float(_nested(pair, "priceChange", "h24")),
            price_change_7d=_to_float(_nested(pair, "priceChange", "d7")),
            venue=VENUE_LABELS.get(dex_id, dex_id),
            chain_id=str(pair.get("chainId") or self._default_chain),
            last_updated=now,
            logo_url=_nested(pair, "info", "imageUrl") or None,
            sources=(provider,),
        )

    def _from_secondary(
        self,
        entry: dict[str, Any],
        address: str,
        provider: str,
        logo: str | None,
        now: float,
    ) -> AssetRecord | None:
        price_usd = _non_negative(entry.get("price") or entry.get("usdPrice"))
        if price_usd <= 0:
            return None
        price_native = price_usd / self._native_price_usd if self._native_price_usd > 0 else 0.0
        return AssetRecord(
            address=address,
            name=str(entry.get("name") or "Unknown"),
            ticker=str(entry.get("symbol") or "?"),
            price_usd=price_usd,
            price_native=price_native,
            venue=provider,
            chain_id=self._default_chain,
            last_updated=now,
            logo_url=logo,
            sources=(provider,),
        )

    @staticmethod
    def _enrich(record: AssetRecord, provider: str, logo: str | None) -> AssetRecord:
        changes: dict[str, Any] = {}
        if logo and not record.logo_url:
            changes["logo_url"] = logo
        if provider not in record.sources:
            changes["sources"] = (*record.sources, provider)
        return replace(record, **changes) if changes else record
