"""Data models for aggregated asset data."""

from __future__ import annotations

import time
from dataclasses import asdict, dataclass, field


@dataclass(frozen=True, slots=True)
class AssetRecord:
    """One reconciled tradeable asset.

    Market fields come from the primary provider. A record that only a
    secondary provider knows about carries zero volume, liquidity and
    transaction count.
    """

    address: str
    name: str
    ticker: str
    price_usd: float
    price_native: float
    market_cap_native: float = 0.0
    volume_usd: float = 0.0
    volume_native: float = 0.0
    liquidity_native: float = 0.0
    transaction_count: int = 0
    price_change_1h: float = 0.0
    price_change_24h: float = 0.0
    price_change_7d: float = 0.0
    venue: str = ""
    chain_id: str = ""
    last_updated: float = field(default_factory=time.time)  # Unix seconds
    logo_url: str | None = None
    sources: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        data = asdict(self)
        data["sources"] = list(self.sources)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> AssetRecord:
        values = dict(data)
        values["sources"] = tuple(values.get("sources") or ())
        return cls(**values)


@dataclass(frozen=True, slots=True)
class Snapshot:
    """Immutable, ordered result of one aggregation cycle."""

    records: tuple[AssetRecord, ...]
    created_at: float = field(default_factory=time.time)

    def __len__(self) -> int:
        return len(self.records)

    def age(self, now: float) -> float:
        return max(0.0, now - self.created_at)

    def to_dict(self) -> dict:
        return {
            "created_at": self.created_at,
            "records": [record.to_dict() for record in self.records],
        }

    @classmethod
    def from_dict(cls, data: dict) -> Snapshot:
        return cls(
            records=tuple(AssetRecord.from_dict(r) for r in data.get("records", [])),
            created_at=float(data["created_at"]),
        )


@dataclass(frozen=True, slots=True)
class PartialUpdate:
    """Price delta pushed to listeners. Never persisted."""

    address: str
    price_usd: float
    price_native: float
    last_updated: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class Page:
    """One cursor-addressed slice of a snapshot."""

    records: tuple[AssetRecord, ...]
    next_cursor: str | None
    total: int

    def to_dict(self) -> dict:
        """Serialize in the shape the query endpoint returns."""
        return {
            "tokens": [record.to_dict() for record in self.records],
            "nextCursor": self.next_cursor,
            "total": self.total,
        }
