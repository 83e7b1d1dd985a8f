"""Offset-cursor pagination over a snapshot.

Cursors are only meaningful against the snapshot that issued them. A page
sequence that spans a snapshot replacement may repeat or skip records.
"""

from __future__ import annotations

from .errors import InvalidCursor
from .models import Page, Snapshot

DEFAULT_LIMIT = 25
MIN_LIMIT = 1
MAX_LIMIT = 100


def parse_cursor(cursor: str | int | None) -> int:
    """Decode a cursor into an offset. None and "" mean the first page."""
    if cursor is None or cursor == "":
        return 0
    if isinstance(cursor, bool):
        raise InvalidCursor(f"invalid cursor: {cursor!r}")
    try:
        offset = int(cursor)
    except (TypeError, ValueError) as exc:
        raise InvalidCursor(f"invalid cursor: {cursor!r}") from exc
    if offset < 0:
        raise InvalidCursor(f"cursor must be non-negative: {cursor!r}")
    return offset


def clamp_limit(limit: int | None) -> int:
    """None and 0 mean the default page size."""
    if not limit:
        return DEFAULT_LIMIT
    return max(MIN_LIMIT, min(MAX_LIMIT, int(limit)))


def paginate(snapshot: Snapshot, cursor: str | int | None = None, limit: int | None = None) -> Page:
    offset = parse_cursor(cursor)
    size = clamp_limit(limit)
    end = offset + size
    next_cursor = str(end) if end < len(snapshot) else None
    return Page(records=snapshot.records[offset:end], next_cursor=next_cursor, total=len(snapshot))
