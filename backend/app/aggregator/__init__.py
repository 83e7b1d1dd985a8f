"""Token aggregation subsystem.

Public API:
    AssetRecord, Snapshot, PartialUpdate, Page - Immutable data models
    MergeEngine         - Reconciles primary and secondary provider payloads
    SnapshotCache       - Cache-aside snapshot store with single-flight refresh
    paginate            - Cursor pagination over a snapshot
    DeltaBroadcaster    - Publishes volatile-asset price deltas
    AggregatorService   - Refresh cycle plus query entry point
    RefreshScheduler    - Fixed-interval refresh trigger
    create_aggregator_service - Factory that selects HTTP or simulated sources
    create_token_router - FastAPI router factory for the query and SSE endpoints
"""

from .broadcaster import DeltaBroadcaster, select_volatile
from .cache import CacheState, SnapshotCache
from .config import AggregatorSettings
from .errors import (
    AggregationFailure,
    AggregatorError,
    CacheUnavailable,
    FetchError,
    InvalidCursor,
)
from .factory import create_aggregator_service
from .merge import MergeEngine, ProviderPayload
from .models import AssetRecord, Page, PartialUpdate, Snapshot
from .pagination import paginate
from .routes import create_token_router
from .scheduler import RefreshScheduler
from .service import AggregatorService

__all__ = [
    "AggregationFailure",
    "AggregatorError",
    "AggregatorService",
    "AggregatorSettings",
    "AssetRecord",
    "CacheState",
    "CacheUnavailable",
    "DeltaBroadcaster",
    "FetchError",
    "InvalidCursor",
    "MergeEngine",
    "Page",
    "PartialUpdate",
    "ProviderPayload",
    "RefreshScheduler",
    "Snapshot",
    "SnapshotCache",
    "create_aggregator_service",
    "create_token_router",
    "paginate",
    "select_volatile",
]
