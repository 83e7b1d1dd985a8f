"""FastAPI binding: paginated token query, refresh trigger and SSE updates."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncGenerator, AsyncIterator

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import JSONResponse, StreamingResponse

from .errors import AggregationFailure, CacheUnavailable, InvalidCursor
from .interface import KeyValueStore
from .service import AggregatorService

logger = logging.getLogger(__name__)


def create_token_router(service: AggregatorService) -> APIRouter:
    """Create the token API router bound to one AggregatorService."""
    router = APIRouter(prefix="/api", tags=["tokens"])

    @router.get("/tokens")
    async def list_tokens(
        cursor: str | None = Query(default=None),
        limit: int | None = Query(default=None),
    ) -> dict:
        """One page of aggregated tokens: {tokens, nextCursor, total}."""
        try:
            page = await service.get_page(cursor, limit)
        except InvalidCursor as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        except AggregationFailure as e:
            logger.error("Token query failed: %s", e)
            raise HTTPException(status_code=503, detail="Failed to fetch tokens") from e
        return page.to_dict()

    @router.post("/tokens/refresh")
    async def refresh_tokens() -> JSONResponse:
        """Trigger a refresh cycle, joining one already in progress."""
        try:
            report = await service.refresh()
        except AggregationFailure as e:
            return JSONResponse(status_code=503, content={"success": False, "error": str(e)})
        return JSONResponse(content=report.to_dict())

    @router.get("/stream/updates")
    async def stream_updates(request: Request) -> StreamingResponse:
        """SSE endpoint relaying volatile-token broadcasts.

            data: [{"address": "...", "price_usd": 1.23, ...}, ...]

        Messages published while a client is not connected are not replayed.
        """
        store = service.store
        broadcaster = service.broadcaster
        if store is None or broadcaster is None:
            raise HTTPException(status_code=404, detail="Update stream not configured")
        return StreamingResponse(
            _generate_events(store, broadcaster.channel, request),
            media_type="text/event-stream",
            headers={
                "Cache-Control": "no-cache",
                "Connection": "keep-alive",
                "X-Accel-Buffering": "no",
            },
        )

    return router


async def _generate_events(
    store: KeyValueStore,
    channel: str,
    request: Request,
    poll_interval: float = 1.0,
) -> AsyncGenerator[str, None]:
    """Yield one SSE event per broadcast until the client disconnects."""
    yield "retry: 1000\n\n"

    client_ip = request.client.host if request.client else "unknown"
    try:
        subscription: AsyncIterator[bytes] = store.subscribe(channel)
    except CacheUnavailable as e:
        logger.warning("Update stream unavailable for %s: %s", client_ip, e)
        return
    logger.info("SSE client connected: %s", client_ip)

    pending: asyncio.Future[bytes] | None = None
    try:
        while True:
            if await request.is_disconnected():
                logger.info("SSE client disconnected: %s", client_ip)
                break
            if pending is None:
                pending = asyncio.ensure_future(anext(subscription))
            done, _ = await asyncio.wait({pending}, timeout=poll_interval)
            if not done:
                continue
            try:
                message = pending.result()
            except StopAsyncIteration:
                break
            except CacheUnavailable as e:
                logger.warning("Update stream lost for %s: %s", client_ip, e)
                break
            finally:
                pending = None
            yield f"data: {message.decode('utf-8')}\n\n"
    except asyncio.CancelledError:
        logger.info("SSE stream cancelled for: %s", client_ip)
    finally:
        if pending is not None:
            pending.cancel()
            # The iterator must be idle before it can be closed.
            await asyncio.gather(pending, return_exceptions=True)
        await subscription.aclose()
