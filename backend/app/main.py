"""ASGI entry point: uvicorn app.main:app"""

from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.aggregator import (
    AggregatorSettings,
    RefreshScheduler,
    create_aggregator_service,
    create_token_router,
)

logger = logging.getLogger(__name__)


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or os.environ.get("LOG_LEVEL", "INFO")).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(settings: AggregatorSettings | None = None) -> FastAPI:
    settings = settings or AggregatorSettings.from_env()
    service = create_aggregator_service(settings)
    scheduler = (
        RefreshScheduler(service, settings.refresh_interval)
        if settings.refresh_interval > 0
        else None
    )

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        if scheduler is not None:
            await scheduler.start()
        try:
            yield
        finally:
            if scheduler is not None:
                await scheduler.stop()
            await service.close()

    app = FastAPI(title="Token Aggregator", lifespan=lifespan)
    app.state.service = service
    app.include_router(create_token_router(service))
    return app


configure_logging()
app = create_app()
