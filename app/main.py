from __future__ import annotations
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI

from app.api import router
from logging_config import configure_logging
from services.pipeline import RequestPipeline, build_default_pipeline


def create_app(pipeline: Optional[RequestPipeline] = None) -> FastAPI:
    """Build the application.

    A ``pipeline`` passed in is used as-is and left open on shutdown; otherwise
    the default one is built on startup and closed with the app.
    """
    configure_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app.state.pipeline = pipeline or build_default_pipeline()
        try:
            yield
        finally:
            if pipeline is None:
                await app.state.pipeline.aclose()
                build_default_pipeline.cache_clear()

    app = FastAPI(
        title="Temperature Log",
        description="Stores temperature readings enriched with outside weather and serves them by time window.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.include_router(router)
    return app

app = create_app()
