from __future__ import annotations
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.api import router
from logging_config import configure_logging
from services.pipeline import build_default_pipeline


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    pipeline = build_default_pipeline()
    pipeline.start()
    try:
        yield
    finally:
        pipeline.shutdown()
        build_default_pipeline.cache_clear()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="P1 Telegram Reader",
        description="Reads DSMR P1 telegrams from a serial port and forwards them to InfluxDB.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.include_router(router)
    return app

app = create_app()
