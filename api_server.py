from __future__ import annotations  # FastAPI server exposing the coaching API

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import ai_router, get_runtime, router
from storage.migrate import migrate
from config.settings import settings
from observability.logger import setup_logging


logger = logging.getLogger(__name__)
setup_logging()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:  # Migrate storage and run the lifecycle sweeper
    migrate(settings.DB_PATH)
    runtime = get_runtime()
    runtime.lifecycle.start()
    try:
        yield
    finally:
        runtime.lifecycle.stop()
        runtime.gateway.close()
        logger.info("Coaching API shut down")


app = FastAPI(title="STAR Coaching API", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"]
)
app.include_router(router)
app.include_router(ai_router)


@app.get("/health")
def health() -> dict:  # Liveness probe
    return {"status": "ok"}
