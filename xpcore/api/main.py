"""
xpcore.api.main — FastAPI application entry point
==================================================

Run with::

    uvicorn xpcore.api.main:app --reload --port 8000
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

load_dotenv()

from xpcore import __version__  # noqa: E402
from xpcore.api.deps import get_config  # noqa: E402
from xpcore.api.routes.public import router as public_router  # noqa: E402
from xpcore.exceptions import AchievementStoreError, StatsStoreError  # noqa: E402

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
        datefmt="%H:%M:%S",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle — configure logging from config.yaml."""
    cfg = get_config()
    configure_logging(cfg.log_level)
    logger.info(
        "xpcore API started — level curve base=%d factor=%s",
        cfg.level_base, cfg.level_factor,
    )
    yield
    logger.info("xpcore API shutting down")


app = FastAPI(
    title="xpcore Progress API",
    version=__version__,
    lifespan=lifespan,
)


@app.exception_handler(StatsStoreError)
@app.exception_handler(AchievementStoreError)
async def store_unavailable_handler(request: Request, exc: Exception) -> JSONResponse:
    """Storage outages surface as 503 so clients can retry later."""
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Progress tracking is temporarily unavailable."},
    )


app.include_router(public_router, prefix="/api")
