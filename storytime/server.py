"""
StoryTime API Server

FastAPI application providing endpoints for:
- Discovery feeds (newest, algo, hot, personal)
- Featured stories and editorial suggestions
- Story lookup and engagement metrics
- Engagement events and feed actions
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from . import __version__
from .config import config, state
from .database import Database
from .errors import (
    AuthenticationRequiredError,
    InvalidActionError,
    StoreTimeoutError,
    StoryNotFoundError,
    UpstreamQueryError,
)
from .rate_limit import setup_rate_limiting
from .routes import actions_router, discovery_router, misc_router

logger = logging.getLogger(__name__)

STORE_RETRY_AFTER_SECONDS = 1


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize and cleanup application resources."""
    logging.basicConfig(level=config.LOG_LEVEL.upper())

    # Startup - skip if already initialized (e.g., by tests)
    if state.db is None:
        state.db = Database(config.DB_PATH, timeout=config.STORE_TIMEOUT_SECONDS)
        logger.info(f"Database ready at {config.DB_PATH}")

    if config.auth_enabled():
        logger.info("API key authentication enabled")

    yield

    logger.info("StoryTime API shutting down")


app = FastAPI(
    title="StoryTime API",
    version=__version__,
    lifespan=lifespan
)


# ─────────────────────────────────────────────────────────────
# Error Mapping
# ─────────────────────────────────────────────────────────────

@app.exception_handler(StoryNotFoundError)
async def story_not_found_handler(request: Request, exc: StoryNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": exc.message})


@app.exception_handler(AuthenticationRequiredError)
async def auth_required_handler(request: Request, exc: AuthenticationRequiredError) -> JSONResponse:
    return JSONResponse(status_code=401, content={"detail": exc.message})


@app.exception_handler(InvalidActionError)
async def invalid_action_handler(request: Request, exc: InvalidActionError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": exc.message})


@app.exception_handler(StoreTimeoutError)
async def store_timeout_handler(request: Request, exc: StoreTimeoutError) -> JSONResponse:
    logger.warning(f"Store timeout on {exc.source or 'unknown source'}: {exc.message}")
    return JSONResponse(
        status_code=503,
        content={"detail": exc.message},
        headers={"Retry-After": str(STORE_RETRY_AFTER_SECONDS)},
    )


@app.exception_handler(UpstreamQueryError)
async def upstream_error_handler(request: Request, exc: UpstreamQueryError) -> JSONResponse:
    logger.error(f"Store query failed on {exc.source or 'unknown source'}: {exc.message}")
    return JSONResponse(status_code=502, content={"detail": exc.message})


# Include routers
app.include_router(misc_router)
app.include_router(discovery_router)
app.include_router(actions_router)

setup_rate_limiting(app)
