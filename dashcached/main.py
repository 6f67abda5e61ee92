"""Main FastAPI application for dashcached daemon.

This module creates and configures the FastAPI application that exposes
the dashcache library via REST API.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from dashcache.cache import CacheScheduler
from dashcache.config import load_config
from dashcache.runtime import build_runtime

from .routers import cache_router

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager.

    Builds the cache runtime, starts the status poll and daily refresh jobs,
    and tears both down on shutdown.

    Args:
        app: FastAPI application instance
    """
    # Startup
    settings = load_config()
    logging.getLogger().setLevel(settings.log_level.upper())
    logger.info(f"Starting dashcached daemon on {settings.host}:{settings.port}")

    runtime = build_runtime(settings)
    app.state.runtime = runtime

    scheduler = CacheScheduler(runtime.manager, poll_seconds=settings.status_poll_seconds)
    await scheduler.start()
    app.state.scheduler = scheduler

    yield

    # Shutdown
    logger.info("Shutting down dashcached daemon")
    await scheduler.stop()
    await runtime.aclose()


# Create FastAPI application
app = FastAPI(
    title="dashcached",
    description="REST API daemon for the dashboard query cache",
    version="0.1.0",
    lifespan=lifespan,
)

# Add CORS middleware for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",  # Vite dev server
        "http://localhost:5174",  # Alternative port
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(cache_router)


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint.

    Returns:
        Welcome message with API information
    """
    return {
        "name": "dashcached",
        "version": "0.1.0",
        "description": "REST API daemon for the dashboard query cache",
        "docs": "/docs",
        "openapi": "/openapi.json",
    }
