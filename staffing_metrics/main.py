"""
FastAPI application entry point for the Staffing Metrics API.

The lifespan opens the report store and both ATS mirror pools once, keeps
them on app.state for request dependencies, and closes them on shutdown.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from staffing_metrics import __version__
from staffing_metrics.api import api_router
from staffing_metrics.core.config import get_settings
from staffing_metrics.core.database import Databases

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    On startup connect every pool; on shutdown close them.

    A failed connection leaves app.state.databases unset, and endpoints that
    need it answer 503.
    """
    logger.info("Staffing Metrics API starting")
    databases = Databases.from_settings(get_settings())
    app.state.databases = None
    try:
        await databases.connect()
        app.state.databases = databases
        logger.info("Database connection pools initialized")
    except Exception as e:
        logger.error(f"Failed to initialize databases: {e}")

    yield

    logger.info("Staffing Metrics API shutting down")
    try:
        await databases.close()
        logger.info("Database connection pools closed")
    except Exception as e:
        logger.error(f"Error closing database pools: {e}")


app = FastAPI(
    title="Staffing Metrics API",
    version=__version__,
    description=(
        "Weekly stack ranking, financials and hours reporting across the "
        "Symplr and Bullhorn ATS mirrors."
    ),
    lifespan=lifespan,
)

app.include_router(api_router)


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring and load balancers."""
    return {"status": "healthy"}


@app.get("/")
async def root():
    return {
        "name": "Staffing Metrics API",
        "version": __version__,
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


# Run with uvicorn when executed directly
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "staffing_metrics.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
