"""
Flight Log Analysis - FastAPI Backend

Main application entry point and configuration.
"""

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from flightlog.api.logs import analyze_router, folder_router, router as logs_router
from flightlog.services.repository import get_repository, init_repository


# Configure logging
logging.basicConfig(
    level=os.getenv("FLIGHTLOG_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


APP_NAME = "Flight Log Analysis"
APP_VERSION = "0.1.0"

# Default data folder (can be overridden via API or environment)
DEFAULT_DATA_FOLDER = Path("./data/logs")
DATA_FOLDER_ENV = "FLIGHTLOG_DATA_FOLDER"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info(f"Starting {APP_NAME} backend")

    repo = get_repository()
    if repo.data_folder is None:
        data_folder = Path(os.getenv(DATA_FOLDER_ENV, str(DEFAULT_DATA_FOLDER)))
        if data_folder.exists():
            init_repository(data_folder)
            logger.info(f"Initialized repository with folder: {data_folder}")
        else:
            logger.info(f"Default data folder not found: {data_folder}")
            logger.info("Use POST /folder to set data folder")

    yield

    logger.info(f"Shutting down {APP_NAME} backend")


app = FastAPI(
    title=APP_NAME,
    description="""
    Backend API for drone blackbox flight log analysis.

    ## Features
    - Read blackbox CSV exports with vendor-specific column names
    - Normalize time bases and units into chart series and a GPS flight path
    - Detect flight events (battery, vibration, motor saturation, errors, failsafes)
    - Serve a compact flight summary as context for an analysis agent

    ## Data Flow
    1. Set data folder via POST /folder
    2. List available logs via GET /logs
    3. Get chart data via GET /logs/{id}/series
    4. Get the flight summary via GET /logs/{id}/summary or /context
    """,
    version=APP_VERSION,
    lifespan=lifespan,
)


# CORS middleware (allow all origins for development)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


app.include_router(logs_router)
app.include_router(analyze_router)
app.include_router(folder_router)


@app.get("/")
async def root():
    """Root endpoint - basic health check."""
    return {
        "name": APP_NAME,
        "version": APP_VERSION,
        "status": "running",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    repo = get_repository()
    return {
        "status": "healthy",
        "data_folder": str(repo.data_folder) if repo.data_folder else None,
        "log_count": repo.log_count,
    }
