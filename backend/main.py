"""
Care Worklist FastAPI Backend

Entry point for the API server that exposes the daily worklist to the
caregiver app.

Architecture:
- FastAPI handles HTTP routing and response validation
- Pydantic schemas ensure type safety
- WorklistAggregator fuses assignments, vitals and assessments
- Providers talk to the facility backend (or a local fixture)

Run with:
    uvicorn backend.main:app --reload --port 8100

Or:
    python -m backend.main
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.routers import worklist_router
from backend.dependencies import get_config, get_provider

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Runs startup and shutdown tasks:
    - Startup: Load configuration
    - Shutdown: Close provider connections
    """
    config = get_config()
    logger.info("Config loaded from: %s", config.config_dir)
    logger.info("Facility timezone: %s", config.facility_timezone)

    yield

    await get_provider().aclose()
    logger.info("Shutting down...")


# Create FastAPI app
app = FastAPI(
    title="Care Worklist API",
    description="""
    Daily worklist for caregivers.

    ## Features

    - **Worklist**: One vital-signs and one assessment task per assigned resident,
      marked completed when a record exists for today (facility timezone)
    - **Filter & sort**: Search by title, resident or room; filter by status; sort by
      due time, priority or resident name
    - **Stats**: Completion summary for the day
    """,
    version="1.0.0",
    lifespan=lifespan,
)

# Configure CORS for the caregiver app
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:8081",  # Expo dev server
        "http://localhost:19006",
        "http://localhost:3000",
        "http://127.0.0.1:8081",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(worklist_router)


@app.get("/")
async def root():
    """API root - returns basic info and available endpoints."""
    return {
        "name": "Care Worklist API",
        "version": "1.0.0",
        "docs": "/docs",
        "endpoints": {
            "worklist": "/worklist",
            "stats": "/worklist/stats",
        }
    }


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    return {"status": "healthy", "timezone": get_config().facility_timezone}


# Allow running directly with: python -m backend.main
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "backend.main:app",
        host="0.0.0.0",
        port=8100,
        reload=True,
    )
