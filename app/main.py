"""
FastAPI application entry point.

This module initializes the FastAPI application, configures middleware,
and registers all API routers.
"""
import logging
import os
from datetime import datetime
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from .core.config import settings
from .core.logging_config import configure_logging

from .api.routers import auth, jobs, workflows
from .domain.jobs import events

# Ensure logging is configured before the application starts serving requests.
configure_logging(settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle - startup and shutdown events."""
    if os.getenv("SKIP_DB_INIT") == "1":
        logger.info("SKIP_DB_INIT=1 detected; skipping database bootstrap during startup")
    else:
        try:
            from .db.session import init_db

            logger.info("Initializing database tables...")
            init_db()
            logger.info("✓ All database tables initialized successfully")
        except Exception as e:
            logger.error(f"Failed to initialize database tables: {e}", exc_info=True)
            raise  # Re-raise to prevent app from starting with broken database

    yield  # Application runs here

    events.shutdown(wait=False)


app = FastAPI(
    title="Workflow Atlas API",
    version="1.0.0",
    description="Authenticated workflow dashboard backend with background AI jobs",
    lifespan=lifespan
)

allowed_origins = [origin.strip() for origin in settings.allowed_origins.split(",") if origin.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router)
app.include_router(workflows.router)
app.include_router(jobs.router)


@app.get("/")
async def root():
    """Root endpoint returning API information."""
    return {
        "message": "Workflow Atlas API",
        "version": "1.0.0"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint for deployment monitoring."""
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "service": "workflow-atlas-api"
    }
