"""FastAPI application entry point."""

import logging
import os
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mediaflow.collaborators.http import close_generation_client
from mediaflow.db.database import close_database, init_database
from mediaflow.services.session import init_session_manager, shutdown_session_manager

# Configure logging
log_level = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stdout,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown."""
    # Startup
    await init_database()
    await init_session_manager()
    logger.info("MediaFlow API started")

    yield

    # Shutdown
    await shutdown_session_manager()
    await close_generation_client()
    await close_database()


app = FastAPI(
    title="MediaFlow",
    description="Compose and run image and video generation workflows",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware - allow any localhost port for the editor dev server
app.add_middleware(
    CORSMiddleware,
    allow_origin_regex=r"^http://localhost(:\d+)?$",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


# Import and include routers after app is created to avoid circular imports
from mediaflow.api import execute, graph, sessions, workflows  # noqa: E402

app.include_router(sessions.router, prefix="/api/v1", tags=["sessions"])
app.include_router(graph.router, prefix="/api/v1", tags=["graph"])
app.include_router(execute.router, prefix="/api/v1", tags=["execute"])
app.include_router(workflows.router, prefix="/api/v1", tags=["workflows"])
