"""
Route Drafts API

FastAPI application for incremental route drafting and promotion.
"""

from contextlib import asynccontextmanager
import logging
import sys

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from routedrafts import __version__
from routedrafts.config import settings
from routedrafts.db.session import init_db
from routedrafts.api.v1.router import api_router


# === Logging Setup ===
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout),
    ]
)
logger = logging.getLogger(__name__)


# === Lifespan ===
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info("Starting Route Drafts API...")
    await init_db()
    logger.info("Database initialized")

    if not settings.media_configured:
        logger.warning("Media service not configured: photos and logos stay pendingUpload")

    yield

    logger.info("Shutting down...")


# === App Creation ===
app = FastAPI(
    title="Route Drafts API",
    description="Route draft synchronization and promotion",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)


# === Middleware ===
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# === Routes ===
app.include_router(api_router, prefix="/api/v1")


# === Health Check ===
@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": __version__}
