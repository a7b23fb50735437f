"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from backend.app.api import auth, history, ideas, members, rag, reports, websocket
from backend.app.core.config import settings
from backend.app.core.exception_handlers import register_exception_handlers
from backend.app.db.base import engine, Base
# Import all models to register them with SQLAlchemy
from backend.app.models import AuthSession, Document  # noqa: F401
from backend.app.services.enrichment import enricher

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup: Create database tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"[STARTUP] Database ready, embedding provider: {settings.embedding_provider}")

    yield

    # Shutdown: let pending teaser/title tasks settle, then close connections
    if enricher.pending:
        logger.info(f"[SHUTDOWN] Waiting for {enricher.pending} enrichment tasks")
    await enricher.drain()
    await engine.dispose()
    logger.info("[SHUTDOWN] Cleaned up resources")


app = FastAPI(
    title="O-range Portal API",
    description="Member profiles, weekly reports, idea log and RAG search over archived reports",
    version="1.0.0",
    lifespan=lifespan,
)

# Register custom exception handlers
register_exception_handlers(app)

logger.debug(f"[CORS] Allowed origins: {settings.cors_origins_list}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(auth.router, prefix="/api/auth")
app.include_router(members.router, prefix="/api")
app.include_router(reports.router, prefix="/api")
app.include_router(history.router, prefix="/api")
app.include_router(rag.router, prefix="/api")
app.include_router(ideas.router, prefix="/api")
app.include_router(websocket.router)

# Uploaded member images
Path(settings.media_root).mkdir(parents=True, exist_ok=True)
app.mount(settings.media_url_prefix, StaticFiles(directory=settings.media_root), name="media")


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "O-range Portal API",
        "version": "1.0.0",
        "description": "Member profiles, weekly reports, idea log and RAG search over archived reports",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
