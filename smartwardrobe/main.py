"""
FastAPI application entry point
Main application factory and configuration
Reference: https://fastapi.tiangolo.com/tutorial/bigger-applications/
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from smartwardrobe import models  # noqa: F401  (registers tables on Base.metadata)
from smartwardrobe.api.v1.api import api_router
from smartwardrobe.core.config import settings
from smartwardrobe.core.database import Base, engine

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events
    Validates the database connection (and optionally creates tables) on startup
    Reference: https://fastapi.tiangolo.com/advanced/events/
    """
    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            if settings.CREATE_TABLES_ON_STARTUP:
                await conn.run_sync(Base.metadata.create_all)
                logger.info("Database tables created (if missing)")
        logger.info("Database connection successful")
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        logger.error(
            "Please check:\n"
            "1. DATABASE_URL is set correctly\n"
            "2. The database is reachable from this host\n"
            "3. The credentials are correct"
        )
        # Don't raise - the app still starts so /health keeps answering

    yield

    await engine.dispose()
    logger.info("Database connections closed")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description="Digital wardrobe API with rule-driven smart collections",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.get("/")
async def root():
    """
    Root endpoint
    Provides basic information about the API
    """
    return {
        "message": f"Welcome to {settings.PROJECT_NAME}",
        "version": settings.VERSION,
        "docs": "/docs",
    }
