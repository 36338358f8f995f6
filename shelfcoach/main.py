"""Main FastAPI application."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shelfcoach.api.challenge_routes import router as challenge_router
from shelfcoach.api.insight_routes import router as insight_router
from shelfcoach.api.routes import router as books_router
from shelfcoach.core.config import settings
from shelfcoach.infrastructure.database.connection import dispose_db, init_db

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info("Starting ShelfCoach application")
    await init_db()
    logger.info("Database initialized")
    yield
    logger.info("Shutting down ShelfCoach application")
    await dispose_db()


app = FastAPI(
    title="ShelfCoach",
    description="Personal reading coach: keep reading or quit, based on your own history",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(books_router)
app.include_router(challenge_router)
app.include_router(insight_router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
