"""Main FastAPI application."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.artifact_routes import router as artifact_router
from app.api.auth_routes import router as auth_router
from app.api.home_routes import router as home_router
from app.api.interaction_routes import router as interaction_router
from app.api.recommendation_routes import router as recommendation_router
from app.api.story_routes import router as story_router
from app.api.task_routes import router as task_router
from app.api.user_routes import router as user_router
from app.core.config import settings
from app.domain.exceptions import NotFoundError, StoreUnavailableError
from app.infrastructure.database.connection import async_session_maker, init_db
from app.infrastructure.database.repository import ArtifactRepository, UserRepository
from app.services.sample_data import seed_sample_data

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info("Starting CulturalVault application")
    await init_db()
    logger.info("Database initialized")
    if settings.seed_sample_data:
        async with async_session_maker() as session:
            await seed_sample_data(ArtifactRepository(session), UserRepository(session))
    yield
    logger.info("Shutting down CulturalVault application")


app = FastAPI(
    title="CulturalVault",
    description="Cultural-heritage artifacts, stories and recommendations",
    version=settings.app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StoreUnavailableError)
async def store_unavailable_handler(request: Request, exc: StoreUnavailableError):
    logger.error("Store unavailable while serving %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Storage backend unavailable"},
    )


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


app.include_router(home_router)
app.include_router(auth_router)
app.include_router(artifact_router)
app.include_router(story_router)
app.include_router(user_router)
app.include_router(interaction_router)
app.include_router(recommendation_router)
app.include_router(task_router)


@app.get("/health")
async def health_check():
    """Liveness probe."""
    return {"status": "healthy"}
