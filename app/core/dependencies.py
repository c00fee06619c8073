"""Dependency injection container."""

from typing import Annotated, Optional
from uuid import UUID

import redis.asyncio as aioredis
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.redis_client import get_redis, is_token_revoked
from app.core.security import decode_access_token
from app.domain.entities import Role, User
from app.domain.repositories import (
    IArtifactRepository,
    IStoryRepository,
    IUserInteractionRepository,
    IUserRepository,
)
from app.domain.services import (
    IArtifactService,
    IInteractionService,
    IRecommendationService,
    IStoryService,
    IUserService,
)
from app.infrastructure.database.connection import get_db
from app.infrastructure.database.repository import (
    ArtifactRepository,
    StoryRepository,
    UserInteractionRepository,
    UserRepository,
)
from app.services.artifact_service import ArtifactService
from app.services.interaction_service import InteractionService
from app.services.recommendation import RecommendationService
from app.services.story_service import StoryService
from app.services.user_service import UserService

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


# ---------------------------------------------------------------------------
# Repository providers
# ---------------------------------------------------------------------------
async def get_artifact_repository(
    session: AsyncSession = Depends(get_db),
) -> IArtifactRepository:
    return ArtifactRepository(session)


async def get_story_repository(session: AsyncSession = Depends(get_db)) -> IStoryRepository:
    return StoryRepository(session)


async def get_user_repository(session: AsyncSession = Depends(get_db)) -> IUserRepository:
    return UserRepository(session)


async def get_interaction_repository(
    session: AsyncSession = Depends(get_db),
) -> IUserInteractionRepository:
    return UserInteractionRepository(session)


# ---------------------------------------------------------------------------
# Service providers
# ---------------------------------------------------------------------------
async def get_artifact_service(
    repo: IArtifactRepository = Depends(get_artifact_repository),
) -> IArtifactService:
    return ArtifactService(artifact_repository=repo)


async def get_story_service(
    repo: IStoryRepository = Depends(get_story_repository),
) -> IStoryService:
    return StoryService(story_repository=repo)


async def get_user_service(
    repo: IUserRepository = Depends(get_user_repository),
) -> IUserService:
    return UserService(user_repository=repo)


async def get_interaction_service(
    repo: IUserInteractionRepository = Depends(get_interaction_repository),
) -> IInteractionService:
    return InteractionService(interaction_repository=repo)


async def get_recommendation_service(
    artifact_repo: IArtifactRepository = Depends(get_artifact_repository),
    user_repo: IUserRepository = Depends(get_user_repository),
    interaction_service: IInteractionService = Depends(get_interaction_service),
) -> IRecommendationService:
    return RecommendationService(
        artifact_repository=artifact_repo,
        user_repository=user_repo,
        interaction_service=interaction_service,
    )


# ---------------------------------------------------------------------------
# Auth dependencies
# ---------------------------------------------------------------------------
async def _resolve_user(
    token: str, user_repo: IUserRepository, redis_client: aioredis.Redis
) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    payload = decode_access_token(token)
    if payload is None:
        raise credentials_exception

    jti: str | None = payload.get("jti")
    if jti and await is_token_revoked(redis_client, jti):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has been revoked",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id_str: str | None = payload.get("sub")
    if user_id_str is None:
        raise credentials_exception
    try:
        user_id = UUID(user_id_str)
    except ValueError:
        raise credentials_exception
    user = await user_repo.get_by_id(user_id)
    if user is None or not user.enabled:
        raise credentials_exception
    return user


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    user_repo: IUserRepository = Depends(get_user_repository),
    redis_client: aioredis.Redis = Depends(get_redis),
) -> User:
    """Decode JWT and return the authenticated user.

    Tokens whose ``jti`` is on the Redis revocation blacklist (signed out)
    are rejected.
    """
    return await _resolve_user(token, user_repo, redis_client)


async def get_optional_user(
    token: Optional[str] = Depends(optional_oauth2_scheme),
    user_repo: IUserRepository = Depends(get_user_repository),
    redis_client: aioredis.Redis = Depends(get_redis),
) -> Optional[User]:
    """Like ``get_current_user`` but ``None`` for anonymous requests."""
    if not token:
        return None
    return await _resolve_user(token, user_repo, redis_client)


async def require_admin(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    if current_user.role != Role.ADMIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin role required")
    return current_user
