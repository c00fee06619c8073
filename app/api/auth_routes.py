"""Authentication API routes."""

import logging
import time
from typing import Annotated

import redis.asyncio as aioredis
from fastapi import APIRouter, Depends, HTTPException, status

from app.api.schemas import LoginRequest, SignupRequest, TokenResponse, UserResponse
from app.core.dependencies import get_current_user, get_user_repository, oauth2_scheme
from app.core.redis_client import get_redis, revoke_token
from app.core.security import decode_access_token
from app.domain.entities import User
from app.domain.repositories import IUserRepository
from app.services.auth_service import AuthService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/auth", tags=["auth"])


def get_auth_service(
    user_repo: Annotated[IUserRepository, Depends(get_user_repository)],
) -> AuthService:
    return AuthService(user_repository=user_repo)


@router.post("/signup", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    body: SignupRequest,
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> UserResponse:
    """Register a new user with the USER role and default preferences."""
    try:
        user = await auth_service.signup(
            body.username,
            body.email,
            body.password,
            first_name=body.first_name,
            last_name=body.last_name,
        )
        return UserResponse.model_validate(user)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/login", response_model=TokenResponse)
async def login(
    body: LoginRequest,
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> TokenResponse:
    """Authenticate by username or email and return a JWT."""
    try:
        token = await auth_service.login(body.login, body.password)
        return TokenResponse(access_token=token)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))


@router.post("/signout", status_code=status.HTTP_200_OK)
async def signout(
    current_user: Annotated[User, Depends(get_current_user)],
    token: Annotated[str, Depends(oauth2_scheme)],
    redis_client: Annotated[aioredis.Redis, Depends(get_redis)],
) -> dict:
    """Sign out the current user.

    The token's ``jti`` goes on the Redis blacklist for the rest of the
    token's lifetime, so ``get_current_user`` rejects it from now on.
    """
    payload = decode_access_token(token)
    if payload:
        jti: str | None = payload.get("jti")
        exp: int | None = payload.get("exp")
        if jti and exp:
            ttl = max(int(exp - time.time()), 1)
            await revoke_token(redis_client, jti, ttl)
            logger.info("Token jti=%s revoked (TTL=%ds) for user %s", jti, ttl, current_user.id)
    return {"detail": "Successfully signed out"}
