"""Authentication service."""

import logging
from datetime import datetime, timedelta
from typing import Optional
from uuid import uuid4

from app.core.config import settings
from app.core.security import create_access_token, hash_password, verify_password
from app.domain.entities import Role, User, UserPreferences
from app.domain.repositories import IUserRepository

logger = logging.getLogger(__name__)


class AuthService:
    """Handles signup and login."""

    def __init__(self, user_repository: IUserRepository):
        self.user_repository = user_repository

    async def signup(
        self,
        username: str,
        email: str,
        password: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        role: Role = Role.USER,
        preferences: Optional[UserPreferences] = None,
    ) -> User:
        """Register a new user with default preferences."""
        if await self.user_repository.get_by_username(username):
            raise ValueError("Username already taken")
        if await self.user_repository.get_by_email(email):
            raise ValueError("Email already registered")

        user = User(
            id=uuid4(),
            username=username,
            email=email,
            hashed_password=hash_password(password),
            role=role,
            first_name=first_name,
            last_name=last_name,
            preferences=preferences or UserPreferences(),
        )
        created = await self.user_repository.create(user)
        logger.info("User registered: %s (%s)", created.id, created.username)
        return created

    async def login(self, login: str, password: str) -> str:
        """Authenticate by username or email and return a JWT access token."""
        user = await self.user_repository.get_by_username(login)
        if user is None and "@" in login:
            user = await self.user_repository.get_by_email(login)
        if not user or not verify_password(password, user.hashed_password):
            raise ValueError("Invalid username or password")
        if not user.enabled:
            raise ValueError("Account is disabled")

        def touch(u: User) -> User:
            u.last_login_at = datetime.utcnow()
            return u

        await self.user_repository.modify(user.id, touch)

        token = create_access_token(
            data={"sub": str(user.id), "role": user.role.value},
            expires_delta=timedelta(minutes=settings.access_token_expire_minutes),
        )
        logger.info("User logged in: %s", user.id)
        return token
