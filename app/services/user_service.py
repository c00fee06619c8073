"""User profile, preference and favorites service."""

import logging
from typing import Optional
from uuid import UUID

from app.core.security import hash_password, verify_password
from app.domain.entities import Page, PageRequest, User, UserPreferences
from app.domain.exceptions import NotFoundError
from app.domain.repositories import IUserRepository
from app.domain.services import IUserService

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("email", "first_name", "last_name")


class UserService(IUserService):

    def __init__(self, user_repository: IUserRepository):
        self.user_repository = user_repository

    async def get_user(self, user_id: UUID) -> Optional[User]:
        return await self.user_repository.get_by_id(user_id)

    async def _modify(self, user_id: UUID, mutate) -> User:
        updated = await self.user_repository.modify(user_id, mutate)
        if updated is None:
            raise NotFoundError("User", user_id)
        return updated

    async def update_profile(self, user_id: UUID, changes: dict) -> User:
        email = changes.get("email")
        if email:
            owner = await self.user_repository.get_by_email(email)
            if owner is not None and owner.id != user_id:
                raise ValueError("Email is already in use")

        def apply(user: User) -> User:
            for key in PROFILE_FIELDS:
                if changes.get(key) is not None:
                    setattr(user, key, changes[key])
            return user

        return await self._modify(user_id, apply)

    async def update_preferences(self, user_id: UUID, preferences: UserPreferences) -> User:
        def apply(user: User) -> User:
            user.preferences = preferences
            return user

        updated = await self._modify(user_id, apply)
        logger.info("Preferences updated for user %s", user_id)
        return updated

    async def delete_user(self, user_id: UUID) -> None:
        if not await self.user_repository.delete(user_id):
            raise NotFoundError("User", user_id)
        logger.info("User deleted: %s", user_id)

    async def add_favorite(self, user_id: UUID, artifact_id: UUID) -> User:
        def apply(user: User) -> User:
            if artifact_id not in user.favorite_artifacts:
                user.favorite_artifacts = [*user.favorite_artifacts, artifact_id]
            return user

        return await self._modify(user_id, apply)

    async def remove_favorite(self, user_id: UUID, artifact_id: UUID) -> User:
        def apply(user: User) -> User:
            user.favorite_artifacts = [a for a in user.favorite_artifacts if a != artifact_id]
            return user

        return await self._modify(user_id, apply)

    async def is_favorite(self, user_id: UUID, artifact_id: UUID) -> bool:
        user = await self.user_repository.get_by_id(user_id)
        return user is not None and artifact_id in user.favorite_artifacts

    async def change_password(self, user_id: UUID, old_password: str, new_password: str) -> None:
        user = await self.user_repository.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        if not verify_password(old_password, user.hashed_password):
            raise ValueError("Current password is incorrect")
        user.hashed_password = hash_password(new_password)
        await self.user_repository.update(user)
        logger.info("Password changed for user %s", user_id)

    async def list_users(self, page: PageRequest) -> Page[User]:
        return await self.user_repository.list_page(page)

    async def search(self, query: str) -> list[User]:
        return await self.user_repository.search(query)

    async def statistics(self) -> dict:
        return {
            "total_users": await self.user_repository.count(),
            "enabled_users": await self.user_repository.count(enabled=True),
            "users_by_role": await self.user_repository.count_by_role(),
        }
