"""User profile, preferences, favorites and administration routes."""

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from app.api.pagination import page_params
from app.api.schemas import (
    ChangePasswordRequest,
    FavoriteStatusResponse,
    PageResponse,
    PreferencesSchema,
    ProfileUpdateRequest,
    UserResponse,
    UserStatisticsResponse,
)
from app.core.dependencies import get_current_user, get_user_service, require_admin
from app.domain.entities import PageRequest, User, UserPreferences
from app.domain.exceptions import NotFoundError
from app.domain.services import IUserService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/users", tags=["users"])

UserPage = Annotated[
    PageRequest,
    Depends(
        page_params(
            ("created_at", "username", "email", "last_login_at"),
            default_size=20,
            default_sort="created_at",
        )
    ),
]
Service = Annotated[IUserService, Depends(get_user_service)]
CurrentUser = Annotated[User, Depends(get_current_user)]
Admin = Annotated[User, Depends(require_admin)]


# ---------------------------------------------------------------------------
# Own profile
# ---------------------------------------------------------------------------
@router.get("/profile", response_model=UserResponse)
async def get_profile(current_user: CurrentUser):
    return UserResponse.model_validate(current_user)


@router.put("/profile", response_model=UserResponse)
async def update_profile(body: ProfileUpdateRequest, current_user: CurrentUser, service: Service):
    try:
        updated = await service.update_profile(current_user.id, body.model_dump(exclude_unset=True))
        return UserResponse.model_validate(updated)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.put("/profile/preferences", response_model=UserResponse)
async def update_preferences(body: PreferencesSchema, current_user: CurrentUser, service: Service):
    """Replace the user's preferences as a whole."""
    preferences = UserPreferences(**body.model_dump())
    updated = await service.update_preferences(current_user.id, preferences)
    return UserResponse.model_validate(updated)


@router.post("/change-password")
async def change_password(body: ChangePasswordRequest, current_user: CurrentUser, service: Service):
    try:
        await service.change_password(current_user.id, body.old_password, body.new_password)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return {"detail": "Password changed successfully"}


# ---------------------------------------------------------------------------
# Favorites
# ---------------------------------------------------------------------------
@router.post("/favorites/{artifact_id}", response_model=UserResponse)
async def add_favorite(artifact_id: UUID, current_user: CurrentUser, service: Service):
    """Add an artifact to favorites; adding it twice keeps one entry."""
    return UserResponse.model_validate(await service.add_favorite(current_user.id, artifact_id))


@router.delete("/favorites/{artifact_id}", response_model=UserResponse)
async def remove_favorite(artifact_id: UUID, current_user: CurrentUser, service: Service):
    return UserResponse.model_validate(await service.remove_favorite(current_user.id, artifact_id))


@router.get("/favorites/{artifact_id}/check", response_model=FavoriteStatusResponse)
async def check_favorite(artifact_id: UUID, current_user: CurrentUser, service: Service):
    return FavoriteStatusResponse(
        artifact_id=artifact_id,
        is_favorite=await service.is_favorite(current_user.id, artifact_id),
    )


# ---------------------------------------------------------------------------
# Administration
# ---------------------------------------------------------------------------
@router.get("", response_model=PageResponse[UserResponse])
async def list_users(page: UserPage, service: Service, admin: Admin):
    return PageResponse[UserResponse].from_page(await service.list_users(page), UserResponse)


@router.get("/search", response_model=list[UserResponse])
async def search_users(
    service: Service, admin: Admin, q: Annotated[str, Query(min_length=1)]
):
    return [UserResponse.model_validate(u) for u in await service.search(q)]


@router.get("/statistics", response_model=UserStatisticsResponse)
async def user_statistics(service: Service, admin: Admin):
    return UserStatisticsResponse(**await service.statistics())


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: UUID, service: Service, admin: Admin):
    user = await service.get_user(user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return UserResponse.model_validate(user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(user_id: UUID, service: Service, admin: Admin) -> Response:
    try:
        await service.delete_user(user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
