"""Recommendation API routes.

``for-me``, ``by-interests`` and ``based-on-favorites`` accept anonymous
callers, who receive the popularity list.
"""

import logging
from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from app.api.schemas import ArtifactResponse
from app.core.dependencies import get_optional_user, get_recommendation_service
from app.domain.entities import Artifact, User
from app.domain.services import IRecommendationService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/recommendations", tags=["recommendations"])

Service = Annotated[IRecommendationService, Depends(get_recommendation_service)]
MaybeUser = Annotated[Optional[User], Depends(get_optional_user)]
Count = Annotated[int, Query(ge=0, le=100)]


def _list(artifacts: list[Artifact]) -> list[ArtifactResponse]:
    return [ArtifactResponse.model_validate(a) for a in artifacts]


def _user_id(user: Optional[User]) -> Optional[UUID]:
    return user.id if user else None


@router.get("/for-me", response_model=list[ArtifactResponse])
async def recommendations_for_me(service: Service, current_user: MaybeUser, count: Count = 6):
    """Personal recommendations: interest matches, then popular, then random."""
    return _list(await service.recommend_for(_user_id(current_user), count))


@router.get("/user/{user_id}", response_model=list[ArtifactResponse])
async def recommendations_for_user(user_id: UUID, service: Service, count: Count = 6):
    return _list(await service.recommend_for(user_id, count))


@router.get("/similar/{artifact_id}", response_model=list[ArtifactResponse])
async def similar_artifacts(artifact_id: UUID, service: Service, count: Count = 6):
    return _list(await service.similar_to(artifact_id, count))


@router.get("/by-interests", response_model=list[ArtifactResponse])
async def recommendations_by_interests(
    service: Service, current_user: MaybeUser, count: Count = 6
):
    return _list(await service.by_interests(_user_id(current_user), count))


@router.get("/based-on-favorites", response_model=list[ArtifactResponse])
async def recommendations_from_favorites(
    service: Service, current_user: MaybeUser, count: Count = 6
):
    return _list(await service.favorites_based(_user_id(current_user), count))


@router.get("/popular", response_model=list[ArtifactResponse])
async def popular_artifacts(service: Service, count: Count = 6):
    return _list(await service.popular(count))


@router.get("/trending", response_model=list[ArtifactResponse])
async def trending_artifacts(service: Service, count: Count = 6):
    """Most-interacted artifacts of the last 24 hours."""
    return _list(await service.trending(count))


@router.get("/category/{category}", response_model=list[ArtifactResponse])
async def recommendations_by_category(category: str, service: Service, count: Count = 6):
    return _list(await service.by_category(category, count))
