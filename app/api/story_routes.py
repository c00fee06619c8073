"""Story API routes (listings, CRUD, feedback, statistics)."""

import logging
from typing import Annotated, Optional
from uuid import UUID, uuid4

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from app.api.pagination import page_params
from app.api.schemas import (
    CountResponse,
    FeedbackRequest,
    GenreStatsResponse,
    PageResponse,
    StoryCreate,
    StoryGenerateRequest,
    StoryResponse,
    StoryUpdate,
)
from app.core.dependencies import get_current_user, get_story_service
from app.domain.entities import (
    GenerationParams,
    PageRequest,
    Role,
    Story,
    StoryFeedback,
    StoryGenre,
    StoryLength,
    User,
)
from app.domain.exceptions import NotFoundError
from app.domain.services import IStoryService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/stories", tags=["stories"])

StoryPage = Annotated[
    PageRequest,
    Depends(
        page_params(
            ("generated_at", "updated_at", "rating", "rating_count", "title"),
            default_size=10,
            default_sort="generated_at",
        )
    ),
]
Service = Annotated[IStoryService, Depends(get_story_service)]
CurrentUser = Annotated[User, Depends(get_current_user)]


def _page(page) -> PageResponse[StoryResponse]:
    return PageResponse[StoryResponse].from_page(page, StoryResponse)


def _params(schema) -> Optional[GenerationParams]:
    return GenerationParams(**schema.model_dump()) if schema else None


async def _owned_story(story_id: UUID, user: User, service: IStoryService) -> Story:
    story = await service.get_story(story_id)
    if story is None:
        raise HTTPException(status_code=404, detail="Story not found")
    if story.user_id != user.id and user.role != Role.ADMIN:
        raise HTTPException(status_code=403, detail="Not the author of this story")
    return story


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------
@router.get("", response_model=PageResponse[StoryResponse])
async def list_stories(
    page: StoryPage,
    service: Service,
    genre: Optional[StoryGenre] = None,
    length: Optional[StoryLength] = None,
    min_rating: Annotated[Optional[float], Query(alias="minRating", ge=0, le=5)] = None,
):
    """All stories, optionally narrowed by genre, length and minimum rating."""
    filters = {"genre": genre, "length": length}
    return _page(await service.list_stories(page, filters=filters, min_rating=min_rating))


@router.get("/artifact/{artifact_id}", response_model=PageResponse[StoryResponse])
async def stories_for_artifact(artifact_id: UUID, page: StoryPage, service: Service):
    return _page(await service.list_stories(page, filters={"artifact_id": artifact_id}))


@router.get("/user/{user_id}", response_model=PageResponse[StoryResponse])
async def stories_for_user(user_id: UUID, page: StoryPage, service: Service):
    return _page(await service.list_stories(page, filters={"user_id": user_id}))


@router.get("/genre/{genre}", response_model=PageResponse[StoryResponse])
async def stories_by_genre(genre: StoryGenre, page: StoryPage, service: Service):
    return _page(await service.list_stories(page, filters={"genre": genre}))


@router.get("/length/{length}", response_model=PageResponse[StoryResponse])
async def stories_by_length(length: StoryLength, page: StoryPage, service: Service):
    return _page(await service.list_stories(page, filters={"length": length}))


@router.get("/search", response_model=PageResponse[StoryResponse])
async def search_stories(page: StoryPage, service: Service, q: Optional[str] = None):
    return _page(await service.search(q, page))


@router.get("/top-rated", response_model=PageResponse[StoryResponse])
async def top_rated_stories(page: StoryPage, service: Service):
    return _page(await service.top_rated(page))


@router.get("/recent", response_model=PageResponse[StoryResponse])
async def recent_stories(page: StoryPage, service: Service):
    return _page(await service.recent(page))


@router.get("/popular", response_model=PageResponse[StoryResponse])
async def popular_stories(
    page: StoryPage,
    service: Service,
    min_rating_count: Annotated[int, Query(alias="minRatingCount", ge=0)] = 5,
):
    return _page(await service.popular(min_rating_count, page))


@router.get("/with-feedback", response_model=PageResponse[StoryResponse])
async def stories_with_feedback(page: StoryPage, service: Service):
    return _page(await service.list_stories(page, has_feedback=True))


@router.get("/without-feedback", response_model=PageResponse[StoryResponse])
async def stories_without_feedback(page: StoryPage, service: Service):
    return _page(await service.list_stories(page, has_feedback=False))


@router.get("/random", response_model=list[StoryResponse])
async def random_stories(service: Service, count: Annotated[int, Query(ge=0)] = 5):
    """Random stories, at most 20."""
    return [StoryResponse.model_validate(s) for s in await service.random(count)]


@router.get("/random/genre/{genre}", response_model=list[StoryResponse])
async def random_stories_by_genre(
    genre: StoryGenre, service: Service, count: Annotated[int, Query(ge=0)] = 5
):
    """Random stories of one genre, at most 10."""
    return [StoryResponse.model_validate(s) for s in await service.random_by_genre(genre, count)]


@router.get("/user/{user_id}/artifact/{artifact_id}", response_model=list[StoryResponse])
async def stories_for_user_artifact(user_id: UUID, artifact_id: UUID, service: Service):
    stories = await service.for_user_artifact(user_id, artifact_id)
    return [StoryResponse.model_validate(s) for s in stories]


@router.get("/user/{user_id}/artifact/{artifact_id}/latest", response_model=StoryResponse)
async def latest_story_for_user_artifact(user_id: UUID, artifact_id: UUID, service: Service):
    story = await service.latest_for_user_artifact(user_id, artifact_id)
    if story is None:
        raise HTTPException(status_code=404, detail="Story not found")
    return StoryResponse.model_validate(story)


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------
@router.get("/statistics/genres", response_model=list[GenreStatsResponse])
async def genre_statistics(service: Service):
    return [GenreStatsResponse.model_validate(s) for s in await service.genre_statistics()]


@router.get("/statistics/count", response_model=CountResponse)
async def story_count(
    service: Service,
    artifact_id: Annotated[Optional[UUID], Query(alias="artifactId")] = None,
    user_id: Annotated[Optional[UUID], Query(alias="userId")] = None,
    genre: Optional[StoryGenre] = None,
):
    filters = {"artifact_id": artifact_id, "user_id": user_id, "genre": genre}
    return CountResponse(count=await service.count(filters))


# ---------------------------------------------------------------------------
# Single story
# ---------------------------------------------------------------------------
@router.get("/{story_id}", response_model=StoryResponse)
async def get_story(story_id: UUID, service: Service):
    story = await service.get_story(story_id)
    if story is None:
        raise HTTPException(status_code=404, detail="Story not found")
    return StoryResponse.model_validate(story)


@router.post("", response_model=StoryResponse, status_code=status.HTTP_201_CREATED)
async def create_story(body: StoryCreate, service: Service, current_user: CurrentUser):
    story = Story(
        id=uuid4(),
        artifact_id=body.artifact_id,
        user_id=current_user.id,
        title=body.title,
        content=body.content,
        genre=body.genre,
        length=body.length,
        generation_params=_params(body.generation_params),
    )
    return StoryResponse.model_validate(await service.create_story(story))


@router.post("/generate", response_model=StoryResponse, status_code=status.HTTP_201_CREATED)
async def generate_story(body: StoryGenerateRequest, service: Service, current_user: CurrentUser):
    """Create a placeholder story for an artifact carrying the generation request."""
    story = await service.generate_for_artifact(
        body.artifact_id,
        current_user.id,
        body.genre,
        body.length,
        _params(body.generation_params),
    )
    return StoryResponse.model_validate(story)


@router.put("/{story_id}", response_model=StoryResponse)
async def update_story(
    story_id: UUID, body: StoryUpdate, service: Service, current_user: CurrentUser
):
    await _owned_story(story_id, current_user, service)
    try:
        updated = await service.update_story(story_id, body.model_dump(exclude_unset=True))
        return StoryResponse.model_validate(updated)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/{story_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_story(story_id: UUID, service: Service, current_user: CurrentUser) -> Response:
    await _owned_story(story_id, current_user, service)
    try:
        await service.delete_story(story_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{story_id}/feedback", response_model=StoryResponse)
async def add_feedback(
    story_id: UUID, body: FeedbackRequest, service: Service, current_user: CurrentUser
):
    """Rate a story; the aggregate rating is recomputed over all feedback."""
    feedback = StoryFeedback(user_id=current_user.id, rating=body.rating, comment=body.comment)
    try:
        story = await service.add_feedback(story_id, feedback)
        return StoryResponse.model_validate(story)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
