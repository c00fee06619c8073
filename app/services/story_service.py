"""Story service: CRUD, listings and the rating aggregator."""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from app.domain.entities import (
    GenerationParams,
    GenreStats,
    Page,
    PageRequest,
    Story,
    StoryFeedback,
    StoryGenre,
    StoryLength,
)
from app.domain.exceptions import NotFoundError
from app.domain.repositories import IStoryRepository
from app.domain.services import IStoryService

logger = logging.getLogger(__name__)

MAX_RANDOM_STORIES = 20
MAX_RANDOM_STORIES_BY_GENRE = 10
EDITABLE_FIELDS = ("title", "content", "genre", "length")


def append_feedback(story: Story, feedback: StoryFeedback) -> Story:
    """Attach ``feedback`` and recompute the story's aggregate rating.

    The rating is the mean over every attached feedback entry, not a
    running average, so it always agrees with the feedback list.
    """
    entries = list(story.feedback or [])
    entries.append(feedback)
    story.feedback = entries
    story.rating = sum(f.rating for f in entries) / len(entries)
    story.rating_count = len(entries)
    story.updated_at = datetime.utcnow()
    return story


class StoryService(IStoryService):

    def __init__(self, story_repository: IStoryRepository):
        self.story_repository = story_repository

    async def create_story(self, story: Story) -> Story:
        now = datetime.utcnow()
        story.generated_at = now
        story.updated_at = now
        created = await self.story_repository.create(story)
        logger.info("Story created: %s for artifact %s", created.id, created.artifact_id)
        return created

    async def get_story(self, story_id: UUID) -> Optional[Story]:
        return await self.story_repository.get_by_id(story_id)

    async def update_story(self, story_id: UUID, changes: dict) -> Story:
        story = await self.story_repository.get_by_id(story_id)
        if story is None:
            raise NotFoundError("Story", story_id)
        updates = {k: v for k, v in changes.items() if k in EDITABLE_FIELDS and v is not None}
        story = replace(story, **updates, updated_at=datetime.utcnow())
        return await self.story_repository.update(story)

    async def delete_story(self, story_id: UUID) -> None:
        if not await self.story_repository.delete(story_id):
            raise NotFoundError("Story", story_id)
        logger.info("Story deleted: %s", story_id)

    async def list_stories(
        self,
        page: PageRequest,
        filters: Optional[dict] = None,
        min_rating: Optional[float] = None,
        has_feedback: Optional[bool] = None,
    ) -> Page[Story]:
        return await self.story_repository.find_page(
            page, filters=filters, min_rating=min_rating, has_feedback=has_feedback
        )

    async def search(self, query: Optional[str], page: PageRequest) -> Page[Story]:
        if not query or not query.strip():
            return await self.story_repository.find_page(page)
        return await self.story_repository.search(query.strip(), page)

    async def top_rated(self, page: PageRequest) -> Page[Story]:
        return await self.story_repository.find_page(
            replace(page, sort_by="rating", sort_dir="desc"), has_feedback=True
        )

    async def recent(self, page: PageRequest) -> Page[Story]:
        return await self.story_repository.find_page(
            replace(page, sort_by="generated_at", sort_dir="desc")
        )

    async def popular(self, min_rating_count: int, page: PageRequest) -> Page[Story]:
        return await self.story_repository.find_page(
            replace(page, sort_by="rating_count", sort_dir="desc"),
            min_rating_count=min_rating_count,
        )

    async def random(self, count: int) -> list[Story]:
        return await self.story_repository.sample(min(count, MAX_RANDOM_STORIES))

    async def random_by_genre(self, genre: StoryGenre, count: int) -> list[Story]:
        return await self.story_repository.sample(
            min(count, MAX_RANDOM_STORIES_BY_GENRE), genre=genre.value
        )

    async def for_user_artifact(self, user_id: UUID, artifact_id: UUID) -> list[Story]:
        return await self.story_repository.find_for_user_artifact(user_id, artifact_id)

    async def latest_for_user_artifact(
        self, user_id: UUID, artifact_id: UUID
    ) -> Optional[Story]:
        stories = await self.story_repository.find_for_user_artifact(user_id, artifact_id)
        return stories[0] if stories else None

    async def add_feedback(self, story_id: UUID, feedback: StoryFeedback) -> Story:
        updated = await self.story_repository.modify(
            story_id, lambda story: append_feedback(story, feedback)
        )
        if updated is None:
            raise NotFoundError("Story", story_id)
        logger.info(
            "Feedback %d added to story %s (avg %.2f over %d)",
            feedback.rating, story_id, updated.rating, updated.rating_count,
        )
        return updated

    async def genre_statistics(self) -> list[GenreStats]:
        return await self.story_repository.genre_stats()

    async def count(self, filters: Optional[dict] = None) -> int:
        return await self.story_repository.count(filters)

    async def generate_for_artifact(
        self,
        artifact_id: UUID,
        user_id: UUID,
        genre: StoryGenre,
        length: StoryLength,
        params: Optional[GenerationParams] = None,
    ) -> Story:
        """Create a placeholder story to be filled in by the text generator.

        No text is generated here; the record carries the requested genre,
        length and generation parameters.
        """
        story = Story(
            id=uuid4(),
            artifact_id=artifact_id,
            user_id=user_id,
            title=f"{genre.value.title()} story",
            content=(
                f"A {length.value.lower()} {genre.value.lower()} story of "
                f"{length.min_words}-{length.max_words} words is being generated."
            ),
            genre=genre,
            length=length,
            generation_params=params,
        )
        return await self.create_story(story)
