"""Domain-level application service interfaces (ports).

Concrete implementations live in ``app/services/`` and are wired together by
the composition root in ``app/core/dependencies.py``. Route handlers depend
on these interfaces only, so every service can be swapped for a test double
through ``app.dependency_overrides``.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
from uuid import UUID

from app.domain.entities import (
    Artifact,
    GenerationParams,
    GenreStats,
    Page,
    PageRequest,
    PopularArtifact,
    Story,
    StoryFeedback,
    StoryGenre,
    StoryLength,
    User,
    UserEngagement,
    UserInteraction,
    UserPreferences,
)


class IArtifactService(ABC):

    @abstractmethod
    async def create_artifact(self, artifact: Artifact) -> Artifact:
        pass

    @abstractmethod
    async def get_artifact(self, artifact_id: UUID) -> Optional[Artifact]:
        pass

    @abstractmethod
    async def update_artifact(self, artifact_id: UUID, changes: dict) -> Artifact:
        """Raises ``NotFoundError`` for an unknown id."""
        pass

    @abstractmethod
    async def delete_artifact(self, artifact_id: UUID) -> None:
        pass

    @abstractmethod
    async def list_artifacts(self, page: PageRequest) -> Page[Artifact]:
        pass

    @abstractmethod
    async def search(self, query: Optional[str], page: PageRequest) -> Page[Artifact]:
        pass

    @abstractmethod
    async def find_by(self, field: str, value: str, page: PageRequest) -> Page[Artifact]:
        pass

    @abstractmethod
    async def filter(self, criteria: dict[str, Optional[str]], page: PageRequest) -> Page[Artifact]:
        pass

    @abstractmethod
    async def random(self, count: int) -> list[Artifact]:
        pass

    @abstractmethod
    async def random_by_category(self, category: str, count: int) -> list[Artifact]:
        pass

    @abstractmethod
    async def similar(self, artifact_id: UUID, count: int) -> list[Artifact]:
        pass

    @abstractmethod
    async def analyzed(self, analyzed: bool, page: PageRequest) -> Page[Artifact]:
        pass

    @abstractmethod
    async def recent(self, limit: int) -> list[Artifact]:
        pass

    @abstractmethod
    async def get_by_source(self, source: str, source_id: str) -> Optional[Artifact]:
        pass

    @abstractmethod
    async def distinct(self, field: str) -> list[str]:
        pass

    @abstractmethod
    async def metadata_summary(self) -> dict:
        pass

    @abstractmethod
    async def statistics(self) -> dict:
        pass


class IStoryService(ABC):

    @abstractmethod
    async def create_story(self, story: Story) -> Story:
        pass

    @abstractmethod
    async def get_story(self, story_id: UUID) -> Optional[Story]:
        pass

    @abstractmethod
    async def update_story(self, story_id: UUID, changes: dict) -> Story:
        pass

    @abstractmethod
    async def delete_story(self, story_id: UUID) -> None:
        pass

    @abstractmethod
    async def list_stories(
        self,
        page: PageRequest,
        filters: Optional[dict] = None,
        min_rating: Optional[float] = None,
        has_feedback: Optional[bool] = None,
    ) -> Page[Story]:
        pass

    @abstractmethod
    async def search(self, query: Optional[str], page: PageRequest) -> Page[Story]:
        pass

    @abstractmethod
    async def top_rated(self, page: PageRequest) -> Page[Story]:
        pass

    @abstractmethod
    async def recent(self, page: PageRequest) -> Page[Story]:
        pass

    @abstractmethod
    async def popular(self, min_rating_count: int, page: PageRequest) -> Page[Story]:
        pass

    @abstractmethod
    async def random(self, count: int) -> list[Story]:
        pass

    @abstractmethod
    async def random_by_genre(self, genre: StoryGenre, count: int) -> list[Story]:
        pass

    @abstractmethod
    async def for_user_artifact(self, user_id: UUID, artifact_id: UUID) -> list[Story]:
        pass

    @abstractmethod
    async def latest_for_user_artifact(
        self, user_id: UUID, artifact_id: UUID
    ) -> Optional[Story]:
        pass

    @abstractmethod
    async def add_feedback(self, story_id: UUID, feedback: StoryFeedback) -> Story:
        """Append feedback and recompute the aggregate rating.

        Raises ``NotFoundError`` for an unknown story id.
        """
        pass

    @abstractmethod
    async def genre_statistics(self) -> list[GenreStats]:
        pass

    @abstractmethod
    async def count(self, filters: Optional[dict] = None) -> int:
        pass

    @abstractmethod
    async def generate_for_artifact(
        self,
        artifact_id: UUID,
        user_id: UUID,
        genre: StoryGenre,
        length: StoryLength,
        params: Optional[GenerationParams] = None,
    ) -> Story:
        pass


class IUserService(ABC):

    @abstractmethod
    async def get_user(self, user_id: UUID) -> Optional[User]:
        pass

    @abstractmethod
    async def update_profile(self, user_id: UUID, changes: dict) -> User:
        pass

    @abstractmethod
    async def update_preferences(self, user_id: UUID, preferences: UserPreferences) -> User:
        pass

    @abstractmethod
    async def delete_user(self, user_id: UUID) -> None:
        pass

    @abstractmethod
    async def add_favorite(self, user_id: UUID, artifact_id: UUID) -> User:
        pass

    @abstractmethod
    async def remove_favorite(self, user_id: UUID, artifact_id: UUID) -> User:
        pass

    @abstractmethod
    async def is_favorite(self, user_id: UUID, artifact_id: UUID) -> bool:
        pass

    @abstractmethod
    async def change_password(self, user_id: UUID, old_password: str, new_password: str) -> None:
        pass

    @abstractmethod
    async def list_users(self, page: PageRequest) -> Page[User]:
        pass

    @abstractmethod
    async def search(self, query: str) -> list[User]:
        pass

    @abstractmethod
    async def statistics(self) -> dict:
        pass


class IInteractionService(ABC):

    @abstractmethod
    async def record(
        self,
        user_id: UUID,
        artifact_id: UUID,
        action: str,
        session_id: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> UserInteraction:
        pass

    @abstractmethod
    async def history(self, user_id: UUID) -> list[UserInteraction]:
        pass

    @abstractmethod
    async def for_artifact(self, artifact_id: UUID) -> list[UserInteraction]:
        pass

    @abstractmethod
    async def by_action(self, action: str) -> list[UserInteraction]:
        pass

    @abstractmethod
    async def for_user_artifact(
        self, user_id: UUID, artifact_id: UUID
    ) -> list[UserInteraction]:
        pass

    @abstractmethod
    async def recent(self, hours: int) -> list[UserInteraction]:
        pass

    @abstractmethod
    async def between(self, start: datetime, end: datetime) -> list[UserInteraction]:
        pass

    @abstractmethod
    async def most_popular(self, limit: int) -> list[PopularArtifact]:
        pass

    @abstractmethod
    async def engagement(self) -> list[UserEngagement]:
        pass

    @abstractmethod
    async def has_interacted(self, user_id: UUID, artifact_id: UUID, action: str) -> bool:
        pass

    @abstractmethod
    async def activity_flags(self, user_id: UUID, artifact_id: UUID) -> dict[str, bool]:
        pass

    @abstractmethod
    async def statistics(self) -> dict:
        pass

    @abstractmethod
    async def purge_older_than(self, days_to_keep: int) -> int:
        pass


class IRecommendationService(ABC):
    """Rule-based recommendation pipeline.

    Every call takes the user id explicitly; ``None`` means anonymous.
    """

    @abstractmethod
    async def recommend_for(self, user_id: Optional[UUID], count: int) -> list[Artifact]:
        pass

    @abstractmethod
    async def popular(self, count: int) -> list[Artifact]:
        pass

    @abstractmethod
    async def similar_to(self, artifact_id: UUID, count: int) -> list[Artifact]:
        pass

    @abstractmethod
    async def by_interests(self, user_id: Optional[UUID], count: int) -> list[Artifact]:
        pass

    @abstractmethod
    async def trending(self, count: int) -> list[Artifact]:
        pass

    @abstractmethod
    async def favorites_based(self, user_id: Optional[UUID], count: int) -> list[Artifact]:
        pass

    @abstractmethod
    async def by_category(self, category: str, count: int) -> list[Artifact]:
        pass
