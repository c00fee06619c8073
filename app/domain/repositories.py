"""Repository interfaces (ports) for dependency inversion."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, Optional
from uuid import UUID

from app.domain.entities import (
    Artifact,
    CategoryStats,
    GenreStats,
    Page,
    PageRequest,
    PopularArtifact,
    Story,
    User,
    UserEngagement,
    UserInteraction,
)


class IArtifactRepository(ABC):

    @abstractmethod
    async def create(self, artifact: Artifact) -> Artifact:
        pass

    @abstractmethod
    async def get_by_id(self, artifact_id: UUID) -> Optional[Artifact]:
        pass

    @abstractmethod
    async def get_by_source(self, source: str, source_id: str) -> Optional[Artifact]:
        pass

    @abstractmethod
    async def update(self, artifact: Artifact) -> Artifact:
        pass

    @abstractmethod
    async def delete(self, artifact_id: UUID) -> bool:
        pass

    @abstractmethod
    async def find_page(
        self,
        page: PageRequest,
        filters: Optional[dict[str, str]] = None,
        partial: bool = False,
    ) -> Page[Artifact]:
        """Page through artifacts.

        ``filters`` maps field name to value, compared case-insensitively.
        With ``partial`` the value may occur anywhere in the field.
        """
        pass

    @abstractmethod
    async def search(self, query: str, page: PageRequest) -> Page[Artifact]:
        pass

    @abstractmethod
    async def find_by_field(self, field: str, value: str, limit: int) -> list[Artifact]:
        """Case-insensitive equality match on ``category``, ``culture`` or ``period``."""
        pass

    @abstractmethod
    async def find_siblings(
        self, culture: Optional[str], period: Optional[str], exclude_id: UUID, limit: int
    ) -> list[Artifact]:
        pass

    @abstractmethod
    async def find_analyzed(self, analyzed: bool, page: PageRequest) -> Page[Artifact]:
        pass

    @abstractmethod
    async def find_recent(self, limit: int) -> list[Artifact]:
        pass

    @abstractmethod
    async def sample(self, count: int, category: Optional[str] = None) -> list[Artifact]:
        pass

    @abstractmethod
    async def distinct_values(self, field: str) -> list[str]:
        pass

    @abstractmethod
    async def count_by(self, field: str) -> dict[str, int]:
        pass

    @abstractmethod
    async def category_stats(self) -> list[CategoryStats]:
        pass

    @abstractmethod
    async def count(self) -> int:
        pass


class IStoryRepository(ABC):

    @abstractmethod
    async def create(self, story: Story) -> Story:
        pass

    @abstractmethod
    async def get_by_id(self, story_id: UUID) -> Optional[Story]:
        pass

    @abstractmethod
    async def update(self, story: Story) -> Story:
        pass

    @abstractmethod
    async def modify(
        self, story_id: UUID, mutate: Callable[[Story], Story]
    ) -> Optional[Story]:
        """Apply ``mutate`` to the stored story while holding its row lock.

        Returns ``None`` when the story does not exist.
        """
        pass

    @abstractmethod
    async def delete(self, story_id: UUID) -> bool:
        pass

    @abstractmethod
    async def find_page(
        self,
        page: PageRequest,
        filters: Optional[dict] = None,
        min_rating: Optional[float] = None,
        min_rating_count: Optional[int] = None,
        has_feedback: Optional[bool] = None,
    ) -> Page[Story]:
        """``filters`` may hold artifact_id, user_id, genre and length."""
        pass

    @abstractmethod
    async def search(self, query: str, page: PageRequest) -> Page[Story]:
        pass

    @abstractmethod
    async def find_for_user_artifact(self, user_id: UUID, artifact_id: UUID) -> list[Story]:
        """Newest first."""
        pass

    @abstractmethod
    async def sample(self, count: int, genre: Optional[str] = None) -> list[Story]:
        pass

    @abstractmethod
    async def genre_stats(self) -> list[GenreStats]:
        pass

    @abstractmethod
    async def count(self, filters: Optional[dict] = None) -> int:
        pass


class IUserRepository(ABC):

    @abstractmethod
    async def create(self, user: User) -> User:
        pass

    @abstractmethod
    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        pass

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[User]:
        pass

    @abstractmethod
    async def get_by_username(self, username: str) -> Optional[User]:
        pass

    @abstractmethod
    async def update(self, user: User) -> User:
        pass

    @abstractmethod
    async def modify(
        self, user_id: UUID, mutate: Callable[[User], User]
    ) -> Optional[User]:
        """Row-locked read-modify-write; ``None`` when the user does not exist."""
        pass

    @abstractmethod
    async def delete(self, user_id: UUID) -> bool:
        pass

    @abstractmethod
    async def list_page(self, page: PageRequest) -> Page[User]:
        pass

    @abstractmethod
    async def search(self, query: str) -> list[User]:
        """Match username, first name or last name (case-insensitive substring)."""
        pass

    @abstractmethod
    async def count(self, enabled: Optional[bool] = None) -> int:
        pass

    @abstractmethod
    async def count_by_role(self) -> dict[str, int]:
        pass


class IUserInteractionRepository(ABC):
    """Append-only interaction log."""

    @abstractmethod
    async def create(self, interaction: UserInteraction) -> UserInteraction:
        pass

    @abstractmethod
    async def get_by_user(self, user_id: UUID) -> list[UserInteraction]:
        """Newest first."""
        pass

    @abstractmethod
    async def get_by_artifact(self, artifact_id: UUID) -> list[UserInteraction]:
        pass

    @abstractmethod
    async def get_by_action(self, action: str) -> list[UserInteraction]:
        pass

    @abstractmethod
    async def get_for_user_artifact(
        self, user_id: UUID, artifact_id: UUID, action: Optional[str] = None
    ) -> list[UserInteraction]:
        pass

    @abstractmethod
    async def get_between(
        self, start: datetime, end: Optional[datetime] = None
    ) -> list[UserInteraction]:
        """Events with ``start <= timestamp`` (and ``< end`` when given), newest first."""
        pass

    @abstractmethod
    async def most_popular(self, limit: int) -> list[PopularArtifact]:
        pass

    @abstractmethod
    async def engagement(self) -> list[UserEngagement]:
        pass

    @abstractmethod
    async def count(
        self,
        user_id: Optional[UUID] = None,
        artifact_id: Optional[UUID] = None,
        action: Optional[str] = None,
        since: Optional[datetime] = None,
    ) -> int:
        pass

    @abstractmethod
    async def delete_before(self, cutoff: datetime) -> int:
        pass
