"""Domain entities for CulturalVault."""

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Generic, Optional, TypeVar
from uuid import UUID

T = TypeVar("T")


class Role(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class StoryGenre(str, Enum):
    ADVENTURE = "ADVENTURE"
    HISTORICAL = "HISTORICAL"
    MYSTERY = "MYSTERY"
    FANTASY = "FANTASY"
    ROMANCE = "ROMANCE"
    EDUCATIONAL = "EDUCATIONAL"


class StoryLength(str, Enum):
    """Target story length; each value carries a word-count range."""

    SHORT = "SHORT"
    MEDIUM = "MEDIUM"
    LONG = "LONG"

    @property
    def min_words(self) -> int:
        return _LENGTH_WORDS[self][0]

    @property
    def max_words(self) -> int:
        return _LENGTH_WORDS[self][1]


_LENGTH_WORDS = {
    StoryLength.SHORT: (100, 200),
    StoryLength.MEDIUM: (300, 500),
    StoryLength.LONG: (600, 1000),
}


# ---------------------------------------------------------------------------
# Artifacts
# ---------------------------------------------------------------------------
@dataclass
class ObjectDetection:
    class_name: str
    confidence: float
    bbox: list[float] = field(default_factory=list)


@dataclass
class NamedEntity:
    text: str
    label: str
    confidence: float = 0.0


@dataclass
class ArtifactAnalysis:
    """Output of the offline image/text analysis pipeline.

    Produced elsewhere and stored verbatim; nothing in this service reads
    the embeddings or scores.
    """

    detections: list[ObjectDetection] = field(default_factory=list)
    image_embedding: list[float] = field(default_factory=list)
    text_embedding: list[float] = field(default_factory=list)
    entities: list[NamedEntity] = field(default_factory=list)
    cultural_tags: dict[str, float] = field(default_factory=dict)
    analyzed_at: Optional[datetime] = None


@dataclass
class Artifact:
    id: UUID
    title: str
    description: Optional[str] = None
    category: Optional[str] = None
    culture: Optional[str] = None
    period: Optional[str] = None
    material: Optional[str] = None
    image_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    storage_key: Optional[str] = None
    metadata: dict = field(default_factory=dict)
    analysis: Optional[ArtifactAnalysis] = None
    source: Optional[str] = None
    source_id: Optional[str] = None
    source_url: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)


# ---------------------------------------------------------------------------
# Stories
# ---------------------------------------------------------------------------
@dataclass
class StoryFeedback:
    user_id: UUID
    rating: int  # 1..5
    comment: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.utcnow)


@dataclass
class GenerationParams:
    model: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    prompt: Optional[str] = None


@dataclass
class Story:
    """A generated story about one artifact.

    ``rating`` is the mean of ``feedback`` ratings and ``rating_count`` its
    length; both are only written by the rating aggregator.
    """

    id: UUID
    artifact_id: UUID
    user_id: UUID
    title: str
    content: str
    genre: StoryGenre
    length: StoryLength
    rating: float = 0.0
    rating_count: int = 0
    feedback: list[StoryFeedback] = field(default_factory=list)
    generation_params: Optional[GenerationParams] = None
    generated_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------
@dataclass
class UserPreferences:
    favorite_genres: list[str] = field(default_factory=lambda: ["HISTORICAL", "ADVENTURE"])
    preferred_length: StoryLength = StoryLength.MEDIUM
    interests: list[str] = field(default_factory=list)
    language: str = "en"


@dataclass
class User:
    id: UUID
    username: str
    email: str
    hashed_password: str
    role: Role = Role.USER
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    preferences: UserPreferences = field(default_factory=UserPreferences)
    favorite_artifacts: list[UUID] = field(default_factory=list)
    enabled: bool = True
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)
    last_login_at: Optional[datetime] = None


# ---------------------------------------------------------------------------
# Interactions
# ---------------------------------------------------------------------------
@dataclass
class UserInteraction:
    """One entry of the append-only interaction log.

    ``action`` is an open tag (VIEW, LIKE, SHARE, SAVE, FAVORITE, ...);
    user and artifact ids are not checked for existence.
    """

    id: UUID
    user_id: UUID
    artifact_id: UUID
    action: str
    timestamp: datetime = field(default_factory=datetime.utcnow)
    session_id: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


# ---------------------------------------------------------------------------
# Aggregates
# ---------------------------------------------------------------------------
@dataclass
class PopularArtifact:
    artifact_id: UUID
    total_interactions: int
    unique_user_count: int
    actions: list[str] = field(default_factory=list)


@dataclass
class UserEngagement:
    user_id: UUID
    total_interactions: int
    unique_artifact_count: int
    actions: list[str] = field(default_factory=list)
    last_activity: Optional[datetime] = None


@dataclass
class CategoryStats:
    category: str
    count: int
    cultures: list[str] = field(default_factory=list)
    periods: list[str] = field(default_factory=list)


@dataclass
class GenreStats:
    genre: str
    count: int
    avg_rating: float
    total_ratings: int


# ---------------------------------------------------------------------------
# Paging
# ---------------------------------------------------------------------------
@dataclass
class PageRequest:
    page: int = 0
    size: int = 12
    sort_by: str = "created_at"
    sort_dir: str = "desc"

    @property
    def offset(self) -> int:
        return self.page * self.size


@dataclass
class Page(Generic[T]):
    content: list[T]
    total_elements: int
    page: int
    size: int

    @property
    def total_pages(self) -> int:
        if self.size <= 0:
            return 0
        return math.ceil(self.total_elements / self.size)
