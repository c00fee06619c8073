"""Pydantic schemas for API requests and responses."""

from datetime import datetime
from typing import Any, Generic, Optional, TypeVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.domain.entities import Page, Role, StoryGenre, StoryLength

T = TypeVar("T")


class PageResponse(BaseModel, Generic[T]):
    content: list[T]
    total_elements: int
    total_pages: int
    page: int
    size: int

    @classmethod
    def from_page(cls, page: Page, item_schema: type[BaseModel]) -> "PageResponse":
        return cls(
            content=[item_schema.model_validate(item) for item in page.content],
            total_elements=page.total_elements,
            total_pages=page.total_pages,
            page=page.page,
            size=page.size,
        )


# ---------------------------------------------------------------------------
# Auth & users
# ---------------------------------------------------------------------------
class PreferencesSchema(BaseModel):
    favorite_genres: list[str] = Field(default_factory=lambda: ["HISTORICAL", "ADVENTURE"])
    preferred_length: StoryLength = StoryLength.MEDIUM
    interests: list[str] = Field(default_factory=list)
    language: str = Field("en", min_length=2, max_length=10)

    model_config = ConfigDict(from_attributes=True)


class SignupRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    # bcrypt only looks at the first 72 bytes
    password: str = Field(..., min_length=6, max_length=72)
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)


class LoginRequest(BaseModel):
    login: str = Field(..., description="Username or email")
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserResponse(BaseModel):
    id: UUID
    username: str
    email: str
    role: Role
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    preferences: PreferencesSchema
    favorite_artifacts: list[UUID]
    enabled: bool
    created_at: datetime
    updated_at: datetime
    last_login_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ProfileUpdateRequest(BaseModel):
    email: Optional[EmailStr] = None
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)


class ChangePasswordRequest(BaseModel):
    old_password: str
    new_password: str = Field(..., min_length=6, max_length=72)


class FavoriteStatusResponse(BaseModel):
    artifact_id: UUID
    is_favorite: bool


class UserStatisticsResponse(BaseModel):
    total_users: int
    enabled_users: int
    users_by_role: dict[str, int]


# ---------------------------------------------------------------------------
# Artifacts
# ---------------------------------------------------------------------------
class ObjectDetectionSchema(BaseModel):
    class_name: str
    confidence: float
    bbox: list[float] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class NamedEntitySchema(BaseModel):
    text: str
    label: str
    confidence: float = 0.0

    model_config = ConfigDict(from_attributes=True)


class ArtifactAnalysisSchema(BaseModel):
    detections: list[ObjectDetectionSchema] = Field(default_factory=list)
    image_embedding: list[float] = Field(default_factory=list)
    text_embedding: list[float] = Field(default_factory=list)
    entities: list[NamedEntitySchema] = Field(default_factory=list)
    cultural_tags: dict[str, float] = Field(default_factory=dict)
    analyzed_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ArtifactCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)
    culture: Optional[str] = Field(None, max_length=100)
    period: Optional[str] = Field(None, max_length=100)
    material: Optional[str] = Field(None, max_length=100)
    image_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    storage_key: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    analysis: Optional[ArtifactAnalysisSchema] = None
    source: Optional[str] = None
    source_id: Optional[str] = None
    source_url: Optional[str] = None


class ArtifactUpdate(BaseModel):
    """Partial update; omitted fields keep their stored value."""

    title: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)
    culture: Optional[str] = Field(None, max_length=100)
    period: Optional[str] = Field(None, max_length=100)
    material: Optional[str] = Field(None, max_length=100)
    image_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None


class ArtifactResponse(BaseModel):
    id: UUID
    title: str
    description: Optional[str] = None
    category: Optional[str] = None
    culture: Optional[str] = None
    period: Optional[str] = None
    material: Optional[str] = None
    image_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    analysis: Optional[ArtifactAnalysisSchema] = None
    source: Optional[str] = None
    source_id: Optional[str] = None
    source_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CategoryStatsResponse(BaseModel):
    category: str
    count: int
    cultures: list[str]
    periods: list[str]

    model_config = ConfigDict(from_attributes=True)


class ArtifactStatisticsResponse(BaseModel):
    total_artifacts: int
    category_stats: list[CategoryStatsResponse]
    culture_counts: dict[str, int]


class ArtifactMetadataResponse(BaseModel):
    categories: list[str]
    cultures: list[str]
    periods: list[str]
    materials: list[str]
    total_artifacts: int


# ---------------------------------------------------------------------------
# Stories
# ---------------------------------------------------------------------------
class GenerationParamsSchema(BaseModel):
    model: Optional[str] = None
    temperature: Optional[float] = Field(None, ge=0.0, le=2.0)
    max_tokens: Optional[int] = Field(None, ge=1)
    prompt: Optional[str] = None

    model_config = ConfigDict(from_attributes=True, protected_namespaces=())


class StoryFeedbackSchema(BaseModel):
    user_id: UUID
    rating: int
    comment: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class StoryCreate(BaseModel):
    artifact_id: UUID
    title: str = Field(..., min_length=1, max_length=500)
    content: str = Field(..., min_length=1)
    genre: StoryGenre
    length: StoryLength = StoryLength.MEDIUM
    generation_params: Optional[GenerationParamsSchema] = None


class StoryUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    content: Optional[str] = Field(None, min_length=1)
    genre: Optional[StoryGenre] = None
    length: Optional[StoryLength] = None


class StoryGenerateRequest(BaseModel):
    artifact_id: UUID
    genre: StoryGenre = StoryGenre.HISTORICAL
    length: StoryLength = StoryLength.MEDIUM
    generation_params: Optional[GenerationParamsSchema] = None


class FeedbackRequest(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=2000)


class StoryResponse(BaseModel):
    id: UUID
    artifact_id: UUID
    user_id: UUID
    title: str
    content: str
    genre: StoryGenre
    length: StoryLength
    rating: float
    rating_count: int
    feedback: list[StoryFeedbackSchema] = Field(default_factory=list)
    generation_params: Optional[GenerationParamsSchema] = None
    generated_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class GenreStatsResponse(BaseModel):
    genre: str
    count: int
    avg_rating: float
    total_ratings: int

    model_config = ConfigDict(from_attributes=True)


class CountResponse(BaseModel):
    count: int


# ---------------------------------------------------------------------------
# Interactions
# ---------------------------------------------------------------------------
class InteractionCreate(BaseModel):
    artifact_id: UUID
    # Open tag (VIEW, LIKE, SHARE, SAVE, ...); upper-cased before storing
    action: str = Field(..., min_length=1, max_length=50, pattern=r"^[A-Za-z][A-Za-z_]*$")
    session_id: Optional[str] = Field(None, max_length=255)


class InteractionResponse(BaseModel):
    id: UUID
    user_id: UUID
    artifact_id: UUID
    action: str
    timestamp: datetime
    session_id: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class PopularArtifactResponse(BaseModel):
    artifact_id: UUID
    total_interactions: int
    unique_user_count: int
    actions: list[str]

    model_config = ConfigDict(from_attributes=True)


class UserEngagementResponse(BaseModel):
    user_id: UUID
    total_interactions: int
    unique_artifact_count: int
    actions: list[str]
    last_activity: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class InteractionCheckResponse(BaseModel):
    artifact_id: UUID
    viewed: bool
    liked: bool
    saved: bool


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------
class TaskDispatchResponse(BaseModel):
    task_id: str


class TaskStatusResponse(BaseModel):
    task_id: str
    status: str
    result: Optional[Any] = None
    error: Optional[str] = None
