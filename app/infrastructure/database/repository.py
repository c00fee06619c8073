"""Repository implementations."""

import functools
import logging
from dataclasses import asdict
from datetime import datetime
from typing import Callable, Optional
from uuid import UUID

from sqlalchemy import delete, desc, distinct, func, or_, select
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.entities import (
    Artifact,
    ArtifactAnalysis,
    CategoryStats,
    GenerationParams,
    GenreStats,
    NamedEntity,
    ObjectDetection,
    Page,
    PageRequest,
    PopularArtifact,
    Role,
    Story,
    StoryFeedback,
    StoryGenre,
    StoryLength,
    User,
    UserEngagement,
    UserInteraction,
    UserPreferences,
)
from app.domain.exceptions import StoreUnavailableError
from app.domain.repositories import (
    IArtifactRepository,
    IStoryRepository,
    IUserInteractionRepository,
    IUserRepository,
)
from app.infrastructure.database.models import (
    ArtifactModel,
    StoryModel,
    UserInteractionModel,
    UserModel,
)

logger = logging.getLogger(__name__)


def store_call(func_):
    """Re-raise connectivity failures as ``StoreUnavailableError``."""

    @functools.wraps(func_)
    async def wrapper(*args, **kwargs):
        try:
            return await func_(*args, **kwargs)
        except (OperationalError, InterfaceError, OSError) as exc:
            logger.error("Store call %s failed: %s", func_.__qualname__, exc)
            raise StoreUnavailableError(str(exc)) from exc

    return wrapper


def _order_by(model, page: PageRequest):
    column = getattr(model, page.sort_by, None)
    if column is None:
        raise ValueError(f"Unsupported sort field: {page.sort_by}")
    return column.asc() if page.sort_dir.lower() == "asc" else column.desc()


async def _fetch_page(session: AsyncSession, stmt, model, page: PageRequest, to_entity) -> Page:
    total = (
        await session.execute(select(func.count()).select_from(stmt.subquery()))
    ).scalar_one()
    result = await session.execute(
        stmt.order_by(_order_by(model, page)).offset(page.offset).limit(page.size)
    )
    return Page(
        content=[to_entity(m) for m in result.scalars().all()],
        total_elements=total,
        page=page.page,
        size=page.size,
    )


def _dt_out(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _dt_in(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


# ---------------------------------------------------------------------------
# Artifact Repository
# ---------------------------------------------------------------------------
class ArtifactRepository(IArtifactRepository):

    MATCH_FIELDS = ("category", "culture", "period", "material", "source")

    def __init__(self, session: AsyncSession):
        self.session = session

    def _column(self, field: str):
        if field not in self.MATCH_FIELDS:
            raise ValueError(f"Unsupported artifact field: {field}")
        return getattr(ArtifactModel, field)

    @store_call
    async def create(self, artifact: Artifact) -> Artifact:
        db_artifact = ArtifactModel(id=artifact.id)
        self._apply(db_artifact, artifact)
        db_artifact.created_at = artifact.created_at
        self.session.add(db_artifact)
        await self.session.commit()
        await self.session.refresh(db_artifact)
        return self._to_entity(db_artifact)

    @store_call
    async def get_by_id(self, artifact_id: UUID) -> Optional[Artifact]:
        result = await self.session.execute(
            select(ArtifactModel).where(ArtifactModel.id == artifact_id)
        )
        db_artifact = result.scalar_one_or_none()
        return self._to_entity(db_artifact) if db_artifact else None

    @store_call
    async def get_by_source(self, source: str, source_id: str) -> Optional[Artifact]:
        result = await self.session.execute(
            select(ArtifactModel)
            .where(ArtifactModel.source == source, ArtifactModel.source_id == source_id)
            .limit(1)
        )
        db_artifact = result.scalar_one_or_none()
        return self._to_entity(db_artifact) if db_artifact else None

    @store_call
    async def update(self, artifact: Artifact) -> Artifact:
        result = await self.session.execute(
            select(ArtifactModel).where(ArtifactModel.id == artifact.id)
        )
        db_artifact = result.scalar_one()
        self._apply(db_artifact, artifact)
        await self.session.commit()
        await self.session.refresh(db_artifact)
        return self._to_entity(db_artifact)

    @store_call
    async def delete(self, artifact_id: UUID) -> bool:
        result = await self.session.execute(
            select(ArtifactModel).where(ArtifactModel.id == artifact_id)
        )
        db_artifact = result.scalar_one_or_none()
        if db_artifact:
            await self.session.delete(db_artifact)
            await self.session.commit()
            return True
        return False

    @store_call
    async def find_page(
        self,
        page: PageRequest,
        filters: Optional[dict[str, str]] = None,
        partial: bool = False,
    ) -> Page[Artifact]:
        stmt = select(ArtifactModel)
        for field, value in (filters or {}).items():
            column = self._column(field)
            if partial:
                stmt = stmt.where(column.ilike(f"%{value}%"))
            else:
                stmt = stmt.where(func.lower(column) == value.lower())
        return await _fetch_page(self.session, stmt, ArtifactModel, page, self._to_entity)

    @store_call
    async def search(self, query: str, page: PageRequest) -> Page[Artifact]:
        pattern = f"%{query}%"
        stmt = select(ArtifactModel).where(
            or_(
                ArtifactModel.title.ilike(pattern),
                ArtifactModel.description.ilike(pattern),
                ArtifactModel.category.ilike(pattern),
                ArtifactModel.culture.ilike(pattern),
                ArtifactModel.period.ilike(pattern),
                ArtifactModel.material.ilike(pattern),
            )
        )
        return await _fetch_page(self.session, stmt, ArtifactModel, page, self._to_entity)

    @store_call
    async def find_by_field(self, field: str, value: str, limit: int) -> list[Artifact]:
        if limit <= 0:
            return []
        column = self._column(field)
        result = await self.session.execute(
            select(ArtifactModel)
            .where(func.lower(column) == value.lower())
            .order_by(ArtifactModel.created_at.desc())
            .limit(limit)
        )
        return [self._to_entity(m) for m in result.scalars().all()]

    @store_call
    async def find_siblings(
        self, culture: Optional[str], period: Optional[str], exclude_id: UUID, limit: int
    ) -> list[Artifact]:
        if not culture or not period or limit <= 0:
            return []
        result = await self.session.execute(
            select(ArtifactModel)
            .where(
                func.lower(ArtifactModel.culture) == culture.lower(),
                func.lower(ArtifactModel.period) == period.lower(),
                ArtifactModel.id != exclude_id,
            )
            .order_by(ArtifactModel.created_at.desc())
            .limit(limit)
        )
        return [self._to_entity(m) for m in result.scalars().all()]

    @store_call
    async def find_analyzed(self, analyzed: bool, page: PageRequest) -> Page[Artifact]:
        condition = (
            ArtifactModel.analysis.isnot(None) if analyzed else ArtifactModel.analysis.is_(None)
        )
        stmt = select(ArtifactModel).where(condition)
        return await _fetch_page(self.session, stmt, ArtifactModel, page, self._to_entity)

    @store_call
    async def find_recent(self, limit: int) -> list[Artifact]:
        result = await self.session.execute(
            select(ArtifactModel).order_by(ArtifactModel.created_at.desc()).limit(limit)
        )
        return [self._to_entity(m) for m in result.scalars().all()]

    @store_call
    async def sample(self, count: int, category: Optional[str] = None) -> list[Artifact]:
        if count <= 0:
            return []
        stmt = select(ArtifactModel)
        if category:
            stmt = stmt.where(func.lower(ArtifactModel.category) == category.lower())
        result = await self.session.execute(stmt.order_by(func.random()).limit(count))
        return [self._to_entity(m) for m in result.scalars().all()]

    @store_call
    async def distinct_values(self, field: str) -> list[str]:
        column = self._column(field)
        result = await self.session.execute(
            select(distinct(column)).where(column.isnot(None), column != "").order_by(column)
        )
        return list(result.scalars().all())

    @store_call
    async def count_by(self, field: str) -> dict[str, int]:
        column = self._column(field)
        result = await self.session.execute(
            select(column, func.count(ArtifactModel.id))
            .where(column.isnot(None))
            .group_by(column)
            .order_by(desc(func.count(ArtifactModel.id)))
        )
        return {value: total for value, total in result.all()}

    @store_call
    async def category_stats(self) -> list[CategoryStats]:
        result = await self.session.execute(
            select(
                ArtifactModel.category,
                func.count(ArtifactModel.id),
                func.array_agg(distinct(ArtifactModel.culture)),
                func.array_agg(distinct(ArtifactModel.period)),
            )
            .where(ArtifactModel.category.isnot(None))
            .group_by(ArtifactModel.category)
            .order_by(desc(func.count(ArtifactModel.id)))
        )
        return [
            CategoryStats(
                category=category,
                count=total,
                cultures=sorted(c for c in (cultures or []) if c),
                periods=sorted(p for p in (periods or []) if p),
            )
            for category, total, cultures, periods in result.all()
        ]

    @store_call
    async def count(self) -> int:
        result = await self.session.execute(select(func.count()).select_from(ArtifactModel))
        return result.scalar_one()

    @staticmethod
    def _apply(model: ArtifactModel, artifact: Artifact) -> None:
        model.title = artifact.title
        model.description = artifact.description
        model.category = artifact.category
        model.culture = artifact.culture
        model.period = artifact.period
        model.material = artifact.material
        model.image_url = artifact.image_url
        model.thumbnail_url = artifact.thumbnail_url
        model.storage_key = artifact.storage_key
        model.metadata_ = dict(artifact.metadata or {})
        model.analysis = _analysis_to_json(artifact.analysis)
        model.source = artifact.source
        model.source_id = artifact.source_id
        model.source_url = artifact.source_url
        model.updated_at = artifact.updated_at

    @staticmethod
    def _to_entity(model: ArtifactModel) -> Artifact:
        return Artifact(
            id=model.id,
            title=model.title,
            description=model.description,
            category=model.category,
            culture=model.culture,
            period=model.period,
            material=model.material,
            image_url=model.image_url,
            thumbnail_url=model.thumbnail_url,
            storage_key=model.storage_key,
            metadata=dict(model.metadata_ or {}),
            analysis=_analysis_from_json(model.analysis),
            source=model.source,
            source_id=model.source_id,
            source_url=model.source_url,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )


def _analysis_to_json(analysis: Optional[ArtifactAnalysis]) -> Optional[dict]:
    if analysis is None:
        return None
    data = asdict(analysis)
    data["analyzed_at"] = _dt_out(analysis.analyzed_at)
    return data


def _analysis_from_json(data: Optional[dict]) -> Optional[ArtifactAnalysis]:
    if not data:
        return None
    return ArtifactAnalysis(
        detections=[ObjectDetection(**d) for d in data.get("detections") or []],
        image_embedding=list(data.get("image_embedding") or []),
        text_embedding=list(data.get("text_embedding") or []),
        entities=[NamedEntity(**e) for e in data.get("entities") or []],
        cultural_tags=dict(data.get("cultural_tags") or {}),
        analyzed_at=_dt_in(data.get("analyzed_at")),
    )


# ---------------------------------------------------------------------------
# Story Repository
# ---------------------------------------------------------------------------
class StoryRepository(IStoryRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    @store_call
    async def create(self, story: Story) -> Story:
        db_story = StoryModel(id=story.id, generated_at=story.generated_at)
        self._apply(db_story, story)
        self.session.add(db_story)
        await self.session.commit()
        await self.session.refresh(db_story)
        return self._to_entity(db_story)

    @store_call
    async def get_by_id(self, story_id: UUID) -> Optional[Story]:
        result = await self.session.execute(select(StoryModel).where(StoryModel.id == story_id))
        db_story = result.scalar_one_or_none()
        return self._to_entity(db_story) if db_story else None

    @store_call
    async def update(self, story: Story) -> Story:
        result = await self.session.execute(select(StoryModel).where(StoryModel.id == story.id))
        db_story = result.scalar_one()
        self._apply(db_story, story)
        await self.session.commit()
        await self.session.refresh(db_story)
        return self._to_entity(db_story)

    @store_call
    async def modify(
        self, story_id: UUID, mutate: Callable[[Story], Story]
    ) -> Optional[Story]:
        result = await self.session.execute(
            select(StoryModel).where(StoryModel.id == story_id).with_for_update()
        )
        db_story = result.scalar_one_or_none()
        if db_story is None:
            await self.session.rollback()
            return None
        self._apply(db_story, mutate(self._to_entity(db_story)))
        await self.session.commit()
        await self.session.refresh(db_story)
        return self._to_entity(db_story)

    @store_call
    async def delete(self, story_id: UUID) -> bool:
        result = await self.session.execute(select(StoryModel).where(StoryModel.id == story_id))
        db_story = result.scalar_one_or_none()
        if db_story:
            await self.session.delete(db_story)
            await self.session.commit()
            return True
        return False

    @staticmethod
    def _filtered(stmt, filters: Optional[dict]):
        for key, value in (filters or {}).items():
            if value is None:
                continue
            if key in ("genre", "length"):
                value = getattr(value, "value", value)
            stmt = stmt.where(getattr(StoryModel, key) == value)
        return stmt

    @store_call
    async def find_page(
        self,
        page: PageRequest,
        filters: Optional[dict] = None,
        min_rating: Optional[float] = None,
        min_rating_count: Optional[int] = None,
        has_feedback: Optional[bool] = None,
    ) -> Page[Story]:
        stmt = self._filtered(select(StoryModel), filters)
        if min_rating is not None:
            stmt = stmt.where(StoryModel.rating >= min_rating)
        if min_rating_count is not None:
            stmt = stmt.where(StoryModel.rating_count >= min_rating_count)
        if has_feedback is not None:
            stmt = stmt.where(
                StoryModel.rating_count > 0 if has_feedback else StoryModel.rating_count == 0
            )
        return await _fetch_page(self.session, stmt, StoryModel, page, self._to_entity)

    @store_call
    async def search(self, query: str, page: PageRequest) -> Page[Story]:
        pattern = f"%{query}%"
        stmt = select(StoryModel).where(
            or_(StoryModel.title.ilike(pattern), StoryModel.content.ilike(pattern))
        )
        return await _fetch_page(self.session, stmt, StoryModel, page, self._to_entity)

    @store_call
    async def find_for_user_artifact(self, user_id: UUID, artifact_id: UUID) -> list[Story]:
        result = await self.session.execute(
            select(StoryModel)
            .where(StoryModel.user_id == user_id, StoryModel.artifact_id == artifact_id)
            .order_by(StoryModel.generated_at.desc())
        )
        return [self._to_entity(m) for m in result.scalars().all()]

    @store_call
    async def sample(self, count: int, genre: Optional[str] = None) -> list[Story]:
        if count <= 0:
            return []
        stmt = select(StoryModel)
        if genre:
            stmt = stmt.where(StoryModel.genre == genre)
        result = await self.session.execute(stmt.order_by(func.random()).limit(count))
        return [self._to_entity(m) for m in result.scalars().all()]

    @store_call
    async def genre_stats(self) -> list[GenreStats]:
        result = await self.session.execute(
            select(
                StoryModel.genre,
                func.count(StoryModel.id),
                func.avg(StoryModel.rating),
                func.sum(StoryModel.rating_count),
            )
            .group_by(StoryModel.genre)
            .order_by(desc(func.count(StoryModel.id)))
        )
        return [
            GenreStats(
                genre=genre,
                count=total,
                avg_rating=round(float(avg or 0.0), 2),
                total_ratings=int(ratings or 0),
            )
            for genre, total, avg, ratings in result.all()
        ]

    @store_call
    async def count(self, filters: Optional[dict] = None) -> int:
        stmt = self._filtered(select(func.count()).select_from(StoryModel), filters)
        result = await self.session.execute(stmt)
        return result.scalar_one()

    @staticmethod
    def _apply(model: StoryModel, story: Story) -> None:
        model.artifact_id = story.artifact_id
        model.user_id = story.user_id
        model.title = story.title
        model.content = story.content
        model.genre = story.genre.value
        model.length = story.length.value
        model.rating = story.rating
        model.rating_count = story.rating_count
        # Fresh list so the JSONB change is detected
        model.feedback = [
            {
                "user_id": str(f.user_id),
                "rating": f.rating,
                "comment": f.comment,
                "created_at": _dt_out(f.created_at),
            }
            for f in story.feedback or []
        ]
        model.generation_params = (
            asdict(story.generation_params) if story.generation_params else None
        )
        model.updated_at = story.updated_at

    @staticmethod
    def _to_entity(model: StoryModel) -> Story:
        params = model.generation_params
        return Story(
            id=model.id,
            artifact_id=model.artifact_id,
            user_id=model.user_id,
            title=model.title,
            content=model.content,
            genre=StoryGenre(model.genre),
            length=StoryLength(model.length),
            rating=model.rating or 0.0,
            rating_count=model.rating_count or 0,
            feedback=[
                StoryFeedback(
                    user_id=UUID(f["user_id"]),
                    rating=f["rating"],
                    comment=f.get("comment"),
                    created_at=_dt_in(f.get("created_at")) or model.updated_at,
                )
                for f in model.feedback or []
            ],
            generation_params=GenerationParams(**params) if params else None,
            generated_at=model.generated_at,
            updated_at=model.updated_at,
        )


# ---------------------------------------------------------------------------
# User Repository
# ---------------------------------------------------------------------------
class UserRepository(IUserRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    @store_call
    async def create(self, user: User) -> User:
        db_user = UserModel(id=user.id, created_at=user.created_at)
        self._apply(db_user, user)
        self.session.add(db_user)
        await self.session.commit()
        await self.session.refresh(db_user)
        return self._to_entity(db_user)

    @store_call
    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        result = await self.session.execute(select(UserModel).where(UserModel.id == user_id))
        db_user = result.scalar_one_or_none()
        return self._to_entity(db_user) if db_user else None

    @store_call
    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.session.execute(
            select(UserModel).where(func.lower(UserModel.email) == email.lower())
        )
        db_user = result.scalar_one_or_none()
        return self._to_entity(db_user) if db_user else None

    @store_call
    async def get_by_username(self, username: str) -> Optional[User]:
        result = await self.session.execute(select(UserModel).where(UserModel.username == username))
        db_user = result.scalar_one_or_none()
        return self._to_entity(db_user) if db_user else None

    @store_call
    async def update(self, user: User) -> User:
        result = await self.session.execute(select(UserModel).where(UserModel.id == user.id))
        db_user = result.scalar_one()
        self._apply(db_user, user)
        db_user.updated_at = datetime.utcnow()
        await self.session.commit()
        await self.session.refresh(db_user)
        return self._to_entity(db_user)

    @store_call
    async def modify(
        self, user_id: UUID, mutate: Callable[[User], User]
    ) -> Optional[User]:
        result = await self.session.execute(
            select(UserModel).where(UserModel.id == user_id).with_for_update()
        )
        db_user = result.scalar_one_or_none()
        if db_user is None:
            await self.session.rollback()
            return None
        self._apply(db_user, mutate(self._to_entity(db_user)))
        db_user.updated_at = datetime.utcnow()
        await self.session.commit()
        await self.session.refresh(db_user)
        return self._to_entity(db_user)

    @store_call
    async def delete(self, user_id: UUID) -> bool:
        result = await self.session.execute(select(UserModel).where(UserModel.id == user_id))
        db_user = result.scalar_one_or_none()
        if db_user:
            await self.session.delete(db_user)
            await self.session.commit()
            return True
        return False

    @store_call
    async def list_page(self, page: PageRequest) -> Page[User]:
        return await _fetch_page(
            self.session, select(UserModel), UserModel, page, self._to_entity
        )

    @store_call
    async def search(self, query: str) -> list[User]:
        pattern = f"%{query}%"
        result = await self.session.execute(
            select(UserModel)
            .where(
                or_(
                    UserModel.username.ilike(pattern),
                    UserModel.first_name.ilike(pattern),
                    UserModel.last_name.ilike(pattern),
                )
            )
            .order_by(UserModel.username)
        )
        return [self._to_entity(m) for m in result.scalars().all()]

    @store_call
    async def count(self, enabled: Optional[bool] = None) -> int:
        stmt = select(func.count()).select_from(UserModel)
        if enabled is not None:
            stmt = stmt.where(UserModel.enabled == enabled)
        result = await self.session.execute(stmt)
        return result.scalar_one()

    @store_call
    async def count_by_role(self) -> dict[str, int]:
        result = await self.session.execute(
            select(UserModel.role, func.count(UserModel.id)).group_by(UserModel.role)
        )
        return {role: total for role, total in result.all()}

    @staticmethod
    def _apply(model: UserModel, user: User) -> None:
        prefs = user.preferences or UserPreferences()
        model.username = user.username
        model.email = user.email
        model.hashed_password = user.hashed_password
        model.role = user.role.value
        model.first_name = user.first_name
        model.last_name = user.last_name
        model.preferences = {
            "favorite_genres": list(prefs.favorite_genres),
            "preferred_length": prefs.preferred_length.value,
            "interests": list(prefs.interests),
            "language": prefs.language,
        }
        model.favorite_artifacts = list(user.favorite_artifacts)
        model.enabled = user.enabled
        model.last_login_at = user.last_login_at

    @staticmethod
    def _to_entity(model: UserModel) -> User:
        prefs = model.preferences or {}
        defaults = UserPreferences()
        return User(
            id=model.id,
            username=model.username,
            email=model.email,
            hashed_password=model.hashed_password,
            role=Role(model.role),
            first_name=model.first_name,
            last_name=model.last_name,
            preferences=UserPreferences(
                favorite_genres=list(prefs.get("favorite_genres", defaults.favorite_genres)),
                preferred_length=StoryLength(
                    prefs.get("preferred_length", defaults.preferred_length.value)
                ),
                interests=list(prefs.get("interests", [])),
                language=prefs.get("language", defaults.language),
            ),
            favorite_artifacts=list(model.favorite_artifacts or []),
            enabled=model.enabled,
            created_at=model.created_at,
            updated_at=model.updated_at,
            last_login_at=model.last_login_at,
        )


# ---------------------------------------------------------------------------
# User Interaction Repository
# ---------------------------------------------------------------------------
class UserInteractionRepository(IUserInteractionRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    @store_call
    async def create(self, interaction: UserInteraction) -> UserInteraction:
        db_interaction = UserInteractionModel(
            id=interaction.id,
            user_id=interaction.user_id,
            artifact_id=interaction.artifact_id,
            action=interaction.action,
            timestamp=interaction.timestamp,
            session_id=interaction.session_id,
            ip_address=interaction.ip_address,
            user_agent=interaction.user_agent,
        )
        self.session.add(db_interaction)
        await self.session.commit()
        await self.session.refresh(db_interaction)
        return self._to_entity(db_interaction)

    async def _select(self, *conditions) -> list[UserInteraction]:
        result = await self.session.execute(
            select(UserInteractionModel)
            .where(*conditions)
            .order_by(UserInteractionModel.timestamp.desc())
        )
        return [self._to_entity(m) for m in result.scalars().all()]

    @store_call
    async def get_by_user(self, user_id: UUID) -> list[UserInteraction]:
        return await self._select(UserInteractionModel.user_id == user_id)

    @store_call
    async def get_by_artifact(self, artifact_id: UUID) -> list[UserInteraction]:
        return await self._select(UserInteractionModel.artifact_id == artifact_id)

    @store_call
    async def get_by_action(self, action: str) -> list[UserInteraction]:
        return await self._select(UserInteractionModel.action == action)

    @store_call
    async def get_for_user_artifact(
        self, user_id: UUID, artifact_id: UUID, action: Optional[str] = None
    ) -> list[UserInteraction]:
        conditions = [
            UserInteractionModel.user_id == user_id,
            UserInteractionModel.artifact_id == artifact_id,
        ]
        if action:
            conditions.append(UserInteractionModel.action == action)
        return await self._select(*conditions)

    @store_call
    async def get_between(
        self, start: datetime, end: Optional[datetime] = None
    ) -> list[UserInteraction]:
        conditions = [UserInteractionModel.timestamp >= start]
        if end is not None:
            conditions.append(UserInteractionModel.timestamp < end)
        return await self._select(*conditions)

    @store_call
    async def most_popular(self, limit: int) -> list[PopularArtifact]:
        if limit <= 0:
            return []
        total = func.count(UserInteractionModel.id).label("total")
        result = await self.session.execute(
            select(
                UserInteractionModel.artifact_id,
                total,
                func.count(distinct(UserInteractionModel.user_id)),
                func.array_agg(distinct(UserInteractionModel.action)),
            )
            .group_by(UserInteractionModel.artifact_id)
            .order_by(desc("total"))
            .limit(limit)
        )
        return [
            PopularArtifact(
                artifact_id=artifact_id,
                total_interactions=count,
                unique_user_count=users,
                actions=sorted(actions or []),
            )
            for artifact_id, count, users, actions in result.all()
        ]

    @store_call
    async def engagement(self) -> list[UserEngagement]:
        total = func.count(UserInteractionModel.id).label("total")
        result = await self.session.execute(
            select(
                UserInteractionModel.user_id,
                total,
                func.count(distinct(UserInteractionModel.artifact_id)),
                func.array_agg(distinct(UserInteractionModel.action)),
                func.max(UserInteractionModel.timestamp),
            )
            .group_by(UserInteractionModel.user_id)
            .order_by(desc("total"))
        )
        return [
            UserEngagement(
                user_id=user_id,
                total_interactions=count,
                unique_artifact_count=artifacts,
                actions=sorted(actions or []),
                last_activity=last,
            )
            for user_id, count, artifacts, actions, last in result.all()
        ]

    @store_call
    async def count(
        self,
        user_id: Optional[UUID] = None,
        artifact_id: Optional[UUID] = None,
        action: Optional[str] = None,
        since: Optional[datetime] = None,
    ) -> int:
        stmt = select(func.count()).select_from(UserInteractionModel)
        if user_id is not None:
            stmt = stmt.where(UserInteractionModel.user_id == user_id)
        if artifact_id is not None:
            stmt = stmt.where(UserInteractionModel.artifact_id == artifact_id)
        if action is not None:
            stmt = stmt.where(UserInteractionModel.action == action)
        if since is not None:
            stmt = stmt.where(UserInteractionModel.timestamp >= since)
        result = await self.session.execute(stmt)
        return result.scalar_one()

    @store_call
    async def delete_before(self, cutoff: datetime) -> int:
        result = await self.session.execute(
            delete(UserInteractionModel).where(UserInteractionModel.timestamp < cutoff)
        )
        await self.session.commit()
        return result.rowcount or 0

    @staticmethod
    def _to_entity(model: UserInteractionModel) -> UserInteraction:
        return UserInteraction(
            id=model.id,
            user_id=model.user_id,
            artifact_id=model.artifact_id,
            action=model.action,
            timestamp=model.timestamp,
            session_id=model.session_id,
            ip_address=model.ip_address,
            user_agent=model.user_agent,
        )
