"""Artifact catalogue service."""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Optional
from uuid import UUID

from app.domain.entities import Artifact, Page, PageRequest
from app.domain.exceptions import NotFoundError
from app.domain.repositories import IArtifactRepository
from app.domain.services import IArtifactService

logger = logging.getLogger(__name__)

MAX_RANDOM_ARTIFACTS = 50
MAX_RANDOM_BY_CATEGORY = 20
EDITABLE_FIELDS = (
    "title",
    "description",
    "category",
    "culture",
    "period",
    "material",
    "image_url",
    "thumbnail_url",
    "metadata",
)


class ArtifactService(IArtifactService):

    def __init__(self, artifact_repository: IArtifactRepository):
        self.artifact_repository = artifact_repository

    async def create_artifact(self, artifact: Artifact) -> Artifact:
        now = datetime.utcnow()
        artifact.created_at = now
        artifact.updated_at = now
        created = await self.artifact_repository.create(artifact)
        logger.info("Artifact created: %s (%s)", created.id, created.title)
        return created

    async def get_artifact(self, artifact_id: UUID) -> Optional[Artifact]:
        return await self.artifact_repository.get_by_id(artifact_id)

    async def update_artifact(self, artifact_id: UUID, changes: dict) -> Artifact:
        existing = await self.artifact_repository.get_by_id(artifact_id)
        if existing is None:
            raise NotFoundError("Artifact", artifact_id)
        updates = {k: v for k, v in changes.items() if k in EDITABLE_FIELDS and v is not None}
        artifact = replace(existing, **updates, updated_at=datetime.utcnow())
        updated = await self.artifact_repository.update(artifact)
        logger.info("Artifact updated: %s", artifact_id)
        return updated

    async def delete_artifact(self, artifact_id: UUID) -> None:
        if not await self.artifact_repository.delete(artifact_id):
            raise NotFoundError("Artifact", artifact_id)
        logger.info("Artifact deleted: %s", artifact_id)

    async def list_artifacts(self, page: PageRequest) -> Page[Artifact]:
        return await self.artifact_repository.find_page(page)

    async def search(self, query: Optional[str], page: PageRequest) -> Page[Artifact]:
        if not query or not query.strip():
            return await self.artifact_repository.find_page(page)
        return await self.artifact_repository.search(query.strip(), page)

    async def find_by(self, field: str, value: str, page: PageRequest) -> Page[Artifact]:
        return await self.artifact_repository.find_page(page, filters={field: value})

    async def filter(
        self, criteria: dict[str, Optional[str]], page: PageRequest
    ) -> Page[Artifact]:
        """Substring match on every supplied criterion; blanks are ignored."""
        filters = {k: v.strip() for k, v in criteria.items() if v and v.strip()}
        return await self.artifact_repository.find_page(page, filters=filters, partial=True)

    async def random(self, count: int) -> list[Artifact]:
        return await self.artifact_repository.sample(min(count, MAX_RANDOM_ARTIFACTS))

    async def random_by_category(self, category: str, count: int) -> list[Artifact]:
        return await self.artifact_repository.sample(
            min(count, MAX_RANDOM_BY_CATEGORY), category=category
        )

    async def similar(self, artifact_id: UUID, count: int) -> list[Artifact]:
        if count <= 0:
            return []
        artifact = await self.artifact_repository.get_by_id(artifact_id)
        if artifact is None:
            return []
        return await self.artifact_repository.find_siblings(
            artifact.culture, artifact.period, artifact.id, count
        )

    async def analyzed(self, analyzed: bool, page: PageRequest) -> Page[Artifact]:
        return await self.artifact_repository.find_analyzed(analyzed, page)

    async def recent(self, limit: int) -> list[Artifact]:
        return await self.artifact_repository.find_recent(limit)

    async def get_by_source(self, source: str, source_id: str) -> Optional[Artifact]:
        return await self.artifact_repository.get_by_source(source, source_id)

    async def distinct(self, field: str) -> list[str]:
        return await self.artifact_repository.distinct_values(field)

    async def metadata_summary(self) -> dict:
        return {
            "categories": await self.artifact_repository.distinct_values("category"),
            "cultures": await self.artifact_repository.distinct_values("culture"),
            "periods": await self.artifact_repository.distinct_values("period"),
            "materials": await self.artifact_repository.distinct_values("material"),
            "total_artifacts": await self.artifact_repository.count(),
        }

    async def statistics(self) -> dict:
        return {
            "total_artifacts": await self.artifact_repository.count(),
            "category_stats": await self.artifact_repository.category_stats(),
            "culture_counts": await self.artifact_repository.count_by("culture"),
        }
