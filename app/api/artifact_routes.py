"""Artifact catalogue API routes."""

import logging
from typing import Annotated, Optional
from uuid import UUID, uuid4

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from app.api.pagination import page_params
from app.api.schemas import (
    ArtifactCreate,
    ArtifactMetadataResponse,
    ArtifactResponse,
    ArtifactStatisticsResponse,
    ArtifactUpdate,
    CategoryStatsResponse,
    PageResponse,
)
from app.core.dependencies import get_artifact_service, require_admin
from app.domain.entities import Artifact, ArtifactAnalysis, NamedEntity, ObjectDetection, PageRequest, User
from app.domain.exceptions import NotFoundError
from app.domain.services import IArtifactService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/artifacts", tags=["artifacts"])

ArtifactPage = Annotated[
    PageRequest,
    Depends(
        page_params(
            ("created_at", "updated_at", "title", "category", "culture", "period"),
            default_size=12,
            default_sort="created_at",
        )
    ),
]
Service = Annotated[IArtifactService, Depends(get_artifact_service)]


def _page(page) -> PageResponse[ArtifactResponse]:
    return PageResponse[ArtifactResponse].from_page(page, ArtifactResponse)


def _list(artifacts: list[Artifact]) -> list[ArtifactResponse]:
    return [ArtifactResponse.model_validate(a) for a in artifacts]


def _analysis_from_schema(schema) -> Optional[ArtifactAnalysis]:
    if schema is None:
        return None
    return ArtifactAnalysis(
        detections=[ObjectDetection(**d.model_dump()) for d in schema.detections],
        image_embedding=list(schema.image_embedding),
        text_embedding=list(schema.text_embedding),
        entities=[NamedEntity(**e.model_dump()) for e in schema.entities],
        cultural_tags=dict(schema.cultural_tags),
        analyzed_at=schema.analyzed_at,
    )


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------
@router.get("", response_model=PageResponse[ArtifactResponse])
async def list_artifacts(page: ArtifactPage, service: Service):
    return _page(await service.list_artifacts(page))


@router.get("/search", response_model=PageResponse[ArtifactResponse])
async def search_artifacts(page: ArtifactPage, service: Service, q: Optional[str] = None):
    """Free-text search; an empty query lists everything."""
    return _page(await service.search(q, page))


@router.get("/category/{category}", response_model=PageResponse[ArtifactResponse])
async def artifacts_by_category(category: str, page: ArtifactPage, service: Service):
    return _page(await service.find_by("category", category, page))


@router.get("/culture/{culture}", response_model=PageResponse[ArtifactResponse])
async def artifacts_by_culture(culture: str, page: ArtifactPage, service: Service):
    return _page(await service.find_by("culture", culture, page))


@router.get("/period/{period}", response_model=PageResponse[ArtifactResponse])
async def artifacts_by_period(period: str, page: ArtifactPage, service: Service):
    return _page(await service.find_by("period", period, page))


@router.get("/filter", response_model=PageResponse[ArtifactResponse])
async def filter_artifacts(
    page: ArtifactPage,
    service: Service,
    category: Optional[str] = None,
    culture: Optional[str] = None,
    period: Optional[str] = None,
    material: Optional[str] = None,
):
    criteria = {"category": category, "culture": culture, "period": period, "material": material}
    return _page(await service.filter(criteria, page))


@router.get("/analyzed", response_model=PageResponse[ArtifactResponse])
async def analyzed_artifacts(page: ArtifactPage, service: Service):
    return _page(await service.analyzed(True, page))


@router.get("/unanalyzed", response_model=PageResponse[ArtifactResponse])
async def unanalyzed_artifacts(page: ArtifactPage, service: Service):
    return _page(await service.analyzed(False, page))


# ---------------------------------------------------------------------------
# Count-bounded lists
# ---------------------------------------------------------------------------
@router.get("/random", response_model=list[ArtifactResponse])
async def random_artifacts(service: Service, count: Annotated[int, Query(ge=0)] = 6):
    """Random artifacts, at most 50."""
    return _list(await service.random(count))


@router.get("/random/category/{category}", response_model=list[ArtifactResponse])
async def random_artifacts_by_category(
    category: str, service: Service, count: Annotated[int, Query(ge=0)] = 6
):
    """Random artifacts of one category, at most 20."""
    return _list(await service.random_by_category(category, count))


@router.get("/recent", response_model=list[ArtifactResponse])
async def recent_artifacts(service: Service, limit: Annotated[int, Query(ge=1, le=100)] = 10):
    return _list(await service.recent(limit))


@router.get("/source/{source}/{source_id}", response_model=ArtifactResponse)
async def artifact_by_source(source: str, source_id: str, service: Service):
    artifact = await service.get_by_source(source, source_id)
    if artifact is None:
        raise HTTPException(status_code=404, detail="Artifact not found")
    return ArtifactResponse.model_validate(artifact)


# ---------------------------------------------------------------------------
# Vocabulary & statistics
# ---------------------------------------------------------------------------
@router.get("/metadata", response_model=ArtifactMetadataResponse)
async def artifact_metadata(service: Service):
    return ArtifactMetadataResponse(**await service.metadata_summary())


@router.get("/categories", response_model=list[str])
async def artifact_categories(service: Service):
    return await service.distinct("category")


@router.get("/cultures", response_model=list[str])
async def artifact_cultures(service: Service):
    return await service.distinct("culture")


@router.get("/periods", response_model=list[str])
async def artifact_periods(service: Service):
    return await service.distinct("period")


@router.get("/materials", response_model=list[str])
async def artifact_materials(service: Service):
    return await service.distinct("material")


@router.get("/statistics", response_model=ArtifactStatisticsResponse)
async def artifact_statistics(service: Service):
    stats = await service.statistics()
    return ArtifactStatisticsResponse(
        total_artifacts=stats["total_artifacts"],
        category_stats=[CategoryStatsResponse.model_validate(s) for s in stats["category_stats"]],
        culture_counts=stats["culture_counts"],
    )


@router.get("/health")
async def artifacts_health():
    return {"status": "UP", "service": "artifacts"}


# ---------------------------------------------------------------------------
# Single artifact
# ---------------------------------------------------------------------------
@router.get("/{artifact_id}", response_model=ArtifactResponse)
async def get_artifact(artifact_id: UUID, service: Service):
    artifact = await service.get_artifact(artifact_id)
    if artifact is None:
        raise HTTPException(status_code=404, detail="Artifact not found")
    return ArtifactResponse.model_validate(artifact)


@router.get("/{artifact_id}/similar", response_model=list[ArtifactResponse])
async def similar_artifacts(
    artifact_id: UUID, service: Service, count: Annotated[int, Query(ge=0)] = 6
):
    """Same culture and period, at most ``count``; empty for an unknown id."""
    return _list(await service.similar(artifact_id, count))


@router.post("", response_model=ArtifactResponse, status_code=status.HTTP_201_CREATED)
async def create_artifact(
    body: ArtifactCreate,
    service: Service,
    admin: Annotated[User, Depends(require_admin)],
):
    data = body.model_dump(exclude={"analysis"})
    artifact = Artifact(id=uuid4(), analysis=_analysis_from_schema(body.analysis), **data)
    created = await service.create_artifact(artifact)
    return ArtifactResponse.model_validate(created)


@router.put("/{artifact_id}", response_model=ArtifactResponse)
async def update_artifact(
    artifact_id: UUID,
    body: ArtifactUpdate,
    service: Service,
    admin: Annotated[User, Depends(require_admin)],
):
    try:
        updated = await service.update_artifact(artifact_id, body.model_dump(exclude_unset=True))
        return ArtifactResponse.model_validate(updated)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/{artifact_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_artifact(
    artifact_id: UUID,
    service: Service,
    admin: Annotated[User, Depends(require_admin)],
) -> Response:
    try:
        await service.delete_artifact(artifact_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
