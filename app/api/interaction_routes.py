"""Interaction logging and popularity routes."""

import logging
from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from app.api.schemas import (
    InteractionCheckResponse,
    InteractionCreate,
    InteractionResponse,
    PopularArtifactResponse,
    TaskDispatchResponse,
    UserEngagementResponse,
)
from app.core.dependencies import get_current_user, get_interaction_service, require_admin
from app.domain.entities import Role, User
from app.domain.services import IInteractionService
from app.infrastructure.tasks.interaction_tasks import purge_old_interactions

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/interactions", tags=["interactions"])

Service = Annotated[IInteractionService, Depends(get_interaction_service)]
CurrentUser = Annotated[User, Depends(get_current_user)]
Admin = Annotated[User, Depends(require_admin)]


def client_ip(request: Request) -> Optional[str]:
    """First hop of X-Forwarded-For, then X-Real-IP, then the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else None


def _list(interactions) -> list[InteractionResponse]:
    return [InteractionResponse.model_validate(i) for i in interactions]


@router.post("", response_model=InteractionResponse, status_code=status.HTTP_201_CREATED)
async def record_interaction(
    body: InteractionCreate, request: Request, service: Service, current_user: CurrentUser
):
    interaction = await service.record(
        current_user.id,
        body.artifact_id,
        body.action,
        session_id=body.session_id,
        ip_address=client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    return InteractionResponse.model_validate(interaction)


@router.get("/my-activity", response_model=list[InteractionResponse])
async def my_activity(service: Service, current_user: CurrentUser):
    return _list(await service.history(current_user.id))


@router.get("/user/{user_id}", response_model=list[InteractionResponse])
async def user_activity(user_id: UUID, service: Service, current_user: CurrentUser):
    if user_id != current_user.id and current_user.role != Role.ADMIN:
        raise HTTPException(status_code=403, detail="Cannot read another user's activity")
    return _list(await service.history(user_id))


@router.get("/artifact/{artifact_id}", response_model=list[InteractionResponse])
async def artifact_activity(artifact_id: UUID, service: Service, current_user: CurrentUser):
    return _list(await service.for_artifact(artifact_id))


@router.get("/action/{action}", response_model=list[InteractionResponse])
async def activity_by_action(action: str, service: Service, admin: Admin):
    return _list(await service.by_action(action))


@router.get("/popular-artifacts", response_model=list[PopularArtifactResponse])
async def popular_artifacts(
    service: Service, current_user: CurrentUser, limit: Annotated[int, Query(ge=0)] = 10
):
    """Artifacts ranked by interaction count with distinct users and action tags."""
    return [PopularArtifactResponse.model_validate(p) for p in await service.most_popular(limit)]


@router.get("/user-engagement", response_model=list[UserEngagementResponse])
async def user_engagement(service: Service, admin: Admin):
    return [UserEngagementResponse.model_validate(e) for e in await service.engagement()]


@router.get("/recent", response_model=list[InteractionResponse])
async def recent_activity(
    service: Service, current_user: CurrentUser, hours: Annotated[int, Query(ge=1)] = 24
):
    return _list(await service.recent(hours))


@router.get("/check/{artifact_id}", response_model=InteractionCheckResponse)
async def check_activity(artifact_id: UUID, service: Service, current_user: CurrentUser):
    flags = await service.activity_flags(current_user.id, artifact_id)
    return InteractionCheckResponse(artifact_id=artifact_id, **flags)


@router.get("/statistics")
async def interaction_statistics(service: Service, current_user: CurrentUser) -> dict:
    return await service.statistics()


@router.post(
    "/cleanup", response_model=TaskDispatchResponse, status_code=status.HTTP_202_ACCEPTED
)
async def cleanup_interactions(
    admin: Admin, days_to_keep: Annotated[int, Query(alias="daysToKeep", ge=1)] = 90
):
    """Queue deletion of interactions older than ``daysToKeep`` days.

    Poll ``GET /tasks/{task_id}`` for the outcome.
    """
    task = purge_old_interactions.delay(days_to_keep)
    logger.info("Celery purge task %s dispatched by %s (keep %d days)", task.id, admin.id, days_to_keep)
    return TaskDispatchResponse(task_id=task.id)
