"""Interaction logging and popularity aggregation."""

import logging
from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID, uuid4

from app.domain.entities import PopularArtifact, UserEngagement, UserInteraction
from app.domain.repositories import IUserInteractionRepository
from app.domain.services import IInteractionService

logger = logging.getLogger(__name__)

KNOWN_ACTIONS = ("VIEW", "LIKE", "SAVE", "SHARE")


class InteractionService(IInteractionService):
    """Appends to the interaction log and answers aggregate queries over it.

    Every query reads the store directly; nothing is cached between calls.
    """

    def __init__(self, interaction_repository: IUserInteractionRepository):
        self.interaction_repository = interaction_repository

    async def record(
        self,
        user_id: UUID,
        artifact_id: UUID,
        action: str,
        session_id: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> UserInteraction:
        interaction = UserInteraction(
            id=uuid4(),
            user_id=user_id,
            artifact_id=artifact_id,
            action=action.strip().upper(),
            timestamp=datetime.utcnow(),
            session_id=session_id,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        saved = await self.interaction_repository.create(interaction)
        logger.info("Recorded %s of artifact %s by user %s", saved.action, artifact_id, user_id)
        return saved

    async def history(self, user_id: UUID) -> list[UserInteraction]:
        return await self.interaction_repository.get_by_user(user_id)

    async def for_artifact(self, artifact_id: UUID) -> list[UserInteraction]:
        return await self.interaction_repository.get_by_artifact(artifact_id)

    async def by_action(self, action: str) -> list[UserInteraction]:
        return await self.interaction_repository.get_by_action(action.upper())

    async def for_user_artifact(
        self, user_id: UUID, artifact_id: UUID
    ) -> list[UserInteraction]:
        return await self.interaction_repository.get_for_user_artifact(user_id, artifact_id)

    async def recent(self, hours: int) -> list[UserInteraction]:
        since = datetime.utcnow() - timedelta(hours=hours)
        return await self.interaction_repository.get_between(since)

    async def between(self, start: datetime, end: datetime) -> list[UserInteraction]:
        return await self.interaction_repository.get_between(start, end)

    async def most_popular(self, limit: int) -> list[PopularArtifact]:
        """Artifacts ranked by total interaction count, highest first."""
        if limit <= 0:
            return []
        ranked = await self.interaction_repository.most_popular(limit)
        logger.debug("Popularity ranking returned %d artifacts", len(ranked))
        return ranked

    async def engagement(self) -> list[UserEngagement]:
        return await self.interaction_repository.engagement()

    async def has_interacted(self, user_id: UUID, artifact_id: UUID, action: str) -> bool:
        matches = await self.interaction_repository.get_for_user_artifact(
            user_id, artifact_id, action.upper()
        )
        return bool(matches)

    async def activity_flags(self, user_id: UUID, artifact_id: UUID) -> dict[str, bool]:
        """Whether the user has viewed, liked or saved the artifact."""
        events = await self.interaction_repository.get_for_user_artifact(user_id, artifact_id)
        actions = {e.action for e in events}
        return {
            "viewed": "VIEW" in actions,
            "liked": "LIKE" in actions,
            "saved": "SAVE" in actions,
        }

    async def statistics(self) -> dict:
        since = datetime.utcnow() - timedelta(hours=24)
        stats = {
            "total_interactions": await self.interaction_repository.count(),
            "recent_interactions": await self.interaction_repository.count(since=since),
        }
        for action in KNOWN_ACTIONS:
            stats[f"{action.lower()}_count"] = await self.interaction_repository.count(
                action=action
            )
        return stats

    async def purge_older_than(self, days_to_keep: int) -> int:
        cutoff = datetime.utcnow() - timedelta(days=days_to_keep)
        deleted = await self.interaction_repository.delete_before(cutoff)
        logger.info("Purged %d interactions older than %s", deleted, cutoff.isoformat())
        return deleted
