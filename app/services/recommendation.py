"""Rule-based recommendation engine for CulturalVault.

Personal recommendations run through a layered fallback chain, each stage
only consulted when the previous one leaves the list short:

  1. Culture matching: the user's interest tags are tested against a
     keyword table and matching cultures supply candidates, minus anything
     the user already interacted with.
  2. Popularity fill: most-interacted artifacts, highest first.
  3. Random fill: uniform random artifacts for whatever is still missing.

Users without an interaction history (and anonymous callers) get the
popularity list directly.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Iterable, Optional
from uuid import UUID

from app.core.config import settings
from app.domain.entities import Artifact, User
from app.domain.repositories import IArtifactRepository, IUserRepository
from app.domain.services import IInteractionService, IRecommendationService

logger = logging.getLogger(__name__)


def match_keyword(tag: str, table: dict) -> Optional[object]:
    """Return the target of the first keyword contained in ``tag``.

    Matching is substring containment on the upper-cased tag; table order
    decides between several matching keywords.
    """
    upper = tag.upper()
    for keyword, target in table.items():
        if keyword.upper() in upper:
            return target
    return None


def _unique(artifacts: Iterable[Artifact]) -> list[Artifact]:
    seen: set[UUID] = set()
    result: list[Artifact] = []
    for artifact in artifacts:
        if artifact.id not in seen:
            seen.add(artifact.id)
            result.append(artifact)
    return result


class RecommendationService(IRecommendationService):

    PER_CULTURE = 5
    PER_FAVORITE = 3
    TRENDING_WINDOW_HOURS = 24
    MAX_CATEGORY_COUNT = 20

    def __init__(
        self,
        artifact_repository: IArtifactRepository,
        user_repository: IUserRepository,
        interaction_service: IInteractionService,
        culture_keywords: Optional[dict[str, str]] = None,
        interest_keywords: Optional[dict[str, tuple[str, str]]] = None,
    ):
        self.artifact_repository = artifact_repository
        self.user_repository = user_repository
        self.interaction_service = interaction_service
        self.culture_keywords = (
            culture_keywords if culture_keywords is not None else settings.culture_keywords
        )
        self.interest_keywords = (
            interest_keywords if interest_keywords is not None else settings.interest_keywords
        )

    async def _load_user(self, user_id: Optional[UUID]) -> Optional[User]:
        if user_id is None:
            return None
        return await self.user_repository.get_by_id(user_id)

    # ------------------------------------------------------------------
    # Personal recommendations
    # ------------------------------------------------------------------
    async def recommend_for(self, user_id: Optional[UUID], count: int) -> list[Artifact]:
        if count <= 0:
            return []

        user = await self._load_user(user_id)
        if user is None:
            return await self.popular(count)

        history = await self.interaction_service.history(user.id)
        if not history:
            logger.debug("User %s has no history, serving popular artifacts", user.id)
            return await self.popular(count)

        viewed = {event.artifact_id for event in history}
        pool = await self._culture_pool(user.preferences.interests, count * 2)
        if not pool:
            pool = await self.artifact_repository.sample(count)

        picks = _unique(a for a in pool if a.id not in viewed)[:count]
        result = await self._fill(picks, count, exclude=viewed)
        logger.info(
            "Recommended %d artifacts for user %s (%d from interests)",
            len(result), user.id, len(picks),
        )
        return result

    async def _culture_pool(self, interests: list[str], cap: int) -> list[Artifact]:
        # Distinct cultures in first-match order; several tags may name the same one
        cultures: list[str] = []
        for interest in interests or []:
            culture = match_keyword(interest, self.culture_keywords)
            if culture is not None and culture not in cultures:
                cultures.append(culture)

        pool: list[Artifact] = []
        for culture in cultures:
            pool.extend(
                await self.artifact_repository.find_by_field("culture", culture, self.PER_CULTURE)
            )
        return _unique(pool)[:cap]

    async def _fill(
        self, collected: list[Artifact], count: int, exclude: set[UUID] = frozenset()
    ) -> list[Artifact]:
        """Top ``collected`` up to ``count`` from popularity, then at random.

        ``exclude`` applies to the popularity stage only. The random tail
        skips artifacts already in the list but may return excluded ones.
        """
        result = list(collected)
        seen = {a.id for a in result}

        if len(result) < count:
            for entry in await self.interaction_service.most_popular(count * 2):
                if len(result) >= count:
                    break
                if entry.artifact_id in seen or entry.artifact_id in exclude:
                    continue
                artifact = await self.artifact_repository.get_by_id(entry.artifact_id)
                if artifact is None:
                    continue
                result.append(artifact)
                seen.add(artifact.id)

        if len(result) < count:
            # A full batch leaves enough fresh picks after skipping collected ones
            candidates = await self.artifact_repository.sample(count)
            for artifact in candidates:
                if len(result) >= count:
                    break
                if artifact.id in seen:
                    continue
                result.append(artifact)
                seen.add(artifact.id)

        return result

    async def popular(self, count: int) -> list[Artifact]:
        if count <= 0:
            return []
        return await self._fill([], count)

    # ------------------------------------------------------------------
    # Auxiliary entry points
    # ------------------------------------------------------------------
    async def similar_to(self, artifact_id: UUID, count: int) -> list[Artifact]:
        """Artifacts sharing culture and period with ``artifact_id``."""
        if count <= 0:
            return []
        artifact = await self.artifact_repository.get_by_id(artifact_id)
        if artifact is None:
            return []
        return await self.artifact_repository.find_siblings(
            artifact.culture, artifact.period, artifact.id, count
        )

    async def by_interests(self, user_id: Optional[UUID], count: int) -> list[Artifact]:
        if count <= 0:
            return []
        user = await self._load_user(user_id)
        interests = user.preferences.interests if user and user.preferences else []
        if not interests:
            return await self.popular(count)

        per_tag = count // len(interests)
        matched: list[Artifact] = []
        for interest in interests:
            rule = match_keyword(interest, self.interest_keywords)
            if rule is None:
                continue
            field, value = rule
            matched.extend(await self.artifact_repository.find_by_field(field, value, per_tag))

        picks = _unique(matched)[:count]
        return await self._fill(picks, count)

    async def trending(self, count: int) -> list[Artifact]:
        """Most-interacted artifacts of the last 24 hours; never padded."""
        if count <= 0:
            return []
        recent = await self.interaction_service.recent(self.TRENDING_WINDOW_HOURS)
        counts = Counter(event.artifact_id for event in recent)

        result: list[Artifact] = []
        for artifact_id, _ in counts.most_common(count):
            artifact = await self.artifact_repository.get_by_id(artifact_id)
            if artifact is not None:
                result.append(artifact)
        return result

    async def favorites_based(self, user_id: Optional[UUID], count: int) -> list[Artifact]:
        if count <= 0:
            return []
        user = await self._load_user(user_id)
        if user is None or not user.favorite_artifacts:
            return await self.popular(count)

        related: list[Artifact] = []
        for favorite_id in user.favorite_artifacts:
            related.extend(await self.similar_to(favorite_id, self.PER_FAVORITE))
        return _unique(related)[:count]

    async def by_category(self, category: str, count: int) -> list[Artifact]:
        count = min(count, self.MAX_CATEGORY_COUNT)
        if count <= 0:
            return []
        return await self.artifact_repository.sample(count, category=category)
