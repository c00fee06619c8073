"""Test configuration and fixtures."""

import pytest

from app.services.artifact_service import ArtifactService
from app.services.interaction_service import InteractionService
from app.services.recommendation import RecommendationService
from app.services.story_service import StoryService
from app.services.user_service import UserService
from tests.fakes import (
    FakeArtifactRepository,
    FakeInteractionRepository,
    FakeStoryRepository,
    FakeUserRepository,
)


@pytest.fixture
def artifact_repo() -> FakeArtifactRepository:
    return FakeArtifactRepository()


@pytest.fixture
def story_repo() -> FakeStoryRepository:
    return FakeStoryRepository()


@pytest.fixture
def user_repo() -> FakeUserRepository:
    return FakeUserRepository()


@pytest.fixture
def interaction_repo() -> FakeInteractionRepository:
    return FakeInteractionRepository()


@pytest.fixture
def interaction_service(interaction_repo) -> InteractionService:
    return InteractionService(interaction_repo)


@pytest.fixture
def recommender(artifact_repo, user_repo, interaction_service) -> RecommendationService:
    return RecommendationService(
        artifact_repository=artifact_repo,
        user_repository=user_repo,
        interaction_service=interaction_service,
        culture_keywords={"ROMAN": "ROMAN", "GREEK": "GREEK", "EGYPTIAN": "EGYPTIAN"},
        interest_keywords={
            "ANCIENT": ("period", "ANCIENT"),
            "COIN": ("category", "COIN"),
            "ART": ("category", "PAINTING"),
        },
    )


@pytest.fixture
def artifact_service(artifact_repo) -> ArtifactService:
    return ArtifactService(artifact_repo)


@pytest.fixture
def story_service(story_repo) -> StoryService:
    return StoryService(story_repo)


@pytest.fixture
def user_service(user_repo) -> UserService:
    return UserService(user_repo)
