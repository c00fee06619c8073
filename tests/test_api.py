"""HTTP-level tests with services wired to the in-memory repositories."""

from types import SimpleNamespace
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

import app.api.interaction_routes as interaction_routes
from app.core.dependencies import (
    get_artifact_service,
    get_current_user,
    get_interaction_service,
    get_optional_user,
    get_recommendation_service,
    get_story_service,
    get_user_service,
)
from app.domain.entities import Role, Story, StoryGenre, StoryLength
from app.main import app
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
    UnavailableInteractionRepository,
    make_artifact,
    make_event,
    make_user,
)


class World:
    """Repositories plus the user the request is authenticated as."""

    def __init__(self):
        self.artifacts = FakeArtifactRepository()
        self.stories = FakeStoryRepository()
        self.users = FakeUserRepository()
        self.interactions = FakeInteractionRepository()
        self.current_user = make_user("visitor")
        self.users.items[self.current_user.id] = self.current_user

    def login_as_admin(self):
        self.current_user.role = Role.ADMIN

    def recommender(self, interactions=None) -> RecommendationService:
        return RecommendationService(
            self.artifacts,
            self.users,
            InteractionService(interactions or self.interactions),
            culture_keywords={"ROMAN": "ROMAN"},
            interest_keywords={},
        )


@pytest.fixture
def world():
    w = World()
    app.dependency_overrides.update({
        get_artifact_service: lambda: ArtifactService(w.artifacts),
        get_story_service: lambda: StoryService(w.stories),
        get_user_service: lambda: UserService(w.users),
        get_interaction_service: lambda: InteractionService(w.interactions),
        get_recommendation_service: lambda: w.recommender(),
        get_current_user: lambda: w.current_user,
        get_optional_user: lambda: None,
    })
    yield w
    app.dependency_overrides.clear()


@pytest.fixture
def client(world) -> TestClient:
    return TestClient(app)


def _story(user_id, **fields) -> Story:
    return Story(
        id=uuid4(),
        artifact_id=uuid4(),
        user_id=user_id,
        title="Tale",
        content="It was a dark and stormy night in Pompeii.",
        genre=StoryGenre.MYSTERY,
        length=StoryLength.SHORT,
        **fields,
    )


class TestArtifactRoutes:

    def test_page_envelope(self, client, world):
        for i in range(13):
            a = make_artifact(f"A{i}")
            world.artifacts.items[a.id] = a

        response = client.get("/api/artifacts", params={"size": 5, "page": 2})

        assert response.status_code == 200
        body = response.json()
        assert body["total_elements"] == 13
        assert body["total_pages"] == 3
        assert body["page"] == 2
        assert len(body["content"]) == 3

    def test_camel_case_sort_accepted(self, client):
        response = client.get("/api/artifacts", params={"sortBy": "createdAt", "sortDir": "asc"})
        assert response.status_code == 200

    @pytest.mark.parametrize("params", [{"sortBy": "password"}, {"sortDir": "sideways"}])
    def test_bad_sort_is_400(self, client, params):
        assert client.get("/api/artifacts", params=params).status_code == 400

    def test_random_count_is_clamped(self, client, world):
        for i in range(60):
            a = make_artifact(f"A{i}")
            world.artifacts.items[a.id] = a

        response = client.get("/api/artifacts/random", params={"count": 500})

        assert response.status_code == 200
        assert len(response.json()) == 50

    def test_similar_is_bounded_by_count(self, client, world):
        source = make_artifact("Source")
        world.artifacts.items[source.id] = source
        for i in range(10):
            sibling = make_artifact(f"Sibling {i}")
            world.artifacts.items[sibling.id] = sibling

        default = client.get(f"/api/artifacts/{source.id}/similar")
        narrowed = client.get(f"/api/artifacts/{source.id}/similar", params={"count": 2})

        assert default.status_code == 200
        assert len(default.json()) == 6
        assert str(source.id) not in {a["id"] for a in default.json()}
        assert len(narrowed.json()) == 2
        assert client.get(
            f"/api/artifacts/{source.id}/similar", params={"count": -1}
        ).status_code == 422

    def test_unknown_artifact_is_404(self, client):
        assert client.get(f"/api/artifacts/{uuid4()}").status_code == 404

    def test_create_requires_admin(self, client, world):
        payload = {"title": "Lyre", "culture": "GREEK", "metadata": {"room": 4}}

        assert client.post("/api/artifacts", json=payload).status_code == 403

        world.login_as_admin()
        response = client.post("/api/artifacts", json=payload)
        assert response.status_code == 201
        assert response.json()["metadata"] == {"room": 4}
        assert len(world.artifacts.items) == 1


class TestStoryRoutes:

    def test_feedback_on_missing_story_is_404(self, client):
        response = client.post(f"/api/stories/{uuid4()}/feedback", json={"rating": 4})
        assert response.status_code == 404

    @pytest.mark.parametrize("rating", [0, 6])
    def test_feedback_rating_out_of_range(self, client, world, rating):
        story = _story(world.current_user.id)
        world.stories.items[story.id] = story

        response = client.post(f"/api/stories/{story.id}/feedback", json={"rating": rating})

        assert response.status_code == 422

    def test_feedback_updates_rating(self, client, world):
        story = _story(uuid4())
        world.stories.items[story.id] = story

        client.post(f"/api/stories/{story.id}/feedback", json={"rating": 3})
        response = client.post(
            f"/api/stories/{story.id}/feedback", json={"rating": 5, "comment": "Great"}
        )

        assert response.status_code == 200
        assert response.json()["rating"] == 4.0
        assert response.json()["rating_count"] == 2

    def test_delete_by_non_author_is_403(self, client, world):
        story = _story(uuid4())
        world.stories.items[story.id] = story

        assert client.delete(f"/api/stories/{story.id}").status_code == 403
        assert story.id in world.stories.items

    def test_default_page_size(self, client, world):
        for _ in range(12):
            s = _story(uuid4())
            world.stories.items[s.id] = s

        body = client.get("/api/stories").json()

        assert body["size"] == 10
        assert len(body["content"]) == 10


class TestInteractionRoutes:

    def test_record_uppercases_and_keeps_forwarded_ip(self, client, world):
        response = client.post(
            "/api/interactions",
            json={"artifact_id": str(uuid4()), "action": "like"},
            headers={"X-Forwarded-For": "203.0.113.7, 10.0.0.1"},
        )

        assert response.status_code == 201
        assert response.json()["action"] == "LIKE"
        assert world.interactions.items[0].ip_address == "203.0.113.7"

    @pytest.mark.parametrize("action", ["", "not valid!", "1VIEW"])
    def test_malformed_action_is_422(self, client, action):
        response = client.post(
            "/api/interactions", json={"artifact_id": str(uuid4()), "action": action}
        )
        assert response.status_code == 422

    def test_other_users_activity_is_403(self, client):
        assert client.get(f"/api/interactions/user/{uuid4()}").status_code == 403

    def test_popular_artifacts(self, client, world):
        a, b = uuid4(), uuid4()
        world.interactions.items.extend(
            [make_event(uuid4(), a), make_event(uuid4(), a), make_event(uuid4(), b)]
        )

        body = client.get("/api/interactions/popular-artifacts").json()

        assert [p["artifact_id"] for p in body] == [str(a), str(b)]
        assert body[0]["unique_user_count"] == 2

    def test_cleanup_dispatches_task(self, client, world, monkeypatch):
        calls = []

        def fake_delay(days):
            calls.append(days)
            return SimpleNamespace(id="task-123")

        monkeypatch.setattr(
            interaction_routes, "purge_old_interactions", SimpleNamespace(delay=fake_delay)
        )

        assert client.post("/api/interactions/cleanup").status_code == 403

        world.login_as_admin()
        response = client.post("/api/interactions/cleanup", params={"daysToKeep": 30})

        assert response.status_code == 202
        assert response.json() == {"task_id": "task-123"}
        assert calls == [30]


class TestRecommendationRoutes:

    def test_anonymous_for_me_gets_popular(self, client, world):
        hot, cold = make_artifact("Hot"), make_artifact("Cold")
        for a in (hot, cold):
            world.artifacts.items[a.id] = a
        world.interactions.items.extend(make_event(uuid4(), hot.id) for _ in range(3))
        world.interactions.items.append(make_event(uuid4(), cold.id))

        response = client.get("/api/recommendations/for-me", params={"count": 2})

        assert response.status_code == 200
        assert [a["title"] for a in response.json()] == ["Hot", "Cold"]

    def test_count_zero(self, client):
        assert client.get("/api/recommendations/popular", params={"count": 0}).json() == []

    def test_store_outage_is_503(self, client, world):
        app.dependency_overrides[get_recommendation_service] = (
            lambda: world.recommender(UnavailableInteractionRepository())
        )

        response = client.get("/api/recommendations/popular")

        assert response.status_code == 503
        assert response.json()["detail"] == "Storage backend unavailable"


class TestUserRoutes:

    def test_favorite_toggle(self, client, world):
        artifact_id = uuid4()

        client.post(f"/api/users/favorites/{artifact_id}")
        client.post(f"/api/users/favorites/{artifact_id}")
        check = client.get(f"/api/users/favorites/{artifact_id}/check").json()

        assert world.current_user.favorite_artifacts == [artifact_id]
        assert check["is_favorite"] is True

    def test_user_listing_requires_admin(self, client, world):
        assert client.get("/api/users").status_code == 403
        world.login_as_admin()
        assert client.get("/api/users").json()["total_elements"] == 1
