"""Tests for the story service and its rating aggregator."""

import itertools
from datetime import datetime, timedelta
from uuid import uuid4

import pytest

from app.domain.entities import PageRequest, Story, StoryFeedback, StoryGenre, StoryLength
from app.domain.exceptions import NotFoundError
from app.services.story_service import StoryService, append_feedback
from tests.fakes import FakeStoryRepository


def make_story(title="The Coin", genre=StoryGenre.HISTORICAL, **fields) -> Story:
    defaults = {
        "artifact_id": uuid4(),
        "user_id": uuid4(),
        "content": "Once upon a time a denarius changed hands.",
        "length": StoryLength.SHORT,
    }
    defaults.update(fields)
    return Story(id=uuid4(), title=title, genre=genre, **defaults)


def feedback(rating: int) -> StoryFeedback:
    return StoryFeedback(user_id=uuid4(), rating=rating, comment=f"{rating} stars")


@pytest.mark.parametrize("ratings", list(itertools.permutations([3, 5, 4])))
async def test_rating_is_mean_regardless_of_order(story_service, story_repo, ratings):
    story = make_story()
    story_repo.items[story.id] = story

    for r in ratings:
        updated = await story_service.add_feedback(story.id, feedback(r))

    assert updated.rating == pytest.approx(4.0)
    assert updated.rating_count == 3
    assert [f.rating for f in updated.feedback] == list(ratings)


async def test_rating_stays_consistent_with_feedback(story_service, story_repo):
    story = make_story()
    story_repo.items[story.id] = story

    for r in (1, 2, 2, 5):
        updated = await story_service.add_feedback(story.id, feedback(r))
        assert updated.rating_count == len(updated.feedback)
        assert updated.rating == pytest.approx(
            sum(f.rating for f in updated.feedback) / len(updated.feedback)
        )


async def test_feedback_for_missing_story(story_service):
    missing = uuid4()
    with pytest.raises(NotFoundError, match=str(missing)):
        await story_service.add_feedback(missing, feedback(5))


def test_append_feedback_touches_updated_at():
    story = make_story(updated_at=datetime.utcnow() - timedelta(days=1))
    before = story.updated_at

    append_feedback(story, feedback(2))

    assert story.updated_at > before
    assert story.rating == 2.0


async def test_create_sets_timestamps(story_service):
    created = await story_service.create_story(make_story())

    assert created.updated_at >= created.generated_at
    assert created.rating == 0.0
    assert created.rating_count == 0


async def test_update_only_touches_editable_fields(story_service, story_repo):
    story = make_story()
    story_repo.items[story.id] = story

    updated = await story_service.update_story(
        story.id, {"title": "New title", "content": None, "rating": 5.0}
    )

    assert updated.title == "New title"
    assert updated.content == story.content
    assert updated.rating == 0.0


async def test_update_and_delete_missing_story(story_service):
    with pytest.raises(NotFoundError):
        await story_service.update_story(uuid4(), {"title": "x"})
    with pytest.raises(NotFoundError):
        await story_service.delete_story(uuid4())


async def test_random_is_clamped():
    repo = FakeStoryRepository([make_story(f"S{i}") for i in range(30)])
    service = StoryService(repo)

    assert len(await service.random(100)) == 20
    assert len(await service.random(3)) == 3


async def test_random_by_genre_is_clamped():
    stories = [make_story(f"M{i}", genre=StoryGenre.MYSTERY) for i in range(15)]
    stories.append(make_story("Other", genre=StoryGenre.FANTASY))
    service = StoryService(FakeStoryRepository(stories))

    picked = await service.random_by_genre(StoryGenre.MYSTERY, 50)

    assert len(picked) == 10
    assert all(s.genre == StoryGenre.MYSTERY for s in picked)


async def test_top_rated_skips_unrated(story_service, story_repo):
    unrated = make_story("Unrated")
    good = make_story("Good", rating=4.5, rating_count=2)
    great = make_story("Great", rating=5.0, rating_count=1)
    for s in (unrated, good, great):
        story_repo.items[s.id] = s

    page = await story_service.top_rated(PageRequest(size=10))

    assert [s.title for s in page.content] == ["Great", "Good"]
    assert page.total_elements == 2


async def test_latest_for_user_artifact(story_service, story_repo):
    user_id, artifact_id = uuid4(), uuid4()
    older = make_story(
        "Older", user_id=user_id, artifact_id=artifact_id,
        generated_at=datetime.utcnow() - timedelta(hours=2),
    )
    newer = make_story("Newer", user_id=user_id, artifact_id=artifact_id)
    for s in (older, newer):
        story_repo.items[s.id] = s

    latest = await story_service.latest_for_user_artifact(user_id, artifact_id)

    assert latest.id == newer.id
    assert await story_service.latest_for_user_artifact(uuid4(), artifact_id) is None


async def test_generate_for_artifact_creates_placeholder(story_service, story_repo):
    artifact_id, user_id = uuid4(), uuid4()

    story = await story_service.generate_for_artifact(
        artifact_id, user_id, StoryGenre.MYSTERY, StoryLength.LONG
    )

    assert story_repo.items[story.id] is story
    assert story.artifact_id == artifact_id
    assert story.genre == StoryGenre.MYSTERY
    assert "600-1000" in story.content


async def test_genre_statistics_and_count(story_service, story_repo):
    for s in (
        make_story("A", rating=4.0, rating_count=2),
        make_story("B", rating=2.0, rating_count=1),
        make_story("C", genre=StoryGenre.FANTASY),
    ):
        story_repo.items[s.id] = s

    stats = {g.genre: g for g in await story_service.genre_statistics()}

    assert stats["HISTORICAL"].count == 2
    assert stats["HISTORICAL"].avg_rating == 3.0
    assert stats["HISTORICAL"].total_ratings == 3
    assert await story_service.count() == 3
    assert await story_service.count({"genre": StoryGenre.FANTASY}) == 1
