"""Tests for interaction logging and popularity aggregation."""

from uuid import uuid4

import pytest

from app.domain.exceptions import StoreUnavailableError
from app.services.interaction_service import InteractionService
from app.services.recommendation import RecommendationService
from tests.fakes import UnavailableInteractionRepository, make_event, make_user


async def test_record_normalises_action(interaction_service, interaction_repo):
    user_id, artifact_id = uuid4(), uuid4()

    saved = await interaction_service.record(
        user_id, artifact_id, " like ", session_id="s1", ip_address="10.0.0.1"
    )

    assert saved.action == "LIKE"
    assert saved.ip_address == "10.0.0.1"
    assert interaction_repo.items == [saved]


async def test_most_popular_sorted_by_total_desc(interaction_service, interaction_repo):
    a, b, c = uuid4(), uuid4(), uuid4()
    alice, bob = uuid4(), uuid4()
    interaction_repo.items.extend([
        make_event(alice, a), make_event(bob, a, "LIKE"), make_event(alice, a, "LIKE"),
        make_event(alice, b), make_event(bob, b),
        make_event(alice, c),
    ])

    ranked = await interaction_service.most_popular(10)

    assert [p.artifact_id for p in ranked] == [a, b, c]
    assert [p.total_interactions for p in ranked] == [3, 2, 1]
    assert ranked[0].unique_user_count == 2
    assert ranked[0].actions == ["LIKE", "VIEW"]
    totals = [p.total_interactions for p in ranked]
    assert totals == sorted(totals, reverse=True)


async def test_most_popular_respects_limit(interaction_service, interaction_repo):
    interaction_repo.items.extend(make_event(uuid4(), uuid4()) for _ in range(5))

    assert len(await interaction_service.most_popular(3)) == 3


@pytest.mark.parametrize("limit", [0, -1])
async def test_most_popular_non_positive_limit(interaction_service, interaction_repo, limit):
    interaction_repo.items.append(make_event(uuid4(), uuid4()))

    assert await interaction_service.most_popular(limit) == []


async def test_recent_uses_window(interaction_service, interaction_repo):
    fresh = make_event(uuid4(), uuid4(), hours_ago=1)
    stale = make_event(uuid4(), uuid4(), hours_ago=48)
    interaction_repo.items.extend([fresh, stale])

    assert await interaction_service.recent(24) == [fresh]


async def test_history_is_newest_first(interaction_service, interaction_repo):
    user_id = uuid4()
    old = make_event(user_id, uuid4(), hours_ago=5)
    new = make_event(user_id, uuid4(), hours_ago=1)
    interaction_repo.items.extend([old, new, make_event(uuid4(), uuid4())])

    assert await interaction_service.history(user_id) == [new, old]


async def test_has_interacted_and_activity_flags(interaction_service, interaction_repo):
    user_id, artifact_id = uuid4(), uuid4()
    interaction_repo.items.extend([
        make_event(user_id, artifact_id, "VIEW"),
        make_event(user_id, artifact_id, "SAVE"),
    ])

    assert await interaction_service.has_interacted(user_id, artifact_id, "view")
    assert not await interaction_service.has_interacted(user_id, artifact_id, "LIKE")
    assert await interaction_service.activity_flags(user_id, artifact_id) == {
        "viewed": True,
        "liked": False,
        "saved": True,
    }


async def test_engagement_groups_by_user(interaction_service, interaction_repo):
    busy, quiet = uuid4(), uuid4()
    a, b = uuid4(), uuid4()
    interaction_repo.items.extend([
        make_event(busy, a), make_event(busy, b), make_event(busy, a, "LIKE"),
        make_event(quiet, a),
    ])

    engagement = await interaction_service.engagement()

    assert [e.user_id for e in engagement] == [busy, quiet]
    assert engagement[0].unique_artifact_count == 2
    assert engagement[0].actions == ["LIKE", "VIEW"]


async def test_statistics_counts(interaction_service, interaction_repo):
    interaction_repo.items.extend([
        make_event(uuid4(), uuid4(), "VIEW"),
        make_event(uuid4(), uuid4(), "LIKE", hours_ago=30),
        make_event(uuid4(), uuid4(), "SHARE"),
    ])

    stats = await interaction_service.statistics()

    assert stats["total_interactions"] == 3
    assert stats["recent_interactions"] == 2
    assert stats["view_count"] == 1
    assert stats["like_count"] == 1
    assert stats["save_count"] == 0
    assert stats["share_count"] == 1


async def test_purge_older_than(interaction_service, interaction_repo):
    keep = make_event(uuid4(), uuid4(), hours_ago=24)
    interaction_repo.items.extend([keep, make_event(uuid4(), uuid4(), hours_ago=24 * 100)])

    assert await interaction_service.purge_older_than(90) == 1
    assert interaction_repo.items == [keep]


async def test_store_failure_propagates_through_engine(artifact_repo, user_repo):
    service = InteractionService(UnavailableInteractionRepository())
    recommender = RecommendationService(artifact_repo, user_repo, service, {}, {})
    user = make_user()
    user_repo.items[user.id] = user

    with pytest.raises(StoreUnavailableError):
        await service.most_popular(5)
    with pytest.raises(StoreUnavailableError):
        await recommender.recommend_for(user.id, 5)
    with pytest.raises(StoreUnavailableError):
        await recommender.popular(5)
