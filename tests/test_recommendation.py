"""Tests for the rule-based recommendation engine."""

from uuid import uuid4

import pytest

from app.services.recommendation import RecommendationService, match_keyword
from tests.fakes import make_artifact, make_event, make_user


def _ids(artifacts):
    return [a.id for a in artifacts]


def _seed(artifact_repo, *artifacts):
    for a in artifacts:
        artifact_repo.items[a.id] = a


def _interact(interaction_repo, artifact, times, user_id=None, hours_ago=0):
    for _ in range(times):
        interaction_repo.items.append(
            make_event(user_id or uuid4(), artifact.id, hours_ago=hours_ago)
        )


# ---------------------------------------------------------------------------
# Keyword matching
# ---------------------------------------------------------------------------
def test_match_keyword_is_case_insensitive_substring():
    table = {"ROMAN": "ROMAN", "GREEK": "GREEK"}
    assert match_keyword("ancient_rome_and_roman_coins", table) == "ROMAN"
    assert match_keyword("Greek_Art", table) == "GREEK"
    assert match_keyword("VIKING_CULTURE", table) is None


def test_match_keyword_first_table_entry_wins():
    table = {"ROMAN": "ROMAN", "GREEK": "GREEK"}
    assert match_keyword("GREEK_AND_ROMAN", table) == "ROMAN"


# ---------------------------------------------------------------------------
# recommend_for
# ---------------------------------------------------------------------------
async def test_zero_count_returns_empty(recommender, artifact_repo, user_repo):
    _seed(artifact_repo, make_artifact())
    user = make_user()
    user_repo.items[user.id] = user
    assert await recommender.recommend_for(user.id, 0) == []
    assert await recommender.recommend_for(None, 0) == []


async def test_new_user_receives_popular_list(recommender, artifact_repo, user_repo, interaction_repo):
    a, b, c, d = (make_artifact(f"A{i}") for i in range(4))
    _seed(artifact_repo, a, b, c, d)
    _interact(interaction_repo, a, 3)
    _interact(interaction_repo, b, 2)
    _interact(interaction_repo, c, 1)
    user = make_user(interests=["ANCIENT_ROME"])
    user_repo.items[user.id] = user

    result = await recommender.recommend_for(user.id, 3)

    assert _ids(result) == [a.id, b.id, c.id]
    assert _ids(result) == _ids(await recommender.popular(3))


@pytest.mark.parametrize("user_id", [None, uuid4()])
async def test_anonymous_or_unknown_user_gets_popular(recommender, artifact_repo, interaction_repo, user_id):
    a, b = make_artifact("A"), make_artifact("B")
    _seed(artifact_repo, a, b)
    _interact(interaction_repo, b, 2)
    _interact(interaction_repo, a, 1)

    assert _ids(await recommender.recommend_for(user_id, 2)) == [b.id, a.id]


async def test_interest_matches_exclude_viewed(recommender, artifact_repo, user_repo, interaction_repo):
    r1, r2, r3 = (make_artifact(f"Roman {i}", culture="ROMAN") for i in range(3))
    others = [make_artifact(f"Other {i}", culture="CHINESE", period="MEDIEVAL") for i in range(3)]
    _seed(artifact_repo, r1, r2, r3, *others)
    user = make_user(interests=["ROMAN_HISTORY"])
    user_repo.items[user.id] = user
    _interact(interaction_repo, r1, 1, user_id=user.id)

    result = await recommender.recommend_for(user.id, 2)

    assert set(_ids(result)) == {r2.id, r3.id}


async def test_culture_pool_is_capped_at_twice_count(recommender, artifact_repo, user_repo, interaction_repo):
    romans = [make_artifact(f"Roman {i}", culture="ROMAN") for i in range(5)]
    greeks = [make_artifact(f"Greek {i}", culture="GREEK") for i in range(5)]
    seen = make_artifact("Seen", culture="VIKING", period="MEDIEVAL")
    _seed(artifact_repo, *romans, *greeks, seen)
    user = make_user(interests=["ROMAN_COINS", "GREEK_POTTERY"])
    user_repo.items[user.id] = user
    _interact(interaction_repo, seen, 1, user_id=user.id)

    result = await recommender.recommend_for(user.id, 2)

    assert len(result) == 2
    assert all(a.culture == "ROMAN" for a in result)


async def test_culture_pool_queries_each_culture_once(recommender, artifact_repo, user_repo, interaction_repo):
    romans = [make_artifact(f"Roman {i}", culture="ROMAN") for i in range(3)]
    greek = make_artifact("Greek", culture="GREEK")
    seen = make_artifact("Seen", culture="VIKING", period="MEDIEVAL")
    _seed(artifact_repo, *romans, greek, seen)
    user = make_user(interests=["ROMAN_COINS", "GREEK_VASES", "roman_roads", "ROMAN_LAW"])
    user_repo.items[user.id] = user
    _interact(interaction_repo, seen, 1, user_id=user.id)

    result = await recommender.recommend_for(user.id, 4)

    assert artifact_repo.field_calls == [("culture", "ROMAN", 5), ("culture", "GREEK", 5)]
    assert set(_ids(result)) == {*(r.id for r in romans), greek.id}


async def test_popularity_fill_skips_viewed_artifacts(recommender, artifact_repo, user_repo, interaction_repo):
    viewed = make_artifact("Viewed", culture="VIKING")
    hot = make_artifact("Hot", culture="VIKING")
    roman = make_artifact("Roman", culture="ROMAN")
    _seed(artifact_repo, viewed, hot, roman)
    user = make_user(interests=["ROMAN_EMPIRE"])
    user_repo.items[user.id] = user
    _interact(interaction_repo, viewed, 5)
    _interact(interaction_repo, hot, 3)
    _interact(interaction_repo, viewed, 1, user_id=user.id)

    result = await recommender.recommend_for(user.id, 2)

    assert _ids(result) == [roman.id, hot.id]


async def test_random_tail_avoids_duplicates_but_may_repeat_viewed(
    recommender, artifact_repo, user_repo, interaction_repo
):
    viewed = make_artifact("Viewed", culture="VIKING")
    fresh = make_artifact("Fresh", culture="VIKING")
    _seed(artifact_repo, viewed, fresh)
    user = make_user(interests=[])
    user_repo.items[user.id] = user
    _interact(interaction_repo, viewed, 1, user_id=user.id)

    result = await recommender.recommend_for(user.id, 2)

    assert _ids(result) == [fresh.id, viewed.id]


@pytest.mark.parametrize("count", [0, 1, 3, 7, 20])
async def test_result_is_bounded_and_unique(recommender, artifact_repo, user_repo, interaction_repo, count):
    artifacts = [make_artifact(f"A{i}", culture="ROMAN" if i % 2 else "GREEK") for i in range(6)]
    _seed(artifact_repo, *artifacts)
    user = make_user(interests=["ROMAN", "GREEK", "EGYPTIAN"])
    user_repo.items[user.id] = user
    _interact(interaction_repo, artifacts[0], 1, user_id=user.id)
    for i, a in enumerate(artifacts):
        _interact(interaction_repo, a, i + 1)

    result = await recommender.recommend_for(user.id, count)

    assert len(result) <= count
    assert len(set(_ids(result))) == len(result)


async def test_popular_skips_dangling_ids_and_fills_randomly(recommender, artifact_repo, interaction_repo):
    a, b, c = (make_artifact(f"A{i}") for i in range(3))
    _seed(artifact_repo, a, b, c)
    interaction_repo.items.extend(make_event(uuid4(), uuid4()) for _ in range(4))
    _interact(interaction_repo, b, 2)

    result = await recommender.popular(3)

    assert result[0].id == b.id
    assert sorted(map(str, _ids(result))) == sorted(map(str, [a.id, b.id, c.id]))


async def test_keyword_table_is_configurable(artifact_repo, user_repo, interaction_service, interaction_repo):
    recommender = RecommendationService(
        artifact_repository=artifact_repo,
        user_repository=user_repo,
        interaction_service=interaction_service,
        culture_keywords={"NORSE": "VIKING"},
        interest_keywords={},
    )
    ring = make_artifact("Arm ring", culture="VIKING", period="MEDIEVAL")
    other = make_artifact("Other", culture="ROMAN")
    _seed(artifact_repo, ring, other)
    user = make_user(interests=["norse_sagas"])
    user_repo.items[user.id] = user
    _interact(interaction_repo, other, 1, user_id=user.id)

    assert _ids(await recommender.recommend_for(user.id, 1)) == [ring.id]


# ---------------------------------------------------------------------------
# Auxiliary entry points
# ---------------------------------------------------------------------------
async def test_similar_to_excludes_source(recommender, artifact_repo):
    source = make_artifact("Source")
    siblings = [make_artifact(f"Sibling {i}") for i in range(3)]
    unrelated = make_artifact("Unrelated", culture="GREEK")
    _seed(artifact_repo, source, *siblings, unrelated)

    result = await recommender.similar_to(source.id, 10)

    assert source.id not in _ids(result)
    assert set(_ids(result)) == {s.id for s in siblings}
    assert len(await recommender.similar_to(source.id, 2)) == 2


async def test_similar_to_unknown_artifact_is_empty(recommender):
    assert await recommender.similar_to(uuid4(), 5) == []


async def test_by_interests_scenario_three_matches_plus_popular_fill(
    recommender, artifact_repo, user_repo, interaction_repo
):
    romans = [make_artifact(f"Roman {i}", culture="ROMAN", period="ANCIENT") for i in range(3)]
    others = [
        make_artifact(f"Other {i}", culture="CHINESE", period="MEDIEVAL", category="SCULPTURE")
        for i in range(10)
    ]
    _seed(artifact_repo, *romans, *others)
    for i, other in enumerate(others[:4]):
        _interact(interaction_repo, other, 4 - i)
    user = make_user(interests=["ANCIENT_ROME"])
    user_repo.items[user.id] = user

    result = await recommender.by_interests(user.id, 5)

    assert len(result) == 5
    assert len(set(_ids(result))) == 5
    assert sum(1 for a in result if a.culture == "ROMAN") == 3
    assert _ids(result)[3:] == [others[0].id, others[1].id]


async def test_by_interests_without_user_falls_back_to_popular(recommender, artifact_repo, interaction_repo):
    a, b = make_artifact("A"), make_artifact("B")
    _seed(artifact_repo, a, b)
    _interact(interaction_repo, a, 2)
    _interact(interaction_repo, b, 1)

    assert _ids(await recommender.by_interests(None, 2)) == [a.id, b.id]


async def test_by_interests_uses_integer_quota_per_tag(recommender, artifact_repo, user_repo):
    coins = [make_artifact(f"Coin {i}", category="COIN", period="MEDIEVAL") for i in range(4)]
    _seed(artifact_repo, *coins)
    user = make_user(interests=["COIN_HOARDS", "VIKING_CULTURE", "BYZANTIUM"])
    user_repo.items[user.id] = user

    result = await recommender.by_interests(user.id, 2)

    # 2 // 3 == 0 per tag, so everything comes from the fallback fill
    assert len(result) == 2
    assert artifact_repo.sample_calls == [(2, None)]


async def test_trending_counts_last_day_only_and_never_pads(recommender, artifact_repo, interaction_repo):
    old, hot, warm, cold = (make_artifact(n) for n in ("Old", "Hot", "Warm", "Cold"))
    _seed(artifact_repo, old, hot, warm, cold)
    _interact(interaction_repo, old, 5, hours_ago=30)
    _interact(interaction_repo, hot, 2, hours_ago=1)
    _interact(interaction_repo, warm, 1, hours_ago=2)

    assert _ids(await recommender.trending(5)) == [hot.id, warm.id]


async def test_favorites_based_collects_similar_without_padding(recommender, artifact_repo, user_repo):
    fav_roman = make_artifact("Fav Roman")
    roman_siblings = [make_artifact(f"Roman {i}") for i in range(4)]
    fav_greek = make_artifact("Fav Greek", culture="GREEK")
    greek_sibling = make_artifact("Greek sibling", culture="GREEK")
    filler = [make_artifact(f"Filler {i}", culture="CHINESE", period="MEDIEVAL") for i in range(10)]
    _seed(artifact_repo, fav_roman, *roman_siblings, fav_greek, greek_sibling, *filler)
    user = make_user(favorites=[fav_roman.id, fav_greek.id])
    user_repo.items[user.id] = user

    result = await recommender.favorites_based(user.id, 10)

    assert len(result) <= 6
    assert len(result) == 4
    assert len(set(_ids(result))) == len(result)
    assert greek_sibling.id in _ids(result)
    assert not any(a.culture == "CHINESE" for a in result)


async def test_favorites_based_without_favorites_is_popular(recommender, artifact_repo, user_repo, interaction_repo):
    a = make_artifact("A")
    _seed(artifact_repo, a)
    _interact(interaction_repo, a, 1)
    user = make_user()
    user_repo.items[user.id] = user

    assert _ids(await recommender.favorites_based(user.id, 1)) == [a.id]


async def test_by_category_is_clamped(recommender, artifact_repo):
    _seed(artifact_repo, *(make_artifact(f"Coin {i}", category="COIN") for i in range(30)))

    result = await recommender.by_category("coin", 50)

    assert len(result) == 20
    assert artifact_repo.sample_calls[-1] == (20, "coin")
