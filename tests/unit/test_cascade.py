from __future__ import annotations

import asyncio
import dataclasses
from typing import Any, Dict, List

import numpy as np
import pytest

from api.core.cascade import (
    FRIEND_POLICY,
    USER_POLICY,
    DomainPlan,
    FallbackCascade,
)
from api.core.scorer import RelevanceScorer
from api.core.taxonomy import default_taxonomy
from catalog.qloo_client import CatalogQuery
from tests.helpers import StubCatalog, make_entity, make_profile

USER_NO_JITTER = dataclasses.replace(USER_POLICY, jitter_width=0.0)
FRIEND_NO_JITTER = dataclasses.replace(FRIEND_POLICY, jitter_width=0.0)
SCI_FI_TAG = "urn:tag:genre:book:science_fiction"


def _cascade(client, seed: int = 0) -> FallbackCascade:
    taxonomy = default_taxonomy()
    return FallbackCascade(
        client, taxonomy, RelevanceScorer(taxonomy), np.random.default_rng(seed)
    )


def _user_plan(domain: str, labels: List[str]) -> DomainPlan:
    return DomainPlan(
        domain=domain,
        primary_labels=tuple(labels),
        secondary_labels=default_taxonomy().fallback_labels(domain),
        signal_labels=frozenset(labels),
    )


def test_tier_one_scores_and_explains_user_genre():
    client = StubCatalog(
        {
            SCI_FI_TAG: [
                make_entity(
                    "B1",
                    "Hyperion",
                    tags=["Science Fiction", "Space Opera"],
                    popularity=0.5,
                    description="x" * 40,
                )
            ]
        }
    )
    profile = make_profile(books=["sci-fi"])

    recs = asyncio.run(
        _cascade(client).run_domain(profile, _user_plan("books", ["sci-fi"]), USER_NO_JITTER)
    )

    assert len(recs) == 1
    assert recs[0].relevance_score == pytest.approx(0.7)
    assert recs[0].explanation == "Recommended because you like sci-fi books"
    assert client.queries[0].tag == SCI_FI_TAG
    assert client.queries[0].take == 8
    assert 0 <= client.queries[0].skip <= 9
    assert client.queries[0].release_year_min == "15"


def test_unmapped_interests_fire_fallback_tier():
    client = StubCatalog(default=[make_entity("p", "Daily Pod", tags=["News"])])
    profile = make_profile(podcasts=["astrology", "knitting"])

    recs = asyncio.run(
        _cascade(client).run_domain(
            profile, _user_plan("podcasts", ["astrology", "knitting"]), USER_POLICY
        )
    )

    fallback_tags = {
        default_taxonomy().tag_for("podcasts", label)
        for label in default_taxonomy().fallback_labels("podcasts")
    }
    assert recs
    assert len(client.queries) == 3
    assert {q.tag for q in client.queries} <= fallback_tags
    for rec in recs:
        assert rec.explanation.startswith("Popular ")
        assert rec.explanation.endswith("podcasts you might enjoy")
        assert "because you like" not in rec.explanation


def test_empty_tier_one_results_refire_fallback_labels():
    client = StubCatalog(
        {"urn:tag:genre:book:fantasy": []},
        default=[make_entity("x", "Some Book")],
    )
    profile = make_profile(books=["fantasy"])

    recs = asyncio.run(
        _cascade(client).run_domain(profile, _user_plan("books", ["fantasy"]), USER_POLICY)
    )

    assert client.queries[0].tag == "urn:tag:genre:book:fantasy"
    assert len(client.queries) == 4
    assert recs
    assert all(rec.explanation.endswith("books you might enjoy") for rec in recs)


def test_fallback_tier_skips_labels_already_tried():
    client = StubCatalog({}, default=None)
    profile = make_profile(books=["fiction", "mystery", "romance"])
    plan = DomainPlan(
        domain="books",
        primary_labels=("fiction", "mystery", "romance"),
        secondary_labels=("fiction", "mystery", "romance"),
        signal_labels=frozenset({"fiction", "mystery", "romance"}),
    )

    asyncio.run(_cascade(client).run_domain(profile, plan, USER_POLICY))

    # three tier-one queries, no tier-two repeats, then the emergency call
    assert len(client.queries) == 4
    assert client.queries[-1].take == USER_POLICY.emergency_take


class _EmergencyOnlyCatalog(StubCatalog):
    async def fetch_entities(self, query: CatalogQuery) -> List[Dict[str, Any]]:
        self.queries.append(query)
        if query.release_year_min is None:
            return [make_entity("E1", "Emergency Pick", popularity=0.9)]
        return []


@pytest.mark.parametrize(
    "policy, score, explanation",
    [
        (USER_POLICY, 0.5, "Popular fiction books you might discover"),
        (FRIEND_POLICY, 0.4, "Trending fiction books to explore"),
    ],
)
def test_emergency_tier_uses_flat_score(policy, score, explanation):
    client = _EmergencyOnlyCatalog()
    profile = make_profile(books=["sci-fi"])

    recs = asyncio.run(
        _cascade(client).run_domain(profile, _user_plan("books", ["sci-fi"]), policy)
    )

    emergency = client.queries[-1]
    assert emergency.tag == "urn:tag:genre:book:fiction"
    assert emergency.age == "25_to_29"
    assert emergency.gender == "male"
    assert emergency.take == policy.emergency_take
    assert 0 <= emergency.skip <= 4
    assert [rec.relevance_score for rec in recs] == [score]
    assert recs[0].explanation == explanation


def test_catalog_outage_yields_empty_domain_without_error():
    client = StubCatalog()
    profile = make_profile(tv_shows=["drama"])

    recs = asyncio.run(
        _cascade(client).run(profile, [_user_plan("tv_shows", ["drama"])], USER_POLICY)
    )

    assert recs == []
    assert client.queries[-1].take == USER_POLICY.emergency_take


def test_unsupported_domain_is_skipped():
    client = StubCatalog(default=[make_entity("x", "X")])

    recs = asyncio.run(
        _cascade(client).run_domain(make_profile(), _user_plan("comics", []), USER_POLICY)
    )

    assert recs == []
    assert client.queries == []


def test_domains_run_independently():
    client = StubCatalog(default=[make_entity("x", "Thing", tags=["Drama"])])
    profile = make_profile(books=["mystery"], movies=["drama"], brands=["food"])
    plans = [
        _user_plan("books", ["mystery"]),
        _user_plan("movies", ["drama"]),
        _user_plan("brands", ["food"]),
    ]

    recs = asyncio.run(_cascade(client).run(profile, plans, USER_POLICY))

    assert {rec.entity_type for rec in recs} == {"books", "movies", "brands"}
    assert [rec.entity_type for rec in recs] == sorted(
        (rec.entity_type for rec in recs),
        key=["books", "movies", "brands"].index,
    )


def test_tier_one_selects_at_most_three_genres():
    labels = ["action", "comedy", "drama", "horror", "romance"]
    client = StubCatalog(default=[make_entity("x", "Film")])

    asyncio.run(
        _cascade(client).run_domain(
            make_profile(movies=labels), _user_plan("movies", labels), USER_POLICY
        )
    )

    assert len(client.queries) == 3
    assert len({q.tag for q in client.queries}) == 3


def test_genre_selection_varies_with_seed_but_scores_do_not():
    labels = ["action", "comedy", "drama", "horror", "romance", "animation"]
    profile = make_profile(movies=labels)
    selections = set()
    scores_by_tag: Dict[str, float] = {}

    for seed in range(12):
        client = StubCatalog(default=[make_entity("x", "Film", tags=["Drama"])])
        recs = asyncio.run(
            _cascade(client, seed).run_domain(
                profile, _user_plan("movies", labels), USER_NO_JITTER
            )
        )
        selections.add(tuple(sorted(q.tag for q in client.queries)))
        for rec in recs:
            tag = rec.entity_id.rsplit(":", 1)[0]
            scores_by_tag.setdefault(tag, rec.relevance_score)
            assert rec.relevance_score == scores_by_tag[tag]

    assert len(selections) > 1


def test_jittered_scores_stay_in_range():
    client = StubCatalog(
        default=[
            make_entity("hi", "High", tags=["Comedy", "Drama"], popularity=5.0),
            make_entity("lo", "Low", popularity=-3.0),
        ]
    )
    profile = make_profile(movies=["comedy", "drama"])

    for seed in range(10):
        recs = asyncio.run(
            _cascade(client, seed).run_domain(
                profile, _user_plan("movies", ["comedy", "drama"]), FRIEND_POLICY
            )
        )
        assert all(0.1 <= rec.relevance_score <= 1.0 for rec in recs)


def test_friend_policy_discounts_scores():
    entity = make_entity(
        "m", "Movie", tags=["Thriller"], popularity=0.5, description="d" * 120
    )
    profile = make_profile(movies=["thriller"])
    plan = _user_plan("movies", ["thriller"])

    user = asyncio.run(
        _cascade(StubCatalog(default=[entity])).run_domain(profile, plan, USER_NO_JITTER)
    )
    friend = asyncio.run(
        _cascade(StubCatalog(default=[entity])).run_domain(profile, plan, FRIEND_NO_JITTER)
    )

    assert friend[0].relevance_score == pytest.approx(user[0].relevance_score * 0.8)
    assert friend[0].explanation == "Recommended because your friends like thriller movies"
    assert user[0].explanation == "Recommended because you like thriller movies"
