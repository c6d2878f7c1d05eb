from __future__ import annotations

import asyncio
import logging
from typing import Iterable, List, Sequence

import numpy as np

from api.core.cascade import (
    FRIEND_POLICY,
    USER_POLICY,
    CatalogClient,
    DomainPlan,
    FallbackCascade,
)
from api.core.merger import merge
from api.core.peers import PeerSource
from api.core.profile import UserPreferenceProfile
from api.core.randomness import make_rng
from api.core.recommendation import Recommendation
from api.core.scorer import RelevanceScorer
from api.core.taxonomy import CatalogTaxonomy, default_taxonomy

logger = logging.getLogger(__name__)

USER_BASED = "user_based"
FRIEND_BASED = "friend_based"
ALL = "all"
RECOMMENDATION_TYPES = (USER_BASED, FRIEND_BASED, ALL)


def _ordered_unique(values: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(values))


class RecommendationPipeline:
    def __init__(
        self,
        client: CatalogClient,
        *,
        taxonomy: CatalogTaxonomy | None = None,
        scorer: RelevanceScorer | None = None,
        peer_source: PeerSource | None = None,
        peer_sample_size: int = 5,
        rng: np.random.Generator | None = None,
    ):
        self.taxonomy = taxonomy or default_taxonomy()
        self.scorer = scorer or RelevanceScorer(self.taxonomy)
        self.peer_source = peer_source
        self.peer_sample_size = peer_sample_size
        self.rng = rng if rng is not None else make_rng()
        self.cascade = FallbackCascade(client, self.taxonomy, self.scorer, self.rng)

    def supported_domains(self, domains: Sequence[str]) -> List[str]:
        return _ordered_unique(d for d in domains if self.taxonomy.supports(d))

    def user_plan(self, profile: UserPreferenceProfile, domain: str) -> DomainPlan:
        own = profile.interests_for(domain)
        return DomainPlan(
            domain=domain,
            primary_labels=tuple(own),
            secondary_labels=self.taxonomy.fallback_labels(domain),
            signal_labels=frozenset(own),
        )

    def friend_plan(
        self,
        profile: UserPreferenceProfile,
        peers: Sequence[UserPreferenceProfile],
        domain: str,
    ) -> DomainPlan:
        own = set(profile.interests_for(domain))
        peer_labels = _ordered_unique(
            label for peer in peers for label in peer.interests_for(domain)
        )
        novel = tuple(
            label
            for label in peer_labels
            if label not in own and self.taxonomy.tag_for(domain, label)
        )
        fallbacks = self.taxonomy.fallback_labels(domain)
        secondary = tuple(label for label in fallbacks if label not in own) or fallbacks
        return DomainPlan(
            domain=domain,
            primary_labels=novel,
            secondary_labels=secondary,
            signal_labels=frozenset(peer_labels),
        )

    async def user_based(
        self, profile: UserPreferenceProfile, domains: Sequence[str]
    ) -> List[Recommendation]:
        plans = [self.user_plan(profile, d) for d in self.supported_domains(domains)]
        recs = await self.cascade.run(profile, plans, USER_POLICY)
        return merge(recs, self.rng, cap=USER_POLICY.cap)

    async def friend_based(
        self, profile: UserPreferenceProfile, domains: Sequence[str]
    ) -> List[Recommendation]:
        peers: List[UserPreferenceProfile] = []
        if self.peer_source is not None:
            peers = self.peer_source.sample(profile.user_id, self.peer_sample_size)
        if not peers:
            logger.info("No peers for %s, using user-based recommendations", profile.user_id)
            return await self.user_based(profile, domains)

        plans = [
            self.friend_plan(profile, peers, d) for d in self.supported_domains(domains)
        ]
        recs = await self.cascade.run(profile, plans, FRIEND_POLICY)
        return merge(recs, self.rng, cap=FRIEND_POLICY.cap)

    async def aggregate(
        self, profile: UserPreferenceProfile, domains: Sequence[str], limit: int
    ) -> List[Recommendation]:
        user_recs, friend_recs = await asyncio.gather(
            self.user_based(profile, domains),
            self.friend_based(profile, domains),
        )
        return merge(user_recs + friend_recs, self.rng, shuffle=True, limit=limit)

    async def recommend(
        self,
        profile: UserPreferenceProfile,
        recommendation_type: str,
        domains: Sequence[str],
        limit: int,
    ) -> List[Recommendation]:
        if recommendation_type == ALL:
            return await self.aggregate(profile, domains, limit)
        if recommendation_type == FRIEND_BASED:
            recs = await self.friend_based(profile, domains)
        else:
            recs = await self.user_based(profile, domains)
        return recs[:limit]
