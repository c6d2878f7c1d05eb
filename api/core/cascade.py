from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import FrozenSet, List, Protocol, Sequence, Tuple

import numpy as np

from api.core.profile import (
    DEFAULT_AGE_GROUP,
    DEFAULT_GENDER,
    UserPreferenceProfile,
)
from api.core.randomness import jitter, offset, shuffled
from api.core.recommendation import Recommendation
from api.core.scorer import RelevanceScorer, clamp_score
from api.core.taxonomy import CatalogTaxonomy
from catalog.normalizer import normalize_entities
from catalog.qloo_client import CatalogQuery

logger = logging.getLogger(__name__)


class CatalogClient(Protocol):
    async def fetch_entities(self, query: CatalogQuery) -> List[dict]: ...


@dataclass(frozen=True)
class Framing:
    primary: str
    secondary: str
    emergency: str

    def render(self, template: str, genre: str, domain: str) -> str:
        return template.format(genre=genre, domain=domain.replace("_", " "))


@dataclass(frozen=True)
class CascadePolicy:
    name: str
    take: int
    max_skip: int
    emergency_take: int
    emergency_max_skip: int
    emergency_score: float
    score_multiplier: float
    cap: int
    framing: Framing
    max_genres: int = 3
    jitter_width: float = 0.1
    release_year_min: str | None = "15"


USER_POLICY = CascadePolicy(
    name="user_based",
    take=8,
    max_skip=9,
    emergency_take=5,
    emergency_max_skip=4,
    emergency_score=0.5,
    score_multiplier=1.0,
    cap=15,
    framing=Framing(
        primary="Recommended because you like {genre} {domain}",
        secondary="Popular {genre} {domain} you might enjoy",
        emergency="Popular {genre} {domain} you might discover",
    ),
)

FRIEND_POLICY = CascadePolicy(
    name="friend_based",
    take=6,
    max_skip=4,
    emergency_take=4,
    emergency_max_skip=4,
    emergency_score=0.4,
    score_multiplier=0.8,
    cap=10,
    framing=Framing(
        primary="Recommended because your friends like {genre} {domain}",
        secondary="Popular {genre} {domain} others enjoy",
        emergency="Trending {genre} {domain} to explore",
    ),
)


@dataclass(frozen=True)
class DomainPlan:
    """Labels to try for one domain.

    ``signal_labels`` are the labels that earn the primary explanation; any
    other label is framed as a popular pick.
    """

    domain: str
    primary_labels: Tuple[str, ...]
    secondary_labels: Tuple[str, ...]
    signal_labels: FrozenSet[str]


class FallbackCascade:
    """Runs the three retrieval tiers for each domain until one yields results.

    Tier 1 queries the plan's primary labels, tier 2 the secondary (fallback)
    labels not already tried, and tier 3 a single emergency genre with default
    demographics and a flat score. Domains and genres are queried
    concurrently; results keep genre order within a domain.
    """

    def __init__(
        self,
        client: CatalogClient,
        taxonomy: CatalogTaxonomy,
        scorer: RelevanceScorer,
        rng: np.random.Generator,
    ):
        self.client = client
        self.taxonomy = taxonomy
        self.scorer = scorer
        self.rng = rng

    async def run(
        self,
        profile: UserPreferenceProfile,
        plans: Sequence[DomainPlan],
        policy: CascadePolicy,
    ) -> List[Recommendation]:
        batches = await asyncio.gather(
            *(self.run_domain(profile, plan, policy) for plan in plans)
        )
        return [rec for batch in batches for rec in batch]

    def select_labels(
        self, domain: str, labels: Sequence[str], policy: CascadePolicy
    ) -> List[str]:
        mapped = [label for label in labels if self.taxonomy.tag_for(domain, label)]
        return shuffled(mapped, self.rng)[: policy.max_genres]

    async def run_domain(
        self,
        profile: UserPreferenceProfile,
        plan: DomainPlan,
        policy: CascadePolicy,
    ) -> List[Recommendation]:
        domain = plan.domain
        if not self.taxonomy.supports(domain):
            logger.debug("Skipping unsupported domain %s", domain)
            return []

        selected = self.select_labels(domain, plan.primary_labels, policy)
        recs: List[Recommendation] = []
        if selected:
            recs = await self._query_genres(profile, plan, policy, selected)
        else:
            logger.info("No mapped genres for %s (%s), using fallbacks", domain, policy.name)

        if not recs:
            tried = set(selected)
            remaining = [label for label in plan.secondary_labels if label not in tried]
            selected = self.select_labels(domain, remaining, policy)
            if selected:
                recs = await self._query_genres(profile, plan, policy, selected)

        if not recs:
            logger.info("No %s results for %s, trying emergency genre", policy.name, domain)
            recs = await self._emergency(domain, policy)
            if not recs:
                logger.warning("Emergency genre returned nothing for %s", domain)
        return recs

    async def _query_genres(
        self,
        profile: UserPreferenceProfile,
        plan: DomainPlan,
        policy: CascadePolicy,
        labels: Sequence[str],
    ) -> List[Recommendation]:
        batches = await asyncio.gather(
            *(self._query_genre(profile, plan, policy, label) for label in labels)
        )
        return [rec for batch in batches for rec in batch]

    async def _query_genre(
        self,
        profile: UserPreferenceProfile,
        plan: DomainPlan,
        policy: CascadePolicy,
        label: str,
    ) -> List[Recommendation]:
        domain = plan.domain
        tag = self.taxonomy.tag_for(domain, label)
        entity_type = self.taxonomy.entity_type(domain)
        if not tag or not entity_type:
            return []
        age, gender = profile.demographics()
        query = CatalogQuery(
            entity_type=entity_type,
            tag=tag,
            age=age,
            gender=gender,
            take=policy.take,
            skip=offset(self.rng, policy.max_skip),
            release_year_min=policy.release_year_min,
        )
        logger.debug("Fetching %s %s via %s (skip=%d)", domain, label, tag, query.skip)
        recs = normalize_entities(await self.client.fetch_entities(query), domain)

        framing = policy.framing
        template = (
            framing.primary if label in plan.signal_labels else framing.secondary
        )
        explanation = framing.render(template, label, domain)
        for rec in recs:
            base = self.scorer.score(profile, rec) * policy.score_multiplier
            rec.relevance_score = clamp_score(
                base + jitter(self.rng, policy.jitter_width)
            )
            rec.explanation = explanation
        return recs

    async def _emergency(self, domain: str, policy: CascadePolicy) -> List[Recommendation]:
        label = self.taxonomy.emergency_label(domain)
        tag = self.taxonomy.tag_for(domain, label) if label else None
        entity_type = self.taxonomy.entity_type(domain)
        if not label or not tag or not entity_type:
            return []
        query = CatalogQuery(
            entity_type=entity_type,
            tag=tag,
            age=DEFAULT_AGE_GROUP,
            gender=DEFAULT_GENDER,
            take=policy.emergency_take,
            skip=offset(self.rng, policy.emergency_max_skip),
        )
        recs = normalize_entities(await self.client.fetch_entities(query), domain)
        explanation = policy.framing.render(policy.framing.emergency, label, domain)
        for rec in recs:
            rec.relevance_score = policy.emergency_score
            rec.explanation = explanation
        return recs
