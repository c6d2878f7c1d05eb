from __future__ import annotations

from typing import Iterable, List, Sequence

from api.core.profile import UserPreferenceProfile
from api.core.recommendation import Recommendation
from api.core.taxonomy import CatalogTaxonomy, default_taxonomy

BASE_SCORE = 0.3
EXACT_MATCH_WEIGHT = 0.3
FUZZY_MATCH_WEIGHT = 0.15
POPULARITY_WEIGHT = 0.2
POPULARITY_CAP = 0.2
RATING_BOOST = 0.1
IMDB_THRESHOLD = 7.0
GOODREADS_THRESHOLD = 4.0
ITUNES_THRESHOLD = 4.0
DESCRIPTION_BOOST = 0.05
DESCRIPTION_MIN_LENGTH = 100
MIN_SCORE = 0.1
MAX_SCORE = 1.0


def clamp_score(value: float) -> float:
    return min(MAX_SCORE, max(MIN_SCORE, value))


def _overlaps(left: str, right: str) -> bool:
    if not left or not right:
        return False
    return left == right or left in right or right in left


class RelevanceScorer:
    """Scores a normalised catalog entity against a profile's stated interests.

    Exact and fuzzy label matches accumulate independently, so a label that
    matches strongly counts in both steps.
    """

    def __init__(self, taxonomy: CatalogTaxonomy | None = None):
        self.taxonomy = taxonomy or default_taxonomy()

    def _catalog_name(self, domain: str, label: str) -> str | None:
        tag = self.taxonomy.tag_for(domain, label)
        return self.taxonomy.display_name(tag) if tag else None

    def exact_matches(
        self, domain: str, labels: Iterable[str], tags: Sequence[str]
    ) -> List[str]:
        lowered_tags = [tag.lower() for tag in tags if tag]
        matched: List[str] = []
        for label in labels:
            lowered = label.lower()
            # The catalog name only matches tags that contain it.
            catalog_name = self._catalog_name(domain, label)
            if any(
                _overlaps(lowered, tag) or (catalog_name and catalog_name in tag)
                for tag in lowered_tags
            ):
                matched.append(label)
        return matched

    @staticmethod
    def fuzzy_matches(labels: Iterable[str], tags: Sequence[str]) -> List[str]:
        tag_words = [word for tag in tags if tag for word in tag.lower().split()]
        matched: List[str] = []
        for label in labels:
            label_words = label.lower().split()
            if any(_overlaps(lw, tw) for lw in label_words for tw in tag_words):
                matched.append(label)
        return matched

    def score(self, profile: UserPreferenceProfile, rec: Recommendation) -> float:
        labels = profile.interests_for(rec.entity_type)
        score = BASE_SCORE
        score += len(self.exact_matches(rec.entity_type, labels, rec.tags)) * (
            EXACT_MATCH_WEIGHT
        )
        score += len(self.fuzzy_matches(labels, rec.tags)) * FUZZY_MATCH_WEIGHT
        score += min((rec.popularity or 0.0) * POPULARITY_WEIGHT, POPULARITY_CAP)

        ratings = rec.external_ratings
        if ratings.imdb_rating is not None and ratings.imdb_rating > IMDB_THRESHOLD:
            score += RATING_BOOST
        if (
            ratings.goodreads_rating is not None
            and ratings.goodreads_rating > GOODREADS_THRESHOLD
        ):
            score += RATING_BOOST
        if (
            ratings.itunes_rating is not None
            and ratings.itunes_rating > ITUNES_THRESHOLD
        ):
            score += RATING_BOOST

        if len(rec.description or "") > DESCRIPTION_MIN_LENGTH:
            score += DESCRIPTION_BOOST

        return clamp_score(score)
