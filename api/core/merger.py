from __future__ import annotations

from typing import List, Sequence

import numpy as np

from api.core.randomness import shuffled
from api.core.recommendation import Recommendation

TIE_WINDOW = 0.05


def rank(recs: Sequence[Recommendation], rng: np.random.Generator) -> List[Recommendation]:
    """Sort by score descending, shuffling runs of near-equal scores.

    A run starts at the highest remaining score and absorbs every following
    item less than ``TIE_WINDOW`` below it.
    """
    ordered = sorted(recs, key=lambda rec: rec.relevance_score, reverse=True)
    ranked: List[Recommendation] = []
    start = 0
    while start < len(ordered):
        head = ordered[start].relevance_score
        end = start + 1
        while end < len(ordered) and head - ordered[end].relevance_score < TIE_WINDOW:
            end += 1
        ranked.extend(shuffled(ordered[start:end], rng))
        start = end
    return ranked


def deduplicate(recs: Sequence[Recommendation]) -> List[Recommendation]:
    seen_titles = set()
    seen_ids = set()
    unique: List[Recommendation] = []
    for rec in recs:
        title_key = rec.title_key
        if title_key in seen_titles or rec.entity_id in seen_ids:
            continue
        seen_titles.add(title_key)
        seen_ids.add(rec.entity_id)
        unique.append(rec)
    return unique


def merge(
    recs: Sequence[Recommendation],
    rng: np.random.Generator,
    *,
    cap: int | None = None,
    shuffle: bool = False,
    limit: int | None = None,
) -> List[Recommendation]:
    merged = deduplicate(rank(recs, rng))
    if shuffle:
        merged = shuffled(merged, rng)
    if cap is not None:
        merged = merged[:cap]
    if limit is not None:
        merged = merged[:limit]
    return merged
