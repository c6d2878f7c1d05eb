from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from types import MappingProxyType
from typing import Dict, Mapping, Tuple

DEFAULT_DOMAINS: Tuple[str, ...] = ("books", "movies", "podcasts")

_ENTITY_TYPES: Dict[str, str] = {
    "books": "urn:entity:book",
    "movies": "urn:entity:movie",
    "podcasts": "urn:entity:podcast",
    "tv_shows": "urn:entity:tv_show",
    "brands": "urn:entity:brand",
}

_MEDIA_GENRES: Dict[str, str] = {
    "action": "urn:tag:genre:media:action",
    "comedy": "urn:tag:genre:media:comedy",
    "drama": "urn:tag:genre:media:drama",
    "thriller": "urn:tag:genre:media:thriller",
    "sci-fi": "urn:tag:genre:media:science_fiction",
    "horror": "urn:tag:genre:media:horror",
    "romance": "urn:tag:genre:media:romance",
    "animation": "urn:tag:genre:media:animation",
}

_GENRE_TAGS: Dict[str, Dict[str, str]] = {
    "books": {
        "sci-fi": "urn:tag:genre:book:science_fiction",
        "fantasy": "urn:tag:genre:book:fantasy",
        "mystery": "urn:tag:genre:book:mystery",
        "romance": "urn:tag:genre:book:romance",
        "thriller": "urn:tag:genre:book:thriller",
        "non-fiction": "urn:tag:genre:book:non_fiction",
        "biography": "urn:tag:genre:book:biography",
        "history": "urn:tag:genre:book:history",
        "fiction": "urn:tag:genre:book:fiction",
    },
    "movies": dict(_MEDIA_GENRES),
    "podcasts": {
        "comedy": "urn:tag:genre:podcast:comedy",
        "news": "urn:tag:genre:podcast:news",
        "true-crime": "urn:tag:genre:podcast:true_crime",
        "sports": "urn:tag:genre:podcast:sports",
        "technology": "urn:tag:genre:podcast:technology",
        "business": "urn:tag:genre:podcast:business",
    },
    "tv_shows": dict(_MEDIA_GENRES),
    "brands": {
        "technology": "urn:tag:category:brand:technology",
        "lifestyle": "urn:tag:category:brand:lifestyle",
        "fashion": "urn:tag:category:brand:fashion",
        "food": "urn:tag:category:brand:food",
        "automotive": "urn:tag:category:brand:automotive",
        "entertainment": "urn:tag:category:brand:entertainment",
    },
}

_FALLBACK_LABELS: Dict[str, Tuple[str, ...]] = {
    "books": ("fiction", "non-fiction", "mystery", "romance", "biography"),
    "movies": ("drama", "comedy", "action", "thriller", "romance"),
    "podcasts": ("news", "comedy", "technology", "business", "true-crime"),
    "tv_shows": ("drama", "comedy", "action", "thriller", "sci-fi"),
    "brands": ("technology", "lifestyle", "fashion", "food", "entertainment"),
}


def _freeze(table: Mapping[str, Mapping[str, str]]) -> Mapping[str, Mapping[str, str]]:
    return MappingProxyType(
        {domain: MappingProxyType(dict(tags)) for domain, tags in table.items()}
    )


@dataclass(frozen=True)
class CatalogTaxonomy:
    """Read-only lookup between profile genre labels and catalog tags."""

    entity_types: Mapping[str, str]
    genre_tags: Mapping[str, Mapping[str, str]]
    fallbacks: Mapping[str, Tuple[str, ...]]
    domains: Tuple[str, ...] = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "domains", tuple(self.entity_types))

    def supports(self, domain: str) -> bool:
        return domain in self.entity_types

    def entity_type(self, domain: str) -> str | None:
        return self.entity_types.get(domain)

    def tag_for(self, domain: str, label: str) -> str | None:
        tags = self.genre_tags.get(domain)
        if not tags or not label:
            return None
        return tags.get(label)

    def fallback_labels(self, domain: str) -> Tuple[str, ...]:
        return self.fallbacks.get(domain, ())

    def emergency_label(self, domain: str) -> str | None:
        labels = self.fallback_labels(domain)
        return labels[0] if labels else None

    @staticmethod
    def display_name(tag: str) -> str:
        """Human words for a canonical tag, e.g. ``...:science_fiction`` -> ``science fiction``."""
        tail = tag.rsplit(":", 1)[-1]
        return tail.replace("_", " ").strip().lower()


def build_taxonomy(
    entity_types: Mapping[str, str],
    genre_tags: Mapping[str, Mapping[str, str]],
    fallbacks: Mapping[str, Tuple[str, ...] | list],
) -> CatalogTaxonomy:
    return CatalogTaxonomy(
        entity_types=MappingProxyType(dict(entity_types)),
        genre_tags=_freeze(genre_tags),
        fallbacks=MappingProxyType(
            {domain: tuple(labels) for domain, labels in fallbacks.items()}
        ),
    )


@lru_cache(maxsize=1)
def default_taxonomy() -> CatalogTaxonomy:
    return build_taxonomy(_ENTITY_TYPES, _GENRE_TAGS, _FALLBACK_LABELS)
