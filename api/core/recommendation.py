from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class ExternalRatings:
    """Third-party ratings attached to a catalog entity.

    ``None`` means the catalog sent no data for that field, which is distinct
    from a rating of zero.
    """

    goodreads_rating: Optional[float] = None
    goodreads_count: Optional[int] = None
    imdb_rating: Optional[float] = None
    imdb_count: Optional[int] = None
    metacritic_critic: Optional[float] = None
    metacritic_user: Optional[float] = None
    itunes_rating: Optional[float] = None

    def as_dict(self) -> Dict[str, Any]:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }


@dataclass
class Recommendation:
    entity_id: str
    entity_type: str
    title: str
    description: str = ""
    tags: List[str] = field(default_factory=list)
    popularity: float = 0.0
    image_url: Optional[str] = None
    external_ratings: ExternalRatings = field(default_factory=ExternalRatings)
    relevance_score: float = 0.0
    explanation: str = ""

    @property
    def title_key(self) -> str:
        return self.title.strip().lower()

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "entity_id": self.entity_id,
            "entity_type": self.entity_type,
            "title": self.title,
            "description": self.description,
            "tags": list(self.tags),
            "popularity": self.popularity,
            "external_ratings": self.external_ratings.as_dict(),
            "relevance_score": round(self.relevance_score, 4),
            "explanation": self.explanation,
        }
        if self.image_url:
            payload["image_url"] = self.image_url
        return payload
