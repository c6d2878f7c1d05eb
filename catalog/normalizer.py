from __future__ import annotations

import logging
import math
from typing import Any, Dict, Iterable, List, Mapping, Optional

from api.core.recommendation import ExternalRatings, Recommendation

log = logging.getLogger(__name__)

UNKNOWN_TITLE = "Unknown Title"


def _first_block(external: Mapping[str, Any], source: str) -> Mapping[str, Any]:
    blocks = external.get(source)
    if isinstance(blocks, list) and blocks and isinstance(blocks[0], dict):
        return blocks[0]
    if isinstance(blocks, dict):
        return blocks
    return {}


def _number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _text(*values: Any) -> Optional[str]:
    for value in values:
        if isinstance(value, str) and value.strip():
            return value
    return None


def _count(value: Any) -> Optional[int]:
    number = _number(value)
    return int(number) if number is not None else None


def extract_ratings(external: Any, domain: str) -> ExternalRatings:
    if not isinstance(external, dict):
        return ExternalRatings()
    if domain == "books":
        goodreads = _first_block(external, "goodreads")
        return ExternalRatings(
            goodreads_rating=_number(goodreads.get("user_rating")),
            goodreads_count=_count(goodreads.get("user_ratings_count")),
        )
    if domain == "movies":
        imdb = _first_block(external, "imdb")
        metacritic = _first_block(external, "metacritic")
        return ExternalRatings(
            imdb_rating=_number(imdb.get("user_rating")),
            imdb_count=_count(imdb.get("user_rating_count")),
            metacritic_critic=_number(metacritic.get("critic_rating")),
            metacritic_user=_number(metacritic.get("user_rating")),
        )
    if domain == "podcasts":
        itunes = _first_block(external, "itunes")
        return ExternalRatings(itunes_rating=_number(itunes.get("user_rating")))
    return ExternalRatings()


def _tag_names(tags: Any) -> List[str]:
    names: List[str] = []
    for tag in tags or []:
        if isinstance(tag, dict):
            name = tag.get("name")
        else:
            name = tag
        if isinstance(name, str) and name.strip():
            names.append(name.strip())
    return names


def normalize_entity(raw: Mapping[str, Any], domain: str) -> Recommendation:
    properties = raw.get("properties") or {}
    if not isinstance(properties, dict):
        properties = {}
    image = properties.get("image") or {}
    image_url = _text(image.get("url")) if isinstance(image, dict) else None

    return Recommendation(
        entity_id=str(raw.get("entity_id") or ""),
        entity_type=domain,
        title=_text(raw.get("name"), properties.get("title")) or UNKNOWN_TITLE,
        description=_text(
            properties.get("description"), properties.get("short_description")
        )
        or "",
        tags=_tag_names(raw.get("tags")),
        popularity=_number(raw.get("popularity")) or 0.0,
        image_url=image_url or None,
        external_ratings=extract_ratings(raw.get("external"), domain),
    )


def normalize_entities(
    raws: Iterable[Dict[str, Any]], domain: str
) -> List[Recommendation]:
    normalized: List[Recommendation] = []
    for raw in raws:
        if not isinstance(raw, dict):
            log.debug("Skipping non-object %s entity: %r", domain, raw)
            continue
        normalized.append(normalize_entity(raw, domain))
    return normalized
