from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from sqlalchemy.orm import Session

from api.db.models import User

INTEREST_FIELDS: Dict[str, str] = {
    "books": "book_interests",
    "movies": "movie_interests",
    "podcasts": "podcast_interests",
    "tv_shows": "tv_show_interests",
    "brands": "brand_interests",
}
FAVORITE_FIELDS: Dict[str, str] = {
    "books": "favorite_books",
    "movies": "favorite_movies",
    "podcasts": "favorite_podcasts",
    "tv_shows": "favorite_tv_shows",
    "brands": "favorite_brands",
}

DEFAULT_AGE_GROUP = "25_to_29"
DEFAULT_GENDER = "male"
# The catalog only accepts binary gender signals.
_CATALOG_GENDERS = {"male", "female"}


class UserNotFoundError(LookupError):
    def __init__(self, user_id: str):
        super().__init__(f"User not found: {user_id}")
        self.user_id = user_id


@dataclass(frozen=True)
class UserPreferenceProfile:
    user_id: str
    full_name: str | None = None
    age_group: str | None = None
    gender: str | None = None
    interests: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    favorites: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    content_rating_preference: str | None = None
    min_popularity_threshold: float | None = None
    recommendation_preferences: Dict[str, Any] = field(default_factory=dict)

    def interests_for(self, domain: str) -> Tuple[str, ...]:
        return self.interests.get(domain, ())

    def demographics(self) -> Tuple[str, str]:
        age = (self.age_group or "").strip() or DEFAULT_AGE_GROUP
        gender = (self.gender or "").strip().lower()
        if gender not in _CATALOG_GENDERS:
            gender = DEFAULT_GENDER
        return age, gender

    def preferences_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "age_group": self.age_group,
            "gender": self.gender,
        }
        for domain, column in INTEREST_FIELDS.items():
            payload[column] = list(self.interests_for(domain))
        for domain, column in FAVORITE_FIELDS.items():
            payload[column] = list(self.favorites.get(domain, ()))
        payload["content_rating_preference"] = self.content_rating_preference
        payload["min_popularity_threshold"] = self.min_popularity_threshold
        payload["recommendation_preferences"] = self.recommendation_preferences
        return payload


def _labels(values: Any) -> Tuple[str, ...]:
    if not values:
        return ()
    cleaned: List[str] = []
    for value in values:
        if not isinstance(value, str):
            continue
        label = value.strip()
        if label:
            cleaned.append(label)
    # Deduplicate while preserving order
    return tuple(dict.fromkeys(cleaned))


def profile_from_user(user: User) -> UserPreferenceProfile:
    return UserPreferenceProfile(
        user_id=str(user.user_id),
        full_name=user.full_name,
        age_group=user.age_group,
        gender=user.gender,
        interests={
            domain: _labels(getattr(user, column, None))
            for domain, column in INTEREST_FIELDS.items()
        },
        favorites={
            domain: _labels(getattr(user, column, None))
            for domain, column in FAVORITE_FIELDS.items()
        },
        content_rating_preference=user.content_rating_preference,
        min_popularity_threshold=user.min_popularity_threshold,
        recommendation_preferences=dict(user.recommendation_preferences or {}),
    )


def load_profile(db: Session, user_id: str) -> UserPreferenceProfile:
    user = db.query(User).filter(User.user_id == user_id).one_or_none()
    if user is None:
        raise UserNotFoundError(user_id)
    return profile_from_user(user)
