from __future__ import annotations

from datetime import datetime
from typing import Optional, List

from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy import Integer, String, Text, DateTime, func, JSON, Float


class Base(DeclarativeBase):
    pass


class User(Base):
    """Profile fields read by the recommendation pipeline.

    Interest and favorite columns are JSON lists of free-text labels written by
    the onboarding and profile flows; this service only reads them.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(128), unique=True, index=True)
    full_name: Mapped[Optional[str]] = mapped_column(String(256), nullable=True)
    age_group: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    gender: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    book_interests: Mapped[Optional[List[str]]] = mapped_column(JSON, nullable=True)
    movie_interests: Mapped[Optional[List[str]]] = mapped_column(JSON, nullable=True)
    podcast_interests: Mapped[Optional[List[str]]] = mapped_column(
        JSON, nullable=True
    )
    tv_show_interests: Mapped[Optional[List[str]]] = mapped_column(
        JSON, nullable=True
    )
    brand_interests: Mapped[Optional[List[str]]] = mapped_column(JSON, nullable=True)
    favorite_books: Mapped[Optional[List[str]]] = mapped_column(JSON, nullable=True)
    favorite_movies: Mapped[Optional[List[str]]] = mapped_column(JSON, nullable=True)
    favorite_podcasts: Mapped[Optional[List[str]]] = mapped_column(
        JSON, nullable=True
    )
    favorite_tv_shows: Mapped[Optional[List[str]]] = mapped_column(
        JSON, nullable=True
    )
    favorite_brands: Mapped[Optional[List[str]]] = mapped_column(JSON, nullable=True)
    content_rating_preference: Mapped[Optional[str]] = mapped_column(
        String(32), nullable=True
    )
    min_popularity_threshold: Mapped[Optional[float]] = mapped_column(
        Float, nullable=True
    )
    recommendation_preferences: Mapped[Optional[dict]] = mapped_column(
        JSON, nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class RecommendationHistory(Base):
    __tablename__ = "recommendation_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(128), index=True)
    entity_id: Mapped[str] = mapped_column(String(256), index=True)
    entity_type: Mapped[str] = mapped_column(String(32), index=True)
    entity_title: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    recommendation_type: Mapped[str] = mapped_column(
        String(32), default="user_based"
    )  # user_based, friend_based, all
    relevance_score: Mapped[float] = mapped_column(Float, default=0.0)
    explanation: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    user_action: Mapped[Optional[str]] = mapped_column(
        String(32), nullable=True
    )  # viewed, liked, disliked, saved, purchased
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
