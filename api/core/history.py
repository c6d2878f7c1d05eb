from __future__ import annotations

import logging
from typing import List, Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from api.core.recommendation import Recommendation
from api.db.models import RecommendationHistory

logger = logging.getLogger(__name__)


class HistorySink:
    """Append-only audit trail of served recommendations."""

    def __init__(self, db: Session):
        self.db = db

    def record(
        self,
        user_id: str,
        recommendation_type: str,
        recs: Sequence[Recommendation],
    ) -> int:
        if not recs:
            return 0
        try:
            for rec in recs:
                self.db.add(
                    RecommendationHistory(
                        user_id=user_id,
                        entity_id=rec.entity_id,
                        entity_type=rec.entity_type,
                        entity_title=rec.title,
                        recommendation_type=recommendation_type,
                        relevance_score=rec.relevance_score,
                        explanation=rec.explanation,
                    )
                )
            self.db.commit()
        except SQLAlchemyError as exc:
            logger.warning(
                "Failed to record %d recommendations for %s: %s",
                len(recs),
                user_id,
                exc,
            )
            self.db.rollback()
            return 0
        return len(recs)

    def record_interaction(self, entry: RecommendationHistory) -> RecommendationHistory:
        self.db.add(entry)
        self.db.commit()
        return entry

    def list_for_user(
        self,
        user_id: str,
        *,
        entity_type: str | None = None,
        recommendation_type: str | None = None,
        user_action: str | None = None,
        limit: int = 50,
    ) -> List[RecommendationHistory]:
        stmt = select(RecommendationHistory).where(
            RecommendationHistory.user_id == user_id
        )
        if entity_type:
            stmt = stmt.where(RecommendationHistory.entity_type == entity_type)
        if recommendation_type:
            stmt = stmt.where(
                RecommendationHistory.recommendation_type == recommendation_type
            )
        if user_action:
            stmt = stmt.where(RecommendationHistory.user_action == user_action)
        stmt = stmt.order_by(RecommendationHistory.created_at.desc()).limit(limit)
        return list(self.db.execute(stmt).scalars().all())
