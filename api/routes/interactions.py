from __future__ import annotations

from typing import Any, Dict, Literal, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from api.core.history import HistorySink
from api.db.models import RecommendationHistory
from api.db.session import get_db

router = APIRouter(prefix="/recommendations/interaction", tags=["recommendations"])

UserAction = Literal["viewed", "liked", "disliked", "saved", "purchased"]


class InteractionIn(BaseModel):
    user_id: str
    entity_id: str = Field(..., min_length=1)
    entity_type: str = Field(..., min_length=1)
    entity_title: str = Field(..., min_length=1)
    recommendation_type: str = "user_based"
    relevance_score: float = 0.0
    explanation: str = ""
    user_action: Optional[UserAction] = None


def _serialize(entry: RecommendationHistory) -> Dict[str, Any]:
    created_at = entry.created_at
    return {
        "id": entry.id,
        "user_id": entry.user_id,
        "entity_id": entry.entity_id,
        "entity_type": entry.entity_type,
        "entity_title": entry.entity_title,
        "recommendation_type": entry.recommendation_type,
        "relevance_score": entry.relevance_score,
        "explanation": entry.explanation,
        "user_action": entry.user_action,
        "created_at": created_at.isoformat() if created_at else None,
    }


@router.post("")
def record_interaction(payload: InteractionIn, db: Session = Depends(get_db)):
    """Append a user's reaction to a served recommendation."""
    entry = HistorySink(db).record_interaction(
        RecommendationHistory(
            user_id=payload.user_id,
            entity_id=payload.entity_id,
            entity_type=payload.entity_type,
            entity_title=payload.entity_title,
            recommendation_type=payload.recommendation_type,
            relevance_score=payload.relevance_score,
            explanation=payload.explanation,
            user_action=payload.user_action,
        )
    )
    return {
        "success": True,
        "message": "Interaction recorded successfully",
        "interaction": _serialize(entry),
    }


@router.get("")
def list_interactions(
    user_id: str = Query(...),
    entity_type: str | None = Query(None),
    recommendation_type: str | None = Query(None),
    user_action: str | None = Query(None),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
):
    rows = HistorySink(db).list_for_user(
        user_id,
        entity_type=entity_type,
        recommendation_type=recommendation_type,
        user_action=user_action,
        limit=limit,
    )
    return {
        "success": True,
        "interactions": [_serialize(row) for row in rows],
        "total": len(rows),
    }
