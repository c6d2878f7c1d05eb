from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from api.core.profile import UserNotFoundError, load_profile
from api.db.session import get_db

router = APIRouter(prefix="/recommendations/preferences", tags=["recommendations"])


@router.get("")
def get_preferences(user_id: str = Query(...), db: Session = Depends(get_db)):
    """Return the profile fields the recommendation pipeline reads."""
    try:
        profile = load_profile(db, user_id)
    except UserNotFoundError:
        return JSONResponse(status_code=404, content={"error": "User not found"})
    return {"success": True, "preferences": profile.preferences_payload()}
