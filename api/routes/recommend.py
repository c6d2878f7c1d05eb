from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from api.config import PEER_SAMPLE_SIZE, RECOMMENDATION_SEED
from api.core.history import HistorySink
from api.core.peers import DatabasePeerSource
from api.core.pipeline import RECOMMENDATION_TYPES, USER_BASED, RecommendationPipeline
from api.core.profile import UserNotFoundError, load_profile
from api.core.randomness import make_rng
from api.core.taxonomy import DEFAULT_DOMAINS
from api.db.session import get_db

router = APIRouter(prefix="/recommendations", tags=["recommendations"])
logger = logging.getLogger(__name__)


def _parse_domains(raw: str | None) -> List[str]:
    if raw is None:
        return list(DEFAULT_DOMAINS)
    return [part.strip().lower() for part in raw.split(",") if part.strip()]


def _build_pipeline(request: Request, db: Session) -> RecommendationPipeline:
    client = getattr(request.app.state, "catalog_client", None)
    if client is None:
        raise RuntimeError("Catalog client is not initialised")
    return RecommendationPipeline(
        client,
        peer_source=DatabasePeerSource(db),
        peer_sample_size=PEER_SAMPLE_SIZE,
        rng=make_rng(RECOMMENDATION_SEED),
    )


@router.get("")
async def get_recommendations(
    request: Request,
    user_id: str = Query(..., description="Authenticated subject identifier"),
    requested_type: str = Query(
        USER_BASED,
        alias="type",
        description="One of user_based, friend_based or all",
    ),
    domains: str | None = Query(
        None,
        description="Comma-separated subset of books,movies,podcasts,tv_shows,brands",
    ),
    limit: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db),
):
    pipeline = _build_pipeline(request, db)
    target_domains = pipeline.supported_domains(_parse_domains(domains))
    if not target_domains:
        return JSONResponse(
            status_code=400, content={"error": "No supported domains requested"}
        )

    recommendation_type = (
        requested_type if requested_type in RECOMMENDATION_TYPES else USER_BASED
    )
    try:
        profile = load_profile(db, user_id)
    except UserNotFoundError:
        return JSONResponse(status_code=404, content={"error": "User not found"})

    recs = await pipeline.recommend(
        profile, recommendation_type, target_domains, limit
    )
    HistorySink(db).record(profile.user_id, recommendation_type, recs)
    logger.info(
        "Served %d %s recommendations to %s across %s",
        len(recs),
        recommendation_type,
        profile.user_id,
        ",".join(target_domains),
    )
    return {
        "success": True,
        "type": recommendation_type,
        "domains": target_domains,
        "recommendations": [rec.to_dict() for rec in recs],
        "total": len(recs),
    }
