"""Run the recommendation pipeline for one stored user and print the result."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from typing import Any, Dict, List

from api.config import PEER_SAMPLE_SIZE
from api.core.history import HistorySink
from api.core.peers import DatabasePeerSource
from api.core.pipeline import RECOMMENDATION_TYPES, RecommendationPipeline
from api.core.profile import load_profile
from api.core.randomness import make_rng
from api.db.session import get_sessionmaker
from catalog.qloo_client import build_catalog_client

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def parse_args(argv: List[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("user_id")
    parser.add_argument("--type", choices=RECOMMENDATION_TYPES, default="user_based")
    parser.add_argument("--domains", default="books,movies,podcasts")
    parser.add_argument("--limit", type=int, default=10)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument(
        "--record",
        action="store_true",
        help="Write the served recommendations to recommendation_history.",
    )
    return parser.parse_args(argv)


async def run(args: argparse.Namespace) -> Dict[str, Any]:
    client = build_catalog_client()
    SessionLocal = get_sessionmaker()
    try:
        with SessionLocal() as db:
            profile = load_profile(db, args.user_id)
            pipeline = RecommendationPipeline(
                client,
                peer_source=DatabasePeerSource(db),
                peer_sample_size=PEER_SAMPLE_SIZE,
                rng=make_rng(args.seed),
            )
            domains = pipeline.supported_domains(args.domains.split(","))
            recs = await pipeline.recommend(profile, args.type, domains, args.limit)
            if args.record:
                written = HistorySink(db).record(profile.user_id, args.type, recs)
                logger.info("Recorded %d history rows", written)
    finally:
        await client.aclose()
    return {
        "type": args.type,
        "domains": domains,
        "recommendations": [rec.to_dict() for rec in recs],
        "total": len(recs),
    }


def main(argv: List[str] | None = None) -> None:
    result = asyncio.run(run(parse_args(argv)))
    print(json.dumps(result, indent=2))


if __name__ == "__main__":
    main()
