from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

DEFAULT_BASE_URL = "https://hackathon.api.qloo.com/v2/insights"
USER_AGENT = "TasteBridge/recommendations"

log = logging.getLogger(__name__)


class CatalogConfigError(RuntimeError):
    """Raised at startup when the catalog cannot be configured."""


@dataclass(frozen=True)
class CatalogQuery:
    entity_type: str
    tag: str
    age: str
    gender: str
    take: int
    skip: int = 0
    release_year_min: Optional[str] = None

    def params(self) -> Dict[str, str]:
        params = {
            "filter.type": self.entity_type,
            "signalInterestsTags": self.tag,
            "signal.demographics.age": self.age,
            "signal.demographics.gender": self.gender,
            "take": str(self.take),
            "skip": str(self.skip),
        }
        if self.release_year_min is not None:
            params["filter.release_year.min"] = self.release_year_min
        return params


@dataclass(frozen=True)
class ParseResult:
    entities: List[Dict[str, Any]]
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def parse_insights(payload: Any) -> ParseResult:
    """Validate an insights payload of shape ``{success, results: {entities}}``."""
    if not isinstance(payload, dict):
        return ParseResult([], "payload is not an object")
    if not payload.get("success"):
        return ParseResult([], "catalog reported success=false")
    results = payload.get("results") or {}
    if not isinstance(results, dict):
        return ParseResult([], "results is not an object")
    entities = results.get("entities") or []
    if not isinstance(entities, list):
        return ParseResult([], "results.entities is not a list")
    return ParseResult([e for e in entities if isinstance(e, dict)])


class QlooClient:
    """
    Async client for the taste-graph insights endpoint.

    ``fetch_entities`` never raises: every failure collapses into an empty list
    so callers can fall back to a coarser query instead.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
        max_concurrency: int = 4,
    ) -> None:
        if not api_key:
            raise CatalogConfigError("QLOO_API_KEY is not configured")
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self._semaphore = asyncio.Semaphore(max(1, max_concurrency))
        self._client = httpx.AsyncClient(
            timeout=timeout,
            headers={
                "accept": "application/json",
                "X-Api-Key": api_key,
                "User-Agent": USER_AGENT,
            },
        )

    async def _get(self, params: Dict[str, str]) -> Any:
        async with self._semaphore:
            r = await self._client.get(self.base_url, params=params)
        r.raise_for_status()
        return r.json()

    async def fetch_entities(self, query: CatalogQuery) -> List[Dict[str, Any]]:
        params = query.params()
        try:
            payload = await self._get(params)
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code == 400:
                log.error("Catalog rejected query (400): %s", params)
            else:
                log.warning(
                    "Catalog request failed with %s for %s",
                    exc.response.status_code,
                    query.tag,
                )
            return []
        except httpx.HTTPError as exc:
            log.warning("Catalog request error for %s: %s", query.tag, exc)
            return []
        except ValueError as exc:
            log.warning("Catalog returned invalid JSON for %s: %s", query.tag, exc)
            return []

        result = parse_insights(payload)
        if not result.ok:
            log.info("Discarding catalog payload for %s: %s", query.tag, result.error)
        return result.entities

    async def aclose(self) -> None:
        await self._client.aclose()


def build_catalog_client() -> QlooClient:
    from api.config import (
        QLOO_API_KEY,
        QLOO_BASE_URL,
        QLOO_MAX_CONCURRENCY,
        QLOO_TIMEOUT,
    )

    return QlooClient(
        QLOO_API_KEY,
        base_url=QLOO_BASE_URL,
        timeout=QLOO_TIMEOUT,
        max_concurrency=QLOO_MAX_CONCURRENCY,
    )
