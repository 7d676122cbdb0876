"""
Ticketmaster Service — thin async client for the Discovery v2 API.

Endpoints used:
    GET events.json              — events for an attraction id or keyword
    GET attractions.json         — attraction search by keyword
    GET attractions/{id}.json    — single attraction

Error mapping:
    404                  → empty result (no events / no attraction)
    429                  → UpstreamRateLimitedError
    other HTTP/transport → UpstreamUnavailableError
"""
import logging
from typing import Optional

import httpx

from config import settings
from domain.errors import UpstreamRateLimitedError, UpstreamUnavailableError

logger = logging.getLogger(__name__)


def _url(path: str) -> str:
    return f"{settings.ticketmaster_base_url.rstrip('/')}/{path}"


async def _get(path: str, params: dict) -> Optional[dict]:
    """
    GET a Discovery API resource.

    Returns the decoded JSON body, or None on 404.
    """
    query = {"apikey": settings.ticketmaster_api_key, **params}
    try:
        async with httpx.AsyncClient(timeout=settings.ticketmaster_timeout_seconds) as client:
            response = await client.get(_url(path), params=query)
            response.raise_for_status()
            return response.json()
    except httpx.HTTPStatusError as e:
        code = e.response.status_code
        if code == 404:
            return None
        if code == 429:
            logger.warning(f"Ticketmaster rate limit hit on {path}")
            raise UpstreamRateLimitedError()
        logger.error(f"Ticketmaster {path} failed with HTTP {code}")
        raise UpstreamUnavailableError(
            "Ticketmaster request failed",
            details={"status": code, "path": path},
        )
    except httpx.HTTPError as e:
        logger.error(f"Ticketmaster {path} unreachable: {e}")
        raise UpstreamUnavailableError(
            "Ticketmaster is unreachable",
            details={"path": path},
        )


def _embedded(data: Optional[dict], key: str) -> list:
    if not data:
        return []
    items = (data.get("_embedded") or {}).get(key) or []
    return items if isinstance(items, list) else []


async def fetch_events(
    *,
    attraction_id: Optional[str] = None,
    keyword: Optional[str] = None,
) -> list[dict]:
    """
    Fetch raw events for a band, restricted to the configured countries.

    attraction_id is preferred; keyword is the fallback for bands
    without a Ticketmaster id.
    """
    params = {"countryCode": settings.ticketmaster_country_codes}
    if attraction_id:
        params["attractionId"] = attraction_id
    elif keyword:
        params["keyword"] = keyword
    else:
        raise ValueError("fetch_events needs an attraction_id or keyword")

    data = await _get("events.json", params)
    events = _embedded(data, "events")
    logger.info(f"Ticketmaster returned {len(events)} events for {attraction_id or keyword!r}")
    return events


async def fetch_attraction(attraction_id: str) -> Optional[dict]:
    """Fetch one attraction by id, or None if Ticketmaster does not know it."""
    return await _get(f"attractions/{attraction_id}.json", {})


async def search_attractions(keyword: str, size: Optional[int] = None) -> list[dict]:
    """Keyword search over attractions (raw records)."""
    params = {"keyword": keyword}
    if size is not None:
        params["size"] = min(size, settings.ticketmaster_search_limit)
    data = await _get("attractions.json", params)
    return _embedded(data, "attractions")


def summarize_attraction(attraction: dict) -> dict:
    """Reduce a raw attraction to what the band search UI shows."""
    images = attraction.get("images") or []
    classifications = []
    for c in attraction.get("classifications") or []:
        genre = (c.get("genre") or {}).get("name")
        sub_genre = (c.get("subGenre") or {}).get("name")
        if genre or sub_genre:
            classifications.append({"genre": genre, "subGenre": sub_genre})

    return {
        "id": attraction.get("id"),
        "name": attraction.get("name"),
        "url": attraction.get("url"),
        "image": images[0].get("url") if images else None,
        "classifications": classifications,
    }
