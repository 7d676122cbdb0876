"""
Event Normalizer — turns raw Ticketmaster event records into CanonicalEvent.

Rules:
    venue defaults to "unknown", missing coordinates/dates become None
    festival = more than 6 listed performers
    on_sale  = dates.status.code == "onsale"

Batch dedup:
    Two events collapse when (venue, calendar date) match. Unknown venue
    and unknown date still take part in the key. The first event seen
    wins; later duplicates are dropped, never merged.

Malformed optional fields degrade to None/defaults, nothing here raises.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from domain.constants import FESTIVAL_PERFORMER_THRESHOLD, ON_SALE_STATUS, UNKNOWN_VENUE
from models import CanonicalEvent

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _dig(data, *path):
    """Walk nested dicts/lists, returning None as soon as a step is missing."""
    current = data
    for step in path:
        if isinstance(step, int):
            if not isinstance(current, list) or len(current) <= step:
                return None
        elif not isinstance(current, dict):
            return None
        current = current[step] if isinstance(step, int) else current.get(step)
        if current is None:
            return None
    return current


def parse_timestamp(value) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp (Ticketmaster uses "2024-06-01T18:00:00Z").

    Aware values are converted to naive UTC so they compare with stored rows.
    """
    if not value or not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _to_float(value) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _to_str(value) -> Optional[str]:
    """Non-empty stripped string, or None for anything else."""
    if not isinstance(value, str):
        return None
    return value.strip() or None


def _event_id(value) -> Optional[str]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    return _to_str(value)


def _performer_names(raw: dict) -> list[str]:
    attractions = _dig(raw, "_embedded", "attractions") or []
    if not isinstance(attractions, list):
        return []
    names = (_to_str(a.get("name")) for a in attractions if isinstance(a, dict))
    return [name for name in names if name]


def build_metadata(performers: list[str], city: Optional[str]) -> Optional[str]:
    """Human-readable lineup, e.g. "Band A, Band B in Berlin"."""
    lineup = ", ".join(performers)
    if lineup and city:
        return f"{lineup} in {city}"
    return lineup or city or None


def normalize_event(raw: dict, now: Optional[datetime] = None) -> CanonicalEvent:
    """Convert one raw Ticketmaster event into a CanonicalEvent."""
    if not isinstance(raw, dict):
        raw = {}

    venue = _dig(raw, "_embedded", "venues", 0)
    if not isinstance(venue, dict):
        venue = {}
    performers = _performer_names(raw)
    city = _to_str(_dig(venue, "city", "name"))
    status_code = _dig(raw, "dates", "status", "code")

    return CanonicalEvent(
        event_id=_event_id(raw.get("id")),
        name=_to_str(raw.get("name")),
        venue=_to_str(venue.get("name")) or UNKNOWN_VENUE,
        city=city,
        country=_to_str(_dig(venue, "country", "name")),
        longitude=_to_float(_dig(venue, "location", "longitude")),
        latitude=_to_float(_dig(venue, "location", "latitude")),
        concert_date=parse_timestamp(_dig(raw, "dates", "start", "dateTime")),
        sale_start=parse_timestamp(_dig(raw, "sales", "public", "startDateTime")),
        on_sale=status_code == ON_SALE_STATUS,
        festival=len(performers) > FESTIVAL_PERFORMER_THRESHOLD,
        url=_to_str(raw.get("url")),
        metadata=build_metadata(performers, city),
        performers=performers,
        created_at=now or _utcnow(),
    )


def normalize_events(raw_events: list, now: Optional[datetime] = None) -> list[CanonicalEvent]:
    """
    Normalize a fetch batch and drop (venue, date) duplicates.

    Order is preserved; the first event for a key wins.
    """
    now = now or _utcnow()
    seen: set[tuple] = set()
    unique: list[CanonicalEvent] = []

    for raw in raw_events or []:
        event = normalize_event(raw, now=now)
        key = event.dedup_key()
        if key in seen:
            logger.debug(f"Dropping duplicate event {event.event_id} at {event.venue} ({key[1]})")
            continue
        seen.add(key)
        unique.append(event)

    dropped = len(raw_events or []) - len(unique)
    if dropped:
        logger.info(f"Normalized {len(unique)} events ({dropped} duplicates dropped)")
    return unique
