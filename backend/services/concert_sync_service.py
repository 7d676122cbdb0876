"""
Band–Concert Reconciler — links bands to concerts during a Ticketmaster sync.

Pipeline for one band:
    raw events → normalize + batch dedup → for each event:
        find_concert → create_and_link (no match) | link_to_existing (match)

Guarantees:
    - One concert_band_references row per (band, concert); relinking is a no-op.
    - An existing concert keeps its stored fields; later fetches never overwrite it.
    - Concert inserts use ON CONFLICT DO NOTHING on event_id and (venue, concert_date).
      A caller that missed the match and lost an insert race links to the
      winner's row instead of creating a duplicate.
    - Each event is committed on its own. A failure part-way through a batch
      leaves earlier events committed and propagates to the caller.
"""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import Band, Concert, ConcertBandReference
from domain.errors import ReconcileError
from models import CanonicalEvent
from services.concert_matcher import find_concert
from services.event_normalizer import normalize_events

logger = logging.getLogger(__name__)


async def _insert_reference(db: AsyncSession, band_id: int, concert_id: int) -> bool:
    """Insert the join row unless it exists. Returns True if a row was written."""
    res = await db.execute(
        sqlite_insert(ConcertBandReference)
        .values(band_id=band_id, concert_id=concert_id)
        .on_conflict_do_nothing(index_elements=["band_id", "concert_id"])
    )
    return getattr(res, "rowcount", 0) == 1


async def create_and_link(db: AsyncSession, band: Band, event: CanonicalEvent) -> dict:
    """
    Create a concert from a canonical event and link the band to it.

    Returns:
        dict: {concert: Concert, created: bool}
        created is False only when another writer inserted the same
        concert first; the band is then linked to that row.
    """
    res = await db.execute(
        sqlite_insert(Concert)
        .values(**event.concert_values())
        .on_conflict_do_nothing()
        .returning(Concert.id)
    )
    concert_id = res.scalar_one_or_none()

    if concert_id is None:
        concert = await find_concert(db, event)
        if concert is None:
            raise ReconcileError(
                f"Concert insert for event {event.event_id} conflicted but no matching row was found",
                details={"event_id": event.event_id, "venue": event.venue},
            )
        logger.info(
            f"Concert {concert.id} already stored for event {event.event_id} "
            f"({event.venue}); linking band {band.id}"
        )
        await _insert_reference(db, band.id, concert.id)
        return {"concert": concert, "created": False}

    concert = await db.get(Concert, concert_id)
    await _insert_reference(db, band.id, concert.id)
    logger.info(f"Created concert {concert.id} '{concert.name}' for band {band.id}")
    return {"concert": concert, "created": True}


async def link_to_existing(
    db: AsyncSession,
    band: Band,
    concert: Concert,
    event: Optional[CanonicalEvent] = None,
) -> bool:
    """
    Link a band to an already-matched concert.

    The event is accepted for symmetry with create_and_link but its fields
    are not written back. Returns True if a reference row was created.
    """
    existing = await db.execute(
        select(ConcertBandReference.id).where(
            ConcertBandReference.band_id == band.id,
            ConcertBandReference.concert_id == concert.id,
        )
    )
    if existing.first() is not None:
        return False

    linked = await _insert_reference(db, band.id, concert.id)
    if linked:
        logger.debug(f"Linked band {band.id} to existing concert {concert.id}")
    return linked


async def reconcile_event(db: AsyncSession, band: Band, event: CanonicalEvent) -> dict:
    """Match one canonical event and create or link accordingly."""
    existing = await find_concert(db, event)
    if existing is None:
        return await create_and_link(db, band, event)

    await link_to_existing(db, band, existing, event)
    return {"concert": existing, "created": False}


async def sync_band_concerts(
    db: AsyncSession,
    band: Band,
    raw_events: list,
    now: Optional[datetime] = None,
) -> dict:
    """
    Reconcile a batch of raw Ticketmaster events for one band.

    Returns:
        dict: {
            band_id: int,
            events: list[CanonicalEvent],   # after batch dedup
            results: list[{concert, created}],
            new_concerts: int,
        }
    """
    events = normalize_events(raw_events, now=now)

    results = []
    new_concerts = 0
    for event in events:
        outcome = await reconcile_event(db, band, event)
        await db.commit()
        if outcome["created"]:
            new_concerts += 1
        results.append(outcome)

    logger.info(
        f"Synced band {band.id} ({band.name}): {len(events)} events, "
        f"{new_concerts} new concerts"
    )

    return {
        "band_id": band.id,
        "events": events,
        "results": results,
        "new_concerts": new_concerts,
    }
