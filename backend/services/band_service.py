"""
Band Service — band lookup, import from Ticketmaster, sync and deletion.

Bands are created on first reference (import by name or Ticketmaster id)
and never merged. Deleting a band removes its wishlist and concert
references, then purges concerts left with no band at all.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import delete, exists, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import Band, Concert, ConcertBandReference, WishlistBandReference
from domain.errors import ConflictError
from services import concert_sync_service, ticketmaster_service

logger = logging.getLogger(__name__)


async def get_band(db: AsyncSession, band_id: int) -> Optional[Band]:
    return await db.get(Band, band_id)


async def find_band(
    db: AsyncSession,
    name: Optional[str] = None,
    ticketmaster_id: Optional[str] = None,
) -> Optional[Band]:
    """Look a band up by Ticketmaster id (preferred) or exact name."""
    if ticketmaster_id:
        query = select(Band).where(Band.ticketmaster_id == ticketmaster_id)
    elif name:
        query = select(Band).where(Band.name == name)
    else:
        return None
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def lookup_attraction(
    name: Optional[str] = None,
    ticketmaster_id: Optional[str] = None,
) -> Optional[dict]:
    """
    Resolve a band to its Ticketmaster attraction record.

    Looks the attraction up by id when given, otherwise takes the first
    keyword match for the name. None if Ticketmaster has no match.
    """
    if ticketmaster_id:
        attraction = await ticketmaster_service.fetch_attraction(ticketmaster_id)
    else:
        matches = await ticketmaster_service.search_attractions(name)
        attraction = matches[0] if matches else None

    if not attraction or not attraction.get("name"):
        return None
    return attraction


async def find_band_for_attraction(db: AsyncSession, attraction: dict) -> Optional[Band]:
    """An existing band carrying the attraction's id or name."""
    band = None
    if attraction.get("id"):
        band = await find_band(db, ticketmaster_id=attraction["id"])
    return band or await find_band(db, name=attraction["name"])


async def create_band(db: AsyncSession, attraction: dict) -> Band:
    band = Band(name=attraction["name"], ticketmaster_id=attraction.get("id"))
    db.add(band)
    await db.commit()
    await db.refresh(band)

    logger.info(f"Imported band {band.id} '{band.name}' (ticketmaster_id={band.ticketmaster_id})")
    return band


async def import_band(
    db: AsyncSession,
    name: Optional[str] = None,
    ticketmaster_id: Optional[str] = None,
) -> Optional[Band]:
    """
    Create a band from Ticketmaster. Returns None if Ticketmaster has no match.

    Raises:
        ConflictError: the band already exists, locally or under the
            attraction's canonical name/id
    """
    if await find_band(db, name=name, ticketmaster_id=ticketmaster_id):
        raise ConflictError("Band already exists.")

    attraction = await lookup_attraction(name=name, ticketmaster_id=ticketmaster_id)
    if attraction is None:
        return None

    duplicate = await find_band_for_attraction(db, attraction)
    if duplicate:
        raise ConflictError("Band already exists.", details={"band_id": duplicate.id})

    return await create_band(db, attraction)


async def sync_band(db: AsyncSession, band: Band, by_keyword: bool = False) -> dict:
    """
    Fetch the band's events from Ticketmaster and reconcile them.

    by_keyword searches events by band name instead of attraction id; bands
    without a Ticketmaster id always use the keyword.
    """
    if by_keyword or not band.ticketmaster_id:
        raw_events = await ticketmaster_service.fetch_events(keyword=band.name)
    else:
        raw_events = await ticketmaster_service.fetch_events(attraction_id=band.ticketmaster_id)

    return await concert_sync_service.sync_band_concerts(db, band, raw_events)


async def search_bands(db: AsyncSession, q: str, limit: int = 10) -> list[dict]:
    """
    Case-insensitive substring search on band names.

    Names starting with the query sort first, then alphabetical.
    """
    term = q.strip()
    result = await db.execute(
        select(Band.id, Band.name)
        .where(Band.name.icontains(term, autoescape=True))
        .order_by(Band.name)
        .limit(limit)
    )
    rows = [{"id": r.id, "name": r.name} for r in result.all()]

    lowered = term.lower()
    rows.sort(key=lambda b: (not b["name"].lower().startswith(lowered), b["name"].lower()))
    return rows


async def list_bands(db: AsyncSession, limit: int = 50, offset: int = 0) -> tuple[list[dict], int]:
    """
    List bands with their concert count and next upcoming concert.

    Returns:
        (items, total)
    """
    counts = (
        select(
            ConcertBandReference.band_id.label("band_id"),
            func.count(ConcertBandReference.id).label("concert_count"),
        )
        .group_by(ConcertBandReference.band_id)
        .subquery()
    )
    result = await db.execute(
        select(Band.id, Band.name, func.coalesce(counts.c.concert_count, 0))
        .outerjoin(counts, counts.c.band_id == Band.id)
        .order_by(Band.name)
        .limit(limit)
        .offset(offset)
    )
    rows = result.all()

    total = (await db.execute(select(func.count(Band.id)))).scalar_one()

    now = datetime.now(timezone.utc).replace(tzinfo=None)
    items = []
    for band_id, name, concert_count in rows:
        upcoming = await db.execute(
            select(Concert.concert_date, Concert.country)
            .join(ConcertBandReference, ConcertBandReference.concert_id == Concert.id)
            .where(
                ConcertBandReference.band_id == band_id,
                Concert.concert_date >= now,
            )
            .order_by(Concert.concert_date)
            .limit(1)
        )
        next_concert = upcoming.first()
        items.append({
            "id": band_id,
            "name": name,
            "concertCount": concert_count,
            "nextConcertDate": next_concert.concert_date if next_concert else None,
            "nextConcertCountry": next_concert.country if next_concert else None,
        })

    return items, total


async def delete_band(db: AsyncSession, band_id: int) -> Optional[dict]:
    """
    Delete a band, its references, and any concert it leaves without bands.

    Runs as one transaction. Returns None if the band does not exist.

    Returns:
        dict: {
            deleted_band_id: int,
            removed_wishlist_references: int,
            removed_concert_references: int,
            removed_concerts: list[int],
        }
    """
    band = await db.get(Band, band_id)
    if band is None:
        return None

    try:
        result = await db.execute(
            select(ConcertBandReference.concert_id).where(ConcertBandReference.band_id == band_id)
        )
        concert_ids = list(result.scalars().all())

        wishlist_refs = (await db.execute(
            delete(WishlistBandReference).where(WishlistBandReference.band_id == band_id)
        )).rowcount
        concert_refs = (await db.execute(
            delete(ConcertBandReference).where(ConcertBandReference.band_id == band_id)
        )).rowcount
        await db.execute(delete(Band).where(Band.id == band_id))

        orphan_ids: list[int] = []
        if concert_ids:
            orphans = await db.execute(
                select(Concert.id).where(
                    Concert.id.in_(concert_ids),
                    ~exists().where(ConcertBandReference.concert_id == Concert.id),
                )
            )
            orphan_ids = list(orphans.scalars().all())
            if orphan_ids:
                await db.execute(delete(Concert).where(Concert.id.in_(orphan_ids)))

        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(
        f"Deleted band {band_id}: {concert_refs} concert refs, "
        f"{wishlist_refs} wishlist refs, {len(orphan_ids)} orphan concerts purged"
    )

    return {
        "deleted_band_id": band_id,
        "removed_wishlist_references": wishlist_refs,
        "removed_concert_references": concert_refs,
        "removed_concerts": orphan_ids,
    }
