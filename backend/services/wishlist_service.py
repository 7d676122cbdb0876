"""
Wishlist Service — wishlist CRUD and the wishlist concert projection.

A wishlist holds bands, never concerts. Its concert view is derived:

    member bands → each band's concerts (with the member bands linked to each)
        → per-band date/country filter → union keyed by concert id

Each concert lists only the participating bands that are wishlist members,
not every performer. Filters are applied per band and the views are then
unioned; since the filters only look at concert fields a concert is either
kept for every member band that plays it or for none.
"""
import logging
from datetime import date
from typing import Iterable, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from db_models import Band, Concert, ConcertBandReference, Wishlist, WishlistBandReference
from domain.errors import (
    ConflictError, NotFoundError, PermissionDeniedError,
    UpstreamRateLimitedError, UpstreamUnavailableError,
)
from services import band_service

logger = logging.getLogger(__name__)


# ── CRUD ────────────────────────────────────────────────────────────

async def list_wishlists(db: AsyncSession, user_id: int) -> list[Wishlist]:
    """All wishlists owned by a user, with their band references loaded."""
    result = await db.execute(
        select(Wishlist)
        .where(Wishlist.user_id == user_id)
        .options(selectinload(Wishlist.band_refs))
        .order_by(Wishlist.id)
    )
    return list(result.scalars().all())


async def get_owned_wishlist(db: AsyncSession, wishlist_id: int, user_id: int) -> Wishlist:
    """
    Load a wishlist the caller may modify.

    Raises:
        NotFoundError: no such wishlist
        PermissionDeniedError: wishlist belongs to someone else
    """
    wishlist = await db.get(Wishlist, wishlist_id)
    if wishlist is None:
        raise NotFoundError("Wishlist", wishlist_id)
    if wishlist.user_id != user_id:
        raise PermissionDeniedError("You do not have access to this wishlist.")
    return wishlist


async def _ensure_unique_name(db: AsyncSession, user_id: int, name: str, exclude_id: Optional[int] = None):
    query = select(Wishlist.id).where(Wishlist.user_id == user_id, Wishlist.name == name)
    if exclude_id is not None:
        query = query.where(Wishlist.id != exclude_id)
    if (await db.execute(query)).first() is not None:
        raise ConflictError(f"A wishlist named '{name}' already exists.")


async def create_wishlist(db: AsyncSession, user_id: int, name: str) -> Wishlist:
    await _ensure_unique_name(db, user_id, name)
    wishlist = Wishlist(name=name, user_id=user_id)
    db.add(wishlist)
    await db.commit()
    await db.refresh(wishlist)
    logger.info(f"User {user_id} created wishlist {wishlist.id} '{name}'")
    return wishlist


async def rename_wishlist(db: AsyncSession, wishlist: Wishlist, name: str) -> Wishlist:
    await _ensure_unique_name(db, wishlist.user_id, name, exclude_id=wishlist.id)
    wishlist.name = name
    await db.commit()
    await db.refresh(wishlist)
    return wishlist


async def delete_wishlist(db: AsyncSession, wishlist: Wishlist) -> None:
    """Delete the wishlist and its band references. Bands are kept."""
    await db.execute(
        delete(WishlistBandReference).where(WishlistBandReference.wishlist_id == wishlist.id)
    )
    await db.delete(wishlist)
    await db.commit()
    logger.info(f"Deleted wishlist {wishlist.id}")


async def add_band(
    db: AsyncSession,
    wishlist: Wishlist,
    name: Optional[str] = None,
    ticketmaster_id: Optional[str] = None,
) -> dict:
    """
    Add a band to a wishlist, importing it from Ticketmaster if unknown.

    A freshly imported band gets its concerts synced; an upstream failure
    during that sync is logged and the band is still added.

    Returns:
        dict: {band: Band, new_band_created: bool}

    Raises:
        NotFoundError: Ticketmaster has no such band
        ConflictError: band is already on the wishlist
    """
    band = await band_service.find_band(db, name=name, ticketmaster_id=ticketmaster_id)
    new_band_created = False

    if band is None:
        attraction = await band_service.lookup_attraction(name=name, ticketmaster_id=ticketmaster_id)
        if attraction is None:
            raise NotFoundError("Band", ticketmaster_id or name)

        band = await band_service.find_band_for_attraction(db, attraction)
        if band is None:
            band = await band_service.create_band(db, attraction)
            new_band_created = True
            try:
                await band_service.sync_band(db, band, by_keyword=not ticketmaster_id)
            except (UpstreamRateLimitedError, UpstreamUnavailableError) as e:
                logger.warning(f"Could not fetch events for band {band.id}, but band was created: {e.message}")

    await link_band(db, wishlist, band)
    logger.info(f"Added band {band.id} to wishlist {wishlist.id} (new band: {new_band_created})")

    return {"band": band, "new_band_created": new_band_created}


async def link_band(db: AsyncSession, wishlist: Wishlist, band: Band) -> None:
    """Make a band a wishlist member. ConflictError if it already is one."""
    existing = await db.execute(
        select(WishlistBandReference.id).where(
            WishlistBandReference.wishlist_id == wishlist.id,
            WishlistBandReference.band_id == band.id,
        )
    )
    if existing.first() is not None:
        raise ConflictError("Band is already in this wishlist.", details={"band_id": band.id})

    db.add(WishlistBandReference(wishlist_id=wishlist.id, band_id=band.id))
    await db.commit()


async def remove_band(db: AsyncSession, wishlist: Wishlist, band_id: int) -> bool:
    """Remove a band from a wishlist. False if it was not a member."""
    result = await db.execute(
        select(WishlistBandReference).where(
            WishlistBandReference.wishlist_id == wishlist.id,
            WishlistBandReference.band_id == band_id,
        )
    )
    ref = result.scalar_one_or_none()
    if ref is None:
        return False
    await db.delete(ref)
    await db.commit()
    return True


# ── Projection ──────────────────────────────────────────────────────

def concert_passes_filters(
    concert: Concert,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    countries: Optional[Iterable[str]] = None,
) -> bool:
    """
    Date range (inclusive, calendar days) applies only when both bounds are
    given; an undated concert never falls inside a range. The country
    allow-list applies when non-empty.
    """
    if start_date is not None and end_date is not None:
        if concert.concert_date is None:
            return False
        day = concert.concert_date.date()
        if day < start_date or day > end_date:
            return False

    if countries and concert.country not in countries:
        return False

    return True


def serialize_concert(concert: Concert, participating: Optional[list[dict]] = None) -> dict:
    """Concert as returned by the API, optionally annotated for a wishlist."""
    data = {
        "id": concert.id,
        "name": concert.name,
        "metadata": concert.lineup_metadata,
        "country": concert.country,
        "city": concert.city,
        "venue": concert.venue,
        "longitude": concert.longitude,
        "latitude": concert.latitude,
        "concert_date": concert.concert_date,
        "festival": concert.festival,
        "on_sale": concert.on_sale,
        "url": concert.url,
    }
    if participating is not None:
        data["participating_bands"] = participating
        data["wishlist_band_count"] = len(participating)
    return data


async def member_band_ids(db: AsyncSession, wishlist_id: int) -> list[int]:
    """Band ids on a wishlist, in the order they were added."""
    result = await db.execute(
        select(WishlistBandReference.band_id)
        .where(WishlistBandReference.wishlist_id == wishlist_id)
        .order_by(WishlistBandReference.id)
    )
    return list(result.scalars().all())


async def get_wishlist_view(
    db: AsyncSession,
    wishlist_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    countries: Optional[list[str]] = None,
) -> Optional[dict]:
    """
    Build the filtered, deduplicated concert view of a wishlist.

    Membership, band-concert links and concerts are read as plain rows;
    no relationship collection is touched.

    Returns None if the wishlist does not exist.

    Returns:
        dict: {
            id, name, user_id,
            bands: [{id, name, concertCount}],
            concerts: [{...concert, participating_bands, wishlist_band_count}],
        }
    """
    wishlist = await db.get(Wishlist, wishlist_id)
    if wishlist is None:
        return None

    band_ids = await member_band_ids(db, wishlist_id)
    allowed_countries = set(countries) if countries else None

    names: dict[int, str] = {}
    concerts_by_band: dict[int, list[int]] = {band_id: [] for band_id in band_ids}
    members_by_concert: dict[int, list[dict]] = {}
    concerts: dict[int, Concert] = {}

    if band_ids:
        rows = await db.execute(select(Band.id, Band.name).where(Band.id.in_(band_ids)))
        names = {band_id: name for band_id, name in rows.all()}

        links = await db.execute(
            select(ConcertBandReference.concert_id, ConcertBandReference.band_id)
            .where(ConcertBandReference.band_id.in_(band_ids))
            .order_by(ConcertBandReference.id)
        )
        for concert_id, band_id in links.all():
            concerts_by_band[band_id].append(concert_id)
            members_by_concert.setdefault(concert_id, []).append(
                {"id": band_id, "name": names.get(band_id)}
            )

    if members_by_concert:
        result = await db.execute(select(Concert).where(Concert.id.in_(list(members_by_concert))))
        concerts = {concert.id: concert for concert in result.scalars().all()}

    band_summaries = []
    all_concerts: dict[int, dict] = {}

    for band_id in band_ids:
        if band_id not in names:
            continue
        retained: dict[int, dict] = {}
        for concert_id in concerts_by_band[band_id]:
            concert = concerts.get(concert_id)
            if concert is None or concert_id in retained:
                continue
            if not concert_passes_filters(concert, start_date, end_date, allowed_countries):
                continue
            retained[concert_id] = serialize_concert(concert, members_by_concert[concert_id])

        band_summaries.append({"id": band_id, "name": names[band_id], "concertCount": len(retained)})
        for concert_id, concert in retained.items():
            all_concerts.setdefault(concert_id, concert)

    return {
        "id": wishlist.id,
        "name": wishlist.name,
        "user_id": wishlist.user_id,
        "bands": band_summaries,
        "concerts": list(all_concerts.values()),
    }
