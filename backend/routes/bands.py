"""
Band endpoints — search, listing, Ticketmaster import, concert sync, deletion.

Endpoints:
    GET    /bands/search                  — local name search (autocomplete)
    GET    /bands                         — bands with concert counts + next concert
    GET    /bands/ticketmaster-search     — attraction search on Ticketmaster
    POST   /bands                         — import band from Ticketmaster and sync its concerts
    POST   /bands/{band_id}/sync-concerts — re-sync a band's concerts
    DELETE /bands/{band_id}               — delete band, purge orphan concerts
"""
import logging
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from database import get_db
from deps import Pagination, pagination_params, require_admin, require_sync_caller
from domain.errors import NotFoundError
from domain.responses import paginated_response
from middleware.auth import AuthUser
from middleware.rate_limit import rate_limit
from models import BandCreateRequest
from utils.validators import is_searchable

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/bands", tags=["bands"])

ticketmaster_rate_limit = rate_limit(
    message="Too many requests to the Ticketmaster data route, please try again later.",
)


# ── GET /bands/search ──────────────────────────────────────────────
@router.get("/search")
async def search_bands(
    q: str | None = Query(None),
    limit: int = Query(10, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
):
    """Autocomplete over stored bands; prefix matches rank first."""
    if not is_searchable(q):
        return []
    from services import band_service

    return await band_service.search_bands(db, q, limit)


# ── GET /bands ─────────────────────────────────────────────────────
@router.get("")
async def list_bands(
    page: Pagination = Depends(pagination_params),
    db: AsyncSession = Depends(get_db),
):
    """All bands with concert counts and the next upcoming concert."""
    from services import band_service

    items, total = await band_service.list_bands(db, limit=page["limit"], offset=page["offset"])
    return paginated_response(items, limit=page["limit"], offset=page["offset"], total=total)


# ── GET /bands/ticketmaster-search ─────────────────────────────────
@router.get("/ticketmaster-search")
async def search_ticketmaster(
    q: str | None = Query(None),
    limit: int = Query(10, ge=1),
):
    """Search Ticketmaster attractions to find band ids (capped at 20 results)."""
    if not is_searchable(q):
        return []
    from services import ticketmaster_service

    attractions = await ticketmaster_service.search_attractions(
        q.strip(), size=min(limit, settings.ticketmaster_search_limit),
    )
    return [ticketmaster_service.summarize_attraction(a) for a in attractions]


# ── POST /bands ────────────────────────────────────────────────────
@router.post("", dependencies=[Depends(ticketmaster_rate_limit)])
async def create_band(
    request: BandCreateRequest,
    user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Import a band from Ticketmaster and sync its concerts.

    With a ticketmaster_id the attraction is fetched directly and events are
    searched by attraction id; with a name the first keyword match is used
    and events are searched by keyword.
    """
    from services import band_service, wishlist_service

    wishlist = None
    if request.wishlist_id:
        wishlist = await wishlist_service.get_owned_wishlist(db, request.wishlist_id, user["id"])

    band = await band_service.import_band(
        db, name=request.name, ticketmaster_id=request.ticketmaster_id,
    )
    if band is None:
        raise NotFoundError("Band", request.ticketmaster_id or request.name)

    sync = await band_service.sync_band(db, band, by_keyword=not request.ticketmaster_id)

    if wishlist is not None:
        await wishlist_service.link_band(db, wishlist, band)

    return {
        "id": band.id,
        "name": band.name,
        "ticketmaster_id": band.ticketmaster_id,
        "newConcerts": sync["new_concerts"],
        "concerts": [
            {
                "id": event.event_id,
                "name": event.name,
                "concert_date": event.concert_date,
                "venue": event.venue,
                "city": event.city,
                "country": event.country,
                "url": event.url,
                "on_sale": event.on_sale,
            }
            for event in sync["events"]
        ],
    }


# ── POST /bands/{band_id}/sync-concerts ────────────────────────────
@router.post("/{band_id}/sync-concerts", dependencies=[Depends(ticketmaster_rate_limit)])
async def sync_band_concerts(
    band_id: int,
    user: AuthUser = Depends(require_sync_caller),
    db: AsyncSession = Depends(get_db),
):
    """Fetch the band's Ticketmaster events and reconcile them into concerts."""
    from services import band_service

    band = await band_service.get_band(db, band_id)
    if band is None:
        raise NotFoundError("Band", band_id)

    sync = await band_service.sync_band(db, band)
    new_concerts = sync["new_concerts"]

    if not sync["events"]:
        message = f"No events found for {band.name}."
    else:
        message = f"Concerts for {band.name} synced successfully" + (
            f" ({new_concerts} new)" if new_concerts else ""
        )

    return {
        "message": message,
        "newConcerts": new_concerts,
        "band": {"id": band.id, "name": band.name},
    }


# ── DELETE /bands/{band_id} ────────────────────────────────────────
@router.delete("/{band_id}")
async def delete_band(
    band_id: int,
    user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Delete a band and its references; concerts left without bands are removed."""
    from services import band_service

    result = await band_service.delete_band(db, band_id)
    if result is None:
        raise NotFoundError("Band", band_id)
    return {
        "deletedBandId": result["deleted_band_id"],
        "removedWishlistReferences": result["removed_wishlist_references"],
        "removedConcertReferences": result["removed_concert_references"],
        "removedConcerts": result["removed_concerts"],
    }
