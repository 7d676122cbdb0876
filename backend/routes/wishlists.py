"""
Wishlist endpoints — CRUD, band membership and the concert view.

Endpoints:
    GET    /wishlists                          — caller's wishlists
    GET    /wishlists/{id}                     — concert view (date/country filters)
    POST   /wishlists                          — create
    PUT    /wishlists/{id}                     — rename
    POST   /wishlists/{id}/bands               — add band (imports it if unknown)
    DELETE /wishlists/{id}/bands/{band_id}     — remove band
    DELETE /wishlists/{id}                     — delete
"""
import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from deps import WishlistFilters, require_admin, wishlist_filters
from domain.errors import NotFoundError
from middleware.auth import AuthUser
from middleware.rate_limit import rate_limit
from models import BandLookup, WishlistNameRequest

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/wishlists", tags=["wishlists"])

wishlist_rate_limit = rate_limit()


def _wishlist_payload(wishlist, band_ids: list[int]) -> dict:
    return {
        "id": wishlist.id,
        "name": wishlist.name,
        "user_id": wishlist.user_id,
        "bands": band_ids,
    }


# ── GET /wishlists ─────────────────────────────────────────────────
@router.get("", dependencies=[Depends(wishlist_rate_limit)])
async def list_wishlists(
    user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    from services import wishlist_service

    wishlists = await wishlist_service.list_wishlists(db, user["id"])
    return [_wishlist_payload(w, [ref.band_id for ref in w.band_refs]) for w in wishlists]


# ── GET /wishlists/{wishlist_id} ───────────────────────────────────
@router.get("/{wishlist_id}")
async def get_wishlist(
    wishlist_id: int,
    filters: WishlistFilters = Depends(wishlist_filters),
    user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Concerts of every band in the wishlist, deduplicated.

    Each concert lists the wishlist bands that play it.
    """
    from services import wishlist_service

    view = await wishlist_service.get_wishlist_view(
        db,
        wishlist_id,
        start_date=filters["start_date"],
        end_date=filters["end_date"],
        countries=filters["countries"],
    )
    if view is None:
        raise NotFoundError("Wishlist", wishlist_id)
    return view


# ── POST /wishlists ────────────────────────────────────────────────
@router.post("", status_code=status.HTTP_201_CREATED, dependencies=[Depends(wishlist_rate_limit)])
async def create_wishlist(
    request: WishlistNameRequest,
    user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    from services import wishlist_service

    wishlist = await wishlist_service.create_wishlist(db, user["id"], request.name)
    return _wishlist_payload(wishlist, [])


# ── PUT /wishlists/{wishlist_id} ───────────────────────────────────
@router.put("/{wishlist_id}", dependencies=[Depends(wishlist_rate_limit)])
async def rename_wishlist(
    wishlist_id: int,
    request: WishlistNameRequest,
    user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    from services import wishlist_service

    wishlist = await wishlist_service.get_owned_wishlist(db, wishlist_id, user["id"])
    wishlist = await wishlist_service.rename_wishlist(db, wishlist, request.name)
    band_ids = await wishlist_service.member_band_ids(db, wishlist.id)
    return _wishlist_payload(wishlist, band_ids)


# ── POST /wishlists/{wishlist_id}/bands ────────────────────────────
@router.post(
    "/{wishlist_id}/bands",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(wishlist_rate_limit)],
)
async def add_band_to_wishlist(
    wishlist_id: int,
    request: BandLookup,
    user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Add a band by name or Ticketmaster id; unknown bands are imported and synced."""
    from services import wishlist_service

    wishlist = await wishlist_service.get_owned_wishlist(db, wishlist_id, user["id"])
    result = await wishlist_service.add_band(
        db, wishlist, name=request.name, ticketmaster_id=request.ticketmaster_id,
    )
    band = result["band"]
    created = result["new_band_created"]

    return {
        "message": (
            "Band created and added to wishlist successfully"
            if created else "Band added to wishlist successfully"
        ),
        "band": {"id": band.id, "name": band.name, "ticketmaster_id": band.ticketmaster_id},
        "newBandCreated": created,
    }


# ── DELETE /wishlists/{wishlist_id}/bands/{band_id} ────────────────
@router.delete("/{wishlist_id}/bands/{band_id}", dependencies=[Depends(wishlist_rate_limit)])
async def remove_band_from_wishlist(
    wishlist_id: int,
    band_id: int,
    user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    from services import wishlist_service

    wishlist = await wishlist_service.get_owned_wishlist(db, wishlist_id, user["id"])
    if not await wishlist_service.remove_band(db, wishlist, band_id):
        raise NotFoundError("Wishlist band", band_id)
    return {"message": "Band removed from wishlist successfully"}


# ── DELETE /wishlists/{wishlist_id} ────────────────────────────────
@router.delete("/{wishlist_id}", dependencies=[Depends(wishlist_rate_limit)])
async def delete_wishlist(
    wishlist_id: int,
    user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    from services import wishlist_service

    wishlist = await wishlist_service.get_owned_wishlist(db, wishlist_id, user["id"])
    await wishlist_service.delete_wishlist(db, wishlist)
    return {"message": "Wishlist deleted successfully."}
