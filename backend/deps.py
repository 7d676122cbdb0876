"""
Shared FastAPI dependencies.

Routers import from here: pagination, role guards, wishlist view filters.
"""

from __future__ import annotations

from datetime import date
from typing import Optional, TypedDict

from fastapi import Depends, Query

from domain.enums import Role
from middleware.auth import require_roles
from utils.validators import country_filter, validate_date_range


class Pagination(TypedDict):
    limit: int
    offset: int


class WishlistFilters(TypedDict):
    start_date: Optional[date]
    end_date: Optional[date]
    countries: Optional[list[str]]


def pagination_params(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0, le=100_000),
) -> Pagination:
    return {"limit": limit, "offset": offset}


require_admin = require_roles(Role.ADMIN.value)
require_sync_caller = require_roles(Role.ADMIN.value, Role.SYSTEM.value)


def wishlist_filters(
    start_date: Optional[date] = Query(None, description="Inclusive start (YYYY-MM-DD)"),
    end_date: Optional[date] = Query(None, description="Inclusive end (YYYY-MM-DD)"),
    countries: Optional[list[str]] = Depends(country_filter),
) -> WishlistFilters:
    """
    Filters for the wishlist concert view.

    The date range only applies when both bounds are given.
    """
    validate_date_range(start_date, end_date)
    return {"start_date": start_date, "end_date": end_date, "countries": countries}

