"""
Input validation utilities for the Concert Wishlist API.

Provides reusable validators for wishlist view filters and search queries.
"""
from datetime import date
from typing import Optional

from fastapi import Query

from domain.constants import MIN_SEARCH_LENGTH
from domain.errors import ValidationError


def parse_country_list(raw: Optional[str]) -> Optional[list[str]]:
    """
    Split a comma-separated country allow-list.

    Blank entries are dropped; an empty result means "no filter" (None).
    """
    if not raw:
        return None
    countries = [c.strip() for c in raw.split(",") if c.strip()]
    return countries or None


def validate_date_range(start_date: Optional[date], end_date: Optional[date]) -> None:
    """
    Reject an inverted range.

    Raises:
        ValidationError(400) if start_date is after end_date
    """
    if start_date and end_date and start_date > end_date:
        raise ValidationError(
            f"start_date {start_date.isoformat()} is after end_date {end_date.isoformat()}",
            field="start_date",
        )


def is_searchable(q: Optional[str]) -> bool:
    """Search terms shorter than the minimum return no results instead of an error."""
    return bool(q) and len(q.strip()) >= MIN_SEARCH_LENGTH


def country_filter(
    countries: Optional[str] = Query(None, description="Comma-separated country names"),
) -> Optional[list[str]]:
    """FastAPI dependency for the countries query parameter."""
    return parse_country_list(countries)
