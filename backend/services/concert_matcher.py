"""
Concert Matcher — finds the stored concert a canonical event refers to.

A concert matches when EITHER
    (a) its event_id equals the event's Ticketmaster id, OR
    (b) its (venue, concert_date) equals the event's; a missing date
        only matches another missing date.

Read-only. Returns None when nothing matches. Several rows matching (b)
resolve to the lowest id.
"""
import logging
from typing import Optional

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import Concert
from models import CanonicalEvent

logger = logging.getLogger(__name__)


def match_condition(event: CanonicalEvent):
    """SQL condition implementing the two-key policy for one event."""
    if event.concert_date is None:
        date_clause = Concert.concert_date.is_(None)
    else:
        date_clause = Concert.concert_date == event.concert_date

    conditions = [and_(Concert.venue == event.venue, date_clause)]
    if event.event_id:
        conditions.append(Concert.event_id == event.event_id)
    return or_(*conditions)


async def find_concert(db: AsyncSession, event: CanonicalEvent) -> Optional[Concert]:
    """Return the existing concert for this event, or None."""
    result = await db.execute(
        select(Concert)
        .where(match_condition(event))
        .order_by(Concert.id)
        .limit(1)
    )
    return result.scalar_one_or_none()
