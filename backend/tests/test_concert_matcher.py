"""
Tests for concert matching: event id OR (venue, concert_date).
"""
from datetime import datetime

import pytest

from db_models import Concert
from services.concert_matcher import find_concert
from services.event_normalizer import normalize_event
from tests.factories import FIXED_NOW, make_raw_event


async def _store_concert(db, **overrides):
    values = {
        "name": "Stored Show",
        "venue": "Arena",
        "concert_date": datetime(2024, 6, 1, 18, 0, 0),
        "event_id": "stored-1",
    }
    values.update(overrides)
    concert = Concert(**values)
    db.add(concert)
    await db.commit()
    await db.refresh(concert)
    return concert


@pytest.mark.asyncio
async def test_no_match_returns_none(db_session):
    event = normalize_event(make_raw_event(), now=FIXED_NOW)
    assert await find_concert(db_session, event) is None


@pytest.mark.asyncio
async def test_match_by_event_id(db_session):
    stored = await _store_concert(db_session, event_id="evt-1", venue="Other Hall")
    event = normalize_event(make_raw_event(event_id="evt-1"), now=FIXED_NOW)

    found = await find_concert(db_session, event)
    assert found is not None
    assert found.id == stored.id


@pytest.mark.asyncio
async def test_match_by_venue_and_date(db_session):
    stored = await _store_concert(db_session, event_id="different-id")
    event = normalize_event(make_raw_event(event_id="evt-1"), now=FIXED_NOW)

    found = await find_concert(db_session, event)
    assert found is not None
    assert found.id == stored.id


@pytest.mark.asyncio
async def test_same_venue_other_date_does_not_match(db_session):
    await _store_concert(db_session, event_id="different-id")
    event = normalize_event(
        make_raw_event(event_id="evt-1", date_time="2024-06-02T18:00:00Z"), now=FIXED_NOW,
    )
    assert await find_concert(db_session, event) is None


@pytest.mark.asyncio
async def test_missing_date_matches_only_missing_date(db_session):
    undated = await _store_concert(db_session, event_id="undated", concert_date=None)
    raw = make_raw_event(event_id="evt-1")
    del raw["dates"]["start"]
    event = normalize_event(raw, now=FIXED_NOW)

    found = await find_concert(db_session, event)
    assert found is not None
    assert found.id == undated.id


@pytest.mark.asyncio
async def test_event_without_id_matches_on_venue_date(db_session):
    stored = await _store_concert(db_session)
    raw = make_raw_event()
    raw.pop("id")
    event = normalize_event(raw, now=FIXED_NOW)
    assert event.event_id is None

    found = await find_concert(db_session, event)
    assert found is not None
    assert found.id == stored.id
