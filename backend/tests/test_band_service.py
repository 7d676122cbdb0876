"""
Unit tests for band lookup, import, search, listing and deletion.

Ticketmaster calls are patched at the ticketmaster_service seam.
"""
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import func, select

from db_models import Band, Concert, ConcertBandReference, WishlistBandReference
from domain.errors import ConflictError
from services import band_service, concert_sync_service
from tests.factories import FIXED_NOW, make_attraction, make_raw_event


async def _count(db, model) -> int:
    return (await db.execute(select(func.count()).select_from(model))).scalar_one()


# ── Lookup / import ─────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_find_band_prefers_ticketmaster_id(db_session, sample_band):
    found = await band_service.find_band(db_session, name="nope", ticketmaster_id="K8vZ917Gku7")
    assert found.id == sample_band.id
    assert await band_service.find_band(db_session) is None


@pytest.mark.asyncio
async def test_import_band_by_id(db_session):
    with patch(
        "services.ticketmaster_service.fetch_attraction",
        AsyncMock(return_value=make_attraction("K8vZ917_new", "Fresh Band")),
    ) as fetch:
        band = await band_service.import_band(db_session, ticketmaster_id="K8vZ917_new")

    fetch.assert_awaited_once_with("K8vZ917_new")
    assert band.id is not None
    assert band.name == "Fresh Band"
    assert band.ticketmaster_id == "K8vZ917_new"


@pytest.mark.asyncio
async def test_import_band_by_name_takes_first_match(db_session):
    matches = [make_attraction("K1", "Fresh Band"), make_attraction("K2", "Fresh Band Tribute")]
    with patch("services.ticketmaster_service.search_attractions", AsyncMock(return_value=matches)):
        band = await band_service.import_band(db_session, name="Fresh Band")

    assert band.ticketmaster_id == "K1"


@pytest.mark.asyncio
async def test_import_band_unknown_upstream_returns_none(db_session):
    with patch("services.ticketmaster_service.search_attractions", AsyncMock(return_value=[])):
        assert await band_service.import_band(db_session, name="Nobody") is None
    assert await _count(db_session, Band) == 0


@pytest.mark.asyncio
async def test_import_existing_band_conflicts(db_session, sample_band):
    with pytest.raises(ConflictError):
        await band_service.import_band(db_session, name="Band A")


@pytest.mark.asyncio
async def test_import_conflicts_on_canonical_attraction(db_session, sample_band):
    """Name differs locally but the attraction id is already stored."""
    with patch(
        "services.ticketmaster_service.search_attractions",
        AsyncMock(return_value=[make_attraction("K8vZ917Gku7", "Band A")]),
    ):
        with pytest.raises(ConflictError):
            await band_service.import_band(db_session, name="band a")


@pytest.mark.asyncio
async def test_sync_band_uses_attraction_id(db_session, sample_band):
    fetch = AsyncMock(return_value=[make_raw_event()])
    with patch("services.ticketmaster_service.fetch_events", fetch):
        result = await band_service.sync_band(db_session, sample_band)

    fetch.assert_awaited_once_with(attraction_id="K8vZ917Gku7")
    assert result["new_concerts"] == 1


@pytest.mark.asyncio
async def test_sync_band_by_keyword(db_session, sample_band):
    fetch = AsyncMock(return_value=[])
    with patch("services.ticketmaster_service.fetch_events", fetch):
        await band_service.sync_band(db_session, sample_band, by_keyword=True)

    fetch.assert_awaited_once_with(keyword="Band A")


# ── Search / listing ────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_search_bands_prefix_first(db_session):
    for name in ["The Rockers", "Rock Salt", "Bedrock"]:
        db_session.add(Band(name=name))
    await db_session.commit()

    results = await band_service.search_bands(db_session, "rock")
    assert [r["name"] for r in results] == ["Rock Salt", "Bedrock", "The Rockers"]


@pytest.mark.asyncio
async def test_search_bands_escapes_wildcards(db_session):
    db_session.add(Band(name="100% Noise"))
    db_session.add(Band(name="100 Noise"))
    await db_session.commit()

    results = await band_service.search_bands(db_session, "100%")
    assert [r["name"] for r in results] == ["100% Noise"]


@pytest.mark.asyncio
async def test_list_bands_counts_and_next_concert(db_session, sample_band, other_band):
    future = datetime.now(timezone.utc) + timedelta(days=30)
    later = future + timedelta(days=10)
    past = datetime.now(timezone.utc) - timedelta(days=30)
    raws = [
        make_raw_event(event_id="past", date_time=past.strftime("%Y-%m-%dT%H:%M:%SZ")),
        make_raw_event(event_id="later", venue="Club", country="Austria",
                       date_time=later.strftime("%Y-%m-%dT%H:%M:%SZ")),
        make_raw_event(event_id="soon", venue="Hall", country="Denmark",
                       date_time=future.strftime("%Y-%m-%dT%H:%M:%SZ")),
    ]
    await concert_sync_service.sync_band_concerts(db_session, sample_band, raws, now=FIXED_NOW)

    items, total = await band_service.list_bands(db_session)
    assert total == 2
    by_name = {item["name"]: item for item in items}

    assert by_name["Band A"]["concertCount"] == 3
    assert by_name["Band A"]["nextConcertCountry"] == "Denmark"
    assert by_name["Band B"]["concertCount"] == 0
    assert by_name["Band B"]["nextConcertDate"] is None


# ── Deletion ────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_delete_missing_band(db_session):
    assert await band_service.delete_band(db_session, 404) is None


@pytest.mark.asyncio
async def test_delete_band_purges_only_orphans(db_session, sample_band, other_band, sample_wishlist):
    """
    Band A plays "solo" alone and "shared" with Band B. Deleting A removes
    "solo" but keeps "shared".
    """
    await concert_sync_service.sync_band_concerts(
        db_session, sample_band,
        [make_raw_event(event_id="shared"), make_raw_event(event_id="solo", venue="Club")],
        now=FIXED_NOW,
    )
    await concert_sync_service.sync_band_concerts(
        db_session, other_band, [make_raw_event(event_id="shared")], now=FIXED_NOW,
    )
    db_session.add(WishlistBandReference(wishlist_id=sample_wishlist.id, band_id=sample_band.id))
    await db_session.commit()

    solo_id = (await db_session.execute(
        select(Concert.id).where(Concert.event_id == "solo")
    )).scalar_one()

    result = await band_service.delete_band(db_session, sample_band.id)

    assert result == {
        "deleted_band_id": sample_band.id,
        "removed_wishlist_references": 1,
        "removed_concert_references": 2,
        "removed_concerts": [solo_id],
    }
    remaining = (await db_session.execute(select(Concert.event_id))).scalars().all()
    assert remaining == ["shared"]
    assert await _count(db_session, ConcertBandReference) == 1
    assert await _count(db_session, WishlistBandReference) == 0
    assert await band_service.get_band(db_session, sample_band.id) is None
