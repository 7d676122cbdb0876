"""
Tests for ORM database models.

Tests: defaults and the unique constraints concurrent syncs rely on.
"""
import pytest
from datetime import datetime
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from db_models import Band, Concert, ConcertBandReference, Wishlist, WishlistBandReference


class TestConcertModel:
    """Tests for the Concert ORM model."""

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_defaults(self, db_session):
        db_session.add(Concert(name="Bare"))
        await db_session.commit()

        fetched = (await db_session.execute(select(Concert))).scalar_one()
        assert fetched.venue == "unknown"
        assert fetched.on_sale is False
        assert fetched.festival is False
        assert fetched.created_at is not None

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_event_id_is_unique(self, db_session):
        db_session.add(Concert(event_id="e1", venue="A", concert_date=datetime(2024, 6, 1)))
        db_session.add(Concert(event_id="e1", venue="B", concert_date=datetime(2024, 6, 2)))
        with pytest.raises(IntegrityError):
            await db_session.commit()
        await db_session.rollback()

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_venue_and_date_are_unique(self, db_session):
        db_session.add(Concert(event_id="e1", venue="Arena", concert_date=datetime(2024, 6, 1, 18)))
        db_session.add(Concert(event_id="e2", venue="Arena", concert_date=datetime(2024, 6, 1, 18)))
        with pytest.raises(IntegrityError):
            await db_session.commit()
        await db_session.rollback()

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_undated_concerts_do_not_collide(self, db_session):
        """NULL dates are distinct for the unique constraint."""
        db_session.add(Concert(event_id="e1", venue="Arena", concert_date=None))
        db_session.add(Concert(event_id="e2", venue="Arena", concert_date=None))
        await db_session.commit()

        count = len((await db_session.execute(select(Concert))).scalars().all())
        assert count == 2


class TestReferenceModels:
    """Join tables allow one row per pair."""

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_concert_band_pair_is_unique(self, db_session):
        band = Band(name="Band A")
        concert = Concert(name="Show")
        db_session.add_all([band, concert])
        await db_session.commit()

        db_session.add(ConcertBandReference(band_id=band.id, concert_id=concert.id))
        db_session.add(ConcertBandReference(band_id=band.id, concert_id=concert.id))
        with pytest.raises(IntegrityError):
            await db_session.commit()
        await db_session.rollback()

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_wishlist_band_pair_is_unique(self, db_session):
        band = Band(name="Band A")
        wishlist = Wishlist(name="List", user_id=1)
        db_session.add_all([band, wishlist])
        await db_session.commit()

        db_session.add(WishlistBandReference(wishlist_id=wishlist.id, band_id=band.id))
        db_session.add(WishlistBandReference(wishlist_id=wishlist.id, band_id=band.id))
        with pytest.raises(IntegrityError):
            await db_session.commit()
        await db_session.rollback()

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_band_name_is_unique(self, db_session):
        db_session.add(Band(name="Band A"))
        db_session.add(Band(name="Band A"))
        with pytest.raises(IntegrityError):
            await db_session.commit()
        await db_session.rollback()
