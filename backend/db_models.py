"""
SQLAlchemy ORM models for the Concert Wishlist API.

Tables:
    bands                     — performers, keyed by name and Ticketmaster id
    concerts                  — reconciled Ticketmaster events
    concert_band_references   — which band plays which concert
    wishlists                 — user-owned band collections
    wishlist_band_references  — which band belongs to which wishlist
"""
from datetime import datetime

from sqlalchemy import (
    Column, Integer, String, Float, Boolean, DateTime, Text, ForeignKey,
    UniqueConstraint, Index,
)
from sqlalchemy.orm import relationship

from database import Base


class Band(Base):
    """A performer. Created on first reference, never merged."""
    __tablename__ = "bands"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), unique=True, nullable=False, index=True)
    ticketmaster_id = Column(String(64), unique=True, nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    concert_refs = relationship(
        "ConcertBandReference",
        back_populates="band",
        order_by="ConcertBandReference.id",
        lazy="select",
    )


class Concert(Base):
    """
    One reconciled event.

    Identity is the Ticketmaster event id or the (venue, concert_date) pair;
    both are unique at the store level so concurrent syncs cannot insert
    the same event twice.
    """
    __tablename__ = "concerts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(500), nullable=True)
    venue = Column(String(255), nullable=False, default="unknown")
    city = Column(String(255), nullable=True)
    country = Column(String(100), nullable=True, index=True)
    longitude = Column(Float, nullable=True)
    latitude = Column(Float, nullable=True)
    concert_date = Column(DateTime, nullable=True, index=True)  # null when the source has no start time
    on_sale = Column(Boolean, nullable=False, default=False)
    event_id = Column(String(64), nullable=True)  # Ticketmaster event id
    lineup_metadata = Column(Text, nullable=True)  # "Band A, Band B in City"
    festival = Column(Boolean, nullable=False, default=False)
    sale_start = Column(DateTime, nullable=True)
    url = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    band_refs = relationship(
        "ConcertBandReference",
        back_populates="concert",
        order_by="ConcertBandReference.id",
        lazy="select",
    )

    __table_args__ = (
        UniqueConstraint("event_id", name="uq_concert_event_id"),
        UniqueConstraint("venue", "concert_date", name="uq_concert_venue_date"),
    )


class ConcertBandReference(Base):
    """Join row: band X performs at concert Y. One row per pair."""
    __tablename__ = "concert_band_references"

    id = Column(Integer, primary_key=True, autoincrement=True)
    band_id = Column(Integer, ForeignKey("bands.id"), nullable=False, index=True)
    concert_id = Column(Integer, ForeignKey("concerts.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    band = relationship("Band", back_populates="concert_refs")
    concert = relationship("Concert", back_populates="band_refs")

    __table_args__ = (
        UniqueConstraint("band_id", "concert_id", name="uq_concert_band_pair"),
    )


class Wishlist(Base):
    """A named set of bands owned by one user."""
    __tablename__ = "wishlists"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    user_id = Column(Integer, nullable=False, index=True)  # owner, from the JWT subject
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    band_refs = relationship(
        "WishlistBandReference",
        back_populates="wishlist",
        order_by="WishlistBandReference.id",
        lazy="select",
    )

    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_wishlist_owner_name"),
    )


class WishlistBandReference(Base):
    """Join row: band belongs to wishlist. A band appears once per wishlist."""
    __tablename__ = "wishlist_band_references"

    id = Column(Integer, primary_key=True, autoincrement=True)
    wishlist_id = Column(Integer, ForeignKey("wishlists.id"), nullable=False, index=True)
    band_id = Column(Integer, ForeignKey("bands.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    wishlist = relationship("Wishlist", back_populates="band_refs")
    band = relationship("Band")

    __table_args__ = (
        UniqueConstraint("wishlist_id", "band_id", name="uq_wishlist_band_pair"),
        Index("ix_wishlist_band_refs_band_wishlist", "band_id", "wishlist_id"),
    )
