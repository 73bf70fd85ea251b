"""SQLAlchemy models for users, listings, contact messages and id sequences."""
from __future__ import annotations

import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    JSON,
    func,
)
from sqlalchemy.orm import relationship

from .session import Base


def new_id() -> str:
    return uuid.uuid4().hex


class User(Base):
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=new_id)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    first_name = Column(String(120), nullable=False)
    last_name = Column(String(120), nullable=False)
    password_hash = Column(Text, nullable=False)
    role = Column(String(32), default="customer", nullable=False)
    is_blocked = Column(Boolean, default=False, nullable=False)
    img = Column(Text, nullable=True)
    phone_number = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    listings = relationship("Listing", back_populates="owner", cascade="all,delete-orphan")


class Listing(Base):
    __tablename__ = "listings"

    id = Column(String(32), primary_key=True, default=new_id)
    listing_id = Column(String(32), unique=True, nullable=False, index=True)
    slug = Column(String(255), unique=True, nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    price = Column(Float, nullable=False)
    currency = Column(String(3), default="LKR", nullable=False)
    category = Column(String(64), nullable=False, index=True)
    images = Column(JSON, default=list, nullable=False)
    country = Column(String(120), nullable=False)
    featured = Column(Boolean, default=False, nullable=False, index=True)
    urgent = Column(Boolean, default=False, nullable=False)
    badge = Column(String(32), nullable=True)
    views = Column(Integer, default=0, nullable=False)
    owner_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    owner = relationship("User", back_populates="listings")


class Sequence(Base):
    """Named monotonic counters; ``value`` is the last number handed out."""

    __tablename__ = "sequences"

    name = Column(String(64), primary_key=True)
    value = Column(Integer, nullable=False, default=0)


class Contact(Base):
    __tablename__ = "contacts"

    id = Column(String(32), primary_key=True, default=new_id)
    sender_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    receiver_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    listing_pk = Column(String(32), ForeignKey("listings.id", ondelete="SET NULL"), nullable=True)
    subject = Column(String(255), nullable=True)
    message = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    sender = relationship("User", foreign_keys=[sender_id])
    listing = relationship("Listing")
