"""
JSON views of users, listings and contact messages.

Keys follow the public API contract (camelCase, ``_id`` for internal ids).
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from classifieds.db.models import Contact, Listing, User
from classifieds.domain.listings import posted_ago


def _iso(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def owner_summary(user: Optional[User]) -> Optional[dict]:
    """Public fields of a listing owner (never the password hash)."""
    if user is None:
        return None
    return {
        "_id": user.id,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "email": user.email,
        "phoneNumber": user.phone_number,
        "img": user.img,
    }


def user_to_dict(user: User) -> dict:
    return {
        "_id": user.id,
        "name": user.name,
        "email": user.email,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "role": user.role,
        "isBlocked": bool(user.is_blocked),
        "isAdmin": user.role == "admin",
        "img": user.img,
        "phoneNumber": user.phone_number,
        "createdAt": _iso(user.created_at),
        "updatedAt": _iso(user.updated_at),
    }


def listing_to_dict(listing: Listing, *, now: Optional[datetime] = None) -> dict:
    return {
        "_id": listing.id,
        "listingId": listing.listing_id,
        "slug": listing.slug,
        "title": listing.title,
        "description": listing.description,
        "price": listing.price,
        "currency": listing.currency,
        "category": listing.category,
        "image": list(listing.images or []),
        "country": listing.country,
        "featured": bool(listing.featured),
        "urgent": bool(listing.urgent),
        "badge": listing.badge,
        "views": int(listing.views or 0),
        "postedAgo": posted_ago(listing.created_at, now),
        "userRef": owner_summary(listing.owner) or listing.owner_id,
        "createdAt": _iso(listing.created_at),
        "updatedAt": _iso(listing.updated_at),
    }


def listing_reference(listing: Listing) -> dict:
    return {"_id": listing.id, "listingId": listing.listing_id, "title": listing.title}


def contact_to_dict(contact: Contact) -> dict:
    sender = contact.sender
    return {
        "_id": contact.id,
        "senderId": (
            {
                "_id": sender.id,
                "firstName": sender.first_name,
                "lastName": sender.last_name,
                "email": sender.email,
            }
            if sender
            else contact.sender_id
        ),
        "receiverId": contact.receiver_id,
        "listingId": (
            {"_id": contact.listing.id, "listingId": contact.listing.listing_id, "title": contact.listing.title}
            if contact.listing
            else None
        ),
        "subject": contact.subject,
        "message": contact.message,
        "createdAt": _iso(contact.created_at),
    }
