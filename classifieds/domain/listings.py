"""Domain helpers for listing validation, slugs and display values."""
from __future__ import annotations

import math
import re
import unicodedata
from datetime import datetime, timezone
from typing import Any, Mapping

CATEGORIES = (
    "Vehicles",
    "Hobbies",
    "Home & Living",
    "Business & Industry",
    "Property",
    "Women's Fashion & Beauty",
    "Men's Fashion & Grooming",
    "Essentials",
    "Education",
)

TITLE_MAX_LENGTH = 200
BADGE_MAX_LENGTH = 32
CURRENCY_PATTERN = re.compile(r"[A-Z]{3}")
INTERNAL_ID_PATTERN = re.compile(r"[0-9a-f]{32}")

UPDATABLE_FIELDS = (
    "title",
    "description",
    "price",
    "category",
    "country",
    "images",
    "urgent",
    "badge",
    "currency",
    "featured",
)


class ListingValidationError(ValueError):
    """Raised when a listing payload has missing or invalid values."""


def is_internal_id(value: str | None) -> bool:
    return bool(value) and bool(INTERNAL_ID_PATTERN.fullmatch(value))


def slugify(value: str | None) -> str:
    text = unicodedata.normalize("NFKD", value or "").encode("ascii", "ignore").decode("ascii")
    text = re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")
    return text[:80].rstrip("-")


def listing_slug(title: str, listing_id: str) -> str:
    base = slugify(title)
    suffix = listing_id.lower()
    return f"{base}-{suffix}" if base else suffix


def clean_text(value: Any, field: str, *, max_length: int | None = None) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ListingValidationError(f"{field} must be a non-empty string")
    text = value.strip()
    if max_length and len(text) > max_length:
        raise ListingValidationError(f"{field} must be at most {max_length} characters")
    return text


def clean_price(value: Any) -> float:
    if isinstance(value, bool):
        raise ListingValidationError("price must be a number")
    try:
        price = float(value)
    except (TypeError, ValueError):
        raise ListingValidationError("price must be a number")
    if not math.isfinite(price) or price <= 0:
        raise ListingValidationError("price must be greater than zero")
    return price


def clean_category(value: Any) -> str:
    if not isinstance(value, str):
        raise ListingValidationError("category is required")
    wanted = value.strip().lower()
    for category in CATEGORIES:
        if category.lower() == wanted:
            return category
    raise ListingValidationError(f"category must be one of: {', '.join(CATEGORIES)}")


def clean_images(value: Any) -> list[str]:
    if value is None or value == "":
        return []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        raise ListingValidationError("image must be a URL or a list of URLs")
    images = []
    for item in value:
        if not isinstance(item, str):
            raise ListingValidationError("image must be a URL or a list of URLs")
        if item.strip():
            images.append(item.strip())
    return images


def clean_currency(value: Any) -> str:
    currency = (value if isinstance(value, str) else "").strip().upper()
    if not CURRENCY_PATTERN.fullmatch(currency):
        raise ListingValidationError("currency must be a 3-letter code")
    return currency


def clean_badge(value: Any) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ListingValidationError("badge must be a string")
    badge = value.strip().upper()
    if len(badge) > BADGE_MAX_LENGTH:
        raise ListingValidationError(f"badge must be at most {BADGE_MAX_LENGTH} characters")
    return badge or None


def clean_flag(value: Any, field: str) -> bool:
    if isinstance(value, bool):
        return value
    if value in (0, 1):
        return bool(value)
    if isinstance(value, str) and value.strip().lower() in {"true", "false", "1", "0"}:
        return value.strip().lower() in {"true", "1"}
    raise ListingValidationError(f"{field} must be a boolean")


def _images_value(payload: Mapping[str, Any]) -> Any:
    if "images" in payload:
        return payload.get("images")
    return payload.get("image")


def validate_new_listing(payload: Mapping[str, Any], *, default_currency: str = "LKR") -> dict:
    """Clean a create payload. Unknown keys are ignored."""
    missing = [
        field
        for field in ("title", "description", "price", "category", "country")
        if payload.get(field) in (None, "")
    ]
    if missing:
        raise ListingValidationError("Title, description, price, category, and country are required")
    currency = payload.get("currency")
    return {
        "title": clean_text(payload.get("title"), "title", max_length=TITLE_MAX_LENGTH),
        "description": clean_text(payload.get("description"), "description"),
        "price": clean_price(payload.get("price")),
        "category": clean_category(payload.get("category")),
        "country": clean_text(payload.get("country"), "country", max_length=120),
        "images": clean_images(_images_value(payload)),
        "urgent": clean_flag(payload.get("urgent", False), "urgent"),
        "badge": clean_badge(payload.get("badge")),
        "currency": clean_currency(currency) if currency else default_currency,
    }


def validate_listing_update(payload: Mapping[str, Any]) -> dict:
    """Clean the updatable subset of ``payload``; absent keys are left out."""
    data = dict(payload)
    if "image" in data and "images" not in data:
        data["images"] = data["image"]
    cleaners = {
        "title": lambda v: clean_text(v, "title", max_length=TITLE_MAX_LENGTH),
        "description": lambda v: clean_text(v, "description"),
        "price": clean_price,
        "category": clean_category,
        "country": lambda v: clean_text(v, "country", max_length=120),
        "images": clean_images,
        "urgent": lambda v: clean_flag(v, "urgent"),
        "badge": clean_badge,
        "currency": clean_currency,
        "featured": lambda v: clean_flag(v, "featured"),
    }
    updates = {}
    for field in UPDATABLE_FIELDS:
        if field in data:
            updates[field] = cleaners[field](data[field])
    return updates


def parse_price_bound(value: Any, field: str) -> float | None:
    if value in (None, ""):
        return None
    try:
        bound = float(value)
    except (TypeError, ValueError):
        raise ListingValidationError(f"{field} must be a number")
    if not math.isfinite(bound):
        raise ListingValidationError(f"{field} must be a number")
    return bound


def posted_ago(created_at: datetime | None, now: datetime | None = None) -> str:
    """Relative age label, e.g. "just now", "3 days ago", "1 month ago"."""
    if created_at is None:
        return "just now"
    now = now or datetime.now(timezone.utc)
    created = created_at if created_at.tzinfo else created_at.replace(tzinfo=timezone.utc)
    seconds = int((now - created).total_seconds())
    if seconds < 60:
        return "just now"
    units = (
        ("year", 365 * 24 * 3600),
        ("month", 30 * 24 * 3600),
        ("week", 7 * 24 * 3600),
        ("day", 24 * 3600),
        ("hour", 3600),
        ("minute", 60),
    )
    for name, size in units:
        amount = seconds // size
        if amount >= 1:
            return f"{amount} {name}{'s' if amount > 1 else ''} ago"
    return "just now"
