"""Human-readable listing identifiers ("LST00001", "LST00002", ...)."""
from __future__ import annotations

import re
from typing import Iterable, Optional

DEFAULT_PREFIX = "LST"
DEFAULT_WIDTH = 5


def format_listing_id(number: int, *, prefix: str = DEFAULT_PREFIX, width: int = DEFAULT_WIDTH) -> str:
    """Render ``number`` zero-padded to at least ``width`` digits."""
    if number < 1:
        raise ValueError("listing numbers start at 1")
    return f"{prefix}{str(number).zfill(width)}"


def parse_listing_id(value: str | None, *, prefix: str = DEFAULT_PREFIX) -> Optional[int]:
    """Return the numeric part of a listing id, or None when it is malformed."""
    if not value:
        return None
    match = re.fullmatch(rf"{re.escape(prefix)}(\d+)", value.strip(), flags=re.IGNORECASE)
    if not match:
        return None
    number = int(match.group(1))
    return number if number > 0 else None


def is_listing_id(value: str | None, *, prefix: str = DEFAULT_PREFIX) -> bool:
    return parse_listing_id(value, prefix=prefix) is not None


def highest_number(values: Iterable[str | None], *, prefix: str = DEFAULT_PREFIX) -> int:
    """Largest number among existing ids; 0 when there are none (or none parse)."""
    best = 0
    for value in values:
        number = parse_listing_id(value, prefix=prefix)
        if number and number > best:
            best = number
    return best
