"""Listing lifecycle use cases (create, browse, search, update, delete)."""

from __future__ import annotations

from typing import Any, Mapping, Optional

import structlog
from sqlalchemy.exc import IntegrityError

from classifieds.core.config import get_settings
from classifieds.core.errors import ServiceError
from classifieds.core.tokens import Caller
from classifieds.db.models import Listing
from classifieds.domain import policy
from classifieds.domain.listing_ids import is_listing_id
from classifieds.domain.listings import (
    ListingValidationError,
    is_internal_id,
    parse_price_bound,
    validate_listing_update,
    validate_new_listing,
)
from classifieds.repositories.sql_repository import SQLRepository

logger = structlog.get_logger(__name__)


class ListingError(ServiceError):
    """Raised when a listing operation cannot be completed."""


class ListingService:
    """Applies validation and ownership rules around the listing repository."""

    def __init__(self) -> None:
        self.repository = SQLRepository()

    @property
    def settings(self):
        return get_settings()

    # -------------------------------------- helpers --------------------------------------
    def _require_caller(self, caller: Optional[Caller], action: str) -> Caller:
        if caller is None:
            raise ListingError(f"Unauthorized. Please login to {action} a listing.", "unauthorized", 401)
        return caller

    def _load(self, pk: str) -> Listing:
        if not is_internal_id(pk):
            raise ListingError("Invalid listing ID format", "invalid_id", 400)
        listing = self.repository.get_listing(pk)
        if not listing:
            raise ListingError("Listing not found", "not_found", 404)
        return listing

    # -------------------------------------- reads --------------------------------------
    def list_all(self) -> list[Listing]:
        return self.repository.list_listings()

    def list_featured(self) -> list[Listing]:
        return self.repository.list_listings(featured=True)

    def list_mine(self, caller: Optional[Caller]) -> list[Listing]:
        if caller is None:
            raise ListingError("Unauthorized. Please login to view your listings.", "unauthorized", 401)
        return self.repository.list_listings(owner_id=caller.id)

    def search(
        self,
        query: str = "",
        *,
        category: str | None = None,
        min_price: Any = None,
        max_price: Any = None,
    ) -> list[Listing]:
        try:
            low = parse_price_bound(min_price, "minPrice")
            high = parse_price_bound(max_price, "maxPrice")
        except ListingValidationError as exc:
            raise ListingError(str(exc), "invalid", 400) from exc
        return self.repository.search_listings(query, category=category, min_price=low, max_price=high)

    def get_by_key(self, key: str) -> Listing:
        """Look up by human id (``LST00012``) first, then by slug."""
        value = (key or "").strip()
        listing = None
        if is_listing_id(value, prefix=self.settings.listing_id_prefix):
            listing = self.repository.get_listing_by_listing_id(value)
        if listing is None and value:
            listing = self.repository.get_listing_by_slug(value)
        if listing is None:
            raise ListingError("Listing not found", "not_found", 404)
        return listing

    def view(self, pk: str) -> Listing:
        """Fetch by internal id and count the view."""
        if not is_internal_id(pk):
            raise ListingError("Invalid listing ID format", "invalid_id", 400)
        listing = self.repository.increment_listing_views(pk)
        if not listing:
            raise ListingError("Listing not found", "not_found", 404)
        return listing

    # -------------------------------------- writes --------------------------------------
    def create(self, caller: Optional[Caller], payload: Mapping[str, Any]) -> Listing:
        caller = self._require_caller(caller, "create")
        try:
            data = validate_new_listing(payload, default_currency=self.settings.default_currency)
            featured = validate_listing_update({"featured": payload.get("featured", False)})["featured"]
        except ListingValidationError as exc:
            raise ListingError(str(exc), "invalid", 400) from exc
        if "featured" in payload and not policy.can_feature(caller):
            raise ListingError("Only admins can feature listings", "forbidden", 403)
        data["featured"] = featured
        try:
            listing = self.repository.create_listing(
                caller.id,
                data,
                prefix=self.settings.listing_id_prefix,
                width=self.settings.listing_id_width,
                max_attempts=self.settings.listing_id_max_attempts,
            )
        except IntegrityError as exc:
            logger.error("listing.create_failed", owner_id=caller.id, error=str(exc.orig))
            raise ListingError("Could not allocate a listing id, try again", "conflict", 409) from exc
        logger.info("listing.created", listing_id=listing.listing_id, owner_id=caller.id)
        return listing

    def update(self, caller: Optional[Caller], pk: str, payload: Mapping[str, Any]) -> Listing:
        caller = self._require_caller(caller, "update")
        listing = self._load(pk)
        if not policy.can_modify(caller, listing.owner_id):
            raise ListingError("You are not authorized to update this listing", "forbidden", 403)
        try:
            updates = validate_listing_update(payload)
        except ListingValidationError as exc:
            raise ListingError(str(exc), "invalid", 400) from exc
        if "featured" in updates and not policy.can_feature(caller):
            raise ListingError("Only admins can feature listings", "forbidden", 403)
        if not updates:
            return listing
        updated = self.repository.update_listing(listing.id, updates)
        if not updated:
            raise ListingError("Listing not found", "not_found", 404)
        logger.info(
            "listing.updated",
            listing_id=updated.listing_id,
            by=caller.id,
            fields=sorted(updates),
        )
        return updated

    def delete(self, caller: Optional[Caller], pk: str) -> Listing:
        caller = self._require_caller(caller, "delete")
        listing = self._load(pk)
        if not policy.can_modify(caller, listing.owner_id):
            raise ListingError("You are not authorized to delete this listing", "forbidden", 403)
        self.repository.delete_listing(listing.id)
        logger.info("listing.deleted", listing_id=listing.listing_id, by=caller.id, admin=policy.is_admin(caller))
        return listing
