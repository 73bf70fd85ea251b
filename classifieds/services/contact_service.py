"""Messages between users about a listing."""

from __future__ import annotations

from typing import Any, Mapping, Optional

import structlog

from classifieds.core.config import get_settings
from classifieds.core.errors import ServiceError
from classifieds.core.tokens import Caller
from classifieds.db.models import Contact
from classifieds.domain.listing_ids import is_listing_id
from classifieds.domain.listings import is_internal_id
from classifieds.repositories.sql_repository import SQLRepository

logger = structlog.get_logger(__name__)

SUBJECT_MAX_LENGTH = 255
MESSAGE_MAX_LENGTH = 5000


class ContactError(ServiceError):
    """Raised when a message cannot be stored or listed."""


class ContactService:
    def __init__(self) -> None:
        self.repository = SQLRepository()

    def _resolve_listing(self, value: Any):
        key = value.strip() if isinstance(value, str) else ""
        if not key:
            raise ContactError("listingId is required", "invalid", 400)
        listing = None
        if is_internal_id(key):
            listing = self.repository.get_listing(key)
        elif is_listing_id(key, prefix=get_settings().listing_id_prefix):
            listing = self.repository.get_listing_by_listing_id(key)
        if not listing:
            raise ContactError("Listing not found", "not_found", 404)
        return listing

    def send(self, caller: Optional[Caller], payload: Mapping[str, Any]) -> Contact:
        if caller is None:
            raise ContactError("Unauthorized. Please login.", "unauthorized", 401)
        message = payload.get("message")
        if not isinstance(message, str) or not message.strip():
            raise ContactError("message is required", "invalid", 400)
        if len(message) > MESSAGE_MAX_LENGTH:
            raise ContactError(f"message must be at most {MESSAGE_MAX_LENGTH} characters", "invalid", 400)
        subject = payload.get("subject")
        if subject is not None and not isinstance(subject, str):
            raise ContactError("subject must be a string", "invalid", 400)
        subject = (subject or "").strip()[:SUBJECT_MAX_LENGTH] or None

        listing = self._resolve_listing(payload.get("listingId"))
        receiver_id = payload.get("receiverId") or listing.owner_id
        if not isinstance(receiver_id, str) or not self.repository.get_user(receiver_id):
            raise ContactError("Receiver not found", "not_found", 404)
        if receiver_id == caller.id:
            raise ContactError("You cannot send a message to yourself", "invalid", 400)

        contact = self.repository.create_contact(
            sender_id=caller.id,
            receiver_id=receiver_id,
            listing_pk=listing.id,
            subject=subject,
            message=message.strip(),
        )
        logger.info("contact.sent", listing_id=listing.listing_id, sender_id=caller.id, receiver_id=receiver_id)
        return contact

    def inbox(self, caller: Optional[Caller]) -> list[Contact]:
        if caller is None:
            raise ContactError("Unauthorized", "unauthorized", 401)
        return self.repository.list_contacts_for_receiver(caller.id)
