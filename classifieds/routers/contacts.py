from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Depends, Request, status

from classifieds.core.rate_limiter import rate_limit_ip
from classifieds.core.tokens import Caller
from classifieds.routers.deps import current_caller
from classifieds.services.contact_service import ContactService
from classifieds.services.listing_display import contact_to_dict

router = APIRouter(prefix="/api/contacts", tags=["contacts"])
service = ContactService()


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_contact(
    request: Request,
    payload: dict = Body(...),
    caller: Optional[Caller] = Depends(current_caller),
):
    rate_limit_ip(request, "contacts:create", limit=30, window_seconds=60)
    contact = service.send(caller, payload)
    return {"message": "Message sent successfully", "contact": contact_to_dict(contact)}


@router.get("/")
def get_contacts(caller: Optional[Caller] = Depends(current_caller)):
    return [contact_to_dict(contact) for contact in service.inbox(caller)]
