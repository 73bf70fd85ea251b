"""Ownership and visibility rules for listings."""
from __future__ import annotations

from typing import Optional

from classifieds.core.tokens import Caller

ROLE_ADMIN = "admin"
ROLE_CUSTOMER = "customer"
ROLES = (ROLE_CUSTOMER, ROLE_ADMIN)


def is_admin(caller: Optional[Caller]) -> bool:
    return caller is not None and caller.role == ROLE_ADMIN


def owns(caller: Optional[Caller], owner_id: str | None) -> bool:
    return caller is not None and bool(owner_id) and caller.id == owner_id


def can_modify(caller: Optional[Caller], owner_id: str | None) -> bool:
    """Owners and admins may update or delete a listing."""
    return owns(caller, owner_id) or is_admin(caller)


def can_feature(caller: Optional[Caller]) -> bool:
    return is_admin(caller)


def can_list_users(caller: Optional[Caller]) -> bool:
    return is_admin(caller)
