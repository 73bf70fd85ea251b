"""Request dependencies shared by the routers."""
from __future__ import annotations

from typing import Optional

from fastapi import Request

from classifieds.core.errors import ServiceError
from classifieds.core.tokens import Caller, TokenError, bearer_token, decode_access_token


def current_caller(request: Request) -> Optional[Caller]:
    """
    Identity from the ``Authorization`` header.

    No header means an anonymous caller; a header that does not verify is
    rejected outright instead of being treated as anonymous.
    """
    header = request.headers.get("authorization")
    if header is None:
        return None
    token = bearer_token(header)
    if not token:
        raise ServiceError("Invalid token", "invalid_token", 403)
    try:
        return decode_access_token(token)
    except TokenError:
        raise ServiceError("Invalid token", "invalid_token", 403)
