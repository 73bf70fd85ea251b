from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Depends, Request, status

from classifieds.core.rate_limiter import rate_limit_ip
from classifieds.core.tokens import Caller
from classifieds.routers.deps import current_caller
from classifieds.services.auth_service import AuthService
from classifieds.services.listing_display import user_to_dict

router = APIRouter(prefix="/api/users", tags=["users"])
auth_service = AuthService()


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(request: Request, payload: dict = Body(...)):
    rate_limit_ip(request, "users:register", limit=10, window_seconds=300)
    user = auth_service.register(payload)
    return {"message": "User registered successfully", "user": user_to_dict(user)}


@router.post("/login")
def login(request: Request, payload: dict = Body(...)):
    rate_limit_ip(request, "users:login", limit=20, window_seconds=60)
    email = payload.get("email") if isinstance(payload.get("email"), str) else ""
    password = payload.get("password") if isinstance(payload.get("password"), str) else ""
    result = auth_service.login(email, password)
    return {"message": "Login successful", "token": result.token, "user": user_to_dict(result.user)}


@router.get("/me")
def me(caller: Optional[Caller] = Depends(current_caller)):
    return {"user": user_to_dict(auth_service.profile(caller))}


@router.get("/all")
def all_users(caller: Optional[Caller] = Depends(current_caller)):
    users = [user_to_dict(user) for user in auth_service.list_users(caller)]
    return {"count": len(users), "users": users}
