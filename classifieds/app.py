from contextlib import asynccontextmanager

import structlog
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from classifieds.core.config import get_settings
from classifieds.core.logging import configure_logging
from classifieds.db.create_tables import create_all
from classifieds.routers import contacts as contacts_router
from classifieds.routers import listings as listings_router
from classifieds.routers import users as users_router
from classifieds.routers.deps import current_caller
from classifieds.routers.error_handlers import register_error_handlers

logger = structlog.get_logger(__name__)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Inject baseline security headers for a JSON-only API."""

    def __init__(self, app, *, enforce_hsts: bool) -> None:
        super().__init__(app)
        self._enforce_hsts = enforce_hsts

    async def dispatch(self, request, call_next):
        response = await call_next(request)
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        if self._enforce_hsts:
            response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    if settings.auto_create_tables:
        create_all()
    logger.info("app.started", env=settings.app_env)
    yield
    logger.info("app.stopped")


def create_app() -> FastAPI:
    """Factory compatible with uvicorn/gunicorn (``--factory``)."""
    settings = get_settings()
    configure_logging(settings)

    # A bad Authorization header is rejected on every route, even public ones.
    app = FastAPI(
        title="Classifieds Marketplace API",
        lifespan=lifespan,
        dependencies=[Depends(current_caller)],
    )

    allowed_cors = set(settings.cors_origins)
    if settings.app_env != "prod":
        allowed_cors.update(
            {
                "http://localhost:3000",
                "http://127.0.0.1:3000",
                "http://localhost:5173",
                "http://127.0.0.1:5173",
            }
        )
    if allowed_cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=sorted(allowed_cors),
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            allow_headers=["*"],
        )
    app.add_middleware(SecurityHeadersMiddleware, enforce_hsts=settings.app_env == "prod")

    register_error_handlers(app)

    @app.get("/health", tags=["health"])
    def health():
        return {"status": "ok"}

    app.include_router(users_router.router)
    app.include_router(listings_router.router)
    app.include_router(contacts_router.router)
    return app


app = create_app()
