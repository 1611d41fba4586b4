from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from referral.core.config import Settings, get_settings
from referral.core.logging import get_logger, setup_logging
from referral.repositories.json_store import JsonStore, StorageError
from referral.routers import auth as auth_router
from referral.routers import company as company_router
from referral.services.auth_service import AuthService
from referral.services.company_service import CompanyService

logger = get_logger(__name__)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Inject baseline security headers (anti clickjacking, nosniff, referrer policy)."""

    def __init__(self, app, *, enforce_hsts: bool) -> None:
        super().__init__(app)
        self._enforce_hsts = enforce_hsts

    async def dispatch(self, request, call_next):
        response = await call_next(request)
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "no-referrer-when-downgrade")
        if self._enforce_hsts:
            response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
        return response


async def _storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse({"error": "Internal Server Error"}, status_code=500)


def create_app(settings: Settings | None = None, store: JsonStore | None = None) -> FastAPI:
    """Build the API around a store rooted at settings.data_dir (or the given store)."""
    settings = settings or get_settings()
    setup_logging(settings.log_level)
    store = store or JsonStore(settings.data_dir)

    app = FastAPI(title="Referral MVP API")
    app.state.settings = settings
    app.state.store = store
    app.state.auth_service = AuthService(store=store, settings=settings)
    app.state.company_service = CompanyService(store=store)

    allowed_cors = {settings.public_base_url}
    if settings.app_env != "prod":
        allowed_cors.update({"http://localhost:3000", "http://127.0.0.1:3000"})
    allowed_cors = {origin for origin in allowed_cors if origin}
    if allowed_cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=sorted(allowed_cors),
            allow_credentials=True,
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["*"],
        )
    app.add_middleware(SecurityHeadersMiddleware, enforce_hsts=settings.app_env == "prod")
    app.add_exception_handler(StorageError, _storage_error_handler)

    app.include_router(auth_router.router)
    app.include_router(company_router.router)
    logger.info("Referral API ready (env=%s, data_dir=%s)", settings.app_env, store.root)
    return app
