from __future__ import annotations

from fastapi import Request
from fastapi.responses import JSONResponse

from referral.services.auth_service import AuthService
from referral.services.company_service import CompanyService


def get_auth_service(request: Request) -> AuthService:
    svc = getattr(getattr(request.app, "state", None), "auth_service", None)
    if not svc:
        raise RuntimeError("AuthService not configured")
    return svc


def get_company_service(request: Request) -> CompanyService:
    svc = getattr(getattr(request.app, "state", None), "company_service", None)
    if not svc:
        raise RuntimeError("CompanyService not configured")
    return svc


def error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)
