from __future__ import annotations

from fastapi import APIRouter, Form, Request
from fastapi.responses import RedirectResponse

from referral.core.rate_limiter import rate_limit_ip
from referral.routers._deps import error, get_auth_service
from referral.services.auth_service import (
    AccountExistsError,
    InvalidCredentialsError,
    RegistrationError,
    WeakPasswordError,
    public_user,
)

router = APIRouter(prefix="", tags=["auth"])


def _contact(payload: dict) -> tuple:
    return payload.get("email"), payload.get("phone")


@router.post("/register-check")
def register_check(request: Request, email: str = Form(""), phone: str = Form("")):
    svc = get_auth_service(request)
    try:
        outcome = svc.register_check(email, phone)
    except RegistrationError:
        return RedirectResponse("/?error=missing_contact", status_code=303)
    return RedirectResponse("/login" if outcome == "login" else "/register", status_code=303)


@router.post("/api/check-account")
@router.post("/api/login-check")
def check_account(request: Request, payload: dict):
    svc = get_auth_service(request)
    email, phone = _contact(payload)
    try:
        exists = svc.check_account(email, phone)
    except RegistrationError as exc:
        return error(400, exc.message)
    return {"exists": exists}


@router.post("/api/create-pending", status_code=201)
def create_pending(request: Request, payload: dict):
    svc = get_auth_service(request)
    email, phone = _contact(payload)
    try:
        user = svc.create_pending(email, phone)
    except RegistrationError as exc:
        return error(400, exc.message)
    return {"ok": True, "user": public_user(user)}


@router.post("/api/register", status_code=201)
def register(request: Request, payload: dict):
    rate_limit_ip(request, "auth:register", limit=10, window_seconds=300)
    svc = get_auth_service(request)
    email, phone = _contact(payload)
    try:
        user = svc.register(email, phone, payload.get("password"))
    except RegistrationError as exc:
        return error(400, exc.message)
    except WeakPasswordError as exc:
        return error(400, str(exc))
    except AccountExistsError:
        return error(409, "Account already exists")
    return {"ok": True, "user": public_user(user)}


@router.post("/api/login")
def login(request: Request, payload: dict):
    rate_limit_ip(request, "auth:login", limit=10, window_seconds=300)
    svc = get_auth_service(request)
    email, phone = _contact(payload)
    try:
        user = svc.login(email, phone, payload.get("password"))
    except InvalidCredentialsError:
        return error(401, "Invalid credentials")
    return {"ok": True, "user": public_user(user)}


@router.post("/api/change-password")
def change_password(request: Request, payload: dict):
    svc = get_auth_service(request)
    email, phone = _contact(payload)
    new_password = payload.get("newPassword") or payload.get("password")
    try:
        user = svc.change_password(
            new_password,
            user_id=payload.get("userId"),
            email=email,
            phone=phone,
            old_password=payload.get("old"),
        )
    except WeakPasswordError as exc:
        return error(400, str(exc))
    except InvalidCredentialsError:
        return error(401, "Current password does not match")
    if user is None:
        return error(404, "User not found")
    return {"ok": True}
