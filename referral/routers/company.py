from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from referral.routers._deps import error, get_company_service
from referral.services.company_service import (
    ClientNotFoundError,
    CompanyNotFoundError,
    SiteNotFoundError,
)

router = APIRouter(prefix="/api", tags=["company"])

@router.get("/company")
def company_default(request: Request):
    svc = get_company_service(request)
    data = svc.company_data(request.query_params.get("companyId"))
    if data is None:
        return error(404, "Company not found")
    return data

@router.get("/company/{company_id}")
def company_data(company_id: str, request: Request):
    svc = get_company_service(request)
    data = svc.company_data(company_id)
    if data is None:
        return error(404, "Company not found")
    return data

@router.get("/company/{company_id}/owner")
def company_owner(company_id: str, request: Request):
    svc = get_company_service(request)
    profile = svc.owner_profile(company_id)
    if profile is None:
        return error(404, "Company not found")
    return profile

@router.post("/company-owner-data")
def company_owner_data(request: Request, payload: dict):
    svc = get_company_service(request)
    email, phone = payload.get("email"), payload.get("phone")
    if not (email or phone):
        return error(400, "Email or phone is required")
    data = svc.owner_dashboard(email, phone)
    if data is None:
        return error(404, "User not found")
    return data

@router.post("/company/{company_id}/sites")
def create_or_update_site(company_id: str, request: Request, payload: dict):
    svc = get_company_service(request)
    try:
        site = svc.create_or_update_site(company_id, payload)
    except CompanyNotFoundError:
        return error(404, "Company not found")
    except SiteNotFoundError:
        return error(404, "Site not found")
    if payload.get("id"):
        return {"site": site}
    return JSONResponse({"site": site}, status_code=201)

@router.post("/site/get")
def get_site(request: Request, payload: dict):
    svc = get_company_service(request)
    site = svc.get_site(payload.get("siteId"))
    if site is None:
        return error(404, "Site not found")
    return {"site": site}

def _reset(request: Request, partner_id: str | None):
    if not partner_id:
        return error(400, "partnerId required")
    partner = get_company_service(request).reset_partner_counter(partner_id)
    if partner is None:
        return error(404, "Partner not found")
    return {"ok": True, "partner": partner}

@router.post("/partner/reset")
def reset_partner(request: Request, payload: dict):
    return _reset(request, payload.get("partnerId"))

@router.post("/partners/{partner_id}/reset")
def reset_partner_by_path(partner_id: str, request: Request):
    return _reset(request, partner_id)

def _update_client(request: Request, company_id: str | None, client_id: str | None, status: str | None):
    if not company_id or not client_id:
        return error(400, "companyId and clientId required")
    svc = get_company_service(request)
    try:
        client = svc.update_client_status(company_id, client_id, status)
    except CompanyNotFoundError:
        return error(404, "Company not found")
    except ClientNotFoundError:
        return error(404, "Client not found")
    return {"client": client}

@router.post("/company/{company_id}/clients/{client_id}/status")
def update_client_status(company_id: str, client_id: str, request: Request, payload: dict):
    return _update_client(request, company_id, client_id, payload.get("status"))

@router.post("/client/update-status")
def update_client_status_body(request: Request, payload: dict):
    return _update_client(request, payload.get("companyId"), payload.get("clientId"), payload.get("status"))
