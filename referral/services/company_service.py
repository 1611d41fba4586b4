"""
Company-owner use cases: company lookup, embedded sites and clients,
partner statistics and counters.

Sites and clients are stored inside their company record, so every change to
them rewrites the "companies" collection.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Mapping, Optional

from referral.core.logging import get_logger
from referral.domain.ids import new_id
from referral.domain.slugs import DEFAULT_SITE_NAME, slugify
from referral.repositories.json_store import JsonStore, Ref
from referral.services.auth_service import USERS, public_user, utc_now_iso

logger = get_logger(__name__)

COMPANIES = "companies"
PARTNERS = "partners"
REFERRALS = "referrals"


class CompanyError(Exception):
    """Base exception for company workflows."""


class CompanyNotFoundError(CompanyError):
    """Raised when a change targets a company that does not exist."""


class SiteNotFoundError(CompanyError):
    """Raised when editing a site the company does not have."""


class ClientNotFoundError(CompanyError):
    """Raised when updating a client the company does not have."""


def _company_in(records: List[dict], company_id: Optional[str]) -> Optional[dict]:
    if not company_id:
        return None
    for company in records:
        if company.get("id") == company_id:
            return company
    return None


def _with_ids(records: List[dict]) -> List[dict]:
    # records without an id cannot be referenced by partners, referrals or sites
    return [r for r in records if r.get("id")]


@dataclass
class CompanyService:
    """Reads and mutations behind the company-owner dashboard."""

    store: JsonStore

    # -------------------------------------- lookups --------------------------------------
    def get_company(self, company_id: Optional[str] = None) -> Optional[dict]:
        """Company by id; unknown or missing ids fall back to the first company with an id."""
        company = self.store.find_by_id(COMPANIES, company_id) if company_id else None
        if company is not None:
            return company
        companies = _with_ids(self.store.read_collection(COMPANIES))
        return companies[0] if companies else None

    def owner_profile(self, company_id: Optional[str] = None) -> Optional[dict]:
        company = self.get_company(company_id)
        if company is None:
            return None
        profile: dict = {"company": company}
        owner = self.store.resolve(Ref.of(company, "ownerId", USERS))
        if owner:
            profile["owner"] = {"id": owner["id"], "email": owner.get("email"), "phone": owner.get("phone")}
        return profile

    def get_site(self, site_id: Optional[str]) -> Optional[dict]:
        if not site_id:
            return None
        for company in self.store.read_collection(COMPANIES):
            for site in company.get("sites") or []:
                if isinstance(site, dict) and site.get("id") == site_id:
                    return site
        return None

    # -------------------------------------- partners --------------------------------------
    def _partner_stats(self, partner: dict, referrals: List[dict]) -> dict:
        """Partner with earned/invited counters.

        Referral rows newer than the partner's last reset replace the stored
        counters; without referral rows the stored counters are reported.
        """
        partner_id = partner.get("id")
        reset_at = partner.get("resetAt")
        mine = [
            r
            for r in referrals
            if partner_id
            and r.get("partnerId") == partner_id
            and (not reset_at or str(r.get("createdAt") or "") > reset_at)
        ]
        stats = dict(partner)
        if mine:
            stats["earned"] = sum(_number(r.get("reward")) for r in mine)
            stats["invited"] = len(mine)
        else:
            stats["earned"] = _number(partner.get("earned"))
            stats["invited"] = _number(partner.get("invited"))
        return stats

    def reset_partner_counter(self, partner_id: Optional[str]) -> Optional[dict]:
        partner = self.store.update(PARTNERS, partner_id, {"earned": 0, "invited": 0, "resetAt": utc_now_iso()})
        if partner:
            logger.info("Partner %s counters reset", partner_id)
        return partner

    # -------------------------------------- dashboard --------------------------------------
    def _clients_for(self, company: dict, referrals: List[dict]) -> List[dict]:
        clients = company.get("clients")
        if isinstance(clients, list) and clients:
            return clients
        derived = []
        for idx, referral in enumerate(r for r in referrals if r.get("companyId") == company.get("id")):
            derived.append(
                {
                    "id": f"client_{referral.get('id') or idx}",
                    "name": referral.get("clientName") or f"Client {idx + 1}",
                    "email": referral.get("clientEmail") or "",
                    "phone": referral.get("clientPhone") or "",
                    "partnerId": referral.get("partnerId"),
                    "status": referral.get("status") or "new",
                }
            )
        return derived

    def company_data(self, company_id: Optional[str] = None) -> Optional[dict]:
        company = self.get_company(company_id)
        if company is None:
            return None
        company_id = company.get("id")
        referrals = [r for r in self.store.read_collection(REFERRALS) if r.get("companyId") == company_id]
        partners = self.store.filter(PARTNERS, companyId=company_id)
        return {
            "company": company,
            "sites": company.get("sites") if isinstance(company.get("sites"), list) else [],
            "partners": [self._partner_stats(p, referrals) for p in partners],
            "clients": self._clients_for(company, referrals),
        }

    def owner_dashboard(self, email: Any = None, phone: Any = None) -> Optional[dict]:
        """Everything the owner identified by email/phone sees; None for an unknown user."""
        user = self.store.find_by_alternate_key(USERS, email=email, phone=phone)
        if user is None or not user.get("id"):
            return None
        companies = _with_ids(self.store.filter(COMPANIES, ownerId=user.get("id")))
        company_ids = {c.get("id") for c in companies}
        referrals = [r for r in self.store.read_collection(REFERRALS) if r.get("companyId") in company_ids]
        partners = [p for p in self.store.read_collection(PARTNERS) if p.get("companyId") in company_ids]
        names = {p.get("id"): p.get("name") for p in _with_ids(partners)}

        sites: List[dict] = []
        clients: List[dict] = []
        for company in companies:
            sites.extend(s for s in company.get("sites") or [] if isinstance(s, dict))
            for client in self._clients_for(company, referrals):
                clients.append(
                    {**client, "companyId": company.get("id"), "partnerName": names.get(client.get("partnerId"))}
                )
        return {
            "user": public_user(user),
            "companies": companies,
            "sites": sites,
            "partners": [self._partner_stats(p, referrals) for p in partners],
            "clients": clients,
        }

    # -------------------------------------- sites --------------------------------------
    def create_or_update_site(self, company_id: Optional[str], payload: Mapping[str, Any]) -> dict:
        """Create a site (no id) or edit an existing site's description.

        The name of an existing site is locked. Nothing is written when the
        company or the site does not exist.
        """
        with self.store.locked(COMPANIES):
            companies = self.store.read_collection(COMPANIES)
            company = _company_in(companies, company_id)
            if company is None:
                raise CompanyNotFoundError(company_id)
            sites = company.get("sites") if isinstance(company.get("sites"), list) else []
            site_id = payload.get("id")
            if site_id:
                site = next((s for s in sites if isinstance(s, dict) and s.get("id") == site_id), None)
                if site is None:
                    raise SiteNotFoundError(site_id)
                site["description"] = payload.get("description") or site.get("description")
            else:
                site = {
                    "id": _unused(sites, "site"),
                    "name": payload.get("name") or DEFAULT_SITE_NAME,
                    "slug": slugify(payload.get("name") or "site"),
                    "description": payload.get("description") or "",
                    "createdAt": utc_now_iso(),
                }
                sites.append(site)
                company["sites"] = sites
            self.store.write_collection(COMPANIES, companies)
        if not site_id:
            logger.info("Site %s created for company %s", site["id"], company_id)
        return dict(site)

    # -------------------------------------- clients --------------------------------------
    def update_client_status(self, company_id: Optional[str], client_id: Optional[str], status: Optional[str]) -> dict:
        with self.store.locked(COMPANIES):
            companies = self.store.read_collection(COMPANIES)
            company = _company_in(companies, company_id)
            if company is None:
                raise CompanyNotFoundError(company_id)
            clients = company.get("clients") if isinstance(company.get("clients"), list) else []
            client = next((c for c in clients if isinstance(c, dict) and c.get("id") == client_id), None)
            if client is None:
                raise ClientNotFoundError(client_id)
            client["status"] = status or client.get("status")
            self.store.write_collection(COMPANIES, companies)
        return dict(client)


def _number(value: Any) -> float | int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return value
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0


def _unused(items: List[dict], prefix: str) -> str:
    taken = {item.get("id") for item in items if isinstance(item, dict)}
    candidate = new_id(prefix)
    while candidate in taken:
        candidate = new_id(prefix)
    return candidate
