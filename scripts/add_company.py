#!/usr/bin/env python3
"""
Register an owner (by email or phone) and a company owned by them.

Usage:
  python scripts/add_company.py --name "Acme" (--email owner@acme.test | --phone +7900...) [--data-dir data]
"""
from __future__ import annotations

import argparse
import sys

from referral.core.config import get_settings
from referral.repositories.json_store import JsonStore
from referral.services.auth_service import AuthService, utc_now_iso
from referral.services.company_service import COMPANIES


def main() -> None:
    ap = argparse.ArgumentParser(description="Register a company and its owner")
    ap.add_argument("--name", required=True, help="Company name")
    ap.add_argument("--email", help="Owner email")
    ap.add_argument("--phone", help="Owner phone")
    ap.add_argument("--data-dir", help="Data directory (default: DATA_DIR or ./data)")
    args = ap.parse_args()

    name = (args.name or "").strip()
    if not name:
        raise SystemExit("Company name is required")
    store = JsonStore(args.data_dir or get_settings().data_dir)
    auth = AuthService(store=store)
    owner = auth.create_pending(args.email, args.phone)

    company = store.upsert(
        COMPANIES,
        {"name": name, "ownerId": owner["id"], "sites": [], "clients": [], "createdAt": utc_now_iso()},
    )
    print("OK: company registered")
    print(f"  Company: {company['id']} ({name})")
    print(f"  Owner:   {owner['id']} status={owner.get('status')}")


if __name__ == "__main__":
    try:
        main()
    except Exception as exc:  # pragma: no cover - CLI usage
        sys.stderr.write(f"Error: {exc}\n")
        raise SystemExit(1)
