#!/usr/bin/env python3
"""
Zero a partner's earned/invited counters.

Usage:
  python scripts/reset_partner.py --partner partner_1700000000000 [--data-dir data]
"""
from __future__ import annotations

import argparse
import sys

from referral.core.config import get_settings
from referral.repositories.json_store import JsonStore
from referral.services.company_service import CompanyService


def main() -> None:
    ap = argparse.ArgumentParser(description="Reset partner counters")
    ap.add_argument("--partner", required=True, help="Partner id")
    ap.add_argument("--data-dir", help="Data directory (default: DATA_DIR or ./data)")
    args = ap.parse_args()

    partner_id = (args.partner or "").strip()
    if not partner_id:
        raise SystemExit("Invalid partner id")
    svc = CompanyService(store=JsonStore(args.data_dir or get_settings().data_dir))
    partner = svc.reset_partner_counter(partner_id)
    if partner is None:
        raise SystemExit(f"Partner '{partner_id}' not found")

    print("OK: partner counters reset")
    print(f"  Partner: {partner_id}")
    print(f"  Earned:  {partner['earned']}  Invited: {partner['invited']}")


if __name__ == "__main__":
    try:
        main()
    except Exception as exc:  # pragma: no cover
        sys.stderr.write(f"Error: {exc}\n")
        raise SystemExit(1)
