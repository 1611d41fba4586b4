from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from referral.domain.lookup import contact_from, match_alternate_key  # noqa: E402
from referral.domain.slugs import slugify  # noqa: E402


def test_email_is_trimmed_and_case_folded():
    records = [{"id": "user_1", "email": "a@b.com"}]
    assert match_alternate_key(records, {"email": "a@B.com "}) == records[0]


def test_stored_email_case_is_ignored():
    records = [{"id": "user_1", "email": "Owner@Example.COM"}]
    assert match_alternate_key(records, {"email": "owner@example.com"}) == records[0]


def test_phone_matches_on_trimmed_exact_value():
    records = [{"id": "user_1", "phone": "+7 900 000-00-00"}]
    assert match_alternate_key(records, {"phone": "  +7 900 000-00-00 "}) == records[0]
    assert match_alternate_key(records, {"phone": "+79000000000"}) is None


def test_phone_comparison_is_case_sensitive():
    records = [{"id": "user_1", "phone": "EXT-12"}]
    assert match_alternate_key(records, {"phone": "ext-12"}) is None
    assert match_alternate_key(records, {"phone": "EXT-12"}) == records[0]


def test_email_takes_precedence_over_phone():
    records = [
        {"id": "user_1", "phone": "555"},
        {"id": "user_2", "email": "a@b.com"},
    ]
    found = match_alternate_key(records, {"email": "a@b.com", "phone": "555"})
    assert found["id"] == "user_2"


def test_phone_is_used_when_email_matches_nothing():
    records = [{"id": "user_1", "email": "z@b.com", "phone": "555"}]
    found = match_alternate_key(records, {"email": "a@b.com", "phone": "555"})
    assert found["id"] == "user_1"


def test_first_match_wins_for_duplicates():
    records = [{"id": "user_1", "email": "a@b.com"}, {"id": "user_2", "email": "A@b.com"}]
    assert match_alternate_key(records, {"email": "a@b.com"})["id"] == "user_1"


def test_blank_or_missing_keys_match_nothing():
    records = [{"id": "user_1", "email": None, "phone": None}, {"id": "user_2", "email": "", "phone": ""}]
    assert match_alternate_key(records, {}) is None
    assert match_alternate_key(records, {"email": "  ", "phone": ""}) is None


def test_contact_from_trims_without_lowercasing():
    assert contact_from(" Owner@X.com ", "  ") == {"email": "Owner@X.com", "phone": None}
    assert contact_from(None, " 555 ") == {"email": None, "phone": "555"}


def test_slugify():
    assert slugify("Summer Promo 2024") == "summer-promo-2024"
    assert slugify("My Site!") == "my-site-"
    assert slugify(None) == "site"
