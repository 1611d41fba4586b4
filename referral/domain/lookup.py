"""
Alternate-key matching for records that carry email/phone contacts.

The precedence rule is explicit: the primary key (email) is searched across the
whole sequence first; the secondary key (phone) is only consulted when the
primary one is absent or matches nothing. Within one key the first record wins.
"""
from __future__ import annotations

from typing import Any, Callable, Iterable, Mapping, Optional, Sequence, Tuple


def normalize_email(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip().lower()
    return text or None


def normalize_phone(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


Normalizer = Callable[[Any], Optional[str]]

# primary first, then secondary
ALTERNATE_KEYS: Tuple[Tuple[str, Normalizer], ...] = (
    ("email", normalize_email),
    ("phone", normalize_phone),
)


def match_alternate_key(
    records: Iterable[Mapping[str, Any]],
    lookup: Mapping[str, Any],
    keys: Sequence[Tuple[str, Normalizer]] = ALTERNATE_KEYS,
) -> Optional[Mapping[str, Any]]:
    """Return the first record matching `lookup` under the key precedence, else None."""
    candidates = list(records)
    for field, normalize in keys:
        wanted = normalize(lookup.get(field))
        if wanted is None:
            continue
        for record in candidates:
            if normalize(record.get(field)) == wanted:
                return record
    return None


def contact_from(email: Any = None, phone: Any = None) -> dict:
    """Trimmed contact values as stored on a record; blanks become None."""
    email_value = str(email).strip() if email is not None else ""
    phone_value = str(phone).strip() if phone is not None else ""
    return {"email": email_value or None, "phone": phone_value or None}
