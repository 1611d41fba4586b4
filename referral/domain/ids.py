"""Record id generation: "<prefix>_<milliseconds>"."""
from __future__ import annotations

import threading
import time

ID_PREFIXES = {
    "users": "user",
    "companies": "company",
    "partners": "partner",
    "clients": "client",
    "sites": "site",
    "referrals": "referral",
}

_lock = threading.Lock()
_last_ms = 0


def prefix_for(collection: str) -> str:
    """Entity-kind prefix for ids of the given collection."""
    if collection in ID_PREFIXES:
        return ID_PREFIXES[collection]
    if collection.endswith("ies"):
        return collection[:-3] + "y"
    return collection[:-1] if collection.endswith("s") else collection


def new_id(prefix: str) -> str:
    """Return a time-based id that this process has never issued before.

    Two calls within the same millisecond get consecutive timestamps, so the
    value stays a decimal millisecond count but never repeats.
    """
    global _last_ms
    with _lock:
        now = int(time.time() * 1000)
        if now <= _last_ms:
            now = _last_ms + 1
        _last_ms = now
    return f"{prefix}_{now}"
