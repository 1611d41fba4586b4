"""Domain helpers for site slugs."""
from __future__ import annotations

import re

_NON_WORD = re.compile(r"[^\w]+", re.ASCII)
DEFAULT_SITE_NAME = "Без названия"


def slugify(name: str | None) -> str:
    """Derive a slug from a site name: lower-case, runs of non-word chars become "-"."""
    return _NON_WORD.sub("-", (name or "site").lower())
