from __future__ import annotations

import re
import unicodedata

SLUG_MAX = 100


def _ascii(value: str) -> str:
    return unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")


def brand_slug(name: str) -> str:
    """
    "  Levi's  " -> "levis", "Abercrombie & Fitch" -> "abercrombie-and-fitch",
    "Coca-Cola" -> "cocacola".

    Only whitespace becomes a separator. Every other non-alphanumeric is
    dropped, hyphens included, and "&" is spelled out as "and".
    """
    value = _ascii((name or "").strip()).replace("&", "and").lower()
    value = re.sub(r"[^a-z0-9\s]", "", value).strip()
    value = re.sub(r"\s+", "-", value)
    return value[:SLUG_MAX].strip("-")


def clothing_slug(name: str) -> str:
    value = re.sub(r"[^a-z0-9]+", "-", _ascii((name or "").strip()).lower())
    return value.strip("-")[:SLUG_MAX]


def numbered_slug(base: str, n: int) -> str:
    # n == 1 is the bare slug; later candidates get "-2", "-3"...
    return base if n <= 1 else f"{base}-{n}"
