"""Identifiers for cards that have not been written to the sheet yet."""

import re
import unicodedata
from typing import Optional

from .models import LOCAL_ID_PREFIX


def _normalize(text: Optional[str]) -> str:
    text = unicodedata.normalize("NFKD", (text or "").lower())
    text = "".join(c for c in text if not unicodedata.combining(c))
    text = re.sub(r"\W+", "-", text)
    return text.strip("-")


def derive_id(title: Optional[str], company: Optional[str] = "", location: Optional[str] = "") -> str:
    """Build a deterministic self- id from title, company and location."""
    parts = [_normalize(part) for part in (title, company, location)]
    slug = "--".join(part for part in parts if part)
    return f"{LOCAL_ID_PREFIX}{slug or 'untitled'}"


def is_local_id(record_id: str) -> bool:
    return record_id.startswith(LOCAL_ID_PREFIX)
