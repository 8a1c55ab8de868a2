# core/utils.py

from datetime import date, datetime, timezone
from typing import Iterable, Optional


def sanitize(data: dict, *, drop: Iterable[str] = ()) -> dict:
    """
    Sanitize dictionary data before it is written to Supabase:
    - Keys listed in `drop` are removed
    - Empty strings → None
    - Strip string whitespace
    - Preserve booleans, numbers, None, nested JSON

    Strings are never coerced to numbers; phone numbers and GPAs stay as typed.
    """
    dropped = set(drop)
    clean = {}

    for k, v in data.items():
        if k in dropped:
            continue

        if isinstance(v, str):
            stripped = v.strip()
            clean[k] = stripped if stripped else None
            continue

        clean[k] = v

    return clean


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def today_str(today: Optional[date] = None) -> str:
    return (today or datetime.now(timezone.utc).date()).isoformat()


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
