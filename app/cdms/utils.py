from __future__ import annotations

from datetime import date, datetime


def clean(value: object) -> str:
    """Strip a free-text field; None becomes ''."""
    if value is None:
        return ""
    return str(value).strip()


def parse_date(s: str | date | None) -> date | None:
    """Parse YYYY-MM-DD (or a full ISO timestamp, keeping only the date)."""
    if s is None:
        return None
    if isinstance(s, datetime):
        return s.date()
    if isinstance(s, date):
        return s
    if not isinstance(s, str):
        raise TypeError(f"expected an ISO date string, got {type(s).__name__}")
    s = s.strip()
    if not s:
        return None
    if len(s) > 10:
        return parse_datetime(s).date()  # type: ignore[union-attr]
    return date.fromisoformat(s)


def parse_datetime(s: str | datetime | None) -> datetime | None:
    if s is None:
        return None
    if isinstance(s, datetime):
        return s
    if not isinstance(s, str):
        raise TypeError(f"expected an ISO timestamp string, got {type(s).__name__}")
    s = s.strip()
    if not s:
        return None
    # Python < 3.11 does not accept the trailing "Z" JavaScript emits.
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    return datetime.fromisoformat(s)


def iso(value: date | datetime | None) -> str | None:
    if value is None:
        return None
    return value.isoformat()
