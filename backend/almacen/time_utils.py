"""
Timestamps for the ledger.

Movement dates, review and resolution times, incident reports and session
activity are kept in memory as naive datetimes that mean UTC. On the wire and
in storage they are ISO-8601 strings with a trailing "Z", to the second.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Stamp for a new movement, review, incident or session touch."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Read a stored timestamp or a ?since= / report range bound.

    A bare date ("2026-10-01") is midnight UTC. Offsets are folded into UTC.
    Blank input means "no bound" and returns None; anything else that is not
    ISO-8601 raises ValueError, which state loading treats as a bad record.
    """
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"timestamp must be a string, got {type(value).__name__}")
    text = value.strip()
    if not text:
        return None

    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"

    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """Ledger timestamp as "YYYY-MM-DDTHH:MM:SSZ"; None stays None."""
    if dt is None:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt.replace(microsecond=0).isoformat() + "Z"
