"""Identifier and timestamp helpers shared by every component."""

from __future__ import annotations

import secrets
from datetime import datetime, timezone


def new_task_id() -> str:
    """Eight lowercase hex characters from 4 random bytes.

    Not checked for collisions within a workstream.
    """
    return secrets.token_hex(4)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def isoformat(ts: datetime) -> str:
    """Render a timestamp as ISO-8601 with millisecond precision and a Z suffix."""
    ts = ts.astimezone(timezone.utc)
    return ts.strftime("%Y-%m-%dT%H:%M:%S.") + f"{ts.microsecond // 1000:03d}Z"


def now_iso() -> str:
    return isoformat(utcnow())


def parse_ts(value: str | datetime) -> datetime:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    if isinstance(value, datetime):
        ts = value
    else:
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        ts = datetime.fromisoformat(text)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def age_ms(ts: datetime, now: datetime | None = None) -> float:
    """Milliseconds elapsed since ``ts``."""
    now = now or utcnow()
    return (now - ts).total_seconds() * 1000
