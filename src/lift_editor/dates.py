"""Timestamp parsing and formatting for LIFT date attributes."""

from __future__ import annotations

import datetime
import re

EPOCH = datetime.datetime(1970, 1, 1, tzinfo=datetime.timezone.utc)

_LIFT_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
_FRACTION = re.compile(r"(T\d{2}:\d{2}:\d{2})[.,]\d+")


def utcnow() -> datetime.datetime:
    """Current UTC time truncated to whole seconds."""
    return datetime.datetime.now(datetime.timezone.utc).replace(microsecond=0)


def parse_datetime(value: str) -> datetime.datetime:
    """Parse a LIFT timestamp into an aware UTC datetime of whole seconds.

    Accepts ``YYYY-MM-DD``, ``YYYY-MM-DDTHH:MM:SS`` with an optional
    fraction of any length, and either a ``Z`` suffix, an explicit offset or
    no zone (taken as UTC). The fraction is dropped. Raises ``ValueError``
    for anything else.
    """
    text = _FRACTION.sub(r"\1", value.strip(), count=1)
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    parsed = datetime.datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=datetime.timezone.utc)
    return parsed.astimezone(datetime.timezone.utc)


def truncate(value: datetime.datetime) -> datetime.datetime:
    """*value* as an aware UTC datetime without sub-second precision."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=datetime.timezone.utc)
    return value.astimezone(datetime.timezone.utc).replace(microsecond=0)


def format_datetime(value: datetime.datetime) -> str:
    return truncate(value).strftime(_LIFT_FORMAT)
