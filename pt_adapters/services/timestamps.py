# pt_adapters/services/timestamps.py

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone, tzinfo

from dateutil import parser as date_parser
from dateutil import tz as date_tz

from ..config import logger
from ..errors import UnparseableDateError

# Coarse units; months and years are approximations, as displayed by the sites.
_UNIT_SECONDS: dict[str, int] = {
    "year": 365 * 86400,
    "month": 30 * 86400,
    "week": 7 * 86400,
    "day": 86400,
    "hour": 3600,
    "minute": 60,
    "second": 1,
}

_UNIT_ALIASES: dict[str, str] = {
    "年": "year",
    "y": "year",
    "yr": "year",
    "yrs": "year",
    "year": "year",
    "years": "year",
    "月": "month",
    "个月": "month",
    "mo": "month",
    "mon": "month",
    "month": "month",
    "months": "month",
    "周": "week",
    "w": "week",
    "wk": "week",
    "week": "week",
    "weeks": "week",
    "天": "day",
    "日": "day",
    "d": "day",
    "day": "day",
    "days": "day",
    "时": "hour",
    "小时": "hour",
    "h": "hour",
    "hr": "hour",
    "hrs": "hour",
    "hour": "hour",
    "hours": "hour",
    "分": "minute",
    "分钟": "minute",
    "m": "minute",
    "min": "minute",
    "mins": "minute",
    "minute": "minute",
    "minutes": "minute",
    "秒": "second",
    "s": "second",
    "sec": "second",
    "secs": "second",
    "second": "second",
    "seconds": "second",
}

# Longest aliases first so "小时" wins over "时" and "months" over "mo".
_UNIT_ALTERNATION = "|".join(
    re.escape(alias) for alias in sorted(_UNIT_ALIASES, key=len, reverse=True)
)
_RELATIVE_PART = re.compile(rf"(\d+)\s*({_UNIT_ALTERNATION})(?![a-z])", re.IGNORECASE)
_RELATIVE_NOISE = re.compile(r"\s+|ago|前|,", re.IGNORECASE)
# A four digit year followed by a month reads as a calendar date, not a duration.
_ABSOLUTE_HINT = re.compile(r"\d{4}\s*[-/.年]\s*\d{1,2}")


def get_site_timezone(name: str | None) -> tzinfo:
    """Resolve a configured timezone name, falling back to UTC."""
    if not name:
        return timezone.utc
    resolved = date_tz.gettz(name)
    if resolved is None:
        logger.warning("[CONFIG] Unknown timezone '%s'; using UTC", name)
        return timezone.utc
    return resolved


def resolve_timestamp(
    precise: str | None = None,
    display: str | None = None,
    *,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> int:
    """Resolve a site's date representation to epoch seconds.

    ``precise`` (typically a ``title`` attribute holding the full timestamp)
    always wins when it parses. ``display`` may be either a relative duration
    such as ``"3天5时"`` or ``"2 days ago"`` or another absolute date. Both
    relative durations and date parts missing from an absolute date (such as
    the year in ``"05-01 12:00"``) are taken from ``now``.
    """
    site_tz = tz or timezone.utc
    reference = now or datetime.now(timezone.utc)
    if reference.tzinfo is None:
        reference = reference.replace(tzinfo=site_tz)

    if precise and precise.strip():
        parsed = _parse_absolute(precise, site_tz, reference)
        if parsed is not None:
            return parsed
        logger.debug("[PARSE] Precise date %r unparseable; trying display", precise)

    if display and display.strip():
        delta = parse_relative(display)
        if delta is not None:
            return int((reference - delta).timestamp())
        parsed = _parse_absolute(display, site_tz, reference)
        if parsed is not None:
            return parsed

    raise UnparseableDateError(precise, display)


def parse_relative(text: str) -> timedelta | None:
    """Parse a relative duration, returning ``None`` if ``text`` is not one."""
    if _ABSOLUTE_HINT.search(text):
        return None
    parts = list(_RELATIVE_PART.finditer(text))
    if not parts:
        return None
    # Every character must belong to a recognised part or be noise.
    leftover = _RELATIVE_PART.sub("", text)
    if _RELATIVE_NOISE.sub("", leftover):
        return None
    seconds = sum(
        int(part.group(1)) * _UNIT_SECONDS[_UNIT_ALIASES[part.group(2).lower()]]
        for part in parts
    )
    return timedelta(seconds=seconds)


def _parse_absolute(text: str, site_tz: tzinfo, reference: datetime) -> int | None:
    # Date parts missing from the text (usually the year) come from the
    # reference day as seen on the site.
    default = reference.astimezone(site_tz).replace(
        tzinfo=None, hour=0, minute=0, second=0, microsecond=0
    )
    try:
        parsed = date_parser.parse(text.strip(), default=default)
    except (ValueError, OverflowError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=site_tz)
    return int(parsed.timestamp())
