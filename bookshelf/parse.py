"""
Parsers for user-supplied progress and date values.

Every parser returns ``None`` when the input cannot be interpreted; none of
them raise. Callers decide whether to re-prompt or abort.

Accepted formats:
    page range:  "1-350", "1 - 350", "1..350"
    duration:    "3600" (seconds), "1h30m", "90m", "1.5h"
    date:        "today", "now", "yesterday", "2025-01-01", "Jan 1, 2025"
"""

import math
import re
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from .dates import to_timestamp

PAGE_RANGE_RE = re.compile(r"^([0-9]+)\s*[-.]+\s*([0-9]+)$")
SECONDS_RE = re.compile(r"^[0-9]+$")
HOURS_MINUTES_RE = re.compile(
    r"^(?:([0-9]+(?:\.[0-9]+)?)\s*h)?\s*(?:([0-9]+)\s*m)?$", re.IGNORECASE
)
INTEGER_RE = re.compile(r"^[+-]?[0-9]+$")

# Written date forms tried after ISO-8601
DATE_FORMATS = (
    "%b %d, %Y",
    "%B %d, %Y",
    "%b %d %Y",
    "%B %d %Y",
    "%d %b %Y",
    "%d %B %Y",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%Y/%m/%d %H:%M",
    "%m/%d/%Y %H:%M",
)

PAGES = "pages"
TIME = "time"


def parse_page_range(text: str) -> Optional[Tuple[int, int]]:
    """
    Parse a page range such as ``"1-350"``.

    Args:
        text: Raw user input

    Returns:
        ``(start, end)`` or None if malformed or ``end < start``
    """
    match = PAGE_RANGE_RE.match(text.strip())
    if not match:
        return None

    start = int(match.group(1))
    end = int(match.group(2))
    if end < start:
        return None
    return start, end


def parse_duration(text: str) -> Optional[int]:
    """
    Parse a duration into whole seconds.

    Plain digits are taken as seconds. Otherwise an ``<h>h<m>m`` form is
    accepted where either part may be left out, hours may be fractional and
    the unit letters are case-insensitive. A unit with no number in front
    of it (``"h"``) is rejected.

    Args:
        text: Raw user input

    Returns:
        Seconds rounded to the nearest whole second, or None
    """
    trimmed = text.strip()

    if SECONDS_RE.match(trimmed):
        return int(trimmed)

    match = HOURS_MINUTES_RE.match(trimmed)
    if not match or not (match.group(1) or match.group(2)):
        return None

    hours = float(match.group(1) or 0)
    minutes = int(match.group(2) or 0)
    return int(math.floor(hours * 3600 + minutes * 60 + 0.5))


def parse_date(text: str) -> Optional[float]:
    """
    Parse a date into a stored timestamp.

    ``today``/``now`` map to the current instant and ``yesterday`` to the
    same time one calendar day earlier. Anything else goes through ISO-8601
    parsing and then a handful of written forms. Date-only ISO strings are
    taken as UTC midnight; other strings without an offset are local time.

    Args:
        text: Raw user input

    Returns:
        Seconds since 2001-01-01T00:00:00Z, or None
    """
    trimmed = text.strip()
    keyword = trimmed.lower()

    if keyword in ("today", "now"):
        return to_timestamp(datetime.now().astimezone())

    if keyword == "yesterday":
        return to_timestamp(datetime.now().astimezone() - timedelta(days=1))

    parsed = _parse_calendar_date(trimmed)
    if parsed is None:
        return None
    return to_timestamp(parsed)


def _parse_calendar_date(text: str) -> Optional[datetime]:
    if not text:
        return None

    iso = text[:-1] + "+00:00" if text.endswith(("Z", "z")) else text
    try:
        parsed = datetime.fromisoformat(iso)
    except ValueError:
        parsed = None

    if parsed is not None:
        if parsed.tzinfo is None and len(text) == 10:
            return parsed.replace(tzinfo=timezone.utc)
        return parsed

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def parse_page_number(text: str) -> Optional[int]:
    """Parse a single page number, or None if it is not an integer."""
    trimmed = text.strip()
    if not INTEGER_RE.match(trimmed):
        return None
    return int(trimmed)


def parse_progress_value(text: str, progress_type: str) -> Optional[int]:
    """
    Parse a session bound according to the owning publication's progress type.

    Time-based publications take duration syntax; everything else is a page
    number.
    """
    if progress_type == TIME:
        return parse_duration(text)
    return parse_page_number(text)
