"""Utilities for board timestamps (Japan Standard Time)."""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone

JST = timezone(timedelta(hours=9), "JST")

# "24/01/15(月) 12:00:00.12" / "2024/01/15(月)12:00:00" のような掲示板の日付表記。
# 曜日表記があるため一般的な日付パーサーは使わず、固定幅の正規表現で切り出す。
BOARD_DATE_PATTERN = re.compile(
    r"(?P<year>\d{2,4})/(?P<month>\d{1,2})/(?P<day>\d{1,2})"
    r"(?:\s*\([^)]*\))?\s*"
    r"(?P<hour>\d{1,2}):(?P<minute>\d{2})(?::(?P<second>\d{2}))?"
    r"(?:\.\d+)?"
)


def now_jst() -> datetime:
    """Return the current time in JST."""

    return datetime.now(JST)


def normalize_datetime_to_local(dt: datetime | None) -> datetime | None:
    """Convert ``dt`` to JST timezone, assuming JST for naive values."""

    if dt is None:
        return None

    tz = dt.tzinfo or JST
    return dt.replace(tzinfo=tz).astimezone(JST)


def parse_board_datetime(text: str | None) -> datetime | None:
    """Parse a board date string into an aware JST ``datetime``.

    Two-digit years are treated as 2000s. Fractional seconds are dropped.
    Returns ``None`` for anything that does not match or is out of range.
    """

    if not text:
        return None

    match = BOARD_DATE_PATTERN.search(text)
    if not match:
        return None

    year = int(match.group("year"))
    if year < 100:
        year += 2000

    try:
        return datetime(
            year,
            int(match.group("month")),
            int(match.group("day")),
            int(match.group("hour")),
            int(match.group("minute")),
            int(match.group("second") or 0),
            tzinfo=JST,
        )
    except ValueError:
        return None


def parse_iso_datetime(text: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp as returned by JSON APIs."""

    if not text:
        return None

    try:
        parsed = datetime.fromisoformat(text.strip().replace("Z", "+00:00"))
    except ValueError:
        return parse_board_datetime(text)

    return normalize_datetime_to_local(parsed)
