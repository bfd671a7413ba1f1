"""Strict date parsing and plan range construction."""

from __future__ import annotations

import re
from datetime import date, timedelta

from averse.errors import InvalidDate
from averse.models import DateRange

ISO_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")


def parse_date(raw: str) -> date:
    """Parse a YYYY-MM-DD string, rejecting anything that is not a real date.

    No best-effort guessing: "2022-15-22" (month 15) and "2022-7-31"
    (unpadded) both fail with InvalidDate.
    """
    s = raw.strip() if isinstance(raw, str) else ""
    m = ISO_DATE_RE.match(s)
    if not m:
        raise InvalidDate(str(raw))

    year, month, day = (int(g) for g in m.groups())
    try:
        return date(year, month, day)
    except ValueError as e:
        raise InvalidDate(str(raw), str(e)) from e


def build_range(
    start: date,
    end: date | None = None,
    days: int | None = None,
) -> DateRange:
    """Build the plan range from a start date and either an end date or a length.

    With neither given the range covers the single start date.
    """
    if end is not None and days is not None:
        raise ValueError("Give either an end date or a number of days, not both")
    if days is not None:
        if days < 1:
            raise ValueError(f"days must be >= 1, got {days}")
        end = start + timedelta(days=days - 1)
    return DateRange.create(start, end if end is not None else start)


def day_label(day: date) -> str:
    return f"{day.strftime('%A')} {day.isoformat()}"
