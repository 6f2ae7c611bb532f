#!/usr/bin/env python3
import re
from datetime import date, datetime, timezone

from dateutil.parser import isoparse

ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
DOTTED_DATE = re.compile(r"^(\d{1,2})\.(\d{1,2})\.(\d{4})$")

INVALID_DAY_LABEL = "Invalid Date"


class DateFormatError(ValueError):
    pass


def normalize_date(value: str) -> str:
    """Converts DD.MM.YYYY or YYYY-MM-DD input into a validated YYYY-MM-DD string"""

    if not value or not isinstance(value, str):
        raise DateFormatError("Date string required")

    if ISO_DATE.match(value):
        try:
            date.fromisoformat(value)
        except ValueError:
            raise DateFormatError(f"Invalid date: {value}") from None
        return value

    match = DOTTED_DATE.match(value)
    if not match:
        raise DateFormatError(
            f"Invalid date format: {value}. Expected DD.MM.YYYY or YYYY-MM-DD format."
        )

    day, month, year = match.groups()
    if not 1 <= int(day) <= 31:
        raise DateFormatError(f"Invalid day: {day}. Day must be between 1 and 31.")
    if not 1 <= int(month) <= 12:
        raise DateFormatError(
            f"Invalid month: {month}. Month must be between 1 and 12."
        )
    if not 1900 <= int(year) <= 2100:
        raise DateFormatError(
            f"Invalid year: {year}. Year must be between 1900 and 2100."
        )

    candidate = f"{year}-{month.zfill(2)}-{day.zfill(2)}"
    try:
        exists = date.fromisoformat(candidate).isoformat() == candidate
    except ValueError:
        exists = False
    if not exists:
        raise DateFormatError(f"Invalid date: {value}. The date does not exist.")

    return candidate


def parse_timestamp(value) -> datetime | None:
    """Parses a Jira timestamp such as 2024-01-15T09:00:00.000+0100.

    Values without an offset are taken as UTC. Returns None when the value
    cannot be parsed.
    """

    if not isinstance(value, str) or not value:
        return None
    try:
        moment = isoparse(value)
    except (ValueError, OverflowError):
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def day_label(moment: date) -> str:
    """Formats a day the European way, without zero padding (5.1.2024)"""
    return f"{moment.day}.{moment.month}.{moment.year}"


def parse_day_label(label: str) -> date | None:
    """Turns a D.M.YYYY day label back into a date, None for anything else"""

    match = DOTTED_DATE.match(label or "")
    if not match:
        return None
    day, month, year = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


def day_sort_key(label: str) -> tuple[bool, date]:
    """Sorts day labels chronologically, unparsable labels last"""

    parsed = parse_day_label(label)
    return (parsed is None, parsed or date.max)
