#!/usr/bin/env python3
import logging
import math
from collections import namedtuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from jira_timesheet.dates import (
    INVALID_DAY_LABEL,
    day_label,
    day_sort_key,
    parse_timestamp,
)

log = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "Europe/Berlin"

WorklogEntry = namedtuple(
    "WorklogEntry",
    "issue_key issue_summary author time_spent time_spent_seconds comment started created author_email",
    defaults=("",),
)

# Rendering order and names of the exported fields
JSON_FIELDS = (
    ("issueKey", "issue_key"),
    ("issueSummary", "issue_summary"),
    ("author", "author"),
    ("timeSpent", "time_spent"),
    ("timeSpentSeconds", "time_spent_seconds"),
    ("comment", "comment"),
    ("started", "started"),
    ("created", "created"),
)

Grouped = dict[str, dict[str, list[WorklogEntry]]]


def format_time(seconds: float) -> str:
    """Formats a duration in seconds as 2h 30m, 2h or 30m"""

    # minutes keep the sign of the input, so -1800 is "-1h -30m"
    hours = math.floor(seconds / 3600)
    minutes = math.floor(math.fmod(seconds, 3600) / 60)

    if hours == 0:
        return f"{minutes}m"
    if minutes == 0:
        return f"{hours}h"
    return f"{hours}h {minutes}m"


def count_label(count: int) -> str:
    return f"{count} entry" if count == 1 else f"{count} entries"


def resolve_timezone(name: str | None) -> ZoneInfo:
    """Looks up an IANA zone, falling back to the default zone for bad names"""

    if name and isinstance(name, str):
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError):
            log.debug("Unknown timezone %r, using %s", name, DEFAULT_TIMEZONE)
    return ZoneInfo(DEFAULT_TIMEZONE)


def comment_text(entry: WorklogEntry) -> str:
    return entry.comment if isinstance(entry.comment, str) else ""


def entry_day_label(entry: WorklogEntry, zone: ZoneInfo) -> str:
    started = parse_timestamp(entry.started)
    if started is None:
        return INVALID_DAY_LABEL
    try:
        return day_label(started.astimezone(zone).date())
    except OverflowError:
        # near date.min or date.max the zone shift leaves the calendar
        return INVALID_DAY_LABEL


def group_by_author_and_day(
    entries: list[WorklogEntry], timezone_name: str | None = None
) -> Grouped:
    """Groups worklogs by author and then by calendar day in the given timezone.

    Authors keep their first-seen order, and so do the days of each author.
    Nothing is sorted here; renderers order days and entries themselves.
    """

    zone = resolve_timezone(timezone_name)
    grouped: Grouped = dict()
    for entry in entries:
        day = entry_day_label(entry, zone)
        grouped.setdefault(entry.author, dict()).setdefault(day, []).append(entry)

    return grouped


def started_sort_key(entry: WorklogEntry) -> tuple:
    started = parse_timestamp(entry.started)
    try:
        moment = started.timestamp() if started else None
    except (OverflowError, ValueError):
        moment = None
    if moment is None:
        return (True, math.inf, str(entry.started))
    return (False, moment, str(entry.started))


def ordered_days(days: dict[str, list[WorklogEntry]]):
    """Yields (day, entries) chronologically, entries sorted by start time"""

    for day in sorted(days, key=day_sort_key):
        yield day, sorted(days[day], key=started_sort_key)


def entry_to_dict(entry: WorklogEntry) -> dict:
    data = {key: getattr(entry, field) for key, field in JSON_FIELDS}
    data["comment"] = comment_text(entry)
    return data
