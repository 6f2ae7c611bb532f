#!/usr/bin/env python3
from jira_timesheet.dates import DateFormatError, normalize_date
from jira_timesheet.worklogs import WorklogEntry


class QueryError(ValueError):
    pass


def normalize_authors(authors) -> list[str]:
    """Drops blank and non-string author filters and trims the rest"""

    if authors is None:
        return []
    if isinstance(authors, str):
        authors = [authors]
    return [a.strip() for a in authors if isinstance(a, str) and a.strip()]


def normalize_bounds(start: str | None, end: str | None) -> tuple[str | None, str | None]:
    try:
        first = normalize_date(start) if start else None
        last = normalize_date(end) if end else None
    except DateFormatError as err:
        raise QueryError(f"Date format error: {err}") from err
    return first, last


def build_query(
    project: str, authors=None, start: str | None = None, end: str | None = None
) -> str:
    """Builds the JQL used to find issues carrying matching worklogs"""

    users = normalize_authors(authors)
    first, last = normalize_bounds(start, end)

    query = f'project = "{project}"'
    if len(users) == 1:
        query += f' AND worklogAuthor = "{users[0]}"'
    elif users:
        user_list = ", ".join(f'"{user}"' for user in users)
        query += f" AND worklogAuthor IN ({user_list})"

    if first:
        query += f' AND worklogDate >= "{first}"'
    if last:
        query += f' AND worklogDate <= "{last}"'

    return query


def matches_filters(
    entry: WorklogEntry, authors=None, start: str | None = None, end: str | None = None
) -> bool:
    """Checks a single worklog against the author and day bounds of a query.

    The issue search only tells that an issue has *some* matching worklog,
    so every worklog of it is checked again. Days compare as plain strings,
    which holds for the zero-padded YYYY-MM-DD form.
    """

    first, last = normalize_bounds(start, end)
    logged_day = str(entry.started or "").split("T")[0]

    if first and logged_day < first:
        return False
    if last and logged_day > last:
        return False

    users = normalize_authors(authors)
    if users and not {entry.author_email, entry.author} & set(users):
        return False

    return True
