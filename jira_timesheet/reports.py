#!/usr/bin/env python3
"""Timesheet renderers: terminal table, CSV, Markdown, JSON and Excel.

Every grouped renderer walks the same structure: authors in first-seen
order, their days chronologically, and each day's worklogs by start time.
Totals always come from ``time_spent_seconds``; ``time_spent`` is shown as
Jira formatted it.
"""
import csv
import io
import json

import pandas as pd
from tabulate import tabulate

from jira_timesheet.worklogs import (
    WorklogEntry,
    comment_text,
    count_label,
    entry_to_dict,
    format_time,
    group_by_author_and_day,
    ordered_days,
)

TITLE = "Timesheet"
NO_WORKLOGS = "No worklogs found"
DAY_TOTAL_MARKER = "DAY TOTAL"
GRAND_TOTAL_TITLE = "Grand Total"

TABLE_HEADERS = ("Date", "Issue", "Comment", "Time")
CSV_HEADERS = (
    "Date",
    "User",
    "Issue Key",
    "Comment",
    "Time Spent",
    "Time (Seconds)",
    "Started",
    "Created",
)
MARKDOWN_HEADERS = ("Date", "Issue Key", "Comment", "Time Spent")

COMMENT_WIDTH = 40
RULE_WIDTH = 80

ANSI = {
    "reset": 0,
    "bold": 1,
    "gray": 90,
    "green": 92,
    "yellow": 93,
    "blue": 94,
    "cyan": 96,
}


def paint(text: str, *styles: str, color: bool = True) -> str:
    if not color or not styles:
        return text
    codes = "".join(f"\033[{ANSI[style]}m" for style in styles)
    return f"{codes}{text}\033[{ANSI['reset']}m"


def seconds_of(entries: list[WorklogEntry]) -> int:
    return sum(entry.time_spent_seconds for entry in entries)


def truncate(text: str, width: int = COMMENT_WIDTH) -> str:
    text = " ".join(text.splitlines())
    if len(text) > width:
        return text[:width] + "..."
    return text


def render_table(
    entries: list[WorklogEntry], timezone: str | None = None, color: bool = True
) -> str:
    """Renders one table per author, with a total row after each day"""

    if not entries:
        return paint(NO_WORKLOGS, "yellow", color=color)

    grouped = group_by_author_and_day(entries, timezone)
    rule = "─" if color else "-"
    tablefmt = "rounded_grid" if color else "grid"

    output = [paint(TITLE, "bold", color=color)]
    grand_seconds, grand_count = 0, 0

    for author, days in grouped.items():
        output += ["", paint(author, "cyan", color=color), rule * RULE_WIDTH]

        rows = []
        author_seconds, author_count = 0, 0
        for day, day_entries in ordered_days(days):
            for index, entry in enumerate(day_entries):
                rows.append(
                    [
                        day if index == 0 else "",
                        entry.issue_key,
                        truncate(comment_text(entry)),
                        entry.time_spent,
                    ]
                )

            day_seconds = seconds_of(day_entries)
            rows.append(
                [
                    "",
                    "",
                    paint(count_label(len(day_entries)), "bold", color=color),
                    paint(format_time(day_seconds), "bold", "green", color=color),
                ]
            )
            author_seconds += day_seconds
            author_count += len(day_entries)

        output.append(
            tabulate(rows, headers=TABLE_HEADERS, tablefmt=tablefmt, disable_numparse=True)
        )
        summary = f"{author} total: {format_time(author_seconds)} ({count_label(author_count)})"
        output += ["", paint(summary, "bold", "blue", color=color)]

        grand_seconds += author_seconds
        grand_count += author_count

    grand = f"Total time of all users: {format_time(grand_seconds)} ({count_label(grand_count)})"
    output += [
        "",
        "=" * RULE_WIDTH,
        paint(grand, "bold", "green", color=color),
        paint(f"Number of users: {len(grouped)}", "gray", color=color),
    ]
    return "\n".join(output)


def csv_rows(entries: list[WorklogEntry], timezone: str | None = None) -> list[list]:
    """Flat rows for spreadsheets: every worklog plus one total row per day"""

    rows = []
    for author, days in group_by_author_and_day(entries, timezone).items():
        for day, day_entries in ordered_days(days):
            for entry in day_entries:
                rows.append(
                    [
                        day,
                        author,
                        entry.issue_key,
                        comment_text(entry),
                        entry.time_spent,
                        entry.time_spent_seconds,
                        entry.started,
                        entry.created,
                    ]
                )

            day_seconds = seconds_of(day_entries)
            rows.append(
                [
                    day,
                    author,
                    DAY_TOTAL_MARKER,
                    count_label(len(day_entries)),
                    format_time(day_seconds),
                    day_seconds,
                    "",
                    "",
                ]
            )
    return rows


def render_csv(entries: list[WorklogEntry], timezone: str | None = None) -> str:
    """Renders one row per worklog and a DAY TOTAL row per author and day.

    Every text cell is quoted so comments always come out as "..." while
    the seconds column stays a bare number.
    """

    buffer = io.StringIO()
    buffer.write(",".join(CSV_HEADERS) + "\n")
    writer = csv.writer(buffer, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
    writer.writerows(csv_rows(entries, timezone))
    return buffer.getvalue().rstrip("\n")


def escape_markdown(text: str) -> str:
    return text.replace("|", "\\|").replace("\r\n", " ").replace("\n", " ")


def render_markdown(entries: list[WorklogEntry], timezone: str | None = None) -> str:
    """Renders a GitHub flavored Markdown document, one section per author"""

    if not entries:
        return f"# {TITLE}\n\n{NO_WORKLOGS}"

    grouped = group_by_author_and_day(entries, timezone)
    output = [f"# {TITLE}", ""]
    grand_seconds, grand_count = 0, 0

    for author, days in grouped.items():
        output += [
            f"## {author}",
            "",
            "| " + " | ".join(MARKDOWN_HEADERS) + " |",
            "|" + "|".join("-" * (len(h) + 2) for h in MARKDOWN_HEADERS) + "|",
        ]

        author_seconds, author_count = 0, 0
        for day, day_entries in ordered_days(days):
            for index, entry in enumerate(day_entries):
                shown_day = day if index == 0 else ""
                output.append(
                    f"| {shown_day} | {escape_markdown(entry.issue_key)} "
                    f"| {escape_markdown(comment_text(entry))} | {entry.time_spent} |"
                )

            day_seconds = seconds_of(day_entries)
            output.append(
                f"| | | **{count_label(len(day_entries))}** | **{format_time(day_seconds)}** |"
            )
            author_seconds += day_seconds
            author_count += len(day_entries)

        output += [
            "",
            f"**{author} total: {format_time(author_seconds)} ({count_label(author_count)})**",
            "",
            "---",
            "",
        ]
        grand_seconds += author_seconds
        grand_count += author_count

    output += [
        f"## {GRAND_TOTAL_TITLE}",
        "",
        f"**Total time of all users:** {format_time(grand_seconds)} ({count_label(grand_count)})  ",
        f"**Number of users:** {len(grouped)}",
    ]
    return "\n".join(output) + "\n"


def render_json(entries: list[WorklogEntry]) -> str:
    return json.dumps([entry_to_dict(e) for e in entries], indent=2, ensure_ascii=False)


def write_xlsx(entries: list[WorklogEntry], path: str, timezone: str | None = None):
    """Saves the CSV rows into an Excel workbook"""

    df = pd.DataFrame(csv_rows(entries, timezone), columns=list(CSV_HEADERS))
    with pd.ExcelWriter(path, engine="xlsxwriter") as writer:
        df.to_excel(writer, index=False, sheet_name=TITLE)


def render_report(
    entries: list[WorklogEntry],
    output_format: str = "table",
    timezone: str | None = None,
    color: bool = True,
) -> str:
    fmt = (output_format or "table").lower()
    if fmt == "table":
        return render_table(entries, timezone, color=color)
    if fmt == "csv":
        return render_csv(entries, timezone)
    if fmt == "markdown":
        return render_markdown(entries, timezone)
    if fmt == "json":
        return render_json(entries)
    raise ValueError(f"Unsupported output format: {output_format}")
