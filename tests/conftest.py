"""Shared fixtures; the repository root goes on sys.path so the tests run from a plain checkout."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from jira_timesheet.worklogs import WorklogEntry  # noqa: E402


def make_entry(**overrides) -> WorklogEntry:
    fields = {
        "issue_key": "TEST-1",
        "issue_summary": "Test issue",
        "author": "John Doe",
        "time_spent": "1h",
        "time_spent_seconds": 3600,
        "comment": "Work done",
        "started": "2024-01-15T09:00:00.000+0100",
        "created": "2024-01-15T10:00:00.000+0100",
    }
    fields.update(overrides)
    return WorklogEntry(**fields)


@pytest.fixture
def entry_factory():
    return make_entry


@pytest.fixture
def sample_entries():
    return [
        make_entry(
            issue_key="TEST-123",
            issue_summary='Issue with "quotes" and, commas',
            comment="Comment with | pipes and \n newlines",
            time_spent="2h 30m",
            time_spent_seconds=9000,
            started="2024-01-15T09:00:00.000+0000",
        ),
        make_entry(
            issue_key="TEST-124",
            comment="Short comment",
            time_spent="1h",
            time_spent_seconds=3600,
            started="2024-01-15T14:00:00.000+0000",
        ),
        make_entry(
            author="Jane Smith",
            issue_key="TEST-125",
            comment="Work by different user",
            time_spent="45m",
            time_spent_seconds=2700,
            started="2024-01-16T10:00:00.000+0000",
        ),
        make_entry(
            issue_key="TEST-126",
            comment="",
            time_spent="3h",
            time_spent_seconds=10800,
            started="2024-01-16T11:00:00.000+0000",
        ),
    ]
