#!/usr/bin/env python3
import logging
import os
import sys
import tomllib
from types import SimpleNamespace

from jira import JIRA
from jira.exceptions import JIRAError
from requests.exceptions import RequestException

from jira_timesheet.query import build_query, matches_filters, normalize_authors, normalize_bounds
from jira_timesheet.worklogs import WorklogEntry, started_sort_key

log = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = os.path.join(
    os.path.expanduser("~"), ".config", "jira-timesheet", "config.toml"
)


class ConfigError(RuntimeError):
    pass


class ConnectionFailed(RuntimeError):
    pass


def ns_from(config: dict) -> SimpleNamespace:
    """Creates namespace objects from config dictionary"""

    for key, value in config.items():
        if isinstance(value, dict):
            config[key] = ns_from(value)
    return SimpleNamespace(**config)


def get_config_path(override: str | None = None) -> str:
    """Picks the config file: explicit option, then JIRA_CONFIG_FILE, then default"""

    if override:
        return override
    if env_path := os.getenv("JIRA_CONFIG_FILE"):
        return env_path
    return DEFAULT_CONFIG_PATH


def load_config(filename: str | None = None) -> SimpleNamespace:
    """Parses a TOML configuration file"""

    path = get_config_path(filename)
    try:
        with open(path, "rb") as config_file:
            config = tomllib.load(config_file)
    except FileNotFoundError:
        raise ConfigError(
            f"Configuration file not found at {path}. Please run 'init' first."
        ) from None
    except tomllib.TOMLDecodeError as err:
        raise ConfigError(f"Cannot parse configuration {path}: {err}") from err

    config.setdefault("jira", dict())
    config.setdefault("project", dict())
    config.setdefault("timesheet", dict())

    # Environment variable overrides
    if api_key := os.getenv("JIRA_API_TOKEN"):
        config["jira"]["api_key"] = api_key
    if not config["jira"].get("api_key"):
        raise ConfigError("JIRA_API_TOKEN environment variable not set")

    ns_config = ns_from(config)
    ns_config.path = path
    return ns_config


def get_project(project: str | None, config: SimpleNamespace) -> str:
    """Returns the project key from the command line or the config defaults"""

    if project:
        return project

    configured = getattr(config, "project", None)
    if isinstance(configured, str) and configured:
        return configured
    if key := getattr(configured, "key", None):
        return key

    raise ConfigError(
        "No project specified. Use -p/--project or set default project in config."
    )


def get_timezone(config: SimpleNamespace) -> str | None:
    timesheet = getattr(config, "timesheet", None)
    return getattr(timesheet, "timezone", None)


def make_client(jira: SimpleNamespace) -> JIRA:
    server = getattr(jira, "server", None)
    if not server:
        raise ConfigError("No Jira server configured, please run 'init' first.")

    options = {"server": server.rstrip("/")}
    if getattr(jira, "insecure", False):
        options["verify"] = False

    if getattr(jira, "auth_type", "basic") == "bearer":
        return JIRA(options=options, token_auth=jira.api_key)
    return JIRA(options=options, basic_auth=(getattr(jira, "login", ""), jira.api_key))


def check_connection(client: JIRA) -> dict:
    """Asks the server who we are, to check the credentials"""

    try:
        user = client.myself()
    except (JIRAError, RequestException) as err:
        raise ConnectionFailed(f"Connection failed: {err}") from err
    return user


def connect(config: SimpleNamespace) -> tuple[JIRA, dict]:
    """Establishes a connection to the JIRA server and returns the client and user information"""

    try:
        client = make_client(config.jira)
    except (JIRAError, RequestException) as err:
        raise ConnectionFailed(f"Connection failed: {err}") from err

    user = check_connection(client)
    print("Connected as", user.get("displayName"), "::", user.get("emailAddress"), file=sys.stderr)

    return client, user


def extract_comment_text(comment) -> str:
    """Returns the plain text of a worklog comment.

    REST v2 sends plain strings, v3 sends Atlassian Document Format where
    the text sits in the text nodes of paragraph blocks.
    """

    if isinstance(comment, str):
        return comment
    if not isinstance(comment, dict) or not isinstance(comment.get("content"), list):
        return ""

    parts = []
    for block in comment["content"]:
        if not isinstance(block, dict) or block.get("type") != "paragraph":
            continue
        for inline in block.get("content") or []:
            if isinstance(inline, dict) and inline.get("type") == "text" and inline.get("text"):
                parts.append(inline["text"])

    return " ".join(parts)


def entry_from_worklog(issue_key: str, issue_summary: str, worklog: dict) -> WorklogEntry:
    author = worklog.get("author") or dict()
    return WorklogEntry(
        issue_key=issue_key,
        issue_summary=issue_summary or "",
        author=author.get("displayName", ""),
        time_spent=worklog.get("timeSpent", ""),
        time_spent_seconds=worklog.get("timeSpentSeconds") or 0,
        comment=extract_comment_text(worklog.get("comment")),
        started=worklog.get("started", ""),
        created=worklog.get("created", ""),
        author_email=author.get("emailAddress", ""),
    )


def get_worklogs(
    client: JIRA,
    project: str,
    authors: list[str] | None = None,
    start: str | None = None,
    end: str | None = None,
) -> list[WorklogEntry]:
    """Fetches the worklogs of a project, optionally by author and date range"""

    users = normalize_authors(authors)
    first, last = normalize_bounds(start, end)
    query = build_query(project, users, first, last)

    print("Searching issues in project", project, file=sys.stderr)
    log.debug("Issue search query: %s", query)
    issues = client.search_issues(query, fields="summary", maxResults=False)
    if not issues:
        print("No issues found matching criteria", file=sys.stderr)
        return []

    print(f"Found {len(issues)} issues, reading their worklogs", file=sys.stderr)
    entries = []
    for issue in issues:
        try:
            worklogs = client.worklogs(issue.key)
        except (JIRAError, RequestException) as err:
            log.warning("Skipping worklogs of %s: %s", issue.key, err)
            continue

        for worklog in worklogs:
            entry = entry_from_worklog(issue.key, issue.fields.summary, worklog.raw)
            if matches_filters(entry, users, first, last):
                entries.append(entry)

    return sorted(entries, key=started_sort_key)


def write_report(path: str, content: str):
    with open(path, "w", encoding="utf-8") as report_file:
        report_file.write(content)


if __name__ == "__main__":
    raise RuntimeError("This is module is not executable")
