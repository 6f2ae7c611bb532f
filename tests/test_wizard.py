import re
import tomllib

import pytest

from jira_timesheet import wizard
from jira_timesheet.wizard import (
    create_config_backup,
    run_init,
    validate_board_name,
    validate_email,
    validate_project_key,
    validate_server_url,
)

KEY_MESSAGE = "Project key must start with a letter and contain only uppercase letters and numbers"


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://example.atlassian.net", True),
        ("http://localhost:8080", True),
        ("", "Server URL is required"),
        (None, "Server URL is required"),
        ("ftp://example.com", "Server URL must use HTTP or HTTPS protocol"),
        ("not-a-url", "Invalid URL format"),
    ],
)
def test_validate_server_url(url, expected):
    assert validate_server_url(url) == expected


@pytest.mark.parametrize(
    "email, expected",
    [
        ("user@example.com", True),
        ("user@mail.example.com", True),
        ("", "Email is required"),
        (None, "Email is required"),
        ("not-an-email", "Invalid email format"),
        ("user@", "Invalid email format"),
    ],
)
def test_validate_email(email, expected):
    assert validate_email(email) == expected


@pytest.mark.parametrize(
    "key, expected",
    [
        ("SB", True),
        ("PROJECT123", True),
        ("", True),
        (None, True),
        ("123PROJECT", KEY_MESSAGE),
        ("project", KEY_MESSAGE),
        ("PROJECT-123", KEY_MESSAGE),
    ],
)
def test_validate_project_key(key, expected):
    assert validate_project_key(key) == expected


@pytest.mark.parametrize(
    "name, expected",
    [
        ("Sprint Board", True),
        ("", True),
        (None, True),
        (123, "Board name must be a string"),
        ("   ", "Board name cannot be empty"),
    ],
)
def test_validate_board_name(name, expected):
    assert validate_board_name(name) == expected


def test_backup_of_existing_config(tmp_path):
    config = tmp_path / "config.toml"
    config.write_text("[jira]\n")
    backup = create_config_backup(str(config))
    assert re.search(r"\.backup-\d{4}-\d{2}-\d{2}T\d{2}-\d{2}-\d{2}-\d{3}Z$", backup)
    assert open(backup).read() == "[jira]\n"


def test_no_backup_without_config(tmp_path):
    assert create_config_backup(str(tmp_path / "config.toml")) is None


class FakeBoard:
    def __init__(self, id, name):
        self.id = id
        self.name = name


class FakeProject:
    def __init__(self, key, name):
        self.key = key
        self.name = name


class FakeClient:
    def myself(self):
        return {"displayName": "John Doe"}

    def projects(self):
        return [FakeProject("SB", "Sandbox"), FakeProject("AB", "Alpha")]

    def boards(self, projectKeyOrID=None):
        return [FakeBoard(42, "SB board")]


def scripted(answers):
    replies = iter(answers)
    return lambda question: next(replies)


def test_run_init_writes_config(tmp_path, monkeypatch):
    monkeypatch.setattr(wizard, "make_client", lambda answers: FakeClient())
    monkeypatch.delenv("JIRA_API_TOKEN", raising=False)
    path = tmp_path / "nested" / "config.toml"

    ask = scripted([
        "",  # installation: cloud
        "not-a-url",
        "https://example.atlassian.net",
        "user@example.com",
        "",  # insecure: no
        "",  # timezone: default
        "csv",
        "lower",
        "SB",
        "SB board",
    ])
    run_init(str(path), ask=ask, ask_secret=lambda question: "token")

    with open(path, "rb") as config_file:
        config = tomllib.load(config_file)
    assert config["jira"] == {
        "server": "https://example.atlassian.net",
        "login": "user@example.com",
        "installation": "cloud",
        "auth_type": "basic",
        "insecure": False,
    }
    assert config["project"] == {"key": "SB", "board_id": 42}
    assert config["timesheet"] == {"timezone": "Europe/Berlin", "default_format": "csv"}
    assert "token" not in path.read_text()


def test_run_init_keeps_existing_config_when_declined(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text("[jira]\n")
    run_init(str(path), ask=scripted(["n"]))
    assert path.read_text() == "[jira]\n"
    assert list(tmp_path.iterdir()) == [path]


def test_run_init_force_skips_question_and_backup(tmp_path, monkeypatch):
    monkeypatch.setattr(wizard, "make_client", lambda answers: FakeClient())
    monkeypatch.setenv("JIRA_API_TOKEN", "token")
    path = tmp_path / "config.toml"
    path.write_text("[jira]\n")

    ask = scripted(["local", "http://jira.local", "bearer", "admin", "yes", "UTC", "", ""])
    run_init(str(path), force=True, ask=ask)

    assert list(tmp_path.iterdir()) == [path]
    with open(path, "rb") as config_file:
        config = tomllib.load(config_file)
    assert config["jira"]["auth_type"] == "bearer"
    assert config["jira"]["insecure"] is True
    assert "project" not in config
