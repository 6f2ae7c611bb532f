#!/usr/bin/env python3
"""Interactive set-up of the configuration file used by ``generate``."""
import getpass
import os
import re
import shutil
import sys
from datetime import datetime, timezone
from types import SimpleNamespace
from urllib.parse import urlparse

import tomli_w
from jira import JIRA
from jira.exceptions import JIRAError
from requests.exceptions import RequestException

from jira_timesheet.generic import ConnectionFailed, check_connection, make_client
from jira_timesheet.worklogs import DEFAULT_TIMEZONE

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PROJECT_KEY_PATTERN = re.compile(r"^[A-Z][A-Z0-9]*$")

INSTALLATIONS = ("cloud", "local")
AUTH_TYPES = ("basic", "bearer")
OUTPUT_FORMATS = ("table", "csv", "markdown", "json")


def validate_server_url(url) -> bool | str:
    if not url:
        return "Server URL is required"

    parsed = urlparse(str(url))
    if not parsed.scheme or not parsed.netloc:
        return "Invalid URL format"
    if parsed.scheme not in ("http", "https"):
        return "Server URL must use HTTP or HTTPS protocol"
    return True


def validate_email(email) -> bool | str:
    if not email:
        return "Email is required"
    if not EMAIL_PATTERN.match(str(email)):
        return "Invalid email format"
    return True


def validate_project_key(key) -> bool | str:
    # optional
    if not key:
        return True
    if not PROJECT_KEY_PATTERN.match(str(key)):
        return "Project key must start with a letter and contain only uppercase letters and numbers"
    return True


def validate_board_name(name) -> bool | str:
    if name is None or name == "":
        return True
    if not isinstance(name, str):
        return "Board name must be a string"
    if not name.strip():
        return "Board name cannot be empty"
    return True


def create_config_backup(config_path: str) -> str | None:
    """Copies an existing config aside and returns the backup path"""

    if not os.path.exists(config_path):
        return None

    stamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S-%f")[:-3] + "Z"
    backup_path = f"{config_path}.backup-{stamp}"
    shutil.copyfile(config_path, backup_path)
    return backup_path


def prompt(ask, question: str, default: str = "", validate=None) -> str:
    """Asks until the answer passes the validator"""

    suffix = f" [{default}]" if default else ""
    while True:
        answer = ask(f"{question}{suffix}: ").strip() or default
        verdict = validate(answer) if validate else True
        if verdict is True:
            return answer
        print(f"  {verdict}", file=sys.stderr)


def prompt_choice(ask, question: str, choices: tuple[str, ...], default: str) -> str:
    def check(answer):
        return True if answer in choices else f"Choose one of: {', '.join(choices)}"

    return prompt(ask, f"{question} ({'/'.join(choices)})", default, check)


def load_available_projects(client: JIRA) -> list[tuple[str, str]]:
    return sorted((p.key, p.name) for p in client.projects())


def load_available_boards(client: JIRA, project_key: str) -> list[tuple[int, str]]:
    return [(b.id, b.name) for b in client.boards(projectKeyOrID=project_key)]


def pick_project(ask, client: JIRA) -> str:
    try:
        projects = load_available_projects(client)
    except (JIRAError, RequestException) as err:
        print(f"Could not list projects: {err}", file=sys.stderr)
        projects = []

    for key, name in projects:
        print(f"  {key:10} {name}", file=sys.stderr)
    return prompt(ask, "Default project key (optional)", validate=validate_project_key)


def pick_board(ask, client: JIRA, project_key: str) -> int | None:
    try:
        boards = load_available_boards(client, project_key)
    except (JIRAError, RequestException) as err:
        print(f"Could not list boards of {project_key}: {err}", file=sys.stderr)
        return None
    if not boards:
        return None

    for board_id, name in boards:
        print(f"  {board_id:>6} {name}", file=sys.stderr)
    name = prompt(ask, "Default board name (optional)", validate=validate_board_name)
    for board_id, board_name in boards:
        if board_name == name.strip():
            return board_id
    return None


def build_config(answers: SimpleNamespace) -> dict:
    config = {
        "jira": {
            "server": answers.server,
            "login": answers.login,
            "installation": answers.installation,
            "auth_type": answers.auth_type,
            "insecure": answers.insecure,
        },
        "timesheet": {
            "timezone": answers.timezone,
            "default_format": answers.default_format,
        },
    }
    if answers.project:
        config["project"] = {"key": answers.project}
        if answers.board_id is not None:
            config["project"]["board_id"] = answers.board_id
    return config


def save_config(config_path: str, config: dict):
    directory = os.path.dirname(config_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(config_path, "wb") as config_file:
        tomli_w.dump(config, config_file)


def run_init(config_path: str, force: bool = False, ask=input, ask_secret=getpass.getpass) -> str:
    """Walks through the settings, tests them and writes the configuration"""

    if os.path.exists(config_path) and not force:
        answer = ask(f"{config_path} exists, overwrite it? [y/N]: ").strip().lower()
        if answer not in ("y", "yes"):
            print("Configuration left untouched.", file=sys.stderr)
            return config_path

    answers = SimpleNamespace(project="", board_id=None)
    answers.installation = prompt_choice(ask, "Installation", INSTALLATIONS, "cloud")
    answers.server = prompt(ask, "Jira server URL", validate=validate_server_url)
    if answers.installation == "cloud":
        answers.auth_type = "basic"
        answers.login = prompt(ask, "Login email", validate=validate_email)
    else:
        answers.auth_type = prompt_choice(ask, "Auth type", AUTH_TYPES, "basic")
        answers.login = prompt(ask, "Login")
    answers.insecure = prompt_choice(ask, "Skip TLS verification", ("no", "yes"), "no") == "yes"
    answers.timezone = prompt(ask, "Timezone", DEFAULT_TIMEZONE)
    answers.default_format = prompt_choice(ask, "Default format", OUTPUT_FORMATS, "table")

    token = os.getenv("JIRA_API_TOKEN") or ask_secret("API token (not stored): ")
    answers.api_key = token

    try:
        client = make_client(answers)
        user = check_connection(client)
    except (ConnectionFailed, JIRAError, RequestException) as err:
        print(f"Connection test failed, saving anyway: {err}", file=sys.stderr)
    else:
        print("Connected as", user.get("displayName"), file=sys.stderr)
        answers.project = pick_project(ask, client)
        if answers.project:
            answers.board_id = pick_board(ask, client, answers.project)

    if not force and (backup := create_config_backup(config_path)):
        print(f"Previous configuration saved to {backup}", file=sys.stderr)

    save_config(config_path, build_config(answers))
    print(f"Configuration written to {config_path}", file=sys.stderr)
    print("Export JIRA_API_TOKEN before running 'generate'.", file=sys.stderr)
    return config_path
