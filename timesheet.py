#!/usr/bin/env python3
import logging
import sys
from argparse import ArgumentParser, Namespace
from types import SimpleNamespace

from jira.exceptions import JIRAError

from jira_timesheet.dates import DateFormatError
from jira_timesheet.generic import (
    ConfigError,
    ConnectionFailed,
    connect,
    get_config_path,
    get_project,
    get_timezone,
    get_worklogs,
    load_config,
    write_report,
)
from jira_timesheet.query import QueryError, normalize_bounds
from jira_timesheet.reports import render_report, write_xlsx
from jira_timesheet.wizard import run_init

FORMATS = ("table", "csv", "markdown", "json", "xlsx")


def output_format(value: str) -> str:
    return value.lower()


def generate(args: Namespace, config: SimpleNamespace) -> int:
    project = get_project(args.project, config)
    timezone = get_timezone(config)
    fmt = args.format or getattr(config.timesheet, "default_format", None) or "table"
    fmt = fmt.lower()
    if fmt not in FORMATS:
        raise ConfigError(f"Unsupported output format: {fmt}")
    if fmt == "xlsx" and not args.output:
        raise ConfigError("The xlsx format needs an output file, use -o/--output")
    start, end = normalize_bounds(args.start, args.end)

    print(f"Generating timesheet for project {project}", file=sys.stderr)
    client, _ = connect(config)
    entries = get_worklogs(client, project, args.user, start, end)

    ## Render and deliver
    if fmt == "xlsx":
        write_xlsx(entries, args.output, timezone)
        print(f"Saved {len(entries)} worklogs to '{args.output}'", file=sys.stderr)
        return 0

    color = not args.no_color and not args.output and sys.stdout.isatty()
    report = render_report(entries, fmt, timezone, color=color)
    if args.output:
        write_report(args.output, report)
        print(f"{fmt.capitalize()} exported to: {args.output}", file=sys.stderr)
    else:
        print(report)
    return 0


def show_config(args: Namespace, config: SimpleNamespace) -> int:
    jira = config.jira
    project = config.project
    project_key = project if isinstance(project, str) else getattr(project, "key", None)

    print("Current configuration:")
    print(f"Server: {getattr(jira, 'server', 'Not set')}")
    print(f"Login: {getattr(jira, 'login', 'Not set')}")
    print(f"Project: {project_key or 'Not set'}")
    print(f"Installation: {getattr(jira, 'installation', 'Not set')}")
    print(f"Auth Type: {getattr(jira, 'auth_type', 'basic')}")
    print(f"Timezone: {get_timezone(config) or 'Not set'}")
    print("API Token: Set")
    print(f"Config Path: {config.path}")
    return 0


def connection_test(args: Namespace, config: SimpleNamespace) -> int:
    _, user = connect(config)
    print(f"Connected as: {user.get('displayName')} ({user.get('emailAddress')})")
    return 0


def init(args: Namespace) -> int:
    run_init(get_config_path(args.config), force=args.force)
    return 0


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(
        prog="jira-timesheet",
        description="Generate timesheets from Jira worklogs",
    )
    parser.add_argument("-c", "--config", type=str, help="Path of the TOML config file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Print debug logs")
    commands = parser.add_subparsers(dest="command")

    gen = commands.add_parser("generate", aliases=["gen"], help="Generate a timesheet")
    gen.add_argument("-p", "--project", type=str, help="Jira project key (e.g. SB)")
    gen.add_argument("-s", "--start", type=str, help="Start date, DD.MM.YYYY or YYYY-MM-DD")
    gen.add_argument("-e", "--end", type=str, help="End date, DD.MM.YYYY or YYYY-MM-DD")
    gen.add_argument(
        "-u",
        "--user",
        action="append",
        help="Filter by user email, can be given multiple times",
    )
    gen.add_argument("-f", "--format", type=output_format, choices=FORMATS)
    gen.add_argument("-o", "--output", type=str, help="Write the report to this file")
    gen.add_argument("--no-color", action="store_true", help="Plain ASCII table output")
    gen.set_defaults(handler=generate)

    cfg = commands.add_parser("config", help="Show the current configuration")
    cfg.set_defaults(handler=show_config)

    tst = commands.add_parser("test", help="Test the connection to Jira")
    tst.set_defaults(handler=connection_test)

    ini = commands.add_parser("init", help="Create the configuration interactively")
    ini.add_argument("--force", action="store_true", help="Overwrite without asking or backup")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        return 1

    try:
        if args.command == "init":
            return init(args)
        config = load_config(args.config)
        return args.handler(args, config)
    except (DateFormatError, QueryError, ConfigError, ConnectionFailed, JIRAError) as err:
        print(f"Error: {err}", file=sys.stderr)
        return 1


def run():
    raise SystemExit(main())


if __name__ == "__main__":
    run()
