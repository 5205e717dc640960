# pyright: reportUnusedCallResult=false
# ruff: noqa: TC003  # Path needed at runtime for cyclopts parameter parsing
"""KGB CLI commands."""

import re
from functools import partial
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import anyio
import pendulum
from cyclopts import Parameter
from rich.table import Table

from kgb.derived_data import has_access, scan_and_extract
from kgb.exceptions import CommandNotFoundError, PersistenceError, WatchRootError
from kgb.extraction import CommandExtractor
from kgb.monitor import Monitor
from kgb.report import compose_body, compose_subject, mailto_url
from kgb.store import CanonicalCommand, CommandStore, load_commands, save_commands
from kgb.utils import ProcessToolRunner, abbreviate_home

from ._context import CLIContext
from ._shared import (
    ExitCode,
    exit_with_error,
    find_command,
    get_console,
    short_id,
)

if TYPE_CHECKING:
    from cyclopts import App

    from kgb.config import Config

_DATE_STAMP_PATTERN = re.compile(r"\d{4}\.\d{2}\.\d{2}")


def _load_store(config: "Config") -> tuple[CommandStore, Path]:  # noqa: UP037
    path = config.commands_file
    try:
        return CommandStore(load_commands(path)), path
    except PersistenceError as e:
        exit_with_error(f"Cannot load {abbreviate_home(path)}: {e}")


def _save_store(store: CommandStore, path: Path) -> None:
    try:
        save_commands(path, store.commands)
    except PersistenceError as e:
        exit_with_error(f"Cannot save {abbreviate_home(path)}: {e}")


def _find_or_exit(store: CommandStore, command_id: str) -> CanonicalCommand:
    try:
        return find_command(store.commands, command_id)
    except CommandNotFoundError as e:
        exit_with_error(str(e.args[0]), ExitCode.NOT_FOUND)


def _destination(command: CanonicalCommand) -> str:
    return f"{command.platform}, {command.device_name}, {command.os_version}"


def watch(
    *,
    root: Annotated[
        Path | None, Parameter(help="DerivedData directory to watch")
    ] = None,
    no_backfill: Annotated[
        bool,
        Parameter(
            name="--no-backfill",
            negative="",
            help="Skip picking up today's result bundles at startup",
        ),
    ] = False,
) -> None:
    """Watch DerivedData and record every build and test run until Ctrl-C."""
    ctx = CLIContext.get_current()
    watch_overrides: dict[str, object] = {}
    if root is not None:
        watch_overrides["root"] = str(root)
    if no_backfill:
        watch_overrides["backfill"] = False
    config = ctx.config.model_copy(
        update={"watch": ctx.config.watch.model_copy(update=watch_overrides)}
    )

    monitor = Monitor(config, logger=ctx.logger)
    console = get_console()
    console.print(
        f"Watching [bold]{abbreviate_home(monitor.root)}[/bold] (Ctrl-C to stop)"
    )

    try:
        anyio.run(monitor.run)
    except WatchRootError as e:
        exit_with_error(str(e), ExitCode.ROOT_INACCESSIBLE)
    except PersistenceError as e:
        exit_with_error(str(e))


def scan(
    *,
    root: Annotated[
        Path | None, Parameter(help="DerivedData directory to scan")
    ] = None,
    date: Annotated[
        str | None, Parameter(help="Day to scan, as YYYY.MM.DD (default: today)")
    ] = None,
) -> None:
    """Extract commands from one day's result bundles, once."""
    ctx = CLIContext.get_current()
    config = ctx.config

    if date is not None and not _DATE_STAMP_PATTERN.fullmatch(date):
        exit_with_error(f"Invalid date '{date}', expected YYYY.MM.DD")

    target = root.expanduser() if root is not None else config.watch_root
    if not has_access(target):
        exit_with_error(
            f"Cannot access {abbreviate_home(target)}",
            ExitCode.ROOT_INACCESSIBLE,
        )

    store, path = _load_store(config)
    extractor = CommandExtractor(
        ProcessToolRunner(timeout=config.tools.timeout),
        result_tool=config.tools.result_tool,
    )
    commands = anyio.run(
        partial(
            scan_and_extract,
            target,
            extractor,
            date_stamp=date,
            logger=ctx.logger,
        )
    )

    for command in commands:
        store.add(command)
    if commands:
        _save_store(store, path)

    get_console().print(
        f"Extracted {len(commands)} command(s) from {abbreviate_home(target)}"
    )


def list_commands() -> None:
    """List recorded commands grouped by project."""
    store, _ = _load_store(CLIContext.get_current().config)
    console = get_console()

    groups = store.grouped_by_project()
    if not groups:
        console.print("No commands recorded yet.")
        return

    for group in groups:
        table = Table(title=group.project_name, title_justify="left")
        table.add_column("ID", style="cyan", no_wrap=True)
        table.add_column("Scheme")
        table.add_column("Action")
        table.add_column("Destination")
        table.add_column("Resolved", no_wrap=True)
        table.add_column("Bug", justify="center")

        for command in group.commands:
            resolved = pendulum.instance(command.timestamp).in_tz("local")
            table.add_row(
                short_id(command),
                command.scheme,
                command.action.value,
                _destination(command),
                resolved.format("YYYY-MM-DD HH:mm"),
                "[red]flagged[/red]" if command.is_flagged_as_bug else "",
            )

        console.print(table)

    if store.pending_bug_report is not None:
        console.print("A bug report is ready: run [bold]kgb report[/bold]")


def show(command_id: str, /) -> None:
    """Print the xcodebuild invocation for a command"""
    store, _ = _load_store(CLIContext.get_current().config)
    command = _find_or_exit(store, command_id)
    get_console().print(
        command.command_string, markup=False, highlight=False, soft_wrap=True
    )


def flag(command_id: str, /) -> None:
    """Mark a command as a broken run"""
    store, path = _load_store(CLIContext.get_current().config)
    command = _find_or_exit(store, command_id)
    store.flag(command.id)
    _save_store(store, path)

    console = get_console()
    console.print(f"Flagged {short_id(command)} ({command.scheme} {command.action})")
    if store.pending_bug_report is not None:
        console.print("A bug report is ready: run [bold]kgb report[/bold]")


def unflag(command_id: str, /) -> None:
    """Clear the broken-run mark on a command"""
    store, path = _load_store(CLIContext.get_current().config)
    command = _find_or_exit(store, command_id)
    store.unflag(command.id)
    _save_store(store, path)
    get_console().print(f"Unflagged {short_id(command)}")


def remove(command_id: str, /) -> None:
    """Remove a command from the list"""
    store, path = _load_store(CLIContext.get_current().config)
    command = _find_or_exit(store, command_id)
    store.remove(command.id)
    _save_store(store, path)
    get_console().print(f"Removed {short_id(command)}")


def report() -> None:
    """Print the bug report for a flagged run and its later working run."""
    store, _ = _load_store(CLIContext.get_current().config)
    bug_report = store.pending_bug_report
    if bug_report is None:
        exit_with_error(
            "No bug report: flag a broken run, then record a working run of it",
            ExitCode.NOT_FOUND,
        )

    console = get_console()
    console.print(
        f"Subject: {compose_subject(bug_report)}", markup=False, highlight=False
    )
    console.print()
    console.print(
        compose_body(bug_report), markup=False, highlight=False, soft_wrap=True
    )
    console.print()
    console.print(mailto_url(bug_report), markup=False, highlight=False, soft_wrap=True)


def register_commands(app: "App") -> None:  # noqa: UP037
    """Register all KGB commands on an app."""
    app.command(watch, name="watch")
    app.command(scan, name="scan")
    app.command(list_commands, name="list")
    app.command(show, name="show")
    app.command(flag, name="flag")
    app.command(unflag, name="unflag")
    app.command(remove, name="remove")
    app.command(report, name="report")
