"""Main CLI application."""

import logging
import sys
from collections.abc import Sequence
from enum import Enum
from pathlib import Path
from typing import NoReturn, Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from time_tracker import __version__
from time_tracker.cli.config_commands import config
from time_tracker.core.config import ConfigManager
from time_tracker.core.errors import ArgumentCountError, SetupError, TrackerError
from time_tracker.core.models import RateKind
from time_tracker.core.parsing import format_duration, parse_int
from time_tracker.core.storage import DEFAULT_DB_NAME, StorageManager
from time_tracker.core.tracker import TimeTracker

console = Console()
error_console = Console(stderr=True)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

USAGE = """
time_tracker - a tool for tracking time spent on various activities

usage: time_tracker {command} {arguments...}

commands:
    - add: {duration} {description}
    - total: {month} {year}
    - total_money: {month} {year}
    - set_tax: {rate}
    - set_wage: {rate}
    - log: {month} {year}
    - rates
    - init
    - config: show | get {key} | set {key} {value} | reset
"""

# Positional arguments are passed through untouched so that words such as
# "-v" or "--help" can appear in an entry description.
PASSTHROUGH = {"ignore_unknown_options": True, "help_option_names": []}


class Command(str, Enum):
    """Commands understood by the dispatcher."""

    INIT = "init"
    ADD = "add"
    TOTAL = "total"
    TOTAL_MONEY = "total_money"
    SET_TAX = "set_tax"
    SET_WAGE = "set_wage"
    LOG = "log"
    RATES = "rates"
    CONFIG = "config"


def setup_logging(level: str) -> None:
    """Send package log records to stderr at the given level."""
    package_logger = logging.getLogger("time_tracker")
    package_logger.setLevel(getattr(logging, level, logging.WARNING))

    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    package_logger.addHandler(handler)


def fail(message: str, error: Exception) -> NoReturn:
    """Report a failed command and exit."""
    error_console.print(
        f"[red]Error:[/red] {escape(message)}: {escape(str(error))}", soft_wrap=True
    )
    sys.exit(1)


def expect_args(args: Sequence[str], count: int) -> None:
    """Raise ArgumentCountError unless exactly ``count`` arguments were given."""
    if len(args) != count:
        raise ArgumentCountError(str(count), len(args))


def parse_month_year(args: Sequence[str]) -> tuple[int, int]:
    """Parse the ``{month} {year}`` argument pair."""
    expect_args(args, 2)
    return parse_int(args[0], "month"), parse_int(args[1], "year")


def get_tracker(ctx: click.Context) -> TimeTracker:
    """TimeTracker created by the group for this invocation."""
    tracker: TimeTracker = ctx.obj["tracker"]
    return tracker


@click.group(invoke_without_command=True)
@click.version_option(version=__version__)
@click.option("--data-dir", help="Custom data directory", type=click.Path(file_okay=False))
@click.pass_context
def cli(ctx: click.Context, data_dir: Optional[str]) -> None:
    """Time Tracker - record work intervals and sum them up per month.

    Tracked time can be converted to money using a wage and a tax rate.
    """
    if ctx.invoked_subcommand is None:
        console.print(USAGE, markup=False, highlight=False)
        ctx.exit(2)

    ctx.ensure_object(dict)

    try:
        if data_dir:
            config_mgr = ConfigManager(Path(data_dir) / "config.yml")
            storage_dir = Path(data_dir)
        else:
            config_mgr = ConfigManager()
            storage_dir = config_mgr.data_dir
    except (SetupError, ValueError, OSError) as e:
        error_console.print(f"Could not setup program: {escape(str(e))}", soft_wrap=True)
        sys.exit(1)

    setup_logging(config_mgr.get("advanced.log_level", "WARNING"))

    storage = ctx.with_resource(
        StorageManager(storage_dir, config_mgr.get("general.db_name", DEFAULT_DB_NAME))
    )
    ctx.obj["config"] = config_mgr
    ctx.obj["tracker"] = TimeTracker(
        storage, month_window=config_mgr.get("report.month_window")
    )


@cli.command(Command.INIT.value)
@click.pass_context
def init(ctx: click.Context) -> None:
    """Create the database.

    Example:
        time_tracker init
    """
    try:
        get_tracker(ctx).initialize()
    except TrackerError as e:
        fail("Could not initialize database", e)

    console.print("Successfully initialized database")


@cli.command(Command.ADD.value, context_settings=PASSTHROUGH)
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def add(ctx: click.Context, args: tuple[str, ...]) -> None:
    """Add an entry that ended just now.

    The duration is a number followed by h, m or s.

    Example:
        time_tracker add 1.5h Writing documentation
        time_tracker add 20m
    """
    try:
        if not args:
            raise ArgumentCountError("at least 1", 0)
        get_tracker(ctx).add(args[0], args[1:])
    except TrackerError as e:
        fail("Could not add a new entry", e)

    console.print("Successfully added entry")


@cli.command(Command.TOTAL.value, context_settings=PASSTHROUGH)
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def total(ctx: click.Context, args: tuple[str, ...]) -> None:
    """Show tracked time for a month.

    Example:
        time_tracker total 11 2025
    """
    try:
        month, year = parse_month_year(args)
        duration = get_tracker(ctx).total(month, year)
    except TrackerError as e:
        fail("Could not get total", e)

    console.print(f"Total: {format_duration(duration)}", markup=False, highlight=False)


@cli.command(Command.TOTAL_MONEY.value, context_settings=PASSTHROUGH)
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def total_money(ctx: click.Context, args: tuple[str, ...]) -> None:
    """Show money earned in a month after tax.

    Computed as hours * wage * (1 - tax) with the current rates.

    Example:
        time_tracker total_money 11 2025
    """
    try:
        month, year = parse_month_year(args)
        money = get_tracker(ctx).total_money(month, year)
    except TrackerError as e:
        fail("Could not get total", e)

    currency = ctx.obj["config"].get("report.currency", "")
    console.print(f"Total: {money:f} {currency}".rstrip(), markup=False, highlight=False)


@cli.command(Command.SET_TAX.value, context_settings=PASSTHROUGH)
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def set_tax(ctx: click.Context, args: tuple[str, ...]) -> None:
    """Set the tax rate as a fraction.

    Example:
        time_tracker set_tax 0.15
    """
    try:
        expect_args(args, 1)
        rate = get_tracker(ctx).set_tax(args[0])
    except TrackerError as e:
        fail("Failed to set tax rate", e)

    console.print(f"Successfully set tax rate to: {rate:f}", markup=False, highlight=False)


@cli.command(Command.SET_WAGE.value, context_settings=PASSTHROUGH)
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def set_wage(ctx: click.Context, args: tuple[str, ...]) -> None:
    """Set the hourly wage.

    Example:
        time_tracker set_wage 250
    """
    try:
        expect_args(args, 1)
        rate = get_tracker(ctx).set_wage(args[0])
    except TrackerError as e:
        fail("Failed to set wage rate", e)

    console.print(f"Successfully set wage rate to: {rate:f}", markup=False, highlight=False)


@cli.command(Command.RATES.value)
@click.pass_context
def rates(ctx: click.Context) -> None:
    """Show the current wage and tax rates."""
    try:
        current = get_tracker(ctx).rates()
    except TrackerError as e:
        fail("Could not read rates", e)

    currency = ctx.obj["config"].get("report.currency", "")
    console.print(f"Wage: {current[RateKind.WAGE]:f} {currency}/h", markup=False, highlight=False)
    console.print(f"Tax: {current[RateKind.TAX]:f}", markup=False, highlight=False)


@cli.command(Command.LOG.value, context_settings=PASSTHROUGH)
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def log(ctx: click.Context, args: tuple[str, ...]) -> None:
    """List the entries counted for a month.

    Example:
        time_tracker log 11 2025
    """
    try:
        month, year = parse_month_year(args)
        entries = get_tracker(ctx).entries(month, year)
    except TrackerError as e:
        fail("Could not list entries", e)

    if not entries:
        console.print("[yellow]No entries found[/yellow]")
        return

    table = Table(title=f"Time Entries {month:02d}/{year} (showing {len(entries)})")
    table.add_column("ID", style="dim", justify="right")
    table.add_column("Start (UTC)", style="cyan")
    table.add_column("Duration", style="magenta")
    table.add_column("Description", style="bold")

    for entry in entries:
        table.add_row(
            str(entry.id),
            entry.start.strftime("%Y-%m-%d %H:%M:%S"),
            format_duration(entry.duration),
            Text(entry.description or "-"),
        )

    console.print(table)


cli.add_command(config, Command.CONFIG.value)


def main() -> None:
    """Console script entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
