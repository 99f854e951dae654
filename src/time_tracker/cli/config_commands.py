"""CLI commands for configuration management."""

import json
import sys
from typing import Any

import click  # type: ignore[import-not-found]
import yaml  # type: ignore[import-untyped]
from rich.console import Console  # type: ignore[import-not-found]
from rich.markup import escape  # type: ignore[import-not-found]
from rich.table import Table  # type: ignore[import-not-found]

from time_tracker.core.config import ConfigManager

console = Console()
error_console = Console(stderr=True)


def get_config(ctx: click.Context) -> ConfigManager:
    """ConfigManager loaded by the top-level group."""
    config_mgr: ConfigManager = ctx.obj["config"]
    return config_mgr


@click.group()  # type: ignore[misc]
def config() -> None:
    """Manage Time Tracker configuration.

    Configuration is stored in ~/.config/time_tracker/config.yml
    """


@config.command("show")  # type: ignore[misc]
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def config_show(ctx: click.Context, as_json: bool) -> None:
    """Show all configuration settings.

    Example:
        time_tracker config show
        time_tracker config show --json
    """
    config_mgr = get_config(ctx)

    if as_json:
        click.echo(json.dumps(config_mgr.to_dict(), indent=2, ensure_ascii=False))
        return

    table = Table(title="Time Tracker Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    for key in config_mgr.get_all_keys():
        table.add_row(key, escape(str(config_mgr.get(key))))

    console.print(table)
    console.print(f"\nConfig file: {config_mgr.config_path}", markup=False)


@config.command("get")  # type: ignore[misc]
@click.argument("key")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def config_get(ctx: click.Context, key: str) -> None:
    """Get a specific configuration value.

    Example:
        time_tracker config get report.currency
    """
    value = get_config(ctx).get(key)

    if value is None:
        error_console.print(f"[red]Error:[/red] Configuration key '{escape(key)}' not found")
        sys.exit(1)

    if isinstance(value, dict):
        click.echo(json.dumps(value, indent=2, ensure_ascii=False))
    else:
        click.echo(str(value))


@config.command("set")  # type: ignore[misc]
@click.argument("key")  # type: ignore[misc]
@click.argument("value")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def config_set(ctx: click.Context, key: str, value: str) -> None:
    """Set a configuration value.

    The value is read as a YAML scalar, so numbers and booleans keep
    their type.

    Example:
        time_tracker config set report.month_window calendar
        time_tracker config set report.currency EUR
    """
    config_mgr = get_config(ctx)

    try:
        converted_value: Any = yaml.safe_load(value)
    except yaml.YAMLError:
        converted_value = value

    try:
        config_mgr.set(key, converted_value)
    except ValueError as e:
        error_console.print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(1)

    console.print(f"[green]✓[/green] Set {escape(key)} = {escape(str(converted_value))}")


@config.command("reset")  # type: ignore[misc]
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def config_reset(ctx: click.Context, yes: bool) -> None:
    """Reset configuration to defaults.

    Example:
        time_tracker config reset --yes
    """
    config_mgr = get_config(ctx)

    if not yes:
        console.print("[yellow]Warning:[/yellow] This will reset all configuration to defaults.")
        if not click.confirm("Continue?"):
            console.print("Cancelled")
            return

    config_mgr.reset()
    console.print("[green]✓[/green] Configuration reset to defaults")
    console.print(f"Config file: {config_mgr.config_path}", markup=False)
