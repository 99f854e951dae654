"""Tests for CLI commands."""

import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest  # type: ignore[import-not-found]
import yaml  # type: ignore[import-untyped]
from click.testing import CliRunner  # type: ignore[import-not-found]

from time_tracker.cli.main import Command, cli
from time_tracker.core.models import RateKind, TimeEntry
from time_tracker.core.storage import StorageManager

UTC = timezone.utc


@pytest.fixture  # type: ignore[misc]
def runner() -> CliRunner:
    """Create CLI test runner."""
    return CliRunner()


@pytest.fixture  # type: ignore[misc]
def temp_dir() -> Path:
    """Create temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture  # type: ignore[misc]
def invoke(runner: CliRunner, temp_dir: Path):
    """Invoke the CLI against the temporary data directory."""

    def run(*args: str):
        return runner.invoke(cli, ["--data-dir", str(temp_dir), *args])

    return run


@pytest.fixture  # type: ignore[misc]
def initialized(invoke, temp_dir: Path) -> Path:
    """Initialize the database and return the data directory."""
    result = invoke("init")
    assert result.exit_code == 0
    return temp_dir


def save_entry(data_dir: Path, start: datetime, duration: timedelta, description: str = "") -> None:
    """Insert an entry with a fixed start time."""
    with StorageManager(data_dir) as storage:
        storage.save_entry(TimeEntry(start=start, duration=duration, description=description))


def read_rate(data_dir: Path, kind: RateKind) -> float:
    """Read a rate straight from the store."""
    with StorageManager(data_dir) as storage:
        return storage.get_rate(kind)


class TestDispatcher:
    """Test command dispatch."""

    def test_version(self, runner: CliRunner) -> None:
        """Test --version flag."""
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_missing_command_prints_usage(self, runner: CliRunner) -> None:
        """Test that no command prints usage and exits non-zero."""
        result = runner.invoke(cli, [])

        assert result.exit_code == 2
        assert "usage: time_tracker {command} {arguments...}" in result.output

    def test_unknown_command(self, invoke) -> None:
        """Test that unknown commands are usage errors."""
        result = invoke("frobnicate")

        assert result.exit_code == 2
        assert "No such command" in result.output

    def test_every_command_registered(self) -> None:
        """Test that each Command member has a handler."""
        assert set(cli.commands) == {command.value for command in Command}

    def test_invalid_config_is_setup_error(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test that a broken config stops before any command runs."""
        with open(temp_dir / "config.yml", "w") as f:
            yaml.dump({"version": "1.0", "advanced": {"log_level": "LOUD"}}, f)

        result = runner.invoke(cli, ["--data-dir", str(temp_dir), "init"])

        assert result.exit_code == 1
        assert "Could not setup program" in result.output
        assert not (temp_dir / "db.db").exists()


class TestInit:
    """Test init command."""

    def test_init(self, invoke, temp_dir: Path) -> None:
        """Test creating the database."""
        result = invoke("init")

        assert result.exit_code == 0
        assert "Successfully initialized database" in result.output
        assert (temp_dir / "db.db").exists()

    def test_init_twice(self, invoke, initialized: Path) -> None:
        """Test that init can be repeated."""
        result = invoke("init")

        assert result.exit_code == 0
        assert "Successfully initialized database" in result.output


class TestAdd:
    """Test add command."""

    def test_add(self, invoke, initialized: Path) -> None:
        """Test adding an entry."""
        result = invoke("add", "1.5h", "Writing", "documentation")

        assert result.exit_code == 0
        assert "Successfully added entry" in result.output

    def test_add_keeps_dash_words(self, invoke, initialized: Path) -> None:
        """Test that description words starting with a dash are kept."""
        result = invoke("add", "30m", "fix", "-v", "flag")

        assert result.exit_code == 0
        now = datetime.now(UTC)
        with StorageManager(initialized) as storage:
            entries = storage.load_entries(now - timedelta(days=1), now + timedelta(days=1))
        assert [e.description for e in entries] == ["fix -v flag"]

    def test_add_keeps_help_words(self, invoke, initialized: Path) -> None:
        """Test that --help in a description is stored, not treated as an option."""
        result = invoke("add", "1h", "read", "--help", "page")

        assert result.exit_code == 0
        assert "Successfully added entry" in result.output
        now = datetime.now(UTC)
        with StorageManager(initialized) as storage:
            entries = storage.load_entries(now - timedelta(days=1), now + timedelta(days=1))
        assert [e.description for e in entries] == ["read --help page"]

    @pytest.mark.parametrize("duration", ["3000000h", "1e300h", "1e8h", "1e12h"])  # type: ignore[misc]
    def test_add_too_large_duration(self, invoke, initialized: Path, duration: str) -> None:
        """Test that an oversized duration is reported and nothing is stored."""
        result = invoke("add", duration, "x")

        assert result.exit_code == 1
        assert "Could not add a new entry" in result.output
        assert "Duration is too large" in result.output
        now = datetime.now(UTC)
        with StorageManager(initialized) as storage:
            assert storage.load_entries(datetime(1, 1, 1, tzinfo=UTC), now + timedelta(days=1)) == []

    def test_add_without_arguments(self, invoke, initialized: Path) -> None:
        """Test that a missing duration is reported."""
        result = invoke("add")

        assert result.exit_code == 1
        assert "Could not add a new entry" in result.output
        assert "Invalid number of arguments" in result.output

    def test_add_invalid_unit(self, invoke, initialized: Path) -> None:
        """Test that an invalid unit is reported."""
        result = invoke("add", "2d", "holiday")

        assert result.exit_code == 1
        assert "Duration with invalid unit: 2d" in result.output

    def test_add_before_init(self, invoke) -> None:
        """Test that a missing schema is reported, not raised."""
        result = invoke("add", "1h")

        assert result.exit_code == 1
        assert "Could not add a new entry" in result.output
        assert "no such table" in result.output


class TestTotals:
    """Test total and total_money commands."""

    def test_total_empty(self, invoke, initialized: Path) -> None:
        """Test total with no entries."""
        result = invoke("total", "11", "2025")

        assert result.exit_code == 0
        assert "Total: 0s" in result.output

    def test_total(self, invoke, initialized: Path) -> None:
        """Test total over stored entries."""
        save_entry(initialized, datetime(2025, 11, 10, 9, 0, tzinfo=UTC), timedelta(hours=2))
        save_entry(initialized, datetime(2025, 11, 11, 9, 0, tzinfo=UTC), timedelta(minutes=15))

        result = invoke("total", "11", "2025")

        assert result.exit_code == 0
        assert "Total: 2h15m0s" in result.output

    def test_total_wrong_argument_count(self, invoke, initialized: Path) -> None:
        """Test that month and year are both required."""
        result = invoke("total", "11")

        assert result.exit_code == 1
        assert "Could not get total" in result.output

    def test_total_invalid_month(self, invoke, initialized: Path) -> None:
        """Test that non-integer arguments are reported."""
        result = invoke("total", "november", "2025")

        assert result.exit_code == 1
        assert "Failed to parse month" in result.output

    def test_total_money(self, invoke, initialized: Path) -> None:
        """Test 2h at 100/h with 50% tax."""
        invoke("set_wage", "100")
        invoke("set_tax", "0.5")
        save_entry(initialized, datetime(2025, 11, 10, 9, 0, tzinfo=UTC), timedelta(hours=2))

        result = invoke("total_money", "11", "2025")

        assert result.exit_code == 0
        assert "Total: 100.000000 Kč" in result.output

    def test_total_money_empty(self, invoke, initialized: Path) -> None:
        """Test total_money with no entries."""
        result = invoke("total_money", "1", "2030")

        assert result.exit_code == 0
        assert "Total: 0.000000" in result.output

    def test_total_money_custom_currency(self, invoke, initialized: Path) -> None:
        """Test that the currency comes from configuration."""
        invoke("config", "set", "report.currency", "EUR")

        result = invoke("total_money", "11", "2025")

        assert "Total: 0.000000 EUR" in result.output

    def test_calendar_window_from_config(self, invoke, initialized: Path) -> None:
        """Test that the configured window is used."""
        save_entry(initialized, datetime(2025, 10, 31, 9, 0, tzinfo=UTC), timedelta(hours=1))

        assert "Total: 0s" in invoke("total", "10", "2025").output

        invoke("config", "set", "report.month_window", "calendar")

        assert "Total: 1h0m0s" in invoke("total", "10", "2025").output


class TestRates:
    """Test set_tax and set_wage commands."""

    def test_set_tax(self, invoke, initialized: Path) -> None:
        """Test setting the tax rate."""
        result = invoke("set_tax", "0.21")

        assert result.exit_code == 0
        assert "Successfully set tax rate to: 0.210000" in result.output
        assert read_rate(initialized, RateKind.TAX) == 0.21

    def test_set_wage(self, invoke, initialized: Path) -> None:
        """Test setting the wage rate."""
        result = invoke("set_wage", "250")

        assert result.exit_code == 0
        assert "Successfully set wage rate to: 250.000000" in result.output
        assert read_rate(initialized, RateKind.WAGE) == 250.0

    @pytest.mark.parametrize("command", ["set_tax", "set_wage"])  # type: ignore[misc]
    @pytest.mark.parametrize("args", [(), ("1", "2")])  # type: ignore[misc]
    def test_wrong_argument_count_leaves_rate(
        self, invoke, initialized: Path, command: str, args: tuple[str, ...]
    ) -> None:
        """Test that zero or two arguments fail without touching the rate."""
        invoke(command, "0.3")

        result = invoke(command, *args)

        assert result.exit_code == 1
        assert "Invalid number of arguments" in result.output
        kind = RateKind.TAX if command == "set_tax" else RateKind.WAGE
        assert read_rate(initialized, kind) == 0.3

    def test_set_wage_invalid_number(self, invoke, initialized: Path) -> None:
        """Test that malformed numbers are reported."""
        result = invoke("set_wage", "lots")

        assert result.exit_code == 1
        assert "Failed to set wage rate" in result.output
        assert read_rate(initialized, RateKind.WAGE) == 0.0

    def test_rates(self, invoke, initialized: Path) -> None:
        """Test showing the current rates."""
        invoke("set_wage", "100")
        invoke("set_tax", "0.5")

        result = invoke("rates")

        assert result.exit_code == 0
        assert "Wage: 100.000000 Kč/h" in result.output
        assert "Tax: 0.500000" in result.output


class TestLog:
    """Test log command."""

    def test_log_empty(self, invoke, initialized: Path) -> None:
        """Test listing an empty month."""
        result = invoke("log", "11", "2025")

        assert result.exit_code == 0
        assert "No entries found" in result.output

    def test_log_lists_entries(self, invoke, initialized: Path) -> None:
        """Test listing entries in the window."""
        save_entry(initialized, datetime(2025, 11, 10, 9, 0, tzinfo=UTC), timedelta(hours=2), "review")
        save_entry(initialized, datetime(2025, 12, 10, 9, 0, tzinfo=UTC), timedelta(hours=1), "later")

        result = invoke("log", "11", "2025")

        assert result.exit_code == 0
        assert "review" in result.output
        assert "2h0m0s" in result.output
        assert "later" not in result.output


class TestConfigCommands:
    """Test config subcommands."""

    def test_config_get(self, invoke) -> None:
        """Test reading a value."""
        result = invoke("config", "get", "report.month_window")

        assert result.exit_code == 0
        assert result.output.strip() == "compat"

    def test_config_get_missing(self, invoke) -> None:
        """Test reading an unknown key."""
        result = invoke("config", "get", "no.such.key")

        assert result.exit_code == 1
        assert "not found" in result.output

    def test_config_set_invalid(self, invoke) -> None:
        """Test that invalid values are refused."""
        result = invoke("config", "set", "report.month_window", "weekly")

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output

    def test_config_show_json(self, invoke) -> None:
        """Test JSON output."""
        result = invoke("config", "show", "--json")

        assert result.exit_code == 0
        assert '"month_window": "compat"' in result.output

    def test_config_reset(self, invoke) -> None:
        """Test resetting without confirmation."""
        invoke("config", "set", "report.currency", "USD")

        result = invoke("config", "reset", "--yes")

        assert result.exit_code == 0
        assert invoke("config", "get", "report.currency").output.strip() == "Kč"
