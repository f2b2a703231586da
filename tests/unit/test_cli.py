"""
Tests for the backup-guard command line interface.
"""

import pytest
from click.testing import CliRunner

from backup_guard.__version__ import __version__
from backup_guard.cli import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "backup_guard.yaml"
    path.write_text(
        "backup:\n"
        "  directory: /srv/backups\n"
        "rate_limits:\n"
        "  export:\n"
        "    max_requests: 2\n"
        "    window_ms: 1000\n"
        "sanitizer:\n"
        "  safe_prefixes: ['Zorunlu']\n"
        "logging:\n"
        "  level: ERROR\n",
        encoding="utf-8",
    )
    return str(path)


class TestCheckPath:
    """Tests for the check-path command."""

    def test_valid_path(self, runner, config_file):
        """Test that a valid path exits with 0."""
        result = runner.invoke(cli, ["-c", config_file, "check-path", "/backup/a.db", "-b", "/backup"])
        assert result.exit_code == 0
        assert "Valid backup path" in result.output

    def test_traversal_rejected(self, runner, config_file):
        """Test that a traversal attempt exits with 1."""
        result = runner.invoke(cli, ["-c", config_file, "check-path", "/backup/../etc/x.db", "-b", "/backup"])
        assert result.exit_code == 1
        assert "Invalid backup path" in result.output

    def test_base_from_configuration(self, runner, config_file):
        """Test that the configured backup directory is the default base."""
        result = runner.invoke(cli, ["-c", config_file, "check-path", "/srv/backups/nightly.db"])
        assert result.exit_code == 0

        result = runner.invoke(cli, ["-c", config_file, "check-path", "/srv/other/nightly.db"])
        assert result.exit_code == 1

    def test_verbose_shows_resolution(self, runner, config_file):
        """Test that --verbose prints the resolved paths."""
        result = runner.invoke(
            cli, ["-c", config_file, "check-path", "/backup/sub/../../etc/x.db", "-b", "/backup", "-v"]
        )
        assert "/etc/x.db" in result.output
        assert result.exit_code == 1


class TestSanitize:
    """Tests for the sanitize command."""

    def test_database_error(self, runner, config_file):
        """Test that a database error becomes a code."""
        result = runner.invoke(cli, ["-c", config_file, "sanitize", "UNIQUE constraint failed: t.c"])
        assert result.exit_code == 0
        assert "error.db.uniqueConstraint" in result.output
        assert "t.c" not in result.output

    def test_structured_message(self, runner, config_file):
        """Test that bracketed messages become error.unexpected."""
        result = runner.invoke(cli, ["-c", config_file, "sanitize", "Error [at position 5]"])
        assert "error.unexpected" in result.output

    def test_safe_prefix_from_configuration(self, runner, config_file):
        """Test that configured safe prefixes are honoured."""
        result = runner.invoke(cli, ["-c", config_file, "sanitize", "Zorunlu alan (isim)"])
        assert "Zorunlu alan (isim)" in result.output

    def test_raw_value_passes_through(self, runner, config_file):
        """Test that --raw treats the message as a plain value."""
        result = runner.invoke(cli, ["-c", config_file, "sanitize", "--raw", "database is locked"])
        assert "database is locked" in result.output


class TestSimulateRateLimit:
    """Tests for the simulate-rate-limit command."""

    def test_explicit_limits(self, runner, config_file):
        """Test that only max_requests calls are accepted."""
        result = runner.invoke(cli, ["-c", config_file, "simulate-rate-limit", "-n", "2", "-w", "60000", "-r", "3"])
        assert result.exit_code == 0
        assert "2/3 requests accepted" in result.output
        assert "rejected" in result.output

    def test_interval_lets_window_slide(self, runner, config_file):
        """Test that spacing requests past the window accepts all of them."""
        result = runner.invoke(
            cli, ["-c", config_file, "simulate-rate-limit", "-n", "1", "-w", "1000", "-r", "4", "-i", "1000"]
        )
        assert "4/4 requests accepted" in result.output

    def test_named_limit_from_configuration(self, runner, config_file):
        """Test that --limit picks a configured rate limit."""
        result = runner.invoke(cli, ["-c", config_file, "simulate-rate-limit", "-l", "export", "-r", "5"])
        assert "2/5 requests accepted" in result.output

    def test_unknown_limit(self, runner, config_file):
        """Test that an unknown limit name is a usage error."""
        result = runner.invoke(cli, ["-c", config_file, "simulate-rate-limit", "-l", "nope"])
        assert result.exit_code == 2

    def test_invalid_limits(self, runner, config_file):
        """Test that non-positive limits are a usage error."""
        result = runner.invoke(cli, ["-c", config_file, "simulate-rate-limit", "-n", "0", "-w", "1000"])
        assert result.exit_code == 2


class TestShowConfig:
    """Tests for show-config and global options."""

    def test_show_config(self, runner, config_file):
        """Test that the effective configuration is displayed."""
        result = runner.invoke(cli, ["-c", config_file, "show-config"])
        assert result.exit_code == 0
        assert "/srv/backups" in result.output
        assert "export" in result.output
        assert "exchange_rate" in result.output

    def test_invalid_configuration(self, runner, tmp_path):
        """Test that an invalid configuration exits with 2."""
        bad = tmp_path / "bad.yaml"
        bad.write_text("rate_limits:\n  default:\n    max_requests: 0\n", encoding="utf-8")

        result = runner.invoke(cli, ["-c", str(bad), "show-config"])
        assert result.exit_code == 2
        assert "max_requests" in result.output

    def test_version(self, runner):
        """Test that --version prints the package version."""
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_show_config_with_bracketed_values(self, runner, tmp_path):
        """Test that brackets in configured values are printed literally."""
        path = tmp_path / "brackets.yaml"
        path.write_text(
            "backup:\n"
            "  directory: '/srv/[red]backups'\n"
            "sanitizer:\n"
            "  safe_prefixes: ['[bold]Zorunlu']\n",
            encoding="utf-8",
        )

        result = runner.invoke(cli, ["-c", str(path), "--log-level", "ERROR", "show-config"])
        assert result.exit_code == 0
        assert "/srv/[red]backups" in result.output
        assert "[bold]Zorunlu" in result.output
