#!/usr/bin/env python3
"""
Command line interface for backup-guard.

Lets operators check a backup path, see what a raw error message turns into
once sanitized, and preview how a rate limit behaves.
"""

import sys

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .__version__ import __version__
from .config import Config, get_config
from .exceptions import ConfigError
from .utils.error_sanitizer import sanitize_error
from .utils.logging_config import setup_logging
from .utils.path_validator import resolve_lexical, validate_backup_path
from .utils.rate_limiter import RateLimiter

console = Console()


class SimulatedClock:
    """Millisecond clock advanced by hand, used to replay a request sequence."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


def _load_config(config_path) -> Config:
    try:
        return get_config(config_path)
    except ConfigError as e:
        console.print(f"[red]❌ {escape(str(e))}[/red]")
        sys.exit(2)


@click.group()
@click.version_option(version=__version__, prog_name="backup-guard")
@click.option("-c", "--config", "config_path", type=click.Path(), help="Configuration file (YAML)")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    help="Log level (default: logging.level from the configuration)",
)
@click.option("--log-dir", type=click.Path(), help="Also write rotating and audit log files to this directory")
@click.pass_context
def cli(ctx, config_path, log_level, log_dir):
    """Security guards for backup paths, rate limits and error messages"""
    ctx.ensure_object(dict)
    cfg = _load_config(config_path)
    ctx.obj["config"] = cfg

    logging_section = cfg.logging_config
    setup_logging(
        log_dir=log_dir or logging_section["dir"],
        log_level=log_level or logging_section["level"],
        enable_file=log_dir is not None,
        enable_audit=log_dir is not None,
        log_format=logging_section["format"],
    )


@cli.command("check-path")
@click.argument("candidate")
@click.option("-b", "--base", help="Backup directory (default: backup.directory from the configuration)")
@click.option("-v", "--verbose", is_flag=True, help="Show the lexically resolved paths")
@click.pass_context
def check_path(ctx, candidate, base, verbose):
    """
    Check that CANDIDATE is a .db file inside the backup directory

    Example:
        backup-guard check-path /backup/2024-01-01.db -b /backup
    """
    if base is None:
        base = ctx.obj["config"].backup_directory

    if verbose:
        console.print(f"[cyan]Base:[/cyan] {escape(str(resolve_lexical(base)))}")
        console.print(f"[cyan]Candidate:[/cyan] {escape(str(resolve_lexical(candidate)))}")

    if validate_backup_path(base, candidate):
        console.print("[green]✓ Valid backup path[/green]")
        return

    console.print("[red]❌ Invalid backup path[/red]")
    sys.exit(1)


@cli.command()
@click.argument("message")
@click.option("--raw", is_flag=True, help="Treat MESSAGE as a thrown plain value, not an exception")
@click.pass_context
def sanitize(ctx, message, raw):
    """Show what an error MESSAGE becomes after sanitization"""
    config = ctx.obj["config"].sanitizer_config()
    value = message if raw else RuntimeError(message)
    # click.echo keeps brackets in pass-through messages away from rich markup
    click.echo(sanitize_error(value, config))


@cli.command("simulate-rate-limit")
@click.option("-n", "--max-requests", type=int, help="Requests allowed per window")
@click.option("-w", "--window-ms", type=int, help="Window length in milliseconds")
@click.option("-r", "--requests", "request_count", type=int, default=10, show_default=True,
              help="Number of requests to replay")
@click.option("-i", "--interval-ms", type=int, default=0, show_default=True,
              help="Simulated delay between requests")
@click.option("-l", "--limit", "limit_name", default="default", show_default=True,
              help="Configured rate limit used for missing -n/-w values")
@click.pass_context
def simulate_rate_limit(ctx, max_requests, window_ms, request_count, interval_ms, limit_name):
    """Replay a request sequence against a rate limiter"""
    if max_requests is None or window_ms is None:
        limits = ctx.obj["config"].rate_limits.get(limit_name)
        if limits is None:
            raise click.BadParameter(f"Unknown rate limit: {limit_name}", param_hint="--limit")
        max_requests = max_requests if max_requests is not None else limits["max_requests"]
        window_ms = window_ms if window_ms is not None else limits["window_ms"]

    clock = SimulatedClock()
    try:
        limiter = RateLimiter(max_requests, window_ms, clock=clock)
    except ValueError as e:
        raise click.BadParameter(str(e))

    table = Table(title=f"Rate limit: {max_requests} requests / {window_ms} ms")
    table.add_column("#", justify="right")
    table.add_column("t (ms)", justify="right")
    table.add_column("Result")
    table.add_column("Remaining", justify="right")
    table.add_column("Reset in (ms)", justify="right")

    accepted = 0
    for index in range(1, request_count + 1):
        allowed = limiter.can_make_request()
        accepted += allowed
        table.add_row(
            str(index),
            f"{clock.now:.0f}",
            "[green]accepted[/green]" if allowed else "[red]rejected[/red]",
            str(limiter.get_remaining_requests()),
            str(limiter.get_reset_time()),
        )
        clock.advance(interval_ms)

    console.print(table)
    console.print(f"{accepted}/{request_count} requests accepted")


@cli.command("show-config")
@click.pass_context
def show_config(ctx):
    """Display the effective configuration"""
    cfg = ctx.obj["config"]

    table = Table(title="Current configuration")
    table.add_column("Parameter", style="cyan")
    table.add_column("Value", style="green")

    table.add_section()
    table.add_row("[bold]BACKUP[/bold]", "")
    table.add_row("  directory", escape(cfg.backup_directory))

    table.add_section()
    table.add_row("[bold]RATE LIMITS[/bold]", "")
    for name, limits in cfg.rate_limits.items():
        table.add_row(f"  {escape(str(name))}", f"{limits['max_requests']} / {limits['window_ms']} ms")

    table.add_section()
    table.add_row("[bold]SANITIZER[/bold]", "")
    table.add_row("  max_message_length", str(cfg.get("sanitizer.max_message_length")))
    prefixes = cfg.get("sanitizer.safe_prefixes") or []
    table.add_row("  safe_prefixes", escape(", ".join(prefixes)) or "-")

    table.add_section()
    table.add_row("[bold]LOGGING[/bold]", "")
    for key, value in cfg.logging_config.items():
        table.add_row(f"  {key}", escape(str(value)))

    console.print(table)


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
