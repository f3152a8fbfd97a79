"""StatusChecker command-line interface.

Runs the recurring checker, performs one-off checks and validates
configuration files.
"""

import asyncio
import dataclasses
import sys
from typing import Optional, Sequence

import click
import yaml
from rich.console import Console
from rich.table import Table

from status_checker import __version__
from status_checker.config import CheckerConfig, ConfigError, load_config
from status_checker.core.coordinator import RunSummary, StatusChecker
from status_checker.core.signals import install_signal_handlers, remove_signal_handlers
from status_checker.health.probe import HttpProbe, ProbeResult
from status_checker.logging_setup import configure_logging
from status_checker.metrics.metrics_exporter import MetricsExporter
from status_checker.reliability.concurrency_limiter import ConcurrencyLimiter

console = Console()


def _resolve_config(config_path: Optional[str], endpoints: Sequence[str], **overrides) -> CheckerConfig:
    cfg = load_config(config_path) if config_path else CheckerConfig().validate()
    if endpoints:
        overrides["endpoints"] = list(endpoints)
    return cfg.with_overrides(**overrides)


def _fail(message: str) -> None:
    console.print(f"[bold red]Error: {message}[/bold red]")
    sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name='StatusChecker')
def cli():
    """StatusChecker CLI.

    Check a fixed set of endpoints for liveness, over and over, until stopped.
    """
    pass


@cli.command()
@click.option('--config', '-c', 'config_path', type=click.Path(), help='YAML configuration file')
@click.option('--endpoint', '-e', 'endpoints', multiple=True, help='Endpoint to check (repeatable)')
@click.option('--max-concurrency', type=int, help='Probes allowed in flight at once')
@click.option('--max-retries', type=int, help='Retries per round')
@click.option('--retry-interval', type=float, help='Seconds between retries')
@click.option('--cooldown', type=float, help='Seconds between rounds')
@click.option('--log-file', help='Log file, truncated at startup')
@click.option('--no-log-file', is_flag=True, help='Only log to the console')
@click.option('--log-level', type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False))
@click.option('--metrics-port', type=int, help='Serve Prometheus metrics on this port')
def run(config_path, endpoints, max_concurrency, max_retries, retry_interval, cooldown,
        log_file, no_log_file, log_level, metrics_port):
    """Check endpoints until SIGINT or SIGTERM, then drain and exit."""
    try:
        cfg = _resolve_config(
            config_path, endpoints,
            max_concurrency=max_concurrency,
            max_retries=max_retries,
            retry_interval=retry_interval,
            cooldown=cooldown,
            log_file=log_file,
            log_level=log_level,
            metrics_port=metrics_port,
        )
    except ConfigError as e:
        _fail(str(e))
    if no_log_file:
        cfg = dataclasses.replace(cfg, log_file=None)

    configure_logging(cfg.log_level, cfg.log_file)
    console.print(f"[bold green]Checking {len(cfg.endpoints)} endpoint(s). "
                  f"Press Ctrl+C to stop.[/bold green]")

    summary = asyncio.run(_run_checker(cfg))
    _print_summary(summary)


async def _run_checker(cfg: CheckerConfig) -> RunSummary:
    checker = StatusChecker(cfg)
    installed = install_signal_handlers(checker)
    exporter = None
    try:
        if cfg.metrics_port is not None:
            exporter = MetricsExporter(
                checker.metrics, host=cfg.metrics_host, port=cfg.metrics_port,
                state_getter=lambda: {"limiter": checker.limiter, "tracker": checker.tracker},
            )
            await exporter.start()
        return await checker.run()
    finally:
        if exporter is not None:
            await exporter.stop()
        remove_signal_handlers(installed)


def _print_summary(summary: RunSummary) -> None:
    table = Table(title="Run Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    for field in dataclasses.fields(summary):
        table.add_row(field.name.replace("_", " ").capitalize(), str(getattr(summary, field.name)))
    console.print(table)


@cli.command()
@click.option('--config', '-c', 'config_path', type=click.Path(), help='YAML configuration file')
@click.option('--endpoint', '-e', 'endpoints', multiple=True, help='Endpoint to check (repeatable)')
@click.option('--timeout', '-t', type=float, help='Request timeout in seconds')
def check(config_path, endpoints, timeout):
    """Probe every endpoint once and report the results."""
    try:
        cfg = _resolve_config(config_path, endpoints, request_timeout=timeout)
    except ConfigError as e:
        _fail(str(e))

    configure_logging("WARNING", None)
    results = asyncio.run(_check_once(cfg))

    table = Table(title="Endpoint Status")
    table.add_column("Endpoint", style="cyan")
    table.add_column("Result")
    table.add_column("Detail", style="white")
    table.add_column("Time", style="magenta")
    for result in results:
        if result.ok:
            table.add_row(result.endpoint, "[green]✓ Up[/green]", str(result.status_code),
                          f"{result.response_time:.3f}s")
        else:
            table.add_row(result.endpoint, "[red]✗ Down[/red]", result.error or "",
                          f"{result.response_time:.3f}s")
    console.print(table)

    if not all(r.ok for r in results):
        sys.exit(1)


async def _check_once(cfg: CheckerConfig, probe=None) -> list:
    limiter = ConcurrencyLimiter(cfg.max_concurrency)
    owned = None
    if probe is None:
        owned = probe = HttpProbe(timeout=cfg.request_timeout)

    async def _one(endpoint: str) -> ProbeResult:
        async with limiter:
            return await probe.check(endpoint)

    try:
        return await asyncio.gather(*(_one(e) for e in cfg.endpoints))
    finally:
        if owned is not None:
            await owned.close()


@cli.group()
def config():
    """Manage configuration."""
    pass


@config.command('validate')
@click.argument('config_file', default='status_checker.yml')
def validate_config(config_file):
    """Validate a configuration file."""
    console.print(f"[bold blue]Validating configuration: {config_file}[/bold blue]")
    try:
        cfg = load_config(config_file)
    except ConfigError as e:
        console.print(f"[bold red]✗ {e}[/bold red]")
        sys.exit(1)
    console.print(f"[bold green]✓ Configuration is valid ({len(cfg.endpoints)} endpoint(s))[/bold green]")


@config.command('show')
@click.argument('config_file', required=False)
def show_config(config_file):
    """Print the effective configuration as YAML."""
    try:
        cfg = load_config(config_file) if config_file else CheckerConfig().validate()
    except ConfigError as e:
        _fail(str(e))
    console.print(yaml.safe_dump(cfg.to_dict(), sort_keys=False), markup=False)


if __name__ == '__main__':
    cli()
