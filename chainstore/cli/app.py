"""
chainstore CLI application - built with Click.

Both commands build a RedisService from the environment, run against it and
always disconnect before exiting. A non-zero exit status means Redis is not
usable.
"""

import asyncio
import json
import sys

import click
from rich.console import Console
from rich.table import Table

from chainstore import __version__
from chainstore.core.env import EnvManager
from chainstore.monitoring.logging import setup_logging_from_env
from chainstore.store.config import RedisConfig
from chainstore.store.errors import StoreError
from chainstore.store.health import HealthStatus, RedisHealthStatus
from chainstore.store.service import create_redis_service
from chainstore.store.validation import STAGES, RedisValidator, ValidationReport

console = Console()


class OrderedGroup(click.Group):
    """Click Group that lists commands in the order they were added."""

    def list_commands(self, ctx):
        return list(self.commands.keys())


@click.group(cls=OrderedGroup)
@click.version_option(version=__version__, prog_name="chainstore")
@click.option(
    "--env-file",
    type=click.Path(dir_okay=False),
    default=None,
    help="Load variables from this file instead of ./.env",
)
@click.pass_context
def cli(ctx, env_file: str | None):
    """
    chainstore - Redis diagnostics.

    \b
    Commands:
      health     Ping Redis and report memory and client usage
      validate   Exercise every operation family end to end
    """
    env = EnvManager(auto_load=False)
    env.load(env_file)
    setup_logging_from_env(env)
    ctx.obj = {"config": RedisConfig.from_env(env)}


# ============================================================================
# chainstore health
# ============================================================================


@click.command(name="health")
@click.option("--json", "as_json", is_flag=True, help="Print the report as JSON")
@click.pass_context
def health_cmd(ctx, as_json: bool):
    """Check Redis connectivity and resource usage."""
    config: RedisConfig = ctx.obj["config"]
    report = asyncio.run(_check_health(config))

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
    else:
        _display_health(config, report)

    sys.exit(0 if report.is_healthy else 1)


async def _check_health(config: RedisConfig) -> RedisHealthStatus:
    service = create_redis_service(config)
    try:
        await service.connect()
    except StoreError as e:
        return RedisHealthStatus(status=HealthStatus.UNHEALTHY, error=str(e))

    try:
        return await service.get_health()
    finally:
        await service.disconnect()


def _display_health(config: RedisConfig, report: RedisHealthStatus) -> None:
    table = Table(title=f"Redis Health ({config.address})")
    table.add_column("Check", style="cyan")
    table.add_column("Value")

    if report.is_healthy:
        table.add_row("Status", "[green]● healthy[/green]")
    else:
        table.add_row("Status", "[red]○ unhealthy[/red]")
    if report.response_time_ms is not None:
        table.add_row("Response time", f"{report.response_time_ms:.2f} ms")
    if report.error:
        table.add_row("Error", f"[red]{report.error}[/red]")
    if report.memory:
        table.add_row(
            "Memory",
            f"{report.memory.used} / {report.memory.max or 'unlimited'} "
            f"({report.memory.percentage:.2f}%)",
        )
    if report.connections:
        table.add_row(
            "Clients", f"{report.connections.connected} / {report.connections.max}"
        )

    console.print(table)


# ============================================================================
# chainstore validate
# ============================================================================


@click.command(name="validate")
@click.option(
    "--iterations",
    type=click.IntRange(min=1),
    default=100,
    show_default=True,
    help="Set/get/delete cycles in the performance check",
)
@click.option(
    "--threshold",
    type=click.FloatRange(min=0, min_open=True),
    default=10.0,
    show_default=True,
    help="Maximum average latency per operation (ms)",
)
@click.pass_context
def validate_cmd(ctx, iterations: int, threshold: float):
    """Validate the Redis setup end to end."""
    config: RedisConfig = ctx.obj["config"]
    click.echo(f"Validating Redis at {config.address}...")

    report = asyncio.run(_run_validation(config, iterations, threshold))
    _display_validation(report)

    sys.exit(0 if report.success else 1)


async def _run_validation(config: RedisConfig, iterations: int, threshold: float) -> ValidationReport:
    service = create_redis_service(config)
    validator = RedisValidator(service, iterations=iterations, latency_threshold_ms=threshold)
    try:
        return await validator.validate_full_setup()
    finally:
        if service.is_connected():
            await service.disconnect()


def _display_validation(report: ValidationReport) -> None:
    table = Table(title="Redis Validation")
    table.add_column("Stage", style="cyan")
    table.add_column("Result")

    failed = False
    for stage in STAGES:
        if report.details.get(stage):
            table.add_row(stage, "[green]✓ passed[/green]")
        elif not failed:
            table.add_row(stage, "[red]✗ failed[/red]")
            failed = True
        else:
            table.add_row(stage, "[dim]- skipped[/dim]")

    console.print(table)
    if "error" in report.details:
        console.print(f"[red]Error:[/red] {report.details['error']}")
    if report.success:
        console.print("[bold green]Redis infrastructure is ready[/bold green]")
    else:
        console.print("[bold red]Redis infrastructure validation failed[/bold red]")


cli.add_command(health_cmd)
cli.add_command(validate_cmd)
