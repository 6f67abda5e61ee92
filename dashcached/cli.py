"""dashcache CLI for inspecting and managing the query cache.

Commands act directly on the local durable store through the same cache
runtime the daemon uses; `serve` starts the daemon itself.
"""

import asyncio
import sys
from collections.abc import AsyncIterator
from collections.abc import Awaitable
from collections.abc import Callable
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import TypeVar

import click

from dashcache.cache import CacheManager
from dashcache.config import CacheConfig
from dashcache.config import load_config
from dashcache.models import ActionResult
from dashcache.runtime import build_runtime


def _format_ttl(value: timedelta) -> str:
    hours = value.total_seconds() / 3600
    if hours == 0:
        return "never cached"
    if hours >= 1 and hours.is_integer():
        return f"{int(hours)}h"
    return f"{round(value.total_seconds() / 60)}m"


T = TypeVar("T")


@asynccontextmanager
async def _local_manager() -> AsyncIterator[CacheManager]:
    """Build a runtime for one command and close its query clients afterwards."""
    runtime = build_runtime(load_config())
    try:
        yield runtime.manager
    finally:
        await runtime.aclose()


def _with_manager(call: Callable[[CacheManager], T]) -> T:
    async def run() -> T:
        async with _local_manager() as manager:
            return call(manager)

    return asyncio.run(run())


def _echo_result(result: ActionResult) -> None:
    target = f" {result.target}" if result.target else ""
    if result.success:
        click.echo(f"✓ {result.action}{target}")
    else:
        click.echo(f"✗ {result.action}{target}: {result.error}", err=True)
        sys.exit(1)


async def _run_action(action: Callable[..., Awaitable[ActionResult]], *args: str) -> ActionResult:
    """Run a CacheManager action, e.g. `_run_action(CacheManager.clear_group, "users")`."""
    async with _local_manager() as manager:
        return await action(manager, *args)


@click.group()
def cli():
    """Manage the dashboard query cache."""


@cli.command()
def status():
    """Show status of every catalogued operation."""
    view = _with_manager(CacheManager.get_status)

    click.echo(f"Caching: {'enabled' if view.enabled else 'disabled'}")
    click.echo("-" * 64)
    click.echo(f"{'Operation':<24} {'Group':<22} {'State':<8} {'Age':>4} {'TTL':>5}")
    for row in view.data:
        if row.is_cached:
            state = "cached"
        elif row.is_stale:
            state = "stale"
        else:
            state = "empty"
        click.echo(f"{row.operation:<24} {row.display_name or '-':<22} {state:<8} {row.age:>4} {row.ttl:>5}")


@cli.command()
@click.option("--operation", "operation", default=None, help="Refresh a single operation")
@click.option("--group", "group", default=None, help="Refresh a service group")
def refresh(operation: str | None, group: str | None):
    """Refresh cached data (everything by default)."""
    if operation and group:
        click.echo("Error: Cannot specify both --operation and --group", err=True)
        sys.exit(1)

    if operation:
        result = asyncio.run(_run_action(CacheManager.refresh_operation, operation))
    elif group:
        result = asyncio.run(_run_action(CacheManager.refresh_group, group))
    else:
        click.echo("Refreshing all operations...")
        result = asyncio.run(_run_action(CacheManager.refresh_all))
    _echo_result(result)


@cli.command()
@click.option("--operation", "operation", default=None, help="Clear a single operation")
@click.option("--group", "group", default=None, help="Clear a service group")
def clear(operation: str | None, group: str | None):
    """Clear cached data (everything by default)."""
    if operation and group:
        click.echo("Error: Cannot specify both --operation and --group", err=True)
        sys.exit(1)

    if operation:
        result = asyncio.run(_run_action(CacheManager.clear_operation, operation))
    elif group:
        result = asyncio.run(_run_action(CacheManager.clear_group, group))
    else:
        result = asyncio.run(_run_action(CacheManager.clear_all))
    _echo_result(result)


@cli.command()
def schedule():
    """Show the next scheduled refresh."""
    info = _with_manager(CacheManager.get_scheduled_refresh_info)
    if not info.enabled:
        click.echo("Scheduled refresh: disabled")
        return
    click.echo(f"Scheduled refresh: daily at {info.scheduled_time} ({info.timezone})")
    if info.next_refresh:
        click.echo(f"Next refresh:      {info.next_refresh:%Y-%m-%d %H:%M}")


@cli.group()
def config():
    """Show or change the cache configuration."""


@config.command("show")
def config_show():
    """Print the cache configuration."""
    current: CacheConfig = _with_manager(CacheManager.get_config)

    click.echo(f"Caching enabled:   {current.enable_caching}")
    click.echo(f"Default TTL:       {_format_ttl(current.default_ttl)}")
    click.echo(f"Storage prefix:    {current.storage_prefix}")
    scheduled = current.scheduled_refresh
    click.echo(
        f"Scheduled refresh: {'on' if scheduled.enabled else 'off'} ({scheduled.time} {scheduled.timezone})"
    )
    if current.operation_ttls:
        click.echo("Operation TTLs:")
        for name, ttl in sorted(current.operation_ttls.items()):
            click.echo(f"  {name:<24} {_format_ttl(ttl)}")


@config.command("set-ttl")
@click.argument("operation")
@click.argument("hours", type=float)
def config_set_ttl(operation: str, hours: float):
    """Set OPERATION's TTL to HOURS (0 disables caching for it)."""
    _echo_result(_with_manager(lambda manager: manager.set_operation_ttl(operation, hours)))


@cli.command()
def serve():
    """Run the dashcached daemon in the foreground."""
    from .__main__ import main

    main()


if __name__ == "__main__":
    cli()
