"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import httpx
import typer
from rich.console import Console
from rich.table import Table

from e2e_bridge.adapters.http_client import build_async_client
from e2e_bridge.core.config import AppSettings, write_user_env_vars

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


async def _check_bridge(settings: AppSettings) -> tuple[bool, str]:
    try:
        async with build_async_client(settings) as client:
            response = await client.get(settings.endpoint("csrf_token"))
    except httpx.HTTPError as exc:
        return False, str(exc)
    if response.status_code == 404:
        return False, "HTTP 404: bridge not installed (E2E_BRIDGE_ENABLED / environment?)"
    return response.status_code == 200, f"HTTP {response.status_code}"


@app.command()
def run() -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()

    table = Table(title="e2e-bridge Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    table.add_row("Base URL", "OK", settings.base_url)
    table.add_row("Path prefix", "OK", settings.path_prefix)

    cache = settings.routes_cache_path
    if cache.exists():
        table.add_row("Route cache", "OK", str(cache))
    else:
        table.add_row("Route cache", "MISSING", f"{cache} (run `e2e-bridge refresh-routes`)")

    ok_bridge, detail_bridge = asyncio.run(_check_bridge(settings))
    table.add_row("Bridge endpoint", "OK" if ok_bridge else "FAIL", detail_bridge)

    _console.print(table)

    if not ok_bridge:
        raise typer.Exit(code=1)


@app.command()
def configure() -> None:
    """Store the client connection settings in the user config .env."""

    defaults = AppSettings()
    base_url = typer.prompt("Application base URL", default=defaults.base_url, show_default=True).strip()
    prefix = typer.prompt("Bridge path prefix", default=defaults.path_prefix, show_default=True).strip()

    if not base_url or not prefix.startswith("/"):
        raise typer.BadParameter("base URL is required and the prefix must start with '/'")

    env_path = write_user_env_vars(
        {
            "E2E_BRIDGE_BASE_URL": base_url,
            "E2E_BRIDGE_PATH_PREFIX": prefix,
        }
    )

    _console.print(f"[green]Saved bridge config to:[/green] {env_path}")
