"""e2e-bridge CLI.

Thin layer over `BridgeClient`: parses options, runs one command, renders
the result with Rich.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Optional

import httpx
import typer
from rich.console import Console
from rich.logging import RichHandler

from e2e_bridge.adapters.bridge_client import BridgeClient
from e2e_bridge.adapters.route_cache import RouteCacheMissing, load_route_cache
from e2e_bridge.cli import doctor
from e2e_bridge.cli.ui_components import build_routes_table, print_banner
from e2e_bridge.core.config import AppSettings

app = typer.Typer(no_args_is_help=True, help="Remote control of an application under end-to-end test.")
app.add_typer(doctor.app, name="doctor")

_console = Console()


def _settings(base_url: str | None = None, cache_path: Path | None = None) -> AppSettings:
    overrides: dict[str, Any] = {}
    if base_url:
        overrides["base_url"] = base_url
    if cache_path:
        overrides["routes_cache_path"] = cache_path
    return AppSettings(**overrides)


def _open_client(settings: AppSettings) -> BridgeClient:
    return BridgeClient.from_settings(settings)


def parse_parameters(values: list[str]) -> dict[str, Any]:
    """`--class=UserSeeder` -> `{"--class": "UserSeeder"}`; `--force` -> `{"--force": True}`."""

    parameters: dict[str, Any] = {}
    for raw in values:
        key, separator, value = raw.partition("=")
        if not key:
            raise typer.BadParameter(f"invalid parameter {raw!r}")
        parameters[key] = value if separator else True
    return parameters


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show bridge command logs."),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


@app.command("refresh-routes")
def refresh_routes(
    base_url: Optional[str] = typer.Option(None, "--base-url", help="Application base URL."),
    cache_path: Optional[Path] = typer.Option(None, "--cache-path", help="Route cache file."),
) -> None:
    """Fetch the live route table and overwrite the route cache."""

    settings = _settings(base_url, cache_path)
    print_banner(_console, base_url=settings.base_url, prefix=settings.path_prefix)

    async def _refresh() -> Any:
        async with _open_client(settings) as bridge:
            return await bridge.refresh_routes()

    try:
        routes = asyncio.run(_refresh())
    except httpx.HTTPError as exc:
        _console.print(f"[red]Could not fetch routes:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    _console.print(build_routes_table(routes))
    _console.print(f"[green]Saved {len(routes)} routes to:[/green] {settings.routes_cache_path}")


@app.command("routes")
def show_routes(
    cache_path: Optional[Path] = typer.Option(None, "--cache-path", help="Route cache file."),
) -> None:
    """Show the cached route table."""

    settings = _settings(cache_path=cache_path)
    try:
        routes = load_route_cache(settings.routes_cache_path)
    except RouteCacheMissing as exc:
        _console.print(f"[yellow]{exc}[/yellow]")
        raise typer.Exit(code=1) from exc
    _console.print(build_routes_table(routes))


@app.command("artisan")
def artisan(
    command: str = typer.Argument(..., help="Command name, e.g. db:seed."),
    param: list[str] = typer.Option([], "--param", "-p", help="key=value, or a bare --flag."),
    base_url: Optional[str] = typer.Option(None, "--base-url", help="Application base URL."),
) -> None:
    """Run an administrative command on the application under test."""

    settings = _settings(base_url)
    parameters = parse_parameters(param)

    async def _run() -> None:
        async with _open_client(settings) as bridge:
            await bridge.artisan(command, parameters)

    try:
        asyncio.run(_run())
    except httpx.HTTPError as exc:
        _console.print(f"[red]Command failed:[/red] {exc}")
        raise typer.Exit(code=1) from exc
    _console.print(f"[green]Ran[/green] {command}")


def run() -> None:
    app()
