"""CLI commands through Typer's CliRunner."""

from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest
from typer.testing import CliRunner

from conftest import HostApp, User
from e2e_bridge.adapters import http_client
from e2e_bridge.adapters.bridge_client import BridgeClient
from e2e_bridge.adapters.route_cache import write_route_cache
from e2e_bridge.cli import doctor
from e2e_bridge.cli import main as cli_main
from e2e_bridge.cli.main import app, parse_parameters
from e2e_bridge.core.config import AppSettings
from e2e_bridge.core.domain.models import RouteCollection, RouteDescriptor

runner = CliRunner()


@pytest.fixture
def cli_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate the CLI from any real .env file and point it at the test host."""

    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("E2E_BRIDGE_BASE_URL", "http://testserver")
    cache = tmp_path / "cache" / "routes.json"
    monkeypatch.setenv("E2E_BRIDGE_ROUTES_CACHE_PATH", str(cache))
    return cache


@pytest.fixture
def in_process(host: HostApp, monkeypatch: pytest.MonkeyPatch) -> HostApp:
    def _open_client(settings: AppSettings) -> BridgeClient:
        return BridgeClient.from_settings(settings, transport=httpx.ASGITransport(app=host.app))

    monkeypatch.setattr(cli_main, "_open_client", _open_client)
    return host


def test_parse_parameters() -> None:
    assert parse_parameters(["--class=UserSeeder", "--force", "name=a=b"]) == {
        "--class": "UserSeeder",
        "--force": True,
        "name": "a=b",
    }


def test_routes_shows_the_cache(cli_env: Path) -> None:
    write_route_cache(
        routes=RouteCollection.from_descriptors(
            [RouteDescriptor(name="teams.show", action="app.team", uri="teams/{team}", method=["GET"])]
        ),
        output_path=cli_env,
    )

    result = runner.invoke(app, ["routes"])

    assert result.exit_code == 0, result.output
    assert "teams.show" in result.output


def test_routes_without_cache(cli_env: Path) -> None:
    result = runner.invoke(app, ["routes"])

    assert result.exit_code == 1
    assert "refresh-routes" in result.output


def test_refresh_routes(cli_env: Path, in_process: HostApp) -> None:
    result = runner.invoke(app, ["refresh-routes"])

    assert result.exit_code == 0, result.output
    assert "Saved" in result.output
    cached = json.loads(cli_env.read_text(encoding="utf-8"))
    assert "users.show" in cached


def test_refresh_routes_cache_path_option(cli_env: Path, in_process: HostApp, tmp_path: Path) -> None:
    target = tmp_path / "elsewhere.json"

    result = runner.invoke(app, ["refresh-routes", "--cache-path", str(target)])

    assert result.exit_code == 0, result.output
    assert target.exists()
    assert not cli_env.exists()


def test_artisan_passes_parameters(cli_env: Path, in_process: HostApp) -> None:
    result = runner.invoke(app, ["artisan", "db:seed", "--param=--class=UserSeeder"])

    assert result.exit_code == 0, result.output
    assert in_process.command_calls == [("db:seed", "UserSeeder")]
    assert in_process.count(User) == 1


def test_artisan_reports_http_errors(cli_env: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def _open_client(settings: AppSettings) -> BridgeClient:
        transport = httpx.MockTransport(lambda request: httpx.Response(404))
        return BridgeClient.from_settings(settings, transport=transport)

    monkeypatch.setattr(cli_main, "_open_client", _open_client)

    result = runner.invoke(app, ["artisan", "cache:clear"])

    assert result.exit_code == 1
    assert "Command failed" in result.output


def _patch_doctor_transport(monkeypatch: pytest.MonkeyPatch, transport: httpx.AsyncBaseTransport) -> None:
    def _build(settings: AppSettings) -> httpx.AsyncClient:
        return http_client.build_async_client(settings, transport=transport)

    monkeypatch.setattr(doctor, "build_async_client", _build)


def test_doctor_reaches_the_bridge(cli_env: Path, host: HostApp, monkeypatch: pytest.MonkeyPatch) -> None:
    _patch_doctor_transport(monkeypatch, httpx.ASGITransport(app=host.app))

    result = runner.invoke(app, ["doctor", "run"])

    assert result.exit_code == 0, result.output
    assert "FAIL" not in result.output


def test_doctor_flags_a_missing_bridge(cli_env: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _patch_doctor_transport(monkeypatch, httpx.MockTransport(lambda request: httpx.Response(404)))

    result = runner.invoke(app, ["doctor", "run"])

    assert result.exit_code == 1
    assert "FAIL" in result.output


def test_doctor_configure_writes_user_env(cli_env: Path, tmp_path: Path) -> None:
    result = runner.invoke(app, ["doctor", "configure"], input="http://app.test\n/__bridge__\n")

    assert result.exit_code == 0, result.output
    env_file = tmp_path / "config" / "e2e-bridge" / ".env"
    content = env_file.read_text(encoding="utf-8")
    assert "E2E_BRIDGE_BASE_URL=http://app.test" in content
    assert "E2E_BRIDGE_PATH_PREFIX=/__bridge__" in content
