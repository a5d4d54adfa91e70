"""Bridge Command Set: the client half of the bridge.

Every mutating command follows the same cycle:
1. `GET /csrf_token` for a fresh anti-forgery token,
2. one POST to the matching endpoint with `_token` in the JSON body,
3. unwrap the response body,
4. optionally log a structured record for test diagnostics.

Commands are coroutines serialized by a lock: awaiting them in a test runs
them strictly in order and two commands of one client never overlap.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Mapping, TypeVar
from urllib.parse import urlsplit

import httpx

from e2e_bridge.adapters.http_client import build_async_client
from e2e_bridge.adapters.route_cache import load_route_cache, write_route_cache
from e2e_bridge.core.config import AppSettings
from e2e_bridge.core.domain.models import (
    FactoryResult,
    Record,
    RouteCollection,
    RouteRef,
    factory_result_from_wire,
)
from e2e_bridge.core.interfaces.navigator import Navigator
from e2e_bridge.core.services.route_resolver import normalize_location, resolve_route

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _command(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
    @functools.wraps(func)
    async def wrapper(self: "BridgeClient", *args: Any, **kwargs: Any) -> T:
        async with self._lock:
            return await func(self, *args, **kwargs)

    return wrapper


class BridgeClient:
    """Remote control of the application under test."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        settings: AppSettings | None = None,
        *,
        navigator: Navigator | None = None,
        routes: RouteCollection | None = None,
        owns_http: bool = False,
    ) -> None:
        self._http = http
        self._settings = settings or AppSettings()
        self._navigator = navigator
        self._routes = routes
        self._owns_http = owns_http
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(
        cls,
        settings: AppSettings | None = None,
        *,
        navigator: Navigator | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "BridgeClient":
        settings = settings or AppSettings()
        http = build_async_client(settings, transport=transport)
        return cls(http, settings, navigator=navigator, owns_http=True)

    async def __aenter__(self) -> "BridgeClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    @property
    def http(self) -> httpx.AsyncClient:
        return self._http

    @property
    def cache_path(self) -> Path:
        return self._settings.routes_cache_path

    @property
    def routes(self) -> RouteCollection:
        """The route table: last refreshed in this process, else the cache file."""

        if self._routes is None:
            self._routes = load_route_cache(self.cache_path)
        return self._routes

    # Plumbing

    def _log(self, name: str, message: Any, console_props: Mapping[str, Any] | None = None) -> None:
        if not self._settings.log_commands:
            return
        logger.info(
            "%s %s",
            name,
            message,
            extra={"bridge_command": name, "console_props": dict(console_props or {})},
        )

    async def _fetch_token(self) -> str:
        response = await self._http.get(self._settings.endpoint("csrf_token"))
        response.raise_for_status()
        return response.json()

    async def _post(self, endpoint: str, body: Mapping[str, Any] | None = None) -> httpx.Response:
        token = await self._fetch_token()
        payload = {**(body or {}), "_token": token}
        response = await self._http.post(self._settings.endpoint(endpoint), json=payload)
        response.raise_for_status()
        return response

    async def _artisan(self, command: str, parameters: Mapping[str, Any] | None, *, log: bool) -> None:
        parameters = dict(parameters or {})
        if log:
            self._log("artisan", command, {"command": command, "parameters": parameters})
        await self._post("artisan", {"command": command, "parameters": parameters})

    async def _factory(
        self,
        model: str,
        *,
        times: int,
        attributes: Mapping[str, Any] | None,
        make_only: bool,
    ) -> FactoryResult:
        response = await self._post(
            "factory",
            {
                "attributes": dict(attributes or {}),
                "model": model,
                "times": times,
                "makeOnly": make_only,
            },
        )
        result = factory_result_from_wire(response.json(), times=times)
        self._log(
            "make" if make_only else "create",
            f"{model} ({times} times)",
            {model: result.to_wire()},
        )
        return result

    def _target(self, target: str | RouteRef) -> tuple[str, str]:
        if isinstance(target, RouteRef):
            return resolve_route(self.routes, target.route, target.parameters)
        return target, "GET"

    def _require_navigator(self) -> Navigator:
        if self._navigator is None:
            raise RuntimeError("This bridge client has no browser navigator attached")
        return self._navigator

    # Commands

    @_command
    async def csrf_token(self) -> str:
        return await self._fetch_token()

    @_command
    async def login(self, attributes: Mapping[str, Any] | None = None) -> Record:
        """Log in the first user matching `attributes`, creating it if needed."""

        attributes = dict(attributes or {})
        response = await self._post("login", {"attributes": attributes})
        user = response.json()
        self._log("login", attributes, {"user": user})
        return user

    @_command
    async def logout(self) -> None:
        await self._post("logout")
        self._log("logout", "")

    @_command
    async def refresh_routes(self) -> RouteCollection:
        """Fetch the live route table and overwrite the cache file."""

        response = await self._post("routes")
        routes = RouteCollection.model_validate(response.json())
        write_route_cache(routes=routes, output_path=self.cache_path)
        self._routes = routes
        self._log("refresh routes", f"{len(routes)} routes", {"path": str(self.cache_path)})
        return routes

    @_command
    async def create(
        self,
        model: str,
        *,
        times: int = 1,
        attributes: Mapping[str, Any] | None = None,
    ) -> FactoryResult:
        """Persist `times` instances of `model` through its factory."""

        return await self._factory(model, times=times, attributes=attributes, make_only=False)

    @_command
    async def make(
        self,
        model: str,
        *,
        times: int = 1,
        attributes: Mapping[str, Any] | None = None,
    ) -> FactoryResult:
        """Build `times` instances of `model` without persisting them."""

        return await self._factory(model, times=times, attributes=attributes, make_only=True)

    @_command
    async def artisan(
        self,
        command: str,
        parameters: Mapping[str, Any] | None = None,
        *,
        log: bool = True,
    ) -> None:
        """Run an administrative command of the application."""

        await self._artisan(command, parameters, log=log)

    @_command
    async def refresh_database(self, options: Mapping[str, Any] | None = None) -> None:
        await self._artisan("migrate:fresh", options, log=True)

    @_command
    async def seed(self, seeder: str | None = None) -> None:
        parameters = {"--class": seeder} if seeder else {}
        await self._artisan("db:seed", parameters, log=True)

    @_command
    async def run_code(self, source: str) -> Any:
        """Evaluate `source` on the server and return its JSON result."""

        response = await self._post("run-php", {"command": source})
        result = response.json()["result"]
        self._log("run code", source, {"result": result})
        return result

    @_command
    async def email_verification_url(self, attributes: Mapping[str, Any]) -> str:
        response = await self._post("email_verification_url", {"attributes": dict(attributes)})
        url = response.text
        self._log("verify url", url, {"url": url})
        return url

    def route(self, name: str, parameters: Mapping[str, Any] | None = None) -> str:
        """Path of a named route, from the cached table."""

        path, _ = resolve_route(self.routes, name, parameters)
        return path

    @_command
    async def visit(self, target: str | RouteRef) -> Any:
        """Navigate the browser to a literal path or a named route.

        Route references take their method from the route table and skip the
        token/request cycle entirely.
        """

        navigator = self._require_navigator()
        url, method = self._target(target)
        await navigator.adopt_cookies(self._http.cookies)
        return await navigator.navigate(url, method=method)

    @_command
    async def assert_location(self, target: str | RouteRef) -> None:
        navigator = self._require_navigator()
        path, _ = self._target(target)
        # pathname only, like the browser location
        expected = normalize_location(urlsplit(path).path)
        current = await navigator.current_path()
        if current != expected:
            raise AssertionError(f"Expected location {expected!r}, got {current!r}")
