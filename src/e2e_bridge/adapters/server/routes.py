"""Starlette/FastAPI router introspection."""

from __future__ import annotations

from typing import Any, Iterable, Iterator

from starlette.routing import BaseRoute, Host, Mount

from e2e_bridge.core.domain.models import HTTP_METHOD_ORDER, RouteDescriptor, order_methods


def _action_name(endpoint: Any) -> str:
    module = getattr(endpoint, "__module__", None) or "<unknown>"
    qualname = getattr(endpoint, "__qualname__", None) or type(endpoint).__qualname__
    return f"{module}.{qualname}"


def _uri(path: str) -> str:
    stripped = path.strip("/")
    return stripped or "/"


def iter_route_descriptors(
    routes: Iterable[BaseRoute],
    *,
    prefix: str = "",
    domain: str | None = None,
) -> Iterator[RouteDescriptor]:
    """Flatten a Starlette route tree in registration order.

    Mounts contribute their path prefix, hosts their domain. Routes without
    HTTP methods (websockets) are skipped.
    """

    for route in routes:
        if isinstance(route, Host):
            yield from iter_route_descriptors(route.routes, prefix=prefix, domain=route.host)
            continue
        if isinstance(route, Mount):
            yield from iter_route_descriptors(route.routes, prefix=prefix + route.path, domain=domain)
            continue

        path = getattr(route, "path", None)
        endpoint = getattr(route, "endpoint", None)
        if path is None or endpoint is None or not hasattr(route, "methods"):
            continue

        methods = route.methods if route.methods is not None else HTTP_METHOD_ORDER
        yield RouteDescriptor(
            name=getattr(route, "name", None),
            domain=domain,
            action=_action_name(endpoint),
            uri=_uri(prefix + path),
            method=order_methods(methods),
        )


class StarletteRouteTable:
    """`RouteTable` over a live Starlette application.

    The snapshot is taken on every call, so routes added after the bridge
    was installed are listed too.
    """

    def __init__(self, app: Any) -> None:
        self._app = app

    def snapshot(self) -> list[RouteDescriptor]:
        return list(iter_route_descriptors(self._app.router.routes))
