"""Named route -> URL resolution against a cached route table."""

from __future__ import annotations

import re
from typing import Any, Mapping
from urllib.parse import quote, urlencode

from e2e_bridge.core.domain.models import RouteCollection, RouteDescriptor

# `{id}`, `{id:int}`, `{path:path}`
_PLACEHOLDER = re.compile(r"\{(?P<name>[A-Za-z_][A-Za-z0-9_]*)(?::(?P<convertor>[A-Za-z_]+))?\}")


class UnknownRouteError(KeyError):
    """The route name is not in the cached table."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Route {self.name!r} does not exist. Run `e2e-bridge refresh-routes`?"


class RouteParameterError(ValueError):
    """A placeholder of the route template has no value."""


def route_placeholders(uri: str) -> list[str]:
    return [match.group("name") for match in _PLACEHOLDER.finditer(uri)]


def build_path(descriptor: RouteDescriptor, parameters: Mapping[str, Any] | None = None) -> str:
    """Fill the template of `descriptor`.

    Unused parameters are appended as a query string.
    """

    parameters = dict(parameters or {})
    used: set[str] = set()

    def _substitute(match: re.Match[str]) -> str:
        name = match.group("name")
        if name not in parameters or parameters[name] is None:
            raise RouteParameterError(
                f"Missing parameter {name!r} for route {descriptor.name!r} ({descriptor.uri})"
            )
        used.add(name)
        safe = "/" if match.group("convertor") == "path" else ""
        return quote(str(parameters[name]), safe=safe)

    uri = descriptor.uri if descriptor.uri != "/" else ""
    path = "/" + _PLACEHOLDER.sub(_substitute, uri).lstrip("/")

    extra = {key: value for key, value in parameters.items() if key not in used and value is not None}
    if extra:
        path += "?" + urlencode(extra, doseq=True)
    return path


def resolve_route(
    routes: RouteCollection,
    name: str,
    parameters: Mapping[str, Any] | None = None,
) -> tuple[str, str]:
    """Return `(path, method)` for a named route.

    The method is the first verb the route declares.
    """

    if name not in routes:
        raise UnknownRouteError(name)
    descriptor = routes[name]
    method = descriptor.method[0] if descriptor.method else "GET"
    return build_path(descriptor, parameters), method


def normalize_location(path: str) -> str:
    """`users/1` and `/users/1` compare equal; a doubled leading slash collapses."""

    return re.sub(r"^//", "/", f"/{path}")
