from __future__ import annotations

import pytest

from e2e_bridge.core.domain.models import RouteCollection, RouteDescriptor
from e2e_bridge.core.services.route_resolver import (
    RouteParameterError,
    UnknownRouteError,
    build_path,
    normalize_location,
    resolve_route,
    route_placeholders,
)

ROUTES = RouteCollection.from_descriptors(
    [
        RouteDescriptor(name="home", action="app.home", uri="/", method=["GET", "HEAD"]),
        RouteDescriptor(name="teams.show", action="app.team", uri="teams/{team}", method=["GET", "HEAD"]),
        RouteDescriptor(
            name="members.show",
            action="app.member",
            uri="teams/{team:int}/members/{member}",
            method=["GET"],
        ),
        RouteDescriptor(name="files", action="app.files", uri="files/{path:path}", method=["GET"]),
        RouteDescriptor(name="teams.store", action="app.store", uri="teams", method=["POST"]),
    ]
)


def test_placeholders() -> None:
    assert route_placeholders("teams/{team:int}/members/{member}") == ["team", "member"]


def test_root_route() -> None:
    assert resolve_route(ROUTES, "home") == ("/", "GET")


def test_parameters_are_substituted() -> None:
    assert resolve_route(ROUTES, "teams.show", {"team": 1}) == ("/teams/1", "GET")


def test_convertor_placeholders() -> None:
    path, _ = resolve_route(ROUTES, "members.show", {"team": 3, "member": "jo doe"})

    assert path == "/teams/3/members/jo%20doe"


def test_path_convertor_keeps_slashes() -> None:
    path, _ = resolve_route(ROUTES, "files", {"path": "a/b.txt"})

    assert path == "/files/a/b.txt"


def test_extra_parameters_become_query_string() -> None:
    path, _ = resolve_route(ROUTES, "teams.show", {"team": 1, "tab": "billing", "page": 2})

    assert path == "/teams/1?tab=billing&page=2"


def test_method_comes_from_the_route_table() -> None:
    assert resolve_route(ROUTES, "teams.store") == ("/teams", "POST")


def test_unknown_route() -> None:
    with pytest.raises(UnknownRouteError) as excinfo:
        resolve_route(ROUTES, "nope")

    assert "nope" in str(excinfo.value)


def test_missing_parameter() -> None:
    with pytest.raises(RouteParameterError):
        build_path(ROUTES["teams.show"], {})


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        ("teams/1", "/teams/1"),
        ("/teams/1", "/teams/1"),
        ("", "/"),
        ("/", "/"),
    ],
)
def test_normalize_location(path: str, expected: str) -> None:
    assert normalize_location(path) == expected
