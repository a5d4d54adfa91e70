from __future__ import annotations

from e2e_bridge.core.domain.models import (
    AttributesRequest,
    CommandRequest,
    FactoryRequest,
    Many,
    RouteCollection,
    RouteDescriptor,
    Single,
    factory_result,
    factory_result_from_wire,
    order_methods,
)


def test_order_methods_puts_get_first() -> None:
    assert order_methods({"HEAD", "GET"}) == ["GET", "HEAD"]
    assert order_methods(["post", "PURGE", "delete"]) == ["POST", "DELETE", "PURGE"]


def test_route_collection_round_trips_through_json() -> None:
    routes = RouteCollection.from_descriptors(
        [RouteDescriptor(name="home", action="app.home", uri="/", method=["GET", "HEAD"])]
    )

    dumped = routes.model_dump(mode="json")

    assert dumped == {
        "home": {"name": "home", "domain": None, "action": "app.home", "uri": "/", "method": ["GET", "HEAD"]}
    }
    assert RouteCollection.model_validate(dumped) == routes


def test_unnamed_routes_share_the_empty_key() -> None:
    routes = RouteCollection.from_descriptors(
        [
            RouteDescriptor(action="a.one", uri="one"),
            RouteDescriptor(action="a.two", uri="two"),
        ]
    )

    assert routes.names() == [""]
    assert routes[""].uri == "two"


def test_factory_request_reads_wire_aliases() -> None:
    request = FactoryRequest.model_validate(
        {"model": "User", "times": "3", "attributes": None, "makeOnly": True, "_token": "t"}
    )

    assert request.times == 3
    assert request.make_only is True
    assert request.attributes is None
    assert request.token == "t"


def test_payload_defaults() -> None:
    assert AttributesRequest.model_validate({}).attributes == {}
    assert CommandRequest.model_validate({"command": "cache:clear"}).parameters is None


def test_factory_result_is_decided_by_requested_count() -> None:
    assert isinstance(factory_result([{"id": 1}], times=1), Single)
    assert isinstance(factory_result([{"id": 1}], times=2), Many)
    assert factory_result([], times=0).to_wire() == []


def test_factory_result_from_wire() -> None:
    single = factory_result_from_wire({"id": 1}, times=1)
    many = factory_result_from_wire([{"id": 1}, {"id": 2}], times=2)

    assert single.record == {"id": 1}
    assert single.records == [{"id": 1}]
    assert [record["id"] for record in many.records] == [1, 2]
