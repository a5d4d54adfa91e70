"""Domain models (Pydantic v2).

Why Pydantic in the domain:
- Gives validation at the wire boundary for both halves of the bridge.
- The same models describe the payloads the server parses and the client
  sends, so the contract lives in one place.

Note:
- These models describe *what* travels over the bridge, not *how*.
"""

from __future__ import annotations

from typing import Any, Literal, Union

from pydantic import BaseModel, Field, RootModel
from pydantic.config import ConfigDict

Record = dict[str, Any]

HTTP_METHOD_ORDER: tuple[str, ...] = ("GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS")


def order_methods(methods: Any) -> list[str]:
    """Stable verb order: GET first, then HEAD, then the rest.

    `visit` takes the first entry as the navigation method, so the order is
    part of the contract.
    """

    upper = {str(m).upper() for m in methods}
    known = [m for m in HTTP_METHOD_ORDER if m in upper]
    extra = sorted(upper.difference(HTTP_METHOD_ORDER))
    return known + extra


class RouteDescriptor(BaseModel):
    """A named route as read from the host router table."""

    model_config = ConfigDict(frozen=True)

    name: str | None = Field(
        default=None,
        description="Route name (key of the route collection).",
    )
    domain: str | None = Field(
        default=None,
        description="Host pattern the route is bound to, if any.",
    )
    action: str = Field(
        ...,
        min_length=1,
        description="Dotted identifier of the endpoint callable.",
    )
    uri: str = Field(
        ...,
        min_length=1,
        description="Path template without leading slash ('/' for the root).",
    )
    method: list[str] = Field(
        default_factory=list,
        description="HTTP verbs accepted by the route.",
    )


class RouteCollection(RootModel[dict[str, RouteDescriptor]]):
    """Mapping route name -> descriptor."""

    root: dict[str, RouteDescriptor] = Field(default_factory=dict)

    @classmethod
    def from_descriptors(cls, descriptors: Any) -> "RouteCollection":
        """Key descriptors by name; the last one registered under a name wins."""

        keyed: dict[str, RouteDescriptor] = {}
        for descriptor in descriptors:
            keyed[descriptor.name or ""] = descriptor
        return cls(keyed)

    def __contains__(self, name: object) -> bool:
        return name in self.root

    def __getitem__(self, name: str) -> RouteDescriptor:
        return self.root[name]

    def __len__(self) -> int:
        return len(self.root)

    def names(self) -> list[str]:
        return list(self.root.keys())


class RouteRef(BaseModel):
    """Client-side reference to a named route."""

    route: str = Field(..., min_length=1)
    parameters: dict[str, Any] = Field(default_factory=dict)


class BridgePayload(BaseModel):
    """Base of every POST body: carries the relayed anti-forgery token."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    token: str | None = Field(
        default=None,
        alias="_token",
        description="Anti-forgery token previously issued by /csrf_token.",
    )


class AttributesRequest(BridgePayload):
    """Body of `/login` and `/email_verification_url`."""

    attributes: dict[str, Any] = Field(default_factory=dict)


class FactoryRequest(BridgePayload):
    model: str = Field(..., min_length=1, description="Registered model name.")
    times: int = Field(default=1, ge=0, description="Number of instances to build.")
    attributes: dict[str, Any] | None = Field(default=None, description="Attribute overrides.")
    make_only: bool = Field(
        default=False,
        alias="makeOnly",
        description="Build without persisting.",
    )


class CommandRequest(BridgePayload):
    command: str = Field(..., min_length=1)
    parameters: dict[str, Any] | None = Field(default=None)


class RunCodeRequest(BridgePayload):
    command: str = Field(..., min_length=1, description="Source fragment to evaluate.")


class Single(BaseModel):
    """Factory result for a request of exactly one instance."""

    kind: Literal["single"] = "single"
    record: Record

    def to_wire(self) -> Any:
        return self.record

    @property
    def records(self) -> list[Record]:
        return [self.record]


class Many(BaseModel):
    """Factory result for any other requested count."""

    kind: Literal["many"] = "many"
    records: list[Record] = Field(default_factory=list)

    def to_wire(self) -> Any:
        return self.records


FactoryResult = Union[Single, Many]


def factory_result(records: list[Record], *, times: int) -> FactoryResult:
    """Tag `records` according to the count the caller asked for."""

    if times == 1:
        return Single(record=records[0])
    return Many(records=records)


def factory_result_from_wire(payload: Any, *, times: int) -> FactoryResult:
    if times == 1:
        if isinstance(payload, list):
            payload = payload[0]
        return Single(record=payload)
    if isinstance(payload, dict):
        payload = [payload]
    return Many(records=list(payload or []))
