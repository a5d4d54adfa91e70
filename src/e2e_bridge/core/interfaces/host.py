"""Contracts of the host application services the bridge calls through.

Why Protocol:
- Structural contracts, no rigid inheritance: any router, ORM or command
  runner that offers these methods can sit behind the bridge.
- Lets the service layer be tested with in-memory fakes.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Mapping, Protocol, runtime_checkable

from e2e_bridge.core.domain.models import Record, RouteDescriptor


@runtime_checkable
class RouteTable(Protocol):
    def snapshot(self) -> Iterable[RouteDescriptor]:
        """Every registered route, in registration order."""

        ...


@runtime_checkable
class ModelRepository(Protocol):
    """Read side of the host ORM."""

    def first_where(self, model: str, attributes: Mapping[str, Any]) -> Any | None:
        ...

    def first_where_or_fail(self, model: str, attributes: Mapping[str, Any]) -> Any:
        """Like `first_where`, raising the ORM's own not-found error."""

        ...

    def serialize(self, instance: Any) -> Record:
        """Column attributes of `instance` minus its hidden fields."""

        ...

    def is_record(self, value: Any) -> bool:
        ...

    def primary_key(self, instance: Any) -> Any:
        ...

    def verification_email(self, instance: Any) -> str:
        ...


@runtime_checkable
class ModelFactory(Protocol):
    """Write side of the host ORM (model factories)."""

    def make(self, model: str, times: int, attributes: Mapping[str, Any]) -> list[Any]:
        ...

    def create(self, model: str, times: int, attributes: Mapping[str, Any]) -> list[Any]:
        ...


@runtime_checkable
class CommandDispatcher(Protocol):
    def call(self, command: str, parameters: Mapping[str, Any]) -> int:
        ...


@runtime_checkable
class CodeEvaluator(Protocol):
    def evaluate(self, source: str) -> Any:
        ...


@runtime_checkable
class UrlSigner(Protocol):
    def temporary_signed_route(
        self,
        name: str,
        *,
        expires_at: datetime,
        parameters: Mapping[str, Any],
        base_url: str,
    ) -> str:
        ...


@runtime_checkable
class SessionContext(Protocol):
    """Per-request session state, passed explicitly into every handler."""

    @property
    def user_key(self) -> Any | None:
        ...

    def token(self) -> str:
        ...

    def login(self, user_key: Any) -> None:
        ...

    def logout(self) -> None:
        ...
