"""Contract for the browser side of the client.

`visit` and `assert_location` only need three things from a browser engine,
so the client depends on this Protocol instead of Playwright directly.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

import httpx


@runtime_checkable
class Navigator(Protocol):
    async def adopt_cookies(self, cookies: httpx.Cookies) -> None:
        """Share the bridge client's session cookies with the browser."""

        ...

    async def navigate(self, url: str, *, method: str = "GET") -> Any:
        ...

    async def current_path(self) -> str:
        ...
