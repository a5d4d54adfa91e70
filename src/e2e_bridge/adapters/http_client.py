"""httpx wrapper.

Why a wrapper:
- Standardizes timeouts, headers and the base URL for every bridge command.
- Eases testing: tests pass an `httpx.ASGITransport` or `httpx.MockTransport`.
"""

from __future__ import annotations

import httpx

from e2e_bridge.core.config import AppSettings


def build_async_client(
    settings: AppSettings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create an `httpx.AsyncClient` bound to the application under test.

    The client keeps cookies across requests, which is what carries the
    session (and therefore the anti-forgery token) between bridge calls.
    """

    settings = settings or AppSettings()
    headers: dict[str, str] = {
        "User-Agent": settings.user_agent,
        "Accept": "application/json, text/plain;q=0.9, */*;q=0.8",
    }
    return httpx.AsyncClient(
        base_url=settings.base_url,
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        follow_redirects=True,
        headers=headers,
        transport=transport,
    )
