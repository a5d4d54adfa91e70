"""Playwright implementation of the client `Navigator`."""

from __future__ import annotations

from typing import Any
from urllib.parse import urljoin, urlsplit

import httpx
from playwright.async_api import Page, Route


class PlaywrightNavigator:
    """Drives an async Playwright `Page` against the application under test."""

    def __init__(self, page: Page, base_url: str) -> None:
        self._page = page
        self._base_url = base_url.rstrip("/") + "/"

    def absolute(self, url: str) -> str:
        return urljoin(self._base_url, url.lstrip("/")) if not urlsplit(url).scheme else url

    async def adopt_cookies(self, cookies: httpx.Cookies) -> None:
        """Copy the bridge session cookies into the browser context.

        After `login` through the bridge, the browser is authenticated as the
        same user.
        """

        entries: list[dict[str, Any]] = []
        for cookie in cookies.jar:
            entry: dict[str, Any] = {"name": cookie.name, "value": cookie.value or ""}
            # host-only cookies carry the jar's ".local" host; bind those to the base URL
            if cookie.domain_specified:
                entry.update(domain=cookie.domain, path=cookie.path or "/")
            else:
                entry["url"] = self._base_url
            entries.append(entry)
        if entries:
            await self._page.context.add_cookies(entries)

    async def navigate(self, url: str, *, method: str = "GET") -> Any:
        target = self.absolute(url)
        method = method.upper()
        if method in ("GET", "HEAD"):
            return await self._page.goto(target)

        async def _with_method(route: Route) -> None:
            await route.continue_(method=method)

        await self._page.route(target, _with_method)
        try:
            return await self._page.goto(target)
        finally:
            await self._page.unroute(target, _with_method)

    async def current_path(self) -> str:
        return urlsplit(self._page.url).path or "/"
