"""pytest fixtures for suites that drive an application through the bridge.

Registered through the `pytest11` entry point. Override `bridge_settings`
(or `bridge_transport`) in a conftest to point the client elsewhere.
"""

from __future__ import annotations

from typing import AsyncIterator

import httpx
import pytest
import pytest_asyncio

from e2e_bridge.adapters.bridge_client import BridgeClient
from e2e_bridge.core.config import AppSettings


@pytest.fixture
def bridge_settings() -> AppSettings:
    return AppSettings()


@pytest.fixture
def bridge_transport() -> httpx.AsyncBaseTransport | None:
    """Real network by default; return an `httpx.ASGITransport` to test in-process."""

    return None


@pytest_asyncio.fixture
async def bridge(
    bridge_settings: AppSettings,
    bridge_transport: httpx.AsyncBaseTransport | None,
) -> AsyncIterator[BridgeClient]:
    async with BridgeClient.from_settings(bridge_settings, transport=bridge_transport) as client:
        yield client
