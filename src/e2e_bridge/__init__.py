"""e2e-bridge: remote control of a FastAPI/SQLAlchemy application from end-to-end tests."""

from e2e_bridge.adapters.bridge_client import BridgeClient
from e2e_bridge.core.config import AppSettings
from e2e_bridge.core.domain.models import Many, RouteCollection, RouteDescriptor, RouteRef, Single

__all__ = [
    "AppSettings",
    "BridgeClient",
    "Many",
    "RouteCollection",
    "RouteDescriptor",
    "RouteRef",
    "Single",
]

__version__ = "0.1.0"
