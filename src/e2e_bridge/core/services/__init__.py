"""Service layer: bridge operations and route resolution."""

from e2e_bridge.core.services.bridge import BridgeService, CodeEvaluationDisabled, HostServices, prepare_source
from e2e_bridge.core.services.route_resolver import (
    RouteParameterError,
    UnknownRouteError,
    build_path,
    normalize_location,
    resolve_route,
)

__all__ = [
    "BridgeService",
    "CodeEvaluationDisabled",
    "HostServices",
    "RouteParameterError",
    "UnknownRouteError",
    "build_path",
    "normalize_location",
    "prepare_source",
    "resolve_route",
]
