"""Server half of the bridge (FastAPI endpoint set and host adapters)."""

from e2e_bridge.adapters.server.app import build_bridge_router, install_bridge
from e2e_bridge.adapters.server.commands import TyperCommandDispatcher, parameters_to_argv
from e2e_bridge.adapters.server.host import fastapi_host_services
from e2e_bridge.adapters.server.orm import FactoryRegistry, ModelRegistry, SQLAlchemyModels
from e2e_bridge.adapters.server.routes import StarletteRouteTable
from e2e_bridge.adapters.server.session import StarletteSessionContext, require_csrf_token
from e2e_bridge.adapters.server.signing import HmacUrlSigner, has_valid_signature, sign_url
from e2e_bridge.adapters.server.unsafe_eval import UnsafePythonEvaluator
from e2e_bridge.core.services.bridge import HostServices

__all__ = [
    "FactoryRegistry",
    "HmacUrlSigner",
    "HostServices",
    "ModelRegistry",
    "SQLAlchemyModels",
    "StarletteRouteTable",
    "StarletteSessionContext",
    "TyperCommandDispatcher",
    "UnsafePythonEvaluator",
    "build_bridge_router",
    "fastapi_host_services",
    "has_valid_signature",
    "install_bridge",
    "parameters_to_argv",
    "require_csrf_token",
    "sign_url",
]
