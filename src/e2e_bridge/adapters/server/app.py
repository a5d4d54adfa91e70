"""FastAPI surface of the bridge.

All endpoints are POST except the token fetch, live under
`settings.path_prefix` and keep the wire format of the Cypress support
commands, so either client can drive a Python application.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy.exc import NoResultFound
from starlette.middleware.sessions import SessionMiddleware

from e2e_bridge.adapters.server.session import StarletteSessionContext, require_csrf_token, session_context
from e2e_bridge.core.config import AppSettings
from e2e_bridge.core.domain.models import (
    AttributesRequest,
    BridgePayload,
    CommandRequest,
    FactoryRequest,
    RunCodeRequest,
)
from e2e_bridge.core.services.bridge import BridgeService, HostServices

logger = logging.getLogger(__name__)

SESSION_COOKIE = "e2e_bridge_session"


def build_bridge_router(service: BridgeService, settings: AppSettings) -> APIRouter:
    """Endpoint set under `settings.path_prefix`. Refuses settings that do not allow the bridge."""

    if not settings.bridge_allowed:
        raise RuntimeError(
            f"e2e bridge is not allowed (enabled={settings.enabled}, environment={settings.environment!r})"
        )
    router = APIRouter(prefix=settings.path_prefix.rstrip("/"), tags=["e2e-bridge"])
    guarded = [Depends(require_csrf_token)]

    @router.get("/csrf_token", name="e2e_bridge.csrf_token")
    def csrf_token(session: StarletteSessionContext = Depends(session_context)) -> str:
        return service.issue_token(session)

    @router.post("/routes", name="e2e_bridge.routes", dependencies=guarded)
    def routes(payload: BridgePayload | None = None) -> Any:
        return service.list_routes().model_dump(mode="json")

    @router.post("/login", name="e2e_bridge.login", dependencies=guarded)
    def login(
        payload: AttributesRequest,
        session: StarletteSessionContext = Depends(session_context),
    ) -> Any:
        return jsonable_encoder(service.login(session, payload.attributes))

    @router.post("/logout", name="e2e_bridge.logout", dependencies=guarded)
    def logout(
        payload: BridgePayload | None = None,
        session: StarletteSessionContext = Depends(session_context),
    ) -> Response:
        service.logout(session)
        return Response()

    @router.post("/factory", name="e2e_bridge.factory", dependencies=guarded)
    def factory(payload: FactoryRequest) -> Any:
        return jsonable_encoder(service.factory(payload).to_wire())

    @router.post("/artisan", name="e2e_bridge.artisan", dependencies=guarded)
    def artisan(payload: CommandRequest) -> Response:
        service.run_command(payload)
        return Response()

    if service.code_evaluation_enabled:

        @router.post("/run-php", name="e2e_bridge.run_code", dependencies=guarded)
        def run_code(payload: RunCodeRequest) -> JSONResponse:
            return JSONResponse({"result": jsonable_encoder(service.evaluate_code(payload.command))})

    @router.post("/email_verification_url", name="e2e_bridge.email_verification_url", dependencies=guarded)
    def email_verification_url(payload: AttributesRequest, request: Request) -> PlainTextResponse:
        try:
            url = service.email_verification_url(payload.attributes, base_url=str(request.base_url))
        except NoResultFound:
            raise HTTPException(
                status_code=404,
                detail=f"No query results for model [{settings.user_model}].",
            ) from None
        return PlainTextResponse(url)

    return router


def install_bridge(
    app: FastAPI,
    host: HostServices,
    settings: AppSettings | None = None,
    *,
    add_session_middleware: bool = True,
) -> bool:
    """Mount the bridge on `app` when the settings allow it.

    Returns whether the endpoints were mounted. Production environments are
    always refused, whatever `enabled` says.
    """

    settings = settings or AppSettings()
    if not settings.bridge_allowed:
        if settings.enabled:
            logger.error("Refusing to install the e2e bridge in environment %r", settings.environment)
        return False
    if not settings.app_key:
        raise RuntimeError("E2E_BRIDGE_APP_KEY must be set to install the e2e bridge")

    if add_session_middleware:
        app.add_middleware(SessionMiddleware, secret_key=settings.app_key, session_cookie=SESSION_COOKIE)

    service = BridgeService(host, settings)
    app.include_router(build_bridge_router(service, settings))
    logger.warning(
        "e2e bridge mounted at %s (environment=%s, code evaluation=%s)",
        settings.path_prefix,
        settings.environment,
        "on" if service.code_evaluation_enabled else "off",
    )
    return True
