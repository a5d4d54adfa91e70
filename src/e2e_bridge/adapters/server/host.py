"""Wiring of a FastAPI + SQLAlchemy + Typer application into `HostServices`."""

from __future__ import annotations

from typing import Any, Callable, Mapping

import click
import typer
from fastapi import FastAPI
from sqlalchemy.orm import Session

from e2e_bridge.adapters.server.commands import TyperCommandDispatcher
from e2e_bridge.adapters.server.orm import FactoryRegistry, ModelRegistry, SQLAlchemyModels
from e2e_bridge.adapters.server.routes import StarletteRouteTable
from e2e_bridge.adapters.server.signing import HmacUrlSigner
from e2e_bridge.adapters.server.unsafe_eval import UnsafePythonEvaluator
from e2e_bridge.core.config import AppSettings
from e2e_bridge.core.services.bridge import HostServices


def fastapi_host_services(
    app: FastAPI,
    *,
    session_factory: Callable[[], Session],
    models: ModelRegistry,
    factories: FactoryRegistry,
    commands: typer.Typer | click.Command,
    settings: AppSettings,
    eval_namespace: Mapping[str, Any] | Callable[[], Mapping[str, Any]] | None = None,
) -> HostServices:
    """Build the services the bridge calls through.

    The unsafe evaluator is only created when `settings.allow_code_evaluation`
    is on and the settings allow the bridge at all; the evaluation namespace always exposes `session_factory` and every
    registered model by class name.
    """

    if not settings.app_key:
        raise RuntimeError("E2E_BRIDGE_APP_KEY must be set to sign bridge URLs")

    records = SQLAlchemyModels(session_factory, models, factories)

    evaluator = None
    if settings.allow_code_evaluation and settings.bridge_allowed:

        def namespace() -> dict[str, Any]:
            scope: dict[str, Any] = {"session_factory": session_factory}
            scope.update({name: models.resolve(name) for name in models.names()})
            extra = eval_namespace() if callable(eval_namespace) else eval_namespace
            scope.update(extra or {})
            return scope

        evaluator = UnsafePythonEvaluator(namespace)

    return HostServices(
        routes=StarletteRouteTable(app),
        records=records,
        factories=records,
        commands=TyperCommandDispatcher(commands),
        signer=HmacUrlSigner(app.router, settings.app_key),
        evaluator=evaluator,
    )
