"""Bridge endpoint logic.

Every operation is one pass-through to a host service. The FastAPI router
only parses payloads and encodes responses; everything that decides *what*
happens lives here so it can run against in-memory fakes.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Mapping

from e2e_bridge.core.config import AppSettings
from e2e_bridge.core.domain.models import (
    CommandRequest,
    FactoryRequest,
    FactoryResult,
    Record,
    RouteCollection,
    factory_result,
)
from e2e_bridge.core.interfaces.host import (
    CodeEvaluator,
    CommandDispatcher,
    ModelFactory,
    ModelRepository,
    RouteTable,
    SessionContext,
    UrlSigner,
)

logger = logging.getLogger(__name__)


class CodeEvaluationDisabled(RuntimeError):
    """Raised when code evaluation is requested but no evaluator is installed."""


def prepare_source(source: str) -> str:
    """Turn a fragment into a function body that returns its value.

    `2 + 2` becomes `return 2 + 2;`. Fragments that already contain `return`
    are left alone apart from the trailing terminator.
    """

    code = source.rstrip()
    if not code.endswith(";"):
        code += ";"
    if "return" not in code:
        code = "return " + code
    return code


@dataclass
class HostServices:
    """The host application services the bridge is allowed to touch."""

    routes: RouteTable
    records: ModelRepository
    factories: ModelFactory
    commands: CommandDispatcher
    signer: UrlSigner
    evaluator: CodeEvaluator | None = None


class BridgeService:
    def __init__(
        self,
        host: HostServices,
        settings: AppSettings | None = None,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._host = host
        self._settings = settings or AppSettings()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @property
    def code_evaluation_enabled(self) -> bool:
        return (
            self._host.evaluator is not None
            and self._settings.allow_code_evaluation
            and self._settings.bridge_allowed
        )

    def list_routes(self) -> RouteCollection:
        return RouteCollection.from_descriptors(self._host.routes.snapshot())

    def login(self, session: SessionContext, attributes: Mapping[str, Any] | None = None) -> Record:
        attributes = dict(attributes or {})
        model = self._settings.user_model

        user = self._host.records.first_where(model, attributes)
        if user is None:
            logger.info("No %s matches %r, creating one", model, attributes)
            user = self._host.factories.create(model, 1, attributes)[0]

        session.login(self._host.records.primary_key(user))
        return self._host.records.serialize(user)

    def logout(self, session: SessionContext) -> None:
        session.logout()

    def factory(self, request: FactoryRequest) -> FactoryResult:
        attributes = dict(request.attributes or {})
        if request.make_only:
            instances = self._host.factories.make(request.model, request.times, attributes)
        else:
            instances = self._host.factories.create(request.model, request.times, attributes)

        records = [self._host.records.serialize(instance) for instance in instances]
        return factory_result(records, times=request.times)

    def run_command(self, request: CommandRequest) -> None:
        parameters = dict(request.parameters or {})
        exit_code = self._host.commands.call(request.command, parameters)
        logger.info("Command %s finished with exit code %s", request.command, exit_code)

    def issue_token(self, session: SessionContext) -> str:
        return session.token()

    def evaluate_code(self, source: str) -> Any:
        """Run `source` in the host runtime.

        UNSAFE: arbitrary code execution. Only reachable when the bridge is
        installed, which never happens in production.
        """

        evaluator = self._host.evaluator
        if evaluator is None or not self.code_evaluation_enabled:
            raise CodeEvaluationDisabled("code evaluation is not enabled for this bridge")

        logger.warning("Evaluating code fragment through the bridge: %s", source)
        return self._to_jsonable(evaluator.evaluate(prepare_source(source)))

    def email_verification_url(self, attributes: Mapping[str, Any] | None, *, base_url: str) -> str:
        user = self._host.records.first_where_or_fail(self._settings.user_model, dict(attributes or {}))
        email = self._host.records.verification_email(user)

        expires_at = self._clock() + timedelta(minutes=self._settings.verification_expire_minutes)
        return self._host.signer.temporary_signed_route(
            self._settings.verification_route,
            expires_at=expires_at,
            parameters={
                "id": self._host.records.primary_key(user),
                "hash": hashlib.sha1(email.encode("utf-8")).hexdigest(),  # nosec
            },
            base_url=base_url,
        )

    def _to_jsonable(self, value: Any) -> Any:
        if self._host.records.is_record(value):
            return self._host.records.serialize(value)
        if isinstance(value, Mapping):
            return {key: self._to_jsonable(item) for key, item in value.items()}
        if isinstance(value, (list, tuple, set, frozenset)):
            return [self._to_jsonable(item) for item in value]
        return value
