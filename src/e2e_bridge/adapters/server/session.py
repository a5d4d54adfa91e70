"""Session state and anti-forgery guard over Starlette's SessionMiddleware."""

from __future__ import annotations

import hmac
import logging
import secrets
from typing import Any

from fastapi import HTTPException, Request

logger = logging.getLogger(__name__)

TOKEN_KEY = "_token"
AUTH_KEY = "_auth_user_id"
CSRF_HEADER = "X-CSRF-TOKEN"
CSRF_MISMATCH_STATUS = 419


class StarletteSessionContext:
    """`SessionContext` backed by `request.session`.

    Requires `starlette.middleware.sessions.SessionMiddleware` on the app.
    """

    def __init__(self, session: dict[str, Any]) -> None:
        self._session = session

    @classmethod
    def from_request(cls, request: Request) -> "StarletteSessionContext":
        return cls(request.session)

    @property
    def user_key(self) -> Any | None:
        return self._session.get(AUTH_KEY)

    def token(self) -> str:
        token = self._session.get(TOKEN_KEY)
        if not token:
            token = secrets.token_urlsafe(30)
            self._session[TOKEN_KEY] = token
        return token

    def login(self, user_key: Any) -> None:
        self._session[AUTH_KEY] = user_key

    def logout(self) -> None:
        self._session.pop(AUTH_KEY, None)


def session_context(request: Request) -> StarletteSessionContext:
    """FastAPI dependency yielding the explicit session context."""

    return StarletteSessionContext.from_request(request)


async def _submitted_token(request: Request) -> str | None:
    header = request.headers.get(CSRF_HEADER)
    if header:
        return header

    if "application/json" not in request.headers.get("content-type", ""):
        return None
    try:
        body = await request.json()
    except ValueError:
        return None
    if isinstance(body, dict) and isinstance(body.get(TOKEN_KEY), str):
        return body[TOKEN_KEY]
    return None


async def require_csrf_token(request: Request) -> None:
    """Reject state-changing requests whose token does not match the session."""

    expected = request.session.get(TOKEN_KEY)
    submitted = await _submitted_token(request)
    if not expected or not submitted or not hmac.compare_digest(expected, submitted):
        logger.warning("CSRF token mismatch on %s %s", request.method, request.url.path)
        raise HTTPException(status_code=CSRF_MISMATCH_STATUS, detail="CSRF token mismatch.")
