"""Temporary signed URLs.

Format: `<url>?<params>&expires=<unix ts>&signature=<hex>`, where the
signature is HMAC-SHA256 of everything before `&signature=` keyed with the
application key.
"""

from __future__ import annotations

import hashlib
import hmac
from datetime import datetime, timezone
from typing import Any, Mapping
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from starlette.routing import Router


def _signature(url: str, key: str) -> str:
    return hmac.new(key.encode("utf-8"), url.encode("utf-8"), hashlib.sha256).hexdigest()


def sign_url(url: str, key: str, *, expires_at: datetime) -> str:
    parts = urlsplit(url)
    query = parse_qsl(parts.query, keep_blank_values=True)
    query.append(("expires", str(int(expires_at.timestamp()))))
    unsigned = urlunsplit(parts._replace(query=urlencode(query)))
    return f"{unsigned}&signature={_signature(unsigned, key)}"


def has_valid_signature(url: str, key: str, *, now: datetime | None = None) -> bool:
    """Check a URL produced by `sign_url`: untampered and not expired."""

    unsigned, separator, signature = url.rpartition("&signature=")
    if not separator or not hmac.compare_digest(_signature(unsigned, key), signature):
        return False

    expires = dict(parse_qsl(urlsplit(unsigned).query)).get("expires")
    if expires is None or not expires.isdigit():
        return False
    now = now or datetime.now(timezone.utc)
    return now.timestamp() < int(expires)


class HmacUrlSigner:
    """`UrlSigner` resolving route names through the host Starlette router."""

    def __init__(self, router: Router, key: str) -> None:
        self._router = router
        self._key = key

    def temporary_signed_route(
        self,
        name: str,
        *,
        expires_at: datetime,
        parameters: Mapping[str, Any],
        base_url: str,
    ) -> str:
        path = self._router.url_path_for(name, **{k: str(v) for k, v in parameters.items()})
        url = str(path.make_absolute_url(base_url=base_url))
        return sign_url(url, self._key, expires_at=expires_at)
