"""Route table cache on disk.

Why a file:
- `refresh_routes` runs once (CLI or first test); every later `visit` and
  `assert_location` resolves names without another request.
- The file is overwritten wholesale on each refresh; one writer at a time.
"""

from __future__ import annotations

import json
from pathlib import Path

from e2e_bridge.core.domain.models import RouteCollection


class RouteCacheMissing(FileNotFoundError):
    """The cache file has not been written yet."""


def write_route_cache(*, routes: RouteCollection, output_path: Path) -> Path:
    """Write `routes` as UTF-8 JSON with a stable layout."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    payload = routes.model_dump(mode="json")
    output_path.write_text(
        json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True) + "\n",
        encoding="utf-8",
    )
    return output_path


def load_route_cache(path: Path) -> RouteCollection:
    if not path.exists():
        raise RouteCacheMissing(
            f"Route cache {path} not found. Run `e2e-bridge refresh-routes` first."
        )
    raw = path.read_text(encoding="utf-8")
    return RouteCollection.model_validate(json.loads(raw))
