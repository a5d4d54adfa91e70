"""Bridge configuration.

Why here:
- Centralizes environment variables (pydantic-settings) for both halves of
  the bridge: the server installer and the client command set read the same
  contract.
- Keeps the CLI free of parsing logic.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PRODUCTION_ENVIRONMENTS = frozenset({"production", "prod"})


def get_user_config_dir() -> Path:
    """Per-user configuration directory (cross-platform, no extra dependencies)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "e2e-bridge"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "e2e-bridge"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "e2e-bridge"
    return Path.home() / ".config" / "e2e-bridge"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def _parse_env_lines(text: str) -> dict[str, str]:
    data: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key:
            data[key] = value
    return data


def write_user_env_vars(values: dict[str, str], *, env_path: Path | None = None) -> Path:
    """Write or update variables in the user's global .env file."""

    env_path = env_path or get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing: dict[str, str] = {}
    if env_path.exists():
        existing = _parse_env_lines(env_path.read_text(encoding="utf-8"))

    existing.update({k: v for k, v in values.items() if v is not None})

    lines = ["# e2e-bridge user config (.env)"]
    for key in sorted(existing.keys()):
        lines.append(f"{key}={existing[key]}")
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return env_path


class AppSettings(BaseSettings):
    """Central settings for the bridge.

    Server fields only matter to `install_bridge`; client fields only matter
    to `BridgeClient` and the CLI. Both read the same `E2E_BRIDGE_` variables
    so a test suite and the application under test can share one `.env`.
    """

    model_config = SettingsConfigDict(
        env_prefix="E2E_BRIDGE_",
        extra="ignore",
        case_sensitive=False,
        # Project first (dev), then the user's global config.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    # Shared
    path_prefix: str = Field(
        default="/__cypress__",
        pattern=r"^/\S*$",
        description="Test-only URL prefix the bridge endpoints live under.",
    )

    # Client
    base_url: str = Field(
        default="http://localhost:8000",
        min_length=8,
        description="Base URL of the application under test.",
    )
    http_timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        description="Timeout per bridge request (seconds).",
    )
    user_agent: str = Field(
        default="e2e-bridge/0.1",
        min_length=1,
        description="User-Agent sent by the bridge client.",
    )
    routes_cache_path: Path = Field(
        default=Path("tests/e2e/routes.json"),
        description="JSON file holding the last fetched route table.",
    )
    log_commands: bool = Field(
        default=True,
        description="Emit a structured log record for every bridge command.",
    )

    # Server
    enabled: bool = Field(
        default=False,
        description="Mount the bridge endpoints. Must stay off outside test runs.",
    )
    environment: str = Field(
        default="local",
        min_length=1,
        description="Application environment name; production never gets the bridge.",
    )
    app_key: str | None = Field(
        default=None,
        description="Secret used for the session cookie and URL signatures.",
    )
    user_model: str = Field(
        default="User",
        min_length=1,
        description="Registered model name used by login and verification URLs.",
    )
    verification_route: str = Field(
        default="verification.verify",
        min_length=1,
        description="Route name signed by the email verification endpoint.",
    )
    verification_expire_minutes: int = Field(
        default=60,
        ge=1,
        description="Lifetime of signed verification URLs (minutes).",
    )
    allow_code_evaluation: bool = Field(
        default=True,
        description="Expose the unsafe code evaluation endpoint when the bridge is mounted.",
    )

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() in PRODUCTION_ENVIRONMENTS

    @property
    def bridge_allowed(self) -> bool:
        return self.enabled and not self.is_production

    def endpoint(self, name: str) -> str:
        """Absolute path of a bridge endpoint, e.g. `/__cypress__/login`."""

        return f"{self.path_prefix.rstrip('/')}/{name.lstrip('/')}"
