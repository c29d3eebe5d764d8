"""Environment-driven configuration for the MCP server.

Read once at start-up. Required values that are missing or malformed raise
ConfigError naming the offending variable.
"""
import os
from dataclasses import dataclass, field
from typing import Mapping

DEFAULT_PORT = 3000
DEFAULT_HOST = "0.0.0.0"
DEFAULT_API_BASE_URL = "https://api.twitter.com/2"
DEFAULT_MAX_TEXT_LENGTH = 500
DEFAULT_TIMEOUT_SECONDS = 30.0

_TRUTHY = {"1", "true", "yes", "on"}


class ConfigError(ValueError):
    """Raised when a required environment variable is absent or invalid."""


@dataclass(frozen=True)
class AuthRequired:
    """Inbound MCP requests must carry this secret in the x-api-key header."""
    secret: str = field(repr=False)


@dataclass(frozen=True)
class AuthDisabled:
    """Inbound MCP requests are accepted without a shared secret."""


AuthPolicy = AuthRequired | AuthDisabled


@dataclass(frozen=True)
class AppConfig:
    bearer_token: str = field(repr=False)
    auth: AuthPolicy
    port: int = DEFAULT_PORT
    host: str = DEFAULT_HOST
    api_base_url: str = DEFAULT_API_BASE_URL
    max_text_length: int = DEFAULT_MAX_TEXT_LENGTH
    request_timeout: float = DEFAULT_TIMEOUT_SECONDS
    log_level: str = "INFO"


def _require(env: Mapping[str, str], name: str) -> str:
    value = env.get(name, "").strip()
    if not value:
        raise ConfigError(f"Missing required environment variable: {name}")
    return value


def _positive_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"Invalid {name} value: {raw!r}") from None
    if value <= 0:
        raise ConfigError(f"Invalid {name} value: {raw!r}")
    return value


def _positive_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigError(f"Invalid {name} value: {raw!r}") from None
    if value <= 0:
        raise ConfigError(f"Invalid {name} value: {raw!r}")
    return value


def _auth_policy(env: Mapping[str, str]) -> AuthPolicy:
    secret = env.get("MCP_SERVER_API_KEY", "").strip()
    if secret:
        return AuthRequired(secret)
    if env.get("MCP_ALLOW_UNAUTHENTICATED", "").strip().lower() in _TRUTHY:
        return AuthDisabled()
    raise ConfigError(
        "Missing required environment variable: MCP_SERVER_API_KEY "
        "(set MCP_ALLOW_UNAUTHENTICATED=true to run without one)"
    )


def load_config(environ: Mapping[str, str] | None = None) -> AppConfig:
    """Build an AppConfig from the given mapping (defaults to os.environ)."""
    env = os.environ if environ is None else environ

    port = _positive_int(env, "PORT", DEFAULT_PORT)
    bearer_token = _require(env, "TWITTER_BEARER_TOKEN")
    auth = _auth_policy(env)
    base_url = env.get("TWITTER_API_BASE_URL", "").strip() or DEFAULT_API_BASE_URL

    return AppConfig(
        bearer_token=bearer_token,
        auth=auth,
        port=port,
        host=env.get("HOST", "").strip() or DEFAULT_HOST,
        api_base_url=base_url.rstrip("/"),
        max_text_length=_positive_int(env, "TWEET_MAX_TEXT_LENGTH", DEFAULT_MAX_TEXT_LENGTH),
        request_timeout=_positive_float(env, "TWITTER_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS),
        log_level=(env.get("LOG_LEVEL", "").strip() or "INFO").upper(),
    )
