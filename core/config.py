# =============================================================================
# core/config.py  —  Settings read from the environment
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Turns environment variables into one immutable Settings object.
#   main.py calls load_dotenv() first, so a local .env file works too.
#
# ENVIRONMENT VARIABLES:
#   BRINQA_API_URL          Base URL of the Brinqa platform (required)
#   BRINQA_USERNAME         \  password mode: login exchange against
#   BRINQA_PASSWORD         /  /api/auth/login
#   BRINQA_API_KEY          API-key mode (wins if both modes are configured)
#   BRINQA_CONNECT_TIMEOUT  seconds, default 10
#   BRINQA_READ_TIMEOUT     seconds, default 60
#   BRINQA_LOG_LEVEL        default INFO (read by tools/mcp_server.py)
#
# Missing credentials are NOT an error here.  They surface per call as a
# ConfigurationError from core/session.py, so the server can still start
# and list its tools.
# =============================================================================

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from core.errors import ConfigurationError
from core.models import AuthMode


DEFAULT_CONNECT_TIMEOUT = 10.0
DEFAULT_READ_TIMEOUT = 60.0

# Remote paths, relative to BRINQA_API_URL.
LOGIN_PATH = "/api/auth/login"
GRAPHQL_PATH = "/graphql/caasm"
CONNECT_PATH = "/connect"
INGEST_PATH = CONNECT_PATH + "/ingest"


def _read_timeout(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number of seconds, got {raw!r}")
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {raw!r}")
    return value


@dataclass(frozen=True)
class Settings:
    """Connection and credential settings for one Brinqa instance."""

    api_url: str = ""
    username: str = ""
    password: str = ""
    api_key: str = ""
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT
    read_timeout: float = DEFAULT_READ_TIMEOUT

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build Settings from ``environ`` (defaults to ``os.environ``)."""
        env = os.environ if environ is None else environ
        return cls(
            api_url=env.get("BRINQA_API_URL", "").strip().rstrip("/"),
            username=env.get("BRINQA_USERNAME", ""),
            password=env.get("BRINQA_PASSWORD", ""),
            api_key=env.get("BRINQA_API_KEY", ""),
            connect_timeout=_read_timeout(env, "BRINQA_CONNECT_TIMEOUT", DEFAULT_CONNECT_TIMEOUT),
            read_timeout=_read_timeout(env, "BRINQA_READ_TIMEOUT", DEFAULT_READ_TIMEOUT),
        )

    @property
    def auth_mode(self) -> Optional[AuthMode]:
        """Which auth source applies.  API key wins over username/password."""
        if self.api_key:
            return AuthMode.API_KEY
        if self.username and self.password:
            return AuthMode.PASSWORD
        return None

    @property
    def timeout(self) -> tuple[float, float]:
        """(connect, read) tuple in the form ``requests`` expects."""
        return (self.connect_timeout, self.read_timeout)

    def url(self, path: str) -> str:
        return f"{self.api_url}{path}"

    def require_api_url(self) -> None:
        """Raise ConfigurationError when no base URL is configured."""
        if not self.api_url:
            raise ConfigurationError(
                "BRINQA_API_URL environment variable is required. Set it to your "
                "Brinqa platform URL (e.g., https://your-instance.brinqa.net)"
            )
