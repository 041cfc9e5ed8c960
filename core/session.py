# =============================================================================
# core/session.py  —  Credential / session manager
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Owns the single authentication Session for one client and turns it into
#   request headers.
#
#   ensure_valid_session() -> headers
#     fast path   valid session exists → headers, no network call
#     API key     adopt the key as the bearer value, 24h horizon
#     password    POST /api/auth/login, expires_at = now + expires_in - 5min
#     neither     ConfigurationError
#
#   invalidate()
#     drops the session; the next call re-authenticates.  Idempotent.
#
# CONCURRENCY:
#   The Session object is frozen and replaced with a single attribute store,
#   so a reader sees either the old session or the new one, never a mix.
#   Refresh is NOT single-flight: two calls that both find the session stale
#   may both log in.  The last login wins; both tokens are valid remotely.
# =============================================================================

import logging
import time
from typing import Callable, Optional

import requests

from core.config import LOGIN_PATH, Settings
from core.errors import AuthenticationError, ConfigurationError
from core.models import AuthMode, Session

logger = logging.getLogger(__name__)

# An API key does not expire; the horizon only keeps both modes on one path.
API_KEY_LIFETIME_SECONDS = 24 * 60 * 60

# Sessions go stale this long before the remote side expires the token.
SAFETY_MARGIN_SECONDS = 5 * 60

# Used when the login response omits expires_in.
DEFAULT_TOKEN_LIFETIME_SECONDS = 24 * 60 * 60


def remote_message(response: Optional[requests.Response]) -> Optional[str]:
    """Best error text a Brinqa response carries, if any."""
    if response is None:
        return None
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    message = body.get("message")
    if isinstance(message, str) and message:
        return message
    errors = body.get("errors")
    if isinstance(errors, list):
        messages = [e.get("message") for e in errors if isinstance(e, dict) and e.get("message")]
        if messages:
            return "; ".join(messages)
    return None


class SessionManager:
    """Creates, reuses, refreshes and drops the client's Session."""

    def __init__(
        self,
        settings: Settings,
        http: Optional[requests.Session] = None,
        clock: Callable[[], float] = time.time,
    ):
        self._settings = settings
        self._http = http or requests.Session()
        self._clock = clock
        self._session: Optional[Session] = None

    @property
    def session(self) -> Optional[Session]:
        return self._session

    def ensure_valid_session(self) -> dict[str, str]:
        """Return auth headers, authenticating first if needed."""
        session = self._session
        if session is None or not session.is_valid(self._clock()):
            session = self._authenticate()
            self._session = session
        return {
            "Authorization": f"Bearer {session.credential}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def invalidate(self) -> None:
        if self._session is not None:
            logger.info("Dropping %s session", self._session.mode.value)
        self._session = None

    # -------------------------------------------------------------------------
    # Authentication
    # -------------------------------------------------------------------------
    def _authenticate(self) -> Session:
        mode = self._settings.auth_mode
        if mode is AuthMode.API_KEY:
            logger.info("Using API key authentication")
            return Session(
                credential=self._settings.api_key,
                expires_at=self._clock() + API_KEY_LIFETIME_SECONDS,
                mode=AuthMode.API_KEY,
            )
        if mode is AuthMode.PASSWORD:
            return self._login()
        raise ConfigurationError(
            "Authentication credentials not configured. "
            "Set BRINQA_USERNAME and BRINQA_PASSWORD or BRINQA_API_KEY."
        )

    def _login(self) -> Session:
        self._settings.require_api_url()
        logger.info("Logging in to Brinqa as %s", self._settings.username)
        started = self._clock()
        try:
            response = self._http.post(
                self._settings.url(LOGIN_PATH),
                json={
                    "username": self._settings.username,
                    "password": self._settings.password,
                },
                headers={"Content-Type": "application/json", "Accept": "application/json"},
                timeout=self._settings.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            message = remote_message(exc.response) or str(exc)
            raise AuthenticationError(f"Authentication failed: {message}") from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise AuthenticationError("Authentication failed: login response was not JSON") from exc

        token = body.get("access_token") if isinstance(body, dict) else None
        if not token:
            raise AuthenticationError("Authentication failed: no access_token in login response")

        lifetime = body.get("expires_in", DEFAULT_TOKEN_LIFETIME_SECONDS)
        if isinstance(lifetime, bool) or not isinstance(lifetime, (int, float)):
            lifetime = DEFAULT_TOKEN_LIFETIME_SECONDS
        expires_at = started + lifetime - SAFETY_MARGIN_SECONDS
        logger.info("Login succeeded; token valid for %ss", lifetime)
        return Session(credential=token, expires_at=expires_at, mode=AuthMode.PASSWORD)
