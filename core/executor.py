# =============================================================================
# core/executor.py  —  Authenticated request execution
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Sends one document to Brinqa and turns the response into either the
#   payload or a classified error (core/errors.py).
#
# THE FLOW (per execute() call):
#   1. headers ← SessionManager.ensure_valid_session()   (may log in)
#      INGEST mode also adds X-API-KEY when an API key is configured.
#   2. POST the document  (explicit connect/read timeout)
#   3. HTTP 401           → invalidate(), go back to 1 ONCE.
#                           A second 401 → AuthenticationError.
#   4. other HTTP error   → NetworkError (remote message preferred)
#   5. transport error    → NetworkError
#   6. QUERY mode:  "errors" present  → RemoteQueryError ("a; b")
#                   "data" missing    → EmptyResultError
#                   otherwise         → data, untouched
#      INGEST mode: the JSON body, untouched (empty body → EmptyResultError)
#
# The payload is never reshaped or validated; whatever the remote schema
# returns passes straight through.
# =============================================================================

import logging
from typing import Any, Optional, Union

import requests

from core.config import GRAPHQL_PATH, INGEST_PATH, Settings
from core.errors import (
    AuthenticationError,
    EmptyResultError,
    NetworkError,
    RemoteQueryError,
)
from core.models import IngestDocument, QueryDocument, RequestMode
from core.session import SessionManager, remote_message

logger = logging.getLogger(__name__)

# Total attempts for one call: the original request plus one re-authenticated retry.
MAX_ATTEMPTS = 2

_PATHS = {
    RequestMode.QUERY: GRAPHQL_PATH,
    RequestMode.INGEST: INGEST_PATH,
}

_FAILURE_PREFIX = {
    RequestMode.QUERY: "GraphQL request failed",
    RequestMode.INGEST: "Brinqa Connect API request failed",
}


def _error_text(error: Any) -> str:
    """One entry of a GraphQL ``errors`` list as display text."""
    message = error.get("message") if isinstance(error, dict) else error
    if isinstance(message, str) and message:
        return message
    return str(error)


class RequestExecutor:
    """Runs documents against Brinqa with managed authentication."""

    def __init__(
        self,
        settings: Settings,
        sessions: SessionManager,
        http: Optional[requests.Session] = None,
    ):
        self._settings = settings
        self._sessions = sessions
        self._http = http or requests.Session()

    def execute(
        self,
        document: Union[QueryDocument, IngestDocument],
        mode: RequestMode = RequestMode.QUERY,
    ) -> Any:
        prefix = _FAILURE_PREFIX[mode]
        url = self._settings.url(_PATHS[mode])
        payload = document.to_payload()

        for attempt in range(1, MAX_ATTEMPTS + 1):
            headers = self._headers(mode)
            try:
                response = self._http.post(
                    url, json=payload, headers=headers, timeout=self._settings.timeout
                )
            except requests.RequestException as exc:
                logger.warning("%s: %s", prefix, exc)
                raise NetworkError(f"{prefix}: {exc}") from exc

            if response.status_code == 401:
                if attempt < MAX_ATTEMPTS:
                    logger.warning("Got 401 from %s; re-authenticating and retrying once", url)
                    self._sessions.invalidate()
                    continue
                message = remote_message(response) or "credential rejected after re-authentication"
                raise AuthenticationError(f"Authentication failed: {message}")

            try:
                response.raise_for_status()
            except requests.HTTPError as exc:
                message = remote_message(response) or str(exc)
                logger.warning("%s: %s", prefix, message)
                raise NetworkError(f"{prefix}: {message}") from exc

            return self._extract(response, mode, prefix)

        # Unreachable: the loop either returns or raises.
        raise AuthenticationError("Authentication failed")

    def _headers(self, mode: RequestMode) -> dict[str, str]:
        headers = self._sessions.ensure_valid_session()
        if mode is RequestMode.INGEST and self._settings.api_key:
            headers["X-API-KEY"] = self._settings.api_key
        return headers

    @staticmethod
    def _extract(response: requests.Response, mode: RequestMode, prefix: str) -> Any:
        if not response.content or not response.content.strip():
            if mode is RequestMode.QUERY:
                raise EmptyResultError("No data returned from GraphQL query")
            raise EmptyResultError("No data returned from Brinqa Connect API")
        try:
            body = response.json()
        except ValueError as exc:
            raise NetworkError(f"{prefix}: response was not valid JSON") from exc

        if mode is RequestMode.INGEST:
            return body

        if not isinstance(body, dict):
            raise NetworkError(f"{prefix}: unexpected response shape")
        errors = body.get("errors")
        if errors:
            if not isinstance(errors, list):
                errors = [errors]
            raise RemoteQueryError(f"GraphQL errors: {'; '.join(map(_error_text, errors))}")
        data = body.get("data")
        if data is None:
            raise EmptyResultError("No data returned from GraphQL query")
        return data
