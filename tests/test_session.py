"""
Unit tests for core/session.py.

Covers mode selection (API key wins), the login exchange, session reuse
inside the validity window, refresh at the safety-margin threshold,
invalidation, and classification of login failures.
"""

from __future__ import annotations

import pytest
import requests

from conftest import login_ok, make_response
from core.config import LOGIN_PATH, Settings
from core.errors import AuthenticationError, ConfigurationError
from core.models import AuthMode
from core.session import (
    API_KEY_LIFETIME_SECONDS,
    SAFETY_MARGIN_SECONDS,
    SessionManager,
)


def _manager(settings, brinqa, clock):
    return SessionManager(settings, brinqa.http, clock=clock)


class TestModeSelection:

    def test_api_key_is_adopted_without_login(self, api_key_settings, brinqa, clock):
        manager = _manager(api_key_settings, brinqa, clock)
        headers = manager.ensure_valid_session()

        assert headers["Authorization"] == "Bearer key-123"
        assert manager.session.mode is AuthMode.API_KEY
        assert manager.session.expires_at == clock.now + API_KEY_LIFETIME_SECONDS
        brinqa.http.post.assert_not_called()

    def test_api_key_wins_over_password(self, brinqa, clock):
        settings = Settings(
            api_url="https://brinqa.test", username="u", password="p", api_key="key-123",
        )
        manager = _manager(settings, brinqa, clock)
        manager.ensure_valid_session()
        assert manager.session.mode is AuthMode.API_KEY
        assert brinqa.login_calls() == []

    def test_no_credentials_is_a_configuration_error(self, brinqa, clock):
        manager = _manager(Settings(api_url="https://brinqa.test"), brinqa, clock)
        with pytest.raises(ConfigurationError):
            manager.ensure_valid_session()
        brinqa.http.post.assert_not_called()

    def test_username_without_password_is_not_enough(self, brinqa, clock):
        manager = _manager(Settings(api_url="https://brinqa.test", username="u"), brinqa, clock)
        with pytest.raises(ConfigurationError):
            manager.ensure_valid_session()


class TestPasswordLogin:

    def test_login_exchange(self, password_settings, brinqa, clock):
        brinqa.queue(LOGIN_PATH, login_ok("abc", expires_in=3600))
        manager = _manager(password_settings, brinqa, clock)

        headers = manager.ensure_valid_session()

        assert headers == {
            "Authorization": "Bearer abc",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        (call,) = brinqa.login_calls()
        assert call.kwargs["json"] == {"username": "analyst", "password": "s3cret"}
        assert call.kwargs["timeout"] == (10.0, 60.0)
        assert manager.session.mode is AuthMode.PASSWORD
        assert manager.session.expires_at == clock.now + 3600 - SAFETY_MARGIN_SECONDS

    def test_session_is_reused_inside_window(self, password_settings, brinqa, clock):
        brinqa.queue(LOGIN_PATH, login_ok("abc"))
        manager = _manager(password_settings, brinqa, clock)

        first = manager.ensure_valid_session()
        clock.advance(60)
        second = manager.ensure_valid_session()

        assert first == second
        assert len(brinqa.login_calls()) == 1

    def test_refresh_happens_at_stale_threshold(self, password_settings, brinqa, clock):
        brinqa.queue(LOGIN_PATH, login_ok("first", 3600), login_ok("second", 3600))
        manager = _manager(password_settings, brinqa, clock)
        manager.ensure_valid_session()

        clock.advance(3600 - SAFETY_MARGIN_SECONDS - 1)
        assert manager.ensure_valid_session()["Authorization"] == "Bearer first"
        assert len(brinqa.login_calls()) == 1

        clock.advance(1)
        assert manager.ensure_valid_session()["Authorization"] == "Bearer second"
        assert len(brinqa.login_calls()) == 2

    def test_refresh_replaces_session_object(self, password_settings, brinqa, clock):
        brinqa.queue(LOGIN_PATH, login_ok("first"), login_ok("second"))
        manager = _manager(password_settings, brinqa, clock)
        manager.ensure_valid_session()
        old = manager.session

        clock.advance(3600)
        manager.ensure_valid_session()

        assert manager.session is not old
        assert old.credential == "first"

    def test_missing_expires_in_uses_default_lifetime(self, password_settings, brinqa, clock):
        brinqa.queue(LOGIN_PATH, make_response(200, {"access_token": "abc"}, path=LOGIN_PATH))
        manager = _manager(password_settings, brinqa, clock)
        manager.ensure_valid_session()
        assert manager.session.expires_at == clock.now + 24 * 60 * 60 - SAFETY_MARGIN_SECONDS


class TestLoginFailures:

    def test_remote_message_is_surfaced(self, password_settings, brinqa, clock):
        brinqa.queue(
            LOGIN_PATH, make_response(401, {"message": "Invalid credentials"}, path=LOGIN_PATH)
        )
        with pytest.raises(AuthenticationError, match="Authentication failed: Invalid credentials"):
            _manager(password_settings, brinqa, clock).ensure_valid_session()

    def test_transport_error_is_an_authentication_error(self, password_settings, brinqa, clock):
        brinqa.queue(LOGIN_PATH, requests.ConnectionError("connection refused"))
        with pytest.raises(AuthenticationError, match="connection refused"):
            _manager(password_settings, brinqa, clock).ensure_valid_session()

    def test_response_without_token(self, password_settings, brinqa, clock):
        brinqa.queue(LOGIN_PATH, make_response(200, {"token_type": "Bearer"}, path=LOGIN_PATH))
        with pytest.raises(AuthenticationError, match="no access_token"):
            _manager(password_settings, brinqa, clock).ensure_valid_session()

    def test_non_json_login_response(self, password_settings, brinqa, clock):
        brinqa.queue(LOGIN_PATH, make_response(200, text="<html>", path=LOGIN_PATH))
        with pytest.raises(AuthenticationError, match="not JSON"):
            _manager(password_settings, brinqa, clock).ensure_valid_session()

    def test_failed_login_leaves_no_session(self, password_settings, brinqa, clock):
        brinqa.queue(LOGIN_PATH, make_response(500, path=LOGIN_PATH))
        manager = _manager(password_settings, brinqa, clock)
        with pytest.raises(AuthenticationError):
            manager.ensure_valid_session()
        assert manager.session is None


class TestInvalidate:

    def test_invalidate_without_session_is_safe(self, password_settings, brinqa, clock):
        manager = _manager(password_settings, brinqa, clock)
        manager.invalidate()
        manager.invalidate()
        assert manager.session is None

    def test_invalidate_forces_reauthentication(self, password_settings, brinqa, clock):
        brinqa.queue(LOGIN_PATH, login_ok("first"), login_ok("second"))
        manager = _manager(password_settings, brinqa, clock)
        manager.ensure_valid_session()

        manager.invalidate()
        assert manager.session is None
        assert manager.ensure_valid_session()["Authorization"] == "Bearer second"
        assert len(brinqa.login_calls()) == 2

    def test_session_repr_hides_credential(self, api_key_settings, brinqa, clock):
        manager = _manager(api_key_settings, brinqa, clock)
        manager.ensure_valid_session()
        assert "key-123" not in repr(manager.session)
