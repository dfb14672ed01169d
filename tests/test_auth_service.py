"""
Tests for the auth service and its session lifecycle.
"""

import asyncio

import httpx
import pytest

from civic_sync.exceptions import ClientError
from civic_sync.services.auth_service import AuthService
from civic_sync.session import AuthSession, MemoryTokenStore

from tests.helpers import RecordingHandler, json_response


def run_auth(make_client, handler, call, client_session=None):
    async def scenario():
        async with make_client(handler, client_session=client_session) as client:
            return await call(AuthService(client))

    return asyncio.run(scenario())


@pytest.fixture
def auth_reply(sample_user):
    return {"success": True, "token": "tok-new", "user": sample_user, "message": "Welcome"}


class TestLogin:
    """Tests for login and registration."""

    def test_login_starts_session(self, make_client, auth_reply):
        """Test a successful login persists token and user."""
        session = AuthSession(MemoryTokenStore())
        handler = RecordingHandler(json_response(200, auth_reply))

        result = run_auth(
            make_client, handler, lambda auth: auth.login("asha@example.com", "pw"), client_session=session
        )

        assert result.token == "tok-new"
        assert "Authorization" not in handler.requests[0].headers
        assert handler.body() == {"email": "asha@example.com", "password": "pw"}
        assert asyncio.run(session.token()) == "tok-new"
        assert asyncio.run(session.user()).email == "asha@example.com"

    def test_rejected_login_keeps_session_empty(self, make_client):
        """Test bad credentials raise and persist nothing."""
        session = AuthSession(MemoryTokenStore())
        handler = RecordingHandler(json_response(401, {"success": False, "message": "Invalid credentials"}))

        with pytest.raises(ClientError, match="Invalid credentials"):
            run_auth(make_client, handler, lambda auth: auth.login("a@b.c", "bad"), client_session=session)

        assert asyncio.run(session.token()) is None
        assert handler.calls == 1

    def test_register_starts_session(self, make_client, auth_reply):
        """Test registration behaves like login on success."""
        session = AuthSession(MemoryTokenStore())
        handler = RecordingHandler(json_response(201, auth_reply))

        run_auth(
            make_client,
            handler,
            lambda auth: auth.register({"name": "Asha", "email": "asha@example.com", "password": "pw"}),
            client_session=session,
        )

        assert handler.requests[0].url.path == "/api/auth/register"
        assert asyncio.run(session.is_authenticated()) is True


class TestLogout:
    """Tests for logout."""

    def test_logout_clears_session(self, make_client, session):
        """Test logout notifies the server and clears local state."""
        handler = RecordingHandler(json_response(200, {"success": True}))

        run_auth(make_client, handler, lambda auth: auth.logout())

        assert handler.requests[0].headers["Authorization"] == "Bearer tok-123"
        assert asyncio.run(session.token()) is None
        assert asyncio.run(session.user()) is None

    def test_logout_clears_session_when_offline(self, make_client, session):
        """Test the local session ends even when the server is unreachable."""
        handler = RecordingHandler(httpx.ConnectError("offline"))

        run_auth(make_client, handler, lambda auth: auth.logout())

        assert asyncio.run(session.token()) is None

    def test_logout_without_token_skips_request(self, make_client):
        """Test no request is sent when no session exists."""
        handler = RecordingHandler(json_response(200, {"success": True}))

        run_auth(make_client, handler, lambda auth: auth.logout(), client_session=AuthSession())

        assert handler.calls == 0


class TestAuthStatus:
    """Tests for token verification."""

    def test_valid_token_refreshes_profile(self, make_client, session, sample_user):
        """Test a verified token stores the server's latest profile."""
        handler = RecordingHandler(
            json_response(200, {"success": True, "user": {**sample_user, "name": "Asha C."}})
        )

        profile = run_auth(make_client, handler, lambda auth: auth.check_auth_status())

        assert profile.name == "Asha C."
        assert asyncio.run(session.user()).name == "Asha C."
        assert asyncio.run(session.token()) == "tok-123"

    def test_rejected_token_clears_session(self, make_client, session):
        """Test a 401 during verification ends the session."""
        handler = RecordingHandler(json_response(401, {"success": False, "message": "Token expired"}))

        profile = run_auth(make_client, handler, lambda auth: auth.check_auth_status())

        assert profile is None
        assert asyncio.run(session.token()) is None

    def test_no_token_returns_none(self, make_client):
        """Test verification without a token sends nothing."""
        handler = RecordingHandler(json_response(200, {"success": True}))

        profile = run_auth(make_client, handler, lambda auth: auth.check_auth_status(), client_session=AuthSession())

        assert profile is None
        assert handler.calls == 0

    def test_update_profile_saves_user(self, make_client, session, sample_user):
        """Test a profile update replaces the stored user."""
        handler = RecordingHandler(
            json_response(200, {"success": True, "data": {**sample_user, "phone": "555-0100"}})
        )

        profile = run_auth(make_client, handler, lambda auth: auth.update_profile({"phone": "555-0100"}))

        assert handler.requests[0].method == "PUT"
        assert profile.phone == "555-0100"
        assert asyncio.run(session.user()).phone == "555-0100"
