"""
Auth Service - login, registration and session lifecycle.

The session is created on successful login/registration and destroyed
on logout or when the stored token no longer verifies.
"""

from typing import Any, Dict, Optional

from civic_sync.api.client import ApiClient
from civic_sync.constants import API_ENDPOINTS
from civic_sync.exceptions import ApiError
from civic_sync.logging import get_logger
from civic_sync.models.envelope import AuthPayload, UserProfile
from civic_sync.services.issue_service import parse_model, unwrap
from civic_sync.session import AuthSession

logger = get_logger("auth.service")

AUTH_ENDPOINTS = API_ENDPOINTS["auth"]


class AuthService:
    """Authentication collaborator sharing the client's session."""

    def __init__(self, client: ApiClient):
        self.client = client

    @property
    def session(self) -> AuthSession:
        return self.client.session

    async def login(self, email: str, password: str) -> AuthPayload:
        payload = await self.client.request(
            AUTH_ENDPOINTS["login"], "POST", {"email": email, "password": password}, require_auth=False
        )
        return await self._start_session(payload, "log in")

    async def register(self, user_data: Dict[str, Any]) -> AuthPayload:
        payload = await self.client.request(
            AUTH_ENDPOINTS["register"], "POST", user_data, require_auth=False
        )
        return await self._start_session(payload, "register")

    async def _start_session(self, payload: Dict[str, Any], operation: str) -> AuthPayload:
        unwrap(payload, operation)
        auth = parse_model(AuthPayload, payload, operation)
        await self.session.start(auth.token, auth.user)
        return auth

    async def logout(self) -> None:
        """Notify the server when possible; always clear the local session."""
        try:
            if await self.session.token():
                await self.client.request(AUTH_ENDPOINTS["logout"], "POST")
        except ApiError as e:
            logger.warning("logout_request_failed", error=e.message, kind=e.kind.value)
        finally:
            await self.session.end()

    async def me(self) -> UserProfile:
        payload = await self.client.request(AUTH_ENDPOINTS["me"], "GET")
        envelope = unwrap(payload, "fetch profile")
        # /auth/me answers with the profile under "user"; older builds use "data"
        return parse_model(UserProfile, payload.get("user") or envelope.data, "me")

    async def check_auth_status(self) -> Optional[UserProfile]:
        """
        Verify a stored token against the server.

        Returns the refreshed profile, or None after clearing a session
        that failed verification.
        """
        if not await self.session.token():
            return None
        try:
            profile = await self.me()
        except ApiError as e:
            logger.warning("token_verification_failed", error=e.message, kind=e.kind.value)
            await self.session.invalidate(reason="verification_failed")
            return None
        await self.session.save_user(profile)
        return profile

    async def update_profile(self, profile_data: Dict[str, Any]) -> UserProfile:
        payload = await self.client.request(AUTH_ENDPOINTS["profile"], "PUT", profile_data)
        envelope = unwrap(payload, "update profile")
        profile = parse_model(UserProfile, payload.get("user") or envelope.data, "update_profile")
        await self.session.save_user(profile)
        return profile


__all__ = ["AuthService"]
