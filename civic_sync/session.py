"""
Authentication session and token persistence.

The auth token and the serialized user profile are the only persisted
client state. They live in a ``TokenStore`` under the fixed keys
``authToken`` and ``user``; an ``AuthSession`` wraps the store and is
passed explicitly to the API client and services.

Usage:
    session = AuthSession(FileTokenStore("~/.civic/session.json"))
    await session.start(token, user)   # at login
    await session.token()              # read fresh on every request
    await session.end()                # at logout
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

from pydantic import ValidationError

from civic_sync.constants import AUTH_TOKEN_KEY, USER_KEY
from civic_sync.exceptions import SessionError
from civic_sync.logging import get_logger
from civic_sync.models.envelope import UserProfile

logger = get_logger("session")


class TokenStore(Protocol):
    """Async key/value storage for session data."""

    async def get(self, key: str) -> Optional[str]: ...

    async def set(self, key: str, value: str) -> None: ...

    async def remove(self, key: str) -> None: ...


class MemoryTokenStore:
    """In-process token store; state is lost when the process exits."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)


class FileTokenStore:
    """
    JSON-file token store.

    Writes go to a temporary file in the same directory which then
    replaces the target, so a crash never leaves a half-written file.
    """

    def __init__(self, path: str | os.PathLike):
        self.path = Path(path).expanduser()

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError) as e:
            raise SessionError(f"Cannot read session file {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise SessionError(f"Session file {self.path} does not contain an object")
        return data

    def _write(self, data: Dict[str, str]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".session-")
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(data, handle)
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise SessionError(f"Cannot write session file {self.path}: {e}") from e

    async def get(self, key: str) -> Optional[str]:
        return self._read().get(key)

    async def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    async def remove(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)


class AuthSession:
    """
    Explicit authentication session.

    Created at login (``start``) and destroyed at logout (``end``). The
    token is read from the store on every call so that a token cleared
    elsewhere is never sent again.
    """

    def __init__(self, store: Optional[TokenStore] = None):
        self.store: TokenStore = store if store is not None else MemoryTokenStore()

    async def token(self) -> Optional[str]:
        return await self.store.get(AUTH_TOKEN_KEY)

    async def user(self) -> Optional[UserProfile]:
        """Stored user profile, or None when absent or unreadable."""
        raw = await self.store.get(USER_KEY)
        if not raw:
            return None
        try:
            return UserProfile.model_validate_json(raw)
        except ValidationError as e:
            logger.warning("session_user_unreadable", error=str(e))
            return None

    async def is_authenticated(self) -> bool:
        return bool(await self.token()) and (await self.user()) is not None

    async def start(self, token: str, user: UserProfile | Dict[str, Any]) -> None:
        """Persist a new token and user profile."""
        profile = user if isinstance(user, UserProfile) else UserProfile.model_validate(user)
        await self.store.set(AUTH_TOKEN_KEY, token)
        await self.store.set(USER_KEY, profile.model_dump_json(by_alias=True))
        logger.info("session_started", user_id=profile.id)

    async def save_user(self, user: UserProfile | Dict[str, Any]) -> None:
        """Replace the stored profile, keeping the token."""
        profile = user if isinstance(user, UserProfile) else UserProfile.model_validate(user)
        await self.store.set(USER_KEY, profile.model_dump_json(by_alias=True))

    async def end(self) -> None:
        """Remove the token and user profile."""
        await self.store.remove(AUTH_TOKEN_KEY)
        await self.store.remove(USER_KEY)
        logger.info("session_ended")

    async def invalidate(self, reason: str) -> None:
        """End the session because the server rejected the token."""
        logger.warning("session_invalidated", reason=reason)
        await self.end()


__all__ = ["TokenStore", "MemoryTokenStore", "FileTokenStore", "AuthSession"]
