"""
API client error taxonomy.

Every failure surfaced by the API client is an ``ApiError`` subclass
tagged with an ``ErrorKind``. Network, timeout and server errors are
retryable; client and malformed-response errors are not.
"""

from typing import Any, Dict, Optional

from civic_sync.constants import ERROR_MESSAGES
from civic_sync.models.enums import ErrorKind


class ApiError(Exception):
    """Base class for API client failures."""

    kind: ErrorKind = ErrorKind.SERVER
    retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        attempts: int = 1,
        payload: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.attempts = attempts
        self.payload = payload

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(kind={self.kind.value!r}, status_code={self.status_code!r}, "
            f"attempts={self.attempts}, message={self.message!r})"
        )


class NetworkUnavailableError(ApiError):
    """The request never reached the server (DNS, refused, reset)."""

    kind = ErrorKind.NETWORK
    retryable = True

    def __init__(self, message: str = ERROR_MESSAGES["network"], **kwargs: Any):
        super().__init__(message, **kwargs)


class RequestTimeoutError(ApiError):
    """The per-call deadline elapsed, or the gateway answered 504."""

    kind = ErrorKind.TIMEOUT
    retryable = True

    def __init__(self, message: str = ERROR_MESSAGES["timeout"], **kwargs: Any):
        super().__init__(message, **kwargs)


class ServerError(ApiError):
    """HTTP 5xx response."""

    kind = ErrorKind.SERVER
    retryable = True

    def __init__(self, message: str = ERROR_MESSAGES["server"], **kwargs: Any):
        super().__init__(message, **kwargs)


class ClientError(ApiError):
    """
    HTTP 4xx response, or a ``{success: false}`` envelope.

    The message is the server's own message when one was provided so
    callers can show field-level validation feedback unchanged.
    """

    kind = ErrorKind.CLIENT

    @property
    def is_auth_error(self) -> bool:
        return self.status_code in (401, 403)


class MalformedResponseError(ApiError):
    """Response body is not JSON or violates the expected schema."""

    kind = ErrorKind.MALFORMED

    def __init__(self, message: str = ERROR_MESSAGES["malformed"], **kwargs: Any):
        super().__init__(message, **kwargs)


class SessionError(Exception):
    """Raised when the persisted session cannot be read or written."""

    pass


__all__ = [
    "ApiError",
    "NetworkUnavailableError",
    "RequestTimeoutError",
    "ServerError",
    "ClientError",
    "MalformedResponseError",
    "SessionError",
]
