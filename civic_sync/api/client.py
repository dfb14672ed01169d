"""
Resilient async REST client for the civic issue backend.

Features:
- Async HTTP with httpx
- Bearer token injection from the explicit auth session
- Per-call timeout
- Retry with backoff on network, timeout and 5xx failures
- Normalized error taxonomy and envelope validation
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, Dict, List, Optional, Tuple

import httpx
from pydantic import ValidationError

from civic_sync.api.retry import RetryPolicy
from civic_sync.config import ApiConfig
from civic_sync.constants import API_ENDPOINTS, ERROR_MESSAGES
from civic_sync.exceptions import (
    ApiError,
    ClientError,
    MalformedResponseError,
    NetworkUnavailableError,
    RequestTimeoutError,
    ServerError,
)
from civic_sync.logging import get_logger, request_context
from civic_sync.models.envelope import HealthStatus
from civic_sync.session import AuthSession

logger = get_logger("api")

JSON_METHODS = ("POST", "PUT")
ALLOWED_METHODS = ("GET", "POST", "PUT", "DELETE")

# (field name, (filename, content, content type))
FilePart = Tuple[str, Tuple[str, Any, str]]


class ApiClient:
    """
    Single facade over HTTP for the civic backend.

    Holds only transport configuration; the token is fetched from the
    session on every call.

    Example:
        async with ApiClient(get_settings().api_config, session) as client:
            envelope = await client.request("/issues", "GET")
    """

    def __init__(
        self,
        config: ApiConfig,
        session: Optional[AuthSession] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.config = config
        self.session = session or AuthSession()
        self.retry_policy = RetryPolicy.from_config(config)
        self._sleep = sleep
        self._timeout = httpx.Timeout(config.timeout)
        self._http = httpx.AsyncClient(
            base_url=config.base_url,
            timeout=self._timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    @property
    def base_url(self) -> str:
        return self.config.base_url

    # =========================================================================
    # Core primitive
    # =========================================================================

    async def request(
        self,
        endpoint: str,
        method: str = "GET",
        body: Optional[Dict[str, Any]] = None,
        require_auth: bool = True,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Perform one logical request, retrying transient failures.

        Args:
            endpoint: Path relative to the base URL (e.g. "/issues")
            method: GET, POST, PUT or DELETE
            body: JSON-serializable body (sent for POST/PUT only)
            require_auth: Attach the bearer token when one is stored
            params: Optional query parameters

        Returns:
            The decoded response envelope, unchanged

        Raises:
            ApiError subclass describing the final failure
        """
        method = method.upper()
        if method not in ALLOWED_METHODS:
            raise ValueError(f"Unsupported HTTP method: {method}")

        attempt = 1
        with request_context(method, endpoint):
            while True:
                try:
                    return await self._send_once(endpoint, method, body, require_auth, params, attempt)
                except ApiError as e:
                    e.attempts = attempt
                    if not self.retry_policy.should_retry(e, method, attempt):
                        if e.retryable and attempt > 1:
                            logger.error("api_retries_exhausted", attempts=attempt, kind=e.kind.value)
                        raise
                    delay = self.retry_policy.delay_for(attempt)
                    logger.warning(
                        "api_retry",
                        attempt=attempt + 1,
                        max_attempts=self.retry_policy.attempts,
                        delay_seconds=delay,
                        kind=e.kind.value,
                    )
                    await self._sleep(delay)
                    attempt += 1

    async def _send_once(
        self,
        endpoint: str,
        method: str,
        body: Optional[Dict[str, Any]],
        require_auth: bool,
        params: Optional[Dict[str, Any]],
        attempt: int,
    ) -> Dict[str, Any]:
        headers = {"Content-Type": "application/json"}
        token = await self.session.token() if require_auth else None
        if token:
            headers["Authorization"] = f"Bearer {token}"

        logger.debug("api_request", method=method, endpoint=endpoint, attempt=attempt)

        try:
            response = await self._http.request(
                method,
                endpoint,
                headers=headers,
                params=params,
                json=body if body is not None and method in JSON_METHODS else None,
                timeout=self._timeout,
            )
        except httpx.TimeoutException as e:
            raise RequestTimeoutError() from e
        except httpx.TransportError as e:
            raise NetworkUnavailableError() from e

        return await self._handle_response(response, sent_token=bool(token))

    async def _handle_response(self, response: httpx.Response, sent_token: bool) -> Dict[str, Any]:
        status = response.status_code
        logger.debug("api_response", status=status, url=str(response.request.url))

        if status >= 400:
            payload = self._error_payload(response)
            if status == 504:
                raise RequestTimeoutError(status_code=status, payload=payload)
            if status >= 500:
                raise ServerError(status_code=status, payload=payload)
            if status == 401 and sent_token:
                await self.session.invalidate(reason="unauthorized")
            fallback = ERROR_MESSAGES["unauthorized"] if status == 401 else ERROR_MESSAGES["http"]
            message = (payload or {}).get("message") or fallback.format(status=status)
            logger.warning("api_client_error", status=status, message=message)
            raise ClientError(str(message), status_code=status, payload=payload)

        # Redirects are not followed; an unconfirmed write must never read as success
        if not 200 <= status < 300:
            logger.warning("api_unexpected_status", status=status, location=response.headers.get("location"))
            raise MalformedResponseError(ERROR_MESSAGES["redirect"].format(status=status), status_code=status)

        if status == 204 or not response.content:
            return {"success": True}

        try:
            data = response.json()
        except ValueError as e:
            raise MalformedResponseError(status_code=status) from e

        if not isinstance(data, dict) or not isinstance(data.get("success"), bool):
            raise MalformedResponseError(
                "Response is missing the success envelope.", status_code=status
            )
        return data

    @staticmethod
    def _error_payload(response: httpx.Response) -> Optional[Dict[str, Any]]:
        """Structured error body, if the server sent one."""
        try:
            data = response.json()
        except ValueError:
            return None
        return data if isinstance(data, dict) else None

    # =========================================================================
    # Side channels
    # =========================================================================

    async def request_multipart(
        self,
        endpoint: str,
        fields: Dict[str, str],
        files: List[FilePart],
        method: str = "POST",
    ) -> Dict[str, Any]:
        """
        Submit a multipart form (text fields + file parts). Never retried:
        a partially consumed upload stream cannot be replayed safely.
        """
        headers: Dict[str, str] = {}
        token = await self.session.token()
        if token:
            headers["Authorization"] = f"Bearer {token}"

        logger.debug("api_multipart_request", method=method, endpoint=endpoint, parts=len(files))

        try:
            response = await self._http.request(
                method.upper(),
                endpoint,
                headers=headers,
                data=fields,
                files=files,
                timeout=self._timeout,
            )
        except httpx.TimeoutException as e:
            raise RequestTimeoutError() from e
        except httpx.TransportError as e:
            raise NetworkUnavailableError() from e

        return await self._handle_response(response, sent_token=bool(token))

    async def health_check(self) -> HealthStatus:
        """Liveness probe; single attempt, no auth."""
        try:
            data = await self._send_once(
                API_ENDPOINTS["health"], "GET", None, require_auth=False, params=None, attempt=1
            )
        except ApiError:
            logger.error("health_check_failed", base_url=self.base_url)
            raise
        try:
            return HealthStatus.model_validate(data)
        except ValidationError as e:
            raise MalformedResponseError("Invalid health payload.") from e


__all__ = ["ApiClient"]
