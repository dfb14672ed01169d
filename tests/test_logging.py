"""
Tests for structured logging helpers.
"""

import structlog

from civic_sync.logging import REDACTED, _redact_secrets, request_context


class TestRedaction:
    """Tests for credential masking."""

    def test_credentials_are_masked(self):
        """Test token, password and authorization fields never render."""
        event = {"event": "login", "token": "tok-123", "Password": "pw", "authorization": "Bearer x"}

        result = _redact_secrets(None, "info", event)

        assert result["token"] == REDACTED
        assert result["Password"] == REDACTED
        assert result["authorization"] == REDACTED
        assert result["event"] == "login"

    def test_empty_values_untouched(self):
        """Test absent credentials are not replaced by a mask."""
        result = _redact_secrets(None, "info", {"event": "logout", "token": None})

        assert result["token"] is None


class TestRequestContext:
    """Tests for per-request log context."""

    def test_binds_and_unbinds(self):
        """Test request fields exist only inside the context."""
        with request_context("GET", "/issues") as request_id:
            bound = structlog.contextvars.get_contextvars()
            assert bound["request_id"] == request_id
            assert bound["endpoint"] == "/issues"

        assert "request_id" not in structlog.contextvars.get_contextvars()

    def test_ids_are_unique(self):
        """Test each logical request gets its own id."""
        with request_context("GET", "/issues") as first:
            pass
        with request_context("GET", "/issues") as second:
            pass

        assert first != second
