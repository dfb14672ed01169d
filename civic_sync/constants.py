"""
Client constants for Civic Sync.

Contains REST endpoint paths, persisted storage keys and user-facing
error messages.
"""

# =============================================================================
# REST Endpoints (relative to the configured base URL)
# =============================================================================

API_ENDPOINTS = {
    "auth": {
        "login": "/auth/login",
        "register": "/auth/register",
        "logout": "/auth/logout",
        "me": "/auth/me",
        "profile": "/auth/profile",
    },
    "issues": {
        "list": "/issues",
        "create": "/issues",
        "my_issues": "/issues/my-issues",
        "nearby": "/issues/nearby",
    },
    "health": "/health",
}


def issue_path(issue_id: str) -> str:
    """Path of a single issue (detail, update, delete)."""
    return f"/issues/{issue_id}"


def vote_path(issue_id: str, vote: str) -> str:
    """Path of the upvote/downvote endpoint for an issue."""
    return f"/issues/{issue_id}/{vote}"


DEFAULT_NEARBY_RADIUS = 10

# =============================================================================
# Persisted session keys
# =============================================================================

AUTH_TOKEN_KEY = "authToken"
USER_KEY = "user"

# =============================================================================
# User-facing messages
# =============================================================================

ERROR_MESSAGES = {
    "network": "Unable to connect to server. Please check your internet connection.",
    "timeout": "Request timed out. Please check your connection and try again.",
    "server": "Server error. Please try again later.",
    "malformed": "Received an invalid response from the server.",
    "unauthorized": "Please log in to continue.",
    "http": "Request failed with status {status}",
    "redirect": "Server answered with an unexpected redirect (HTTP {status}).",
}
