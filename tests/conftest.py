"""
Pytest fixtures for Civic Sync tests.

HTTP is faked with httpx.MockTransport; backoff sleeps are recorded
instead of awaited so retry schedules can be asserted without waiting.
"""

import json
from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from civic_sync.api.client import ApiClient
from civic_sync.config import ApiConfig
from civic_sync.constants import AUTH_TOKEN_KEY, USER_KEY
from civic_sync.models.issue import Issue
from civic_sync.services.issue_service import IssueService
from civic_sync.session import AuthSession, MemoryTokenStore

from tests.helpers import BASE_URL, RecordingHandler


@pytest.fixture
def sample_user():
    """Sample authenticated user profile."""
    return {
        "_id": "u1",
        "name": "Asha Citizen",
        "email": "asha@example.com",
        "role": "citizen",
    }


@pytest.fixture
def session(sample_user):
    """Session with a stored token and user."""
    store = MemoryTokenStore({AUTH_TOKEN_KEY: "tok-123", USER_KEY: json.dumps(sample_user)})
    return AuthSession(store)


@pytest.fixture
def sleeps():
    """Backoff delays requested by the client, in order."""
    return []


@pytest.fixture
def make_client(session, sleeps) -> Callable[..., ApiClient]:
    """Factory for an ApiClient wired to a RecordingHandler."""

    async def fake_sleep(delay: float) -> None:
        sleeps.append(delay)

    def factory(
        handler: RecordingHandler,
        attempts: int = 3,
        retry_writes: bool = True,
        client_session: AuthSession | None = None,
    ) -> ApiClient:
        config = ApiConfig(
            base_url=BASE_URL,
            timeout=5.0,
            retry_attempts=attempts,
            backoff_unit=1.0,
            retry_writes=retry_writes,
        )
        return ApiClient(
            config,
            client_session or session,
            transport=httpx.MockTransport(handler),
            sleep=fake_sleep,
        )

    return factory


@pytest.fixture
def sample_issue_payload():
    """Sample issue as returned by the backend."""
    return {
        "_id": "i1",
        "title": "Pothole on Elm St",
        "description": "Deep pothole near the school crossing",
        "category": "road_maintenance",
        "priority": "high",
        "status": "reported",
        "location": {"type": "Point", "coordinates": [77.5946, 12.9716]},
        "address": "Elm St & 3rd Ave",
        "images": [{"url": "https://cdn.example.com/i1.jpg", "publicId": "i1"}],
        "reportedBy": {"_id": "u1", "name": "Asha Citizen"},
        "upvotes": 3,
        "downvotes": 0,
        "userVote": None,
        "netVotes": 3,
        "isAnonymous": False,
        "visibility": "public",
        "createdAt": "2024-05-01T10:00:00Z",
        "updatedAt": "2024-05-01T10:00:00Z",
    }


@pytest.fixture
def make_issue(sample_issue_payload) -> Callable[..., Issue]:
    """Factory for Issue models based on the sample payload."""

    def factory(**overrides: Any) -> Issue:
        return Issue.model_validate({**sample_issue_payload, **overrides})

    return factory


@pytest.fixture
def issue_service():
    """IssueService double with async methods."""
    service = MagicMock(spec=IssueService)
    for name in (
        "list_issues",
        "my_issues",
        "nearby",
        "by_status",
        "by_category",
        "get",
        "create",
        "update",
        "delete",
        "upvote",
        "downvote",
    ):
        setattr(service, name, AsyncMock())
    return service
