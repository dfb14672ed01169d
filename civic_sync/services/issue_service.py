"""
Issue Service - typed access to the issue endpoints.

Validates every payload at the client boundary:
1. Envelope ``success: false`` becomes a ClientError carrying the server message
2. Payloads that do not match the issue schemas become MalformedResponseError
3. Callers receive models, never raw dictionaries
"""

import mimetypes
from pathlib import Path
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from civic_sync.api.client import ApiClient, FilePart
from civic_sync.constants import API_ENDPOINTS, DEFAULT_NEARBY_RADIUS, issue_path, vote_path
from civic_sync.exceptions import ClientError, MalformedResponseError
from civic_sync.logging import get_logger
from civic_sync.models.enums import VoteType
from civic_sync.models.envelope import Envelope
from civic_sync.models.issue import Issue, IssueDraft, IssueFilters, VoteTally

logger = get_logger("issues.service")

M = TypeVar("M", bound=BaseModel)

_ISSUE_LIST = TypeAdapter(List[Issue])

ISSUE_ENDPOINTS = API_ENDPOINTS["issues"]


def unwrap(payload: Dict[str, Any], operation: str) -> Envelope:
    """Validate the envelope and raise on ``success: false``."""
    try:
        envelope = Envelope.model_validate(payload)
    except ValidationError as e:
        raise MalformedResponseError(f"Invalid envelope for {operation}: {e.error_count()} errors") from e
    if not envelope.success:
        raise ClientError(envelope.message or f"Failed to {operation}", payload=payload)
    return envelope


def parse_model(model: Type[M], data: Any, operation: str) -> M:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.warning("schema_violation", operation=operation, errors=e.error_count())
        raise MalformedResponseError(f"Invalid {model.__name__} payload for {operation}") from e


def parse_issue_list(data: Any, operation: str) -> List[Issue]:
    # Some list endpoints nest the list under "issues" alongside pagination
    if isinstance(data, dict) and "issues" in data:
        data = data["issues"]
    try:
        return _ISSUE_LIST.validate_python(data)
    except ValidationError as e:
        logger.warning("schema_violation", operation=operation, errors=e.error_count())
        raise MalformedResponseError(f"Invalid issue list payload for {operation}") from e


class IssueService:
    """
    Typed wrapper over the issue endpoints.

    Usage:
        service = IssueService(client)
        issues = await service.list_issues(IssueFilters(status="reported"))
        tally = await service.upvote("i1")
    """

    def __init__(self, client: ApiClient):
        self.client = client

    # =========================================================================
    # Reads
    # =========================================================================

    async def list_issues(self, filters: IssueFilters | Dict[str, Any] | None = None) -> List[Issue]:
        if isinstance(filters, dict):
            filters = IssueFilters.model_validate(filters)
        params = filters.to_params() if filters else None
        payload = await self.client.request(ISSUE_ENDPOINTS["list"], "GET", params=params or None)
        return parse_issue_list(unwrap(payload, "fetch issues").data, "list_issues")

    async def my_issues(self) -> List[Issue]:
        payload = await self.client.request(ISSUE_ENDPOINTS["my_issues"], "GET")
        return parse_issue_list(unwrap(payload, "fetch your issues").data, "my_issues")

    async def nearby(
        self, latitude: float, longitude: float, radius: float = DEFAULT_NEARBY_RADIUS
    ) -> List[Issue]:
        params = {"lat": latitude, "lng": longitude, "radius": radius}
        payload = await self.client.request(ISSUE_ENDPOINTS["nearby"], "GET", params=params)
        return parse_issue_list(unwrap(payload, "fetch nearby issues").data, "nearby")

    async def by_status(self, status: str) -> List[Issue]:
        return await self.list_issues(IssueFilters(status=status))

    async def by_category(self, category: str) -> List[Issue]:
        return await self.list_issues(IssueFilters(category=category))

    async def get(self, issue_id: str) -> Issue:
        payload = await self.client.request(issue_path(issue_id), "GET")
        return parse_model(Issue, unwrap(payload, "fetch issue details").data, "get")

    # =========================================================================
    # Writes
    # =========================================================================

    async def create(self, draft: IssueDraft | Dict[str, Any]) -> Issue:
        """Submit a new issue; image paths switch the request to multipart."""
        if isinstance(draft, dict):
            draft = IssueDraft.model_validate(draft)

        if draft.has_images:
            payload = await self.client.request_multipart(
                ISSUE_ENDPOINTS["create"], draft.to_form_fields(), self._image_parts(draft.images)
            )
        else:
            payload = await self.client.request(ISSUE_ENDPOINTS["create"], "POST", draft.to_payload())
        return parse_model(Issue, unwrap(payload, "create issue").data, "create")

    async def update(self, issue_id: str, patch: Dict[str, Any]) -> Optional[Issue]:
        """Update an issue; returns the server's copy when it sends one."""
        body = Issue.wire_keys(patch)
        payload = await self.client.request(issue_path(issue_id), "PUT", body)
        data = unwrap(payload, "update issue").data
        if not isinstance(data, dict) or ("_id" not in data and "id" not in data):
            return None
        return parse_model(Issue, data, "update")

    async def delete(self, issue_id: str) -> None:
        payload = await self.client.request(issue_path(issue_id), "DELETE")
        unwrap(payload, "delete issue")

    async def upvote(self, issue_id: str) -> VoteTally:
        return await self._vote(issue_id, VoteType.UPVOTE)

    async def downvote(self, issue_id: str) -> VoteTally:
        return await self._vote(issue_id, VoteType.DOWNVOTE)

    async def _vote(self, issue_id: str, vote: VoteType) -> VoteTally:
        payload = await self.client.request(vote_path(issue_id, vote.value), "POST")
        return parse_model(VoteTally, unwrap(payload, f"{vote.value} issue").data, vote.value)

    @staticmethod
    def _image_parts(paths: List[str]) -> List[FilePart]:
        parts: List[FilePart] = []
        for index, raw in enumerate(paths):
            path = Path(raw).expanduser()
            content_type = mimetypes.guess_type(path.name)[0] or "image/jpeg"
            suffix = path.suffix or ".jpg"
            parts.append(("images", (f"image_{index}{suffix}", path.read_bytes(), content_type)))
        return parts


__all__ = ["IssueService", "unwrap", "parse_model", "parse_issue_list"]
