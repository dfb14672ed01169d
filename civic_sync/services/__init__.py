"""Typed services over the REST endpoints."""

from civic_sync.services.auth_service import AuthService
from civic_sync.services.issue_service import IssueService

__all__ = ["AuthService", "IssueService"]
