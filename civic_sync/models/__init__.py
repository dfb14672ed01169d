"""
Client data models.

Usage:
    from civic_sync.models import Issue, IssueDraft, VoteTally, OperationResult
"""

from civic_sync.models.enums import (
    Environment,
    ErrorKind,
    IssueCategory,
    IssuePriority,
    IssueStatus,
    IssueView,
    Visibility,
    VoteType,
)
from civic_sync.models.envelope import (
    AuthPayload,
    Envelope,
    HealthStatus,
    OperationResult,
    UserProfile,
)
from civic_sync.models.issue import (
    GeoPoint,
    ImageRef,
    Issue,
    IssueDraft,
    IssueFilters,
    Person,
    VoteTally,
)

__all__ = [
    # Enums
    "Environment",
    "ErrorKind",
    "IssueCategory",
    "IssuePriority",
    "IssueStatus",
    "IssueView",
    "Visibility",
    "VoteType",
    # Envelope / auth
    "AuthPayload",
    "Envelope",
    "HealthStatus",
    "OperationResult",
    "UserProfile",
    # Issues
    "GeoPoint",
    "ImageRef",
    "Issue",
    "IssueDraft",
    "IssueFilters",
    "Person",
    "VoteTally",
]
