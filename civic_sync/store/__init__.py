"""Client-side issue synchronization store."""

from civic_sync.store.issue_store import IssueStore

__all__ = ["IssueStore"]
