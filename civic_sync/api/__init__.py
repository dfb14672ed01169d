"""
API Module.

Provides the resilient async client for the civic backend with:
- Bearer token injection from an explicit session
- Timeout and retry with backoff
- Normalized error taxonomy
"""

from civic_sync.api.client import ApiClient
from civic_sync.api.retry import RetryPolicy

__all__ = ["ApiClient", "RetryPolicy"]
