"""
Civic Sync Client Library.

Client-side synchronization layer for the civic issue-reporting platform:
a resilient API client plus a store that keeps the issue views consistent.

Usage:
    # Config
    from civic_sync.config import get_settings, Settings

    # Logging
    from civic_sync.logging import get_logger, configure_logging

    # Client + store
    from civic_sync.api import ApiClient
    from civic_sync.session import AuthSession
    from civic_sync.services import IssueService, AuthService
    from civic_sync.store import IssueStore

    settings = get_settings()
    session = AuthSession(settings.token_store())
    async with ApiClient(settings.api_config, session) as client:
        store = IssueStore(IssueService(client))
        await store.fetch_all()
"""

__version__ = "1.0.0"

# Import from submodules directly:
#   from civic_sync.config import get_settings
#   from civic_sync.logging import get_logger
