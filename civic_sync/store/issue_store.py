"""
Issue synchronization store.

Holds one canonical record per issue id and three ordered views over
those records (``issues``, ``myIssues``, ``nearbyIssues``). Every
mutation waits for server confirmation, then changes the canonical
record once so all views that contain the id see the same values.

Fetches replace a whole view. Each fetch is tagged with a per-view
sequence number; a response whose tag is no longer the newest for its
view is discarded so a slow, older request never overwrites newer data.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from civic_sync.constants import DEFAULT_NEARBY_RADIUS
from civic_sync.exceptions import ApiError
from civic_sync.logging import get_logger, log_timing
from civic_sync.models.enums import IssueView
from civic_sync.models.envelope import OperationResult
from civic_sync.models.issue import Issue, IssueDraft, IssueFilters, VoteTally
from civic_sync.services.issue_service import IssueService

logger = get_logger("store")

Listener = Callable[["IssueStore"], None]

_MISSING = object()


class IssueStore:
    """
    Sole owner of the client-side issue collections.

    Usage:
        store = IssueStore(IssueService(client))
        await store.fetch_all()
        result = await store.upvote("i1")
        if result.success:
            render(store.issues)
    """

    def __init__(self, service: IssueService):
        self.service = service
        self._records: Dict[str, Issue] = {}
        self._views: Dict[IssueView, List[str]] = {view: [] for view in IssueView}
        self._fetch_seq: Dict[IssueView, int] = {view: 0 for view in IssueView}
        self._issue_filters: Optional[IssueFilters] = None
        self._in_flight = 0
        self._listeners: List[Listener] = []
        self._refreshes = 0
        self.last_error: Optional[str] = None

    # =========================================================================
    # Read access
    # =========================================================================

    @property
    def loading(self) -> bool:
        return self._in_flight > 0

    @property
    def refreshing(self) -> bool:
        return self._refreshes > 0

    @property
    def issues(self) -> List[Issue]:
        return self.view(IssueView.ISSUES)

    @property
    def my_issues(self) -> List[Issue]:
        return self.view(IssueView.MY_ISSUES)

    @property
    def nearby_issues(self) -> List[Issue]:
        return self.view(IssueView.NEARBY)

    def view(self, view: IssueView) -> List[Issue]:
        return [self._records[issue_id] for issue_id in self._views[view]]

    def get(self, issue_id: str) -> Optional[Issue]:
        return self._records.get(issue_id)

    def contains(self, view: IssueView, issue_id: str) -> bool:
        return issue_id in self._views[view]

    def snapshot(self) -> Dict[str, List[Dict[str, Any]]]:
        """Plain-data copy of every view, keyed by view name."""
        return {view.value: [issue.to_wire() for issue in self.view(view)] for view in IssueView}

    # =========================================================================
    # Change notification
    # =========================================================================

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener called after each state change; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    # =========================================================================
    # Fetches (full-refresh of one view)
    # =========================================================================

    async def fetch_all(
        self, filters: IssueFilters | Dict[str, Any] | None = None
    ) -> OperationResult[List[Issue]]:
        if isinstance(filters, dict):
            try:
                filters = IssueFilters.model_validate(filters)
            except ValidationError as e:
                return self._failed("fetch_all", f"Invalid filters: {e.error_count()} errors")
        self._issue_filters = filters
        return await self._fetch(IssueView.ISSUES, lambda: self.service.list_issues(filters), "fetch_all")

    async def fetch_mine(self) -> OperationResult[List[Issue]]:
        return await self._fetch(IssueView.MY_ISSUES, self.service.my_issues, "fetch_mine")

    async def fetch_nearby(
        self, latitude: float, longitude: float, radius: float = DEFAULT_NEARBY_RADIUS
    ) -> OperationResult[List[Issue]]:
        return await self._fetch(
            IssueView.NEARBY,
            lambda: self.service.nearby(latitude, longitude, radius),
            "fetch_nearby",
        )

    async def fetch_by_status(self, status: str) -> OperationResult[List[Issue]]:
        self._issue_filters = IssueFilters(status=status)
        return await self._fetch(IssueView.ISSUES, lambda: self.service.by_status(status), "fetch_by_status")

    async def fetch_by_category(self, category: str) -> OperationResult[List[Issue]]:
        self._issue_filters = IssueFilters(category=category)
        return await self._fetch(
            IssueView.ISSUES, lambda: self.service.by_category(category), "fetch_by_category"
        )

    @log_timing("store_refresh")
    async def refresh(self) -> OperationResult[None]:
        """Re-fetch the global and own-issue views together."""
        self._refreshes += 1
        self._notify()
        try:
            results = await asyncio.gather(self.fetch_all(self._issue_filters), self.fetch_mine())
        finally:
            self._refreshes -= 1
            self._notify()

        failures = [result.message for result in results if not result.success]
        if failures:
            return OperationResult.fail(failures[0])
        return OperationResult.ok()

    async def fetch_issue(self, issue_id: str) -> OperationResult[Issue]:
        """Reload one issue's canonical record; view membership is unchanged."""
        try:
            fresh = await self.service.get(issue_id)
        except ApiError as e:
            return self._failed("fetch_issue", e.message, issue_id=issue_id)

        current = self._records.get(issue_id)
        if current is not None:
            self._records[issue_id] = self._merged(current, fresh)
            self._notify()
        return OperationResult.ok(self._records.get(issue_id, fresh))

    async def _fetch(
        self,
        view: IssueView,
        loader: Callable[[], Awaitable[List[Issue]]],
        operation: str,
    ) -> OperationResult[List[Issue]]:
        self._fetch_seq[view] += 1
        tag = self._fetch_seq[view]
        self._in_flight += 1
        self._notify()

        issues: List[Issue] = []
        failure: Optional[ApiError] = None
        try:
            issues = await loader()
        except ApiError as e:
            failure = e
        finally:
            self._in_flight -= 1
            self._notify()

        if tag != self._fetch_seq[view]:
            if failure is not None:
                return OperationResult(success=False, message=failure.message, stale=True)
            logger.info(
                "store_fetch_stale_discarded",
                view=view.value,
                tag=tag,
                latest=self._fetch_seq[view],
            )
            return OperationResult(
                success=True, data=issues, message="Superseded by a newer request", stale=True
            )
        if failure is not None:
            return self._failed(operation, failure.message, view=view.value)

        self._replace_view(view, issues)
        self.last_error = None
        logger.info("store_view_replaced", view=view.value, count=len(self._views[view]))
        self._notify()
        return OperationResult.ok(self.view(view))

    # =========================================================================
    # Mutations (confirm, then apply)
    # =========================================================================

    async def create(self, issue_data: IssueDraft | Dict[str, Any]) -> OperationResult[Issue]:
        """Submit an issue; on success it is prepended to the global view only."""
        try:
            issue = await self.service.create(issue_data)
        except ApiError as e:
            return self._failed("create", e.message)
        except ValidationError as e:
            return self._failed("create", f"Invalid issue data: {e.error_count()} errors")
        except OSError as e:
            return self._failed("create", f"Cannot read image: {e}")

        self._put(issue)
        ids = [issue_id for issue_id in self._views[IssueView.ISSUES] if issue_id != issue.id]
        self._views[IssueView.ISSUES] = [issue.id] + ids
        logger.info("store_issue_created", issue_id=issue.id)
        self._notify()
        return OperationResult.ok(issue, "Issue reported successfully")

    async def update(self, issue_id: str, patch: Dict[str, Any]) -> OperationResult[Issue]:
        """Apply a confirmed patch to the canonical record (every view sees it)."""
        try:
            server_issue = await self.service.update(issue_id, patch)
        except ApiError as e:
            return self._failed("update", e.message, issue_id=issue_id)

        current = self._records.get(issue_id)
        if current is None:
            return OperationResult.ok(server_issue, "Issue updated successfully")

        merged = {**current.to_wire(), **Issue.wire_keys(patch)}
        if server_issue is not None:
            merged.update(server_issue.model_dump(by_alias=True, exclude_unset=True))
        try:
            candidate = Issue.model_validate(merged)
        except ValidationError as e:
            return self._failed("update", f"Invalid issue update: {e.error_count()} errors", issue_id=issue_id)

        self._records[issue_id] = self._merged(current, candidate)
        logger.info("store_issue_updated", issue_id=issue_id, fields=sorted(patch))
        self._notify()
        return OperationResult.ok(self._records[issue_id], "Issue updated successfully")

    async def delete(self, issue_id: str) -> OperationResult[None]:
        """Remove a confirmed deletion from every view; absent ids are a no-op."""
        try:
            await self.service.delete(issue_id)
        except ApiError as e:
            return self._failed("delete", e.message, issue_id=issue_id)

        for view in IssueView:
            if issue_id in self._views[view]:
                self._views[view] = [i for i in self._views[view] if i != issue_id]
        self._records.pop(issue_id, None)
        logger.info("store_issue_deleted", issue_id=issue_id)
        self._notify()
        return OperationResult.ok(message="Issue deleted successfully")

    async def upvote(self, issue_id: str) -> OperationResult[VoteTally]:
        return await self._vote(issue_id, self.service.upvote, "upvote")

    async def downvote(self, issue_id: str) -> OperationResult[VoteTally]:
        return await self._vote(issue_id, self.service.downvote, "downvote")

    async def _vote(
        self,
        issue_id: str,
        send: Callable[[str], Awaitable[VoteTally]],
        operation: str,
    ) -> OperationResult[VoteTally]:
        try:
            tally = await send(issue_id)
        except ApiError as e:
            return self._failed(operation, e.message, issue_id=issue_id)

        # The server is the authority for the vote fields; never recompute deltas
        current = self._records.get(issue_id)
        if current is not None:
            self._records[issue_id] = self._merged(
                current,
                current.model_copy(update=tally.as_patch()),
            )
            self._notify()
        logger.info(
            "store_vote_applied",
            issue_id=issue_id,
            operation=operation,
            upvotes=tally.upvotes,
            downvotes=tally.downvotes,
        )
        return OperationResult.ok(tally)

    def clear(self) -> None:
        """Drop every view and record; in-flight fetches are discarded on arrival."""
        for view in IssueView:
            self._views[view] = []
            self._fetch_seq[view] += 1
        self._records.clear()
        self._issue_filters = None
        self.last_error = None
        self._notify()

    # =========================================================================
    # Internals
    # =========================================================================

    def _failed(self, operation: str, message: str, **context: Any) -> OperationResult[Any]:
        self.last_error = message
        logger.warning("store_operation_failed", operation=operation, error=message, **context)
        self._notify()
        return OperationResult.fail(message)

    def _put(self, issue: Issue) -> None:
        current = self._records.get(issue.id)
        self._records[issue.id] = issue if current is None else self._merged(current, issue)

    def _replace_view(self, view: IssueView, issues: List[Issue]) -> None:
        ids: List[str] = []
        for issue in issues:
            if issue.id in ids:
                continue
            self._records[issue.id] = issue if issue.id not in self._records else self._merged(
                self._records[issue.id], issue
            )
            ids.append(issue.id)
        self._views[view] = ids
        self._drop_unreferenced()

    def _drop_unreferenced(self) -> None:
        referenced = set()
        for ids in self._views.values():
            referenced.update(ids)
        for issue_id in [i for i in self._records if i not in referenced]:
            del self._records[issue_id]

    @staticmethod
    def _merged(current: Issue, candidate: Issue) -> Issue:
        """
        ``candidate``'s values on top of ``current``, reusing ``current``
        (and its unchanged nested values) wherever nothing changed.
        """
        changes: Dict[str, Any] = {}
        for name in Issue.model_fields:
            value = getattr(candidate, name)
            if value != getattr(current, name):
                changes[name] = value
        current_extra = current.model_extra or {}
        for key, value in (candidate.model_extra or {}).items():
            if current_extra.get(key, _MISSING) != value:
                changes[key] = value
        if not changes:
            return current
        return current.model_copy(update=changes)


__all__ = ["IssueStore"]
