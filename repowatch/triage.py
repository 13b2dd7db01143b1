"""Pull request triage for one repository (the detail view).

Load state: idle -> loading -> loaded | load_failed.

Actions work on the selected PR, one at a time:
- merge(): squash-merge (the caller asks the user first).
- reject(): first call only arms a confirmation, the second one closes the
  PR and then tries to delete its branch when the branch lives in this
  repository. Selecting another PR disarms the confirmation.

A successful action drops the PR from the list and clears the selection; a
failed one keeps both and leaves an error notice. Notices expire after
notice_seconds. Results arriving after discard() are not applied.
"""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Literal

from pydantic import BaseModel

from repowatch.adapters.base import GitPlatformAdapter, GitPlatformError
from repowatch.models import PullRequest, Repository

LOAD_FAILED_MESSAGE = "Failed to load repository data."
MERGE_FAILED_MESSAGE = "Failed to merge PR."
REJECT_FAILED_MESSAGE = "Failed to reject PR. Check your permissions."

LoadStatus = Literal["idle", "loading", "loaded", "load_failed"]
Action = Literal["merging", "rejecting"]
RejectResult = Literal["armed", "closed", "failed", "busy", "ignored"]

LOG = logging.getLogger("repowatch.triage")


class Notice(BaseModel):
    """Transient success/error message."""

    kind: Literal["success", "error"]
    message: str
    expires_at: float


class PRTriage:
    """State of the detail view for owner/repo."""

    def __init__(
        self,
        adapter: GitPlatformAdapter,
        owner: str,
        repo: str,
        notice_seconds: float = 5.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._adapter = adapter
        self.owner = owner
        self.repo = repo
        self._notice_seconds = notice_seconds
        self._clock = clock
        self._action_lock = threading.Lock()
        self._discarded = False
        self._notice: Notice | None = None
        self.status: LoadStatus = "idle"
        self.details: Repository | None = None
        self.prs: List[PullRequest] = []
        self.selected_id: int | None = None
        self.confirm_reject = False
        self.action: Action | None = None

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    @property
    def selected(self) -> PullRequest | None:
        for pr in self.prs:
            if pr.id == self.selected_id:
                return pr
        return None

    @property
    def busy(self) -> bool:
        """True while a merge or reject is in flight; both actions are disabled then."""
        return self.action is not None

    @property
    def notice(self) -> Notice | None:
        if self._notice is not None and self._clock() >= self._notice.expires_at:
            self._notice = None
        return self._notice

    def _notify(self, kind: Literal["success", "error"], message: str) -> None:
        self._notice = Notice(kind=kind, message=message, expires_at=self._clock() + self._notice_seconds)

    def load(self) -> bool:
        """Fetch repository details and open PRs (replacing any previous list)."""
        self.status = "loading"
        try:
            with ThreadPoolExecutor(max_workers=2) as executor:
                details_future = executor.submit(self._adapter.get_repo, self.owner, self.repo)
                prs_future = executor.submit(self._adapter.list_open_pull_requests, self.owner, self.repo)
                details = details_future.result()
                prs = prs_future.result()
        except GitPlatformError as e:
            LOG.error("Failed to load %s: %s", self.full_name, e)
            if not self._discarded:
                self.status = "load_failed"
                self._notify("error", LOAD_FAILED_MESSAGE)
            return False
        if self._discarded:
            LOG.debug("Dropping late load of %s", self.full_name)
            return False
        self.details = details
        self.prs = prs
        self.status = "loaded"
        if self.selected is None:
            self.selected_id = None
        return True

    def select(self, pr_id: int) -> bool:
        if not any(pr.id == pr_id for pr in self.prs):
            return False
        self.selected_id = pr_id
        self.confirm_reject = False
        return True

    def select_number(self, number: int) -> bool:
        """Select by PR number (as typed by a user) instead of id."""
        for pr in self.prs:
            if pr.number == number:
                return self.select(pr.id)
        return False

    def deselect(self) -> None:
        self.selected_id = None
        self.confirm_reject = False

    def discard(self) -> None:
        """The view is gone: late results are dropped from now on."""
        self._discarded = True
        self.confirm_reject = False

    def _apply_success(self, pr: PullRequest, message: str) -> None:
        if self._discarded:
            return
        self.prs = [p for p in self.prs if p.id != pr.id]
        if self.selected_id == pr.id:
            self.selected_id = None
        self.confirm_reject = False
        self._notify("success", message)

    def _apply_failure(self, error: GitPlatformError, fallback: str) -> None:
        if self._discarded:
            return
        self._notify("error", error.message or fallback)

    def merge(self) -> bool:
        """Squash-merge the selected PR. False if nothing happened or it failed."""
        pr = self.selected
        if pr is None:
            return False
        if not self._action_lock.acquire(blocking=False):
            LOG.debug("Merge ignored: %s already in progress", self.action)
            return False
        self.action = "merging"
        try:
            self._adapter.merge_pull_request(self.owner, self.repo, pr.number)
        except GitPlatformError as e:
            LOG.error("Merge of %s#%s failed: %s", self.full_name, pr.number, e)
            self._apply_failure(e, MERGE_FAILED_MESSAGE)
            return False
        else:
            self._apply_success(pr, f"PR #{pr.number} merged successfully!")
            return True
        finally:
            self.action = None
            self._action_lock.release()

    def reject(self) -> RejectResult:
        """Arm on the first call, close the selected PR on the second."""
        pr = self.selected
        if pr is None:
            return "ignored"
        if self.busy:
            return "busy"
        if not self.confirm_reject:
            self.confirm_reject = True
            return "armed"
        if not self._action_lock.acquire(blocking=False):
            return "busy"
        self.action = "rejecting"
        self.confirm_reject = False
        try:
            self._adapter.close_pull_request(self.owner, self.repo, pr.number)
        except GitPlatformError as e:
            LOG.error("Closing %s#%s failed: %s", self.full_name, pr.number, e)
            self._apply_failure(e, REJECT_FAILED_MESSAGE)
            return "failed"
        else:
            message = f"PR #{pr.number} closed successfully."
            if self._delete_head_branch(pr):
                message += " Branch deleted."
            self._apply_success(pr, message)
            return "closed"
        finally:
            self.action = None
            self._action_lock.release()

    def _delete_head_branch(self, pr: PullRequest) -> bool:
        """Best effort; only for branches in this repository."""
        if not pr.is_from_repo(self.full_name):
            LOG.info("Skipping branch deletion for PR #%s: head is a fork or unknown", pr.number)
            return False
        ref = f"heads/{pr.head.ref}"
        try:
            self._adapter.delete_ref(self.owner, self.repo, ref)
        except GitPlatformError as e:
            LOG.warning("Could not delete branch %s of PR #%s: %s", ref, pr.number, e)
            return False
        return True
