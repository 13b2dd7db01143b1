"""Abstract base for Git platform adapters and the API error taxonomy."""

from abc import ABC, abstractmethod
from typing import List

from repowatch.models import PullRequest, Repository, User


class GitPlatformError(Exception):
    """Raised when a Git platform API call fails.

    The message is the remote-supplied reason when the platform sent one.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class AuthError(GitPlatformError):
    """Token missing, invalid or revoked (HTTP 401)."""

    pass


class NotAuthenticatedError(AuthError):
    """API used before a token was supplied."""

    def __init__(self, message: str = "Not authenticated") -> None:
        super().__init__(message)


class NotFoundError(GitPlatformError):
    """Repository or PR does not exist, or the token lacks scope (403/404)."""

    pass


class NetworkError(GitPlatformError):
    """Transport failure: DNS, connection refused, timeout."""

    pass


class RemoteActionError(GitPlatformError):
    """Merge/close rejected by platform rules (conflicts, required reviews)."""

    pass


class GitPlatformAdapter(ABC):
    """Interface for the remote repository host.

    An adapter may be created without a token; every call made before
    initialize() raises NotAuthenticatedError.
    """

    @abstractmethod
    def initialize(self, token: str) -> None:
        """Use token for all following calls."""
        ...

    @abstractmethod
    def reset(self) -> None:
        """Forget the token."""
        ...

    @property
    @abstractmethod
    def is_authenticated(self) -> bool:
        """True once a token has been supplied."""
        ...

    @abstractmethod
    def get_authenticated_user(self) -> User:
        """Fetch the owner of the token."""
        ...

    @abstractmethod
    def get_repo(self, owner: str, name: str) -> Repository:
        """Fetch repository metadata."""
        ...

    @abstractmethod
    def list_open_pull_requests(self, owner: str, name: str) -> List[PullRequest]:
        """Up to 100 open PRs in the order the platform returns them."""
        ...

    @abstractmethod
    def count_open_pull_requests(self, owner: str, name: str) -> int:
        """Number of open PRs without paging through them."""
        ...

    @abstractmethod
    def merge_pull_request(self, owner: str, name: str, number: int) -> None:
        """Squash-merge a PR."""
        ...

    @abstractmethod
    def close_pull_request(self, owner: str, name: str, number: int) -> None:
        """Close a PR without merging."""
        ...

    @abstractmethod
    def delete_ref(self, owner: str, name: str, ref: str) -> None:
        """Delete a ref given as heads/<branch>."""
        ...
