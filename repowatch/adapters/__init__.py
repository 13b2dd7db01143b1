"""Git platform adapters (base and implementations)."""

from repowatch.adapters.base import (
    AuthError,
    GitPlatformAdapter,
    GitPlatformError,
    NetworkError,
    NotAuthenticatedError,
    NotFoundError,
    RemoteActionError,
)
from repowatch.adapters.github import GitHubAdapter

__all__ = [
    "AuthError",
    "GitHubAdapter",
    "GitPlatformAdapter",
    "GitPlatformError",
    "NetworkError",
    "NotAuthenticatedError",
    "NotFoundError",
    "RemoteActionError",
]
