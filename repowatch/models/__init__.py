"""Data models for users, repositories and pull requests (Pydantic)."""

from repowatch.models.pull_request import PRBase, PRHead, PRHeadRepo, PRUser, PullRequest
from repowatch.models.repository import DashboardRepo, Repository, RepositoryOwner
from repowatch.models.user import User

__all__ = [
    "DashboardRepo",
    "PRBase",
    "PRHead",
    "PRHeadRepo",
    "PRUser",
    "PullRequest",
    "Repository",
    "RepositoryOwner",
    "User",
]
