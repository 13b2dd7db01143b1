"""Repository models: API summary and dashboard card."""

from pydantic import BaseModel, Field


class RepositoryOwner(BaseModel):
    """Owner part of a repository payload."""

    login: str
    avatar_url: str = ""


class Repository(BaseModel):
    """Repository summary as returned by GET /repos/{owner}/{repo}."""

    id: int
    name: str
    full_name: str
    owner: RepositoryOwner
    html_url: str
    description: str | None = None
    stargazers_count: int = 0
    forks_count: int = 0
    open_issues_count: int = 0


class DashboardRepo(Repository):
    """Repository card on the dashboard.

    pull_requests_count, loading and error are view state only; they are
    recomputed on every load and never persisted. Cards are keyed by
    full_name because placeholder ids are random.
    """

    pull_requests_count: int = Field(default=0, description="Open PRs (search count)")
    loading: bool = False
    error: bool = False
