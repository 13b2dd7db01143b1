"""Pull request model (subset of GET /repos/{owner}/{repo}/pulls)."""

from datetime import datetime

from pydantic import BaseModel


class PRUser(BaseModel):
    login: str
    avatar_url: str = ""


class PRHeadRepoOwner(BaseModel):
    login: str


class PRHeadRepo(BaseModel):
    """Repository holding the source branch."""

    full_name: str
    name: str
    owner: PRHeadRepoOwner


class PRHead(BaseModel):
    """Source branch. repo is None when the source repository is unknown or deleted."""

    sha: str
    ref: str
    repo: PRHeadRepo | None = None


class PRBase(BaseModel):
    ref: str


class PullRequest(BaseModel):
    """Open pull request."""

    id: int
    number: int
    title: str
    state: str
    html_url: str
    body: str | None = None
    user: PRUser
    created_at: datetime
    updated_at: datetime
    head: PRHead
    base: PRBase

    def is_from_repo(self, full_name: str) -> bool:
        """True when the source branch lives in full_name (not a fork)."""
        return self.head.repo is not None and self.head.repo.full_name == full_name
