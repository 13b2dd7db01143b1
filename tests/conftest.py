"""Shared fixtures: GitHub payload factories and a mocked platform adapter."""

from pathlib import Path
from typing import Any, Callable, Dict
from unittest.mock import MagicMock

import pytest

from repowatch.adapters.base import GitPlatformAdapter
from repowatch.models import PullRequest, Repository
from repowatch.store import open_secret_storage, open_watchlist_storage


def repo_payload(full_name: str = "octo/hello", repo_id: int = 1, **overrides: Any) -> Dict[str, Any]:
    owner, name = full_name.split("/")
    data = {
        "id": repo_id,
        "name": name,
        "full_name": full_name,
        "owner": {"login": owner, "avatar_url": f"https://avatars.example/{owner}"},
        "html_url": f"https://github.com/{full_name}",
        "description": f"{name} description",
        "stargazers_count": 10,
        "forks_count": 2,
        "open_issues_count": 3,
        "private": False,
    }
    data.update(overrides)
    return data


def pr_payload(
    number: int = 7,
    head_repo: str | None = "octo/hello",
    ref: str = "feature",
    **overrides: Any,
) -> Dict[str, Any]:
    head: Dict[str, Any] = {"sha": "abc123", "ref": ref, "repo": None}
    if head_repo is not None:
        owner, name = head_repo.split("/")
        head["repo"] = {"full_name": head_repo, "name": name, "owner": {"login": owner}}
    data = {
        "id": 1000 + number,
        "number": number,
        "title": f"PR {number}",
        "state": "open",
        "html_url": f"https://github.com/octo/hello/pull/{number}",
        "body": "Some changes",
        "user": {"login": "contributor", "avatar_url": ""},
        "created_at": "2024-01-15T10:00:00Z",
        "updated_at": "2024-01-16T12:00:00Z",
        "head": head,
        "base": {"ref": "main"},
    }
    data.update(overrides)
    return data


@pytest.fixture
def make_repo() -> Callable[..., Repository]:
    def _make(full_name: str = "octo/hello", repo_id: int = 1, **overrides: Any) -> Repository:
        return Repository.model_validate(repo_payload(full_name, repo_id, **overrides))

    return _make


@pytest.fixture
def make_pr() -> Callable[..., PullRequest]:
    def _make(number: int = 7, head_repo: str | None = "octo/hello", ref: str = "feature") -> PullRequest:
        return PullRequest.model_validate(pr_payload(number, head_repo, ref))

    return _make


@pytest.fixture
def adapter() -> MagicMock:
    return MagicMock(spec=GitPlatformAdapter)


@pytest.fixture
def watchlist_path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "watchlist.yaml"


@pytest.fixture
def secrets_path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "secrets.yaml"


@pytest.fixture
def watchlist_storage(watchlist_path: Path):
    return open_watchlist_storage(watchlist_path)


@pytest.fixture
def secret_storage(secrets_path: Path):
    return open_secret_storage(secrets_path)


@pytest.fixture
def repo_json() -> Callable[..., Dict[str, Any]]:
    """Factory for GET /repos/{owner}/{repo} payloads."""
    return repo_payload


@pytest.fixture
def pr_json() -> Callable[..., Dict[str, Any]]:
    """Factory for GET /repos/{owner}/{repo}/pulls items."""
    return pr_payload
