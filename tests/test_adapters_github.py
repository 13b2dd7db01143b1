"""Unit tests for GitHub adapter (mocked API)."""

from unittest.mock import Mock, patch

import pytest
import requests

from repowatch.adapters.base import (
    AuthError,
    GitPlatformError,
    NetworkError,
    NotAuthenticatedError,
    NotFoundError,
    RemoteActionError,
)
from repowatch.adapters.github import GitHubAdapter
from repowatch.models import PullRequest, Repository, User


@pytest.fixture
def gh() -> GitHubAdapter:
    return GitHubAdapter(token="test-token", api_url="https://api.github.com")


def _response(status_code: int = 200, data=None, text: str = "") -> Mock:
    resp = Mock()
    resp.status_code = status_code
    resp.text = text
    resp.reason = ""
    resp.json.return_value = data
    return resp


def test_token_sets_bearer_header(gh: GitHubAdapter) -> None:
    """Token is sent as a bearer Authorization header."""
    assert gh.is_authenticated
    assert gh._session.headers["Authorization"] == "Bearer test-token"


def test_reset_forgets_token(gh: GitHubAdapter) -> None:
    gh.reset()
    assert not gh.is_authenticated
    assert "Authorization" not in gh._session.headers


def test_call_before_initialize_raises_not_authenticated() -> None:
    """Every operation needs a token; no request is sent without one."""
    adapter = GitHubAdapter()
    with patch.object(adapter._session, "request") as req:
        with pytest.raises(NotAuthenticatedError):
            adapter.get_authenticated_user()
        with pytest.raises(NotAuthenticatedError):
            adapter.merge_pull_request("o", "r", 1)
    req.assert_not_called()


def test_get_authenticated_user(gh: GitHubAdapter) -> None:
    data = {"login": "octocat", "avatar_url": "https://a/1", "name": "The Octocat", "id": 1}
    with patch.object(gh._session, "request", return_value=_response(data=data)) as req:
        user = gh.get_authenticated_user()

    assert isinstance(user, User)
    assert user.login == "octocat"
    assert user.name == "The Octocat"
    assert req.call_args[0][0] == "GET"
    assert req.call_args[0][1] == "https://api.github.com/user"


def test_get_repo_success(gh: GitHubAdapter, repo_json) -> None:
    """get_repo parses the summary fields and ignores the rest."""
    with patch.object(gh._session, "request", return_value=_response(data=repo_json("octo/hello"))) as req:
        repo = gh.get_repo("octo", "hello")

    assert isinstance(repo, Repository)
    assert repo.full_name == "octo/hello"
    assert repo.owner.login == "octo"
    assert repo.stargazers_count == 10
    assert "/repos/octo/hello" in req.call_args[0][1]


def test_get_repo_404_raises_not_found(gh: GitHubAdapter) -> None:
    resp = _response(404, data={"message": "Not Found"}, text='{"message": "Not Found"}')
    with patch.object(gh._session, "request", return_value=resp):
        with pytest.raises(NotFoundError) as exc_info:
            gh.get_repo("octo", "missing")
    assert str(exc_info.value) == "Not Found"
    assert exc_info.value.status_code == 404


def test_401_raises_auth_error(gh: GitHubAdapter) -> None:
    resp = _response(401, data={"message": "Bad credentials"})
    with patch.object(gh._session, "request", return_value=resp):
        with pytest.raises(AuthError, match="Bad credentials"):
            gh.get_authenticated_user()


def test_403_raises_not_found(gh: GitHubAdapter) -> None:
    """Insufficient scope is reported like a missing repository."""
    resp = _response(403, data={"message": "Resource not accessible by personal access token"})
    with patch.object(gh._session, "request", return_value=resp):
        with pytest.raises(NotFoundError):
            gh.get_repo("octo", "private")


def test_error_without_json_uses_text(gh: GitHubAdapter) -> None:
    resp = _response(502, text="Bad Gateway")
    resp.json.side_effect = ValueError("no json")
    with patch.object(gh._session, "request", return_value=resp):
        with pytest.raises(GitPlatformError) as exc_info:
            gh.get_repo("octo", "hello")
    assert type(exc_info.value) is GitPlatformError
    assert str(exc_info.value) == "Bad Gateway"


def test_transport_failure_raises_network_error(gh: GitHubAdapter) -> None:
    with patch.object(gh._session, "request", side_effect=requests.ConnectionError("refused")):
        with pytest.raises(NetworkError):
            gh.get_authenticated_user()


def test_list_open_pull_requests(gh: GitHubAdapter, pr_json) -> None:
    """Open PRs, one page of 100, in remote order; head.repo may be null."""
    data = [pr_json(9), pr_json(7, head_repo=None)]
    with patch.object(gh._session, "request", return_value=_response(data=data)) as req:
        prs = gh.list_open_pull_requests("octo", "hello")

    assert [p.number for p in prs] == [9, 7]
    assert all(isinstance(p, PullRequest) for p in prs)
    assert prs[0].head.repo is not None and prs[0].head.repo.full_name == "octo/hello"
    assert prs[1].head.repo is None
    assert "/repos/octo/hello/pulls" in req.call_args[0][1]
    assert req.call_args[1]["params"] == {"state": "open", "per_page": 100}


def test_count_open_pull_requests_uses_search(gh: GitHubAdapter) -> None:
    data = {"total_count": 42, "incomplete_results": False, "items": [{}]}
    with patch.object(gh._session, "request", return_value=_response(data=data)) as req:
        count = gh.count_open_pull_requests("octo", "hello")

    assert count == 42
    assert req.call_args[0][1].endswith("/search/issues")
    params = req.call_args[1]["params"]
    assert params["q"] == "repo:octo/hello is:pr is:open"
    assert params["per_page"] == 1


def test_merge_uses_squash(gh: GitHubAdapter) -> None:
    resp = _response(data={"merged": True, "sha": "def456"})
    with patch.object(gh._session, "request", return_value=resp) as req:
        gh.merge_pull_request("octo", "hello", 7)

    assert req.call_args[0][0] == "PUT"
    assert req.call_args[0][1].endswith("/repos/octo/hello/pulls/7/merge")
    assert req.call_args[1]["json"] == {"merge_method": "squash"}


def test_merge_not_mergeable_raises_remote_action_error(gh: GitHubAdapter) -> None:
    """The remote reason is surfaced verbatim."""
    resp = _response(405, data={"message": "Pull Request is not mergeable"})
    with patch.object(gh._session, "request", return_value=resp):
        with pytest.raises(RemoteActionError, match="Pull Request is not mergeable"):
            gh.merge_pull_request("octo", "hello", 7)


def test_close_pull_request(gh: GitHubAdapter) -> None:
    with patch.object(gh._session, "request", return_value=_response(data={"state": "closed"})) as req:
        gh.close_pull_request("octo", "hello", 7)

    assert req.call_args[0][0] == "PATCH"
    assert req.call_args[0][1].endswith("/repos/octo/hello/pulls/7")
    assert req.call_args[1]["json"] == {"state": "closed"}
    assert gh._session.headers["X-GitHub-Api-Version"] == "2022-11-28"


def test_delete_ref(gh: GitHubAdapter) -> None:
    resp = _response(204)
    with patch.object(gh._session, "request", return_value=resp) as req:
        gh.delete_ref("octo", "hello", "heads/feature")

    assert req.call_args[0][0] == "DELETE"
    assert req.call_args[0][1].endswith("/repos/octo/hello/git/refs/heads/feature")
    resp.json.assert_not_called()


def test_delete_ref_422_raises(gh: GitHubAdapter) -> None:
    resp = _response(422, data={"message": "Reference does not exist"})
    with patch.object(gh._session, "request", return_value=resp):
        with pytest.raises(RemoteActionError):
            gh.delete_ref("octo", "hello", "heads/gone")


def test_api_url_trailing_slash_and_timeout() -> None:
    adapter = GitHubAdapter(token="t", api_url="https://ghe.example/api/v3/", timeout=7)
    with patch.object(adapter._session, "request", return_value=_response(data={"login": "me"})) as req:
        adapter.get_authenticated_user()
    assert req.call_args[0][1] == "https://ghe.example/api/v3/user"
    assert req.call_args[1]["timeout"] == 7


def _html_response(status_code: int = 200) -> requests.Response:
    resp = requests.Response()
    resp.status_code = status_code
    resp._content = b"<html>portal</html>"
    resp.encoding = "utf-8"
    return resp


def test_non_json_success_body_raises_platform_error(gh: GitHubAdapter) -> None:
    """A proxy or captive portal answering 200 with HTML is an API error."""
    with patch.object(gh._session, "request", return_value=_html_response()):
        with pytest.raises(GitPlatformError, match="Unexpected response from GitHub"):
            gh.get_authenticated_user()
        with pytest.raises(GitPlatformError, match="Unexpected response from GitHub"):
            gh.list_open_pull_requests("octo", "hello")
        with pytest.raises(GitPlatformError, match="Unexpected response from GitHub"):
            gh.count_open_pull_requests("octo", "hello")


def test_invalid_payload_raises_platform_error(gh: GitHubAdapter) -> None:
    with patch.object(gh._session, "request", return_value=_response(data={"unexpected": True})):
        with pytest.raises(GitPlatformError, match="Unexpected response from GitHub"):
            gh.get_repo("octo", "hello")


def test_pulls_payload_not_a_list_raises_platform_error(gh: GitHubAdapter) -> None:
    with patch.object(gh._session, "request", return_value=_response(data={"message": "odd"})):
        with pytest.raises(GitPlatformError):
            gh.list_open_pull_requests("octo", "hello")
