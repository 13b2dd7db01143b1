"""GitHub REST API adapter."""

import logging
from typing import Any, Dict, List, Type, TypeVar

import requests
from pydantic import BaseModel, ValidationError

from repowatch.adapters.base import (
    AuthError,
    GitPlatformAdapter,
    GitPlatformError,
    NetworkError,
    NotAuthenticatedError,
    NotFoundError,
    RemoteActionError,
)
from repowatch.models import PullRequest, Repository, User

UNEXPECTED_RESPONSE_MESSAGE = "Unexpected response from GitHub"

API_VERSION = "2022-11-28"
OPEN_PRS_PAGE_SIZE = 100

LOG = logging.getLogger("repowatch.adapters.github")

# HTTP status -> error class; anything else >= 400 is a plain GitPlatformError
_STATUS_ERRORS: Dict[int, type[GitPlatformError]] = {
    401: AuthError,
    403: NotFoundError,
    404: NotFoundError,
    405: RemoteActionError,
    409: RemoteActionError,
    422: RemoteActionError,
}


def _error_message(resp: requests.Response) -> str:
    msg = resp.text or resp.reason or f"Request failed with status {resp.status_code}"
    try:
        data = resp.json()
    except ValueError:
        return msg
    if isinstance(data, dict) and isinstance(data.get("message"), str):
        return data["message"]
    return msg


def _payload(resp: requests.Response) -> Any:
    """Decode a 2xx body; HTML from a proxy or captive portal is an API error."""
    try:
        return resp.json()
    except ValueError as e:
        LOG.warning("Response is not JSON (status %s)", resp.status_code)
        raise GitPlatformError(UNEXPECTED_RESPONSE_MESSAGE, status_code=resp.status_code) from e


_M = TypeVar("_M", bound=BaseModel)


def _model_from_api(model: Type[_M], data: Any) -> _M:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        LOG.warning("Unexpected %s payload: %s", model.__name__, e)
        raise GitPlatformError(UNEXPECTED_RESPONSE_MESSAGE) from e


def _user_from_api(data: Any) -> User:
    return _model_from_api(User, data)


def _repo_from_api(data: Any) -> Repository:
    return _model_from_api(Repository, data)


def _pr_from_api(data: Any) -> PullRequest:
    return _model_from_api(PullRequest, data)


class GitHubAdapter(GitPlatformAdapter):
    """GitHub API implementation."""

    def __init__(
        self,
        token: str | None = None,
        api_url: str = "https://api.github.com",
        timeout: int = 30,
    ) -> None:
        self._api_url = api_url.rstrip("/")
        self._timeout = timeout
        self._token: str | None = None
        self._session = requests.Session()
        self._session.headers["Accept"] = "application/vnd.github+json"
        self._session.headers["X-GitHub-Api-Version"] = API_VERSION
        if token:
            self.initialize(token)

    def initialize(self, token: str) -> None:
        self._token = token
        self._session.headers["Authorization"] = f"Bearer {token}"

    def reset(self) -> None:
        self._token = None
        self._session.headers.pop("Authorization", None)

    @property
    def is_authenticated(self) -> bool:
        return self._token is not None

    def _request(
        self,
        method: str,
        path: str,
        params: Dict[str, Any] | None = None,
        json: Dict[str, Any] | None = None,
    ) -> requests.Response:
        if self._token is None:
            raise NotAuthenticatedError()
        url = f"{self._api_url}{path}" if path.startswith("/") else f"{self._api_url}/{path}"
        LOG.debug("%s %s", method, path)
        try:
            resp = self._session.request(method, url, params=params, json=json, timeout=self._timeout)
        except requests.RequestException as e:
            raise NetworkError(f"Network error: {e}") from e
        if resp.status_code >= 400:
            error_cls = _STATUS_ERRORS.get(resp.status_code, GitPlatformError)
            raise error_cls(_error_message(resp), status_code=resp.status_code)
        return resp

    def get_authenticated_user(self) -> User:
        return _user_from_api(_payload(self._request("GET", "/user")))

    def get_repo(self, owner: str, name: str) -> Repository:
        return _repo_from_api(_payload(self._request("GET", f"/repos/{owner}/{name}")))

    def list_open_pull_requests(self, owner: str, name: str) -> List[PullRequest]:
        resp = self._request(
            "GET",
            f"/repos/{owner}/{name}/pulls",
            params={"state": "open", "per_page": OPEN_PRS_PAGE_SIZE},
        )
        data = _payload(resp) or []
        if not isinstance(data, list):
            raise GitPlatformError(UNEXPECTED_RESPONSE_MESSAGE, status_code=resp.status_code)
        return [_pr_from_api(d) for d in data]

    def count_open_pull_requests(self, owner: str, name: str) -> int:
        resp = self._request(
            "GET",
            "/search/issues",
            params={"q": f"repo:{owner}/{name} is:pr is:open", "per_page": 1},
        )
        data = _payload(resp) or {}
        try:
            return int(data.get("total_count", 0))
        except (AttributeError, TypeError, ValueError) as e:
            raise GitPlatformError(UNEXPECTED_RESPONSE_MESSAGE, status_code=resp.status_code) from e

    def merge_pull_request(self, owner: str, name: str, number: int) -> None:
        self._request(
            "PUT",
            f"/repos/{owner}/{name}/pulls/{number}/merge",
            json={"merge_method": "squash"},
        )
        LOG.info("Merged %s/%s#%s (squash)", owner, name, number)

    def close_pull_request(self, owner: str, name: str, number: int) -> None:
        self._request(
            "PATCH",
            f"/repos/{owner}/{name}/pulls/{number}",
            json={"state": "closed"},
        )
        LOG.info("Closed %s/%s#%s", owner, name, number)

    def delete_ref(self, owner: str, name: str, ref: str) -> None:
        self._request("DELETE", f"/repos/{owner}/{name}/git/refs/{ref}")
        LOG.info("Deleted ref %s in %s/%s", ref, owner, name)
