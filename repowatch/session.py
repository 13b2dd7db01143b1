"""Session and watchlist state.

SessionManager is the only writer of the session (token, user) and of the
watchlist. Views read them through properties; the watchlist is handed out
as a tuple so callers cannot mutate it behind the manager's back.

Startup policy for a stored token:
- AuthError (401): the token is dead, log out and delete it.
- Any other failure (network, 5xx): stay logged out for this run but keep the
  persisted token and expose the reason in verify_error; resume() retries.
"""

import logging
import threading
from typing import List, Tuple

from repowatch.adapters.base import AuthError, GitPlatformAdapter, GitPlatformError
from repowatch.models import User
from repowatch.store import SecretStorage, WatchlistStorage
from repowatch.utils import parse_full_name

LOG = logging.getLogger("repowatch.session")


class SessionManager:
    """Owns token, authenticated user and the watchlist."""

    def __init__(
        self,
        adapter: GitPlatformAdapter,
        watchlist_storage: WatchlistStorage,
        secret_storage: SecretStorage,
    ) -> None:
        self._adapter = adapter
        self._watchlist_storage = watchlist_storage
        self._secrets = secret_storage
        self._token: str | None = None
        self._user: User | None = None
        self._watchlist: List[str] = []
        self._storage_loaded = False
        self._loading = True
        self._verify_error: str | None = None
        self._lock = threading.Lock()

    @property
    def adapter(self) -> GitPlatformAdapter:
        return self._adapter

    @property
    def token(self) -> str | None:
        return self._token

    @property
    def user(self) -> User | None:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self._token is not None and self._user is not None

    @property
    def watchlist(self) -> Tuple[str, ...]:
        return tuple(self._watchlist)

    @property
    def loading(self) -> bool:
        """True until start() has finished."""
        return self._loading

    @property
    def storage_loaded(self) -> bool:
        return self._storage_loaded

    @property
    def verify_error(self) -> str | None:
        """Why the stored token could not be verified (non-auth failure), if so."""
        return self._verify_error

    def start(self) -> None:
        """Load persisted state, then validate the stored token if any."""
        self._loading = True
        try:
            self.load_watchlist()
            token = self._secrets.get_token()
            if token:
                self._validate_stored(token)
        finally:
            self._loading = False
        LOG.info(
            "Session ready | user=%s | watchlist=%d",
            self._user.login if self._user else None,
            len(self._watchlist),
        )

    def resume(self) -> bool:
        """Retry validating the persisted token. Returns is_authenticated."""
        token = self._secrets.get_token()
        if token:
            self._validate_stored(token)
        return self.is_authenticated

    def load_watchlist(self) -> None:
        """Replace the in-memory watchlist with the persisted one.

        Until this has run, watchlist mutations are not written back.
        """
        stored = self._watchlist_storage.get()
        unique: List[str] = []
        for name in stored:
            if name not in unique:
                unique.append(name)
        with self._lock:
            self._watchlist = unique
            self._storage_loaded = True
        LOG.debug("Loaded watchlist: %s", unique)

    def _validate_stored(self, token: str) -> None:
        try:
            self._authenticate(token)
        except AuthError as e:
            LOG.warning("Stored token rejected (%s); logging out", e)
            self.logout()
        except GitPlatformError as e:
            LOG.warning("Could not verify stored token: %s", e)
            self._verify_error = str(e)

    def _authenticate(self, token: str) -> User:
        self._adapter.initialize(token)
        try:
            user = self._adapter.get_authenticated_user()
        except GitPlatformError:
            self._adapter.reset()
            self._token = None
            self._user = None
            raise
        self._token = token
        self._user = user
        self._verify_error = None
        return user

    def login(self, token: str) -> User:
        """Validate token against the API, then persist it.

        Raises the API error on failure; nothing is persisted then.
        """
        token = token.strip()
        if not token:
            raise AuthError("Token is empty")
        user = self._authenticate(token)
        self._secrets.set_token(token)
        LOG.info("Logged in as %s", user.login)
        return user

    def logout(self) -> None:
        """Clear the session and the persisted token. The watchlist stays."""
        self._token = None
        self._user = None
        self._verify_error = None
        self._adapter.reset()
        self._secrets.clear_token()
        LOG.info("Logged out")

    def add_to_watchlist(self, full_name: str) -> bool:
        """Append full_name after checking the repository exists.

        Returns False (no API call) if it is already watched. Raises
        ValidationError for a malformed name and the API error if the
        repository cannot be fetched.
        """
        full_name = full_name.strip()
        if not self._storage_loaded:
            # An add reported as successful must survive the initial load.
            self.load_watchlist()
        if full_name in self._watchlist:
            return False
        owner, name = parse_full_name(full_name)
        self._adapter.get_repo(owner, name)
        with self._lock:
            if full_name in self._watchlist:
                return False
            self._watchlist.append(full_name)
            self._persist_watchlist()
        LOG.info("Added %s to watchlist", full_name)
        return True

    def remove_from_watchlist(self, full_name: str) -> None:
        with self._lock:
            self._watchlist = [r for r in self._watchlist if r != full_name]
            self._persist_watchlist()
        LOG.info("Removed %s from watchlist", full_name)

    def _persist_watchlist(self) -> None:
        # Called with the lock held. The stored list must be read before the
        # first write, otherwise an empty in-memory list would replace it.
        if not self._storage_loaded:
            LOG.debug("Watchlist not loaded yet; skipping write")
            return
        self._watchlist_storage.set(list(self._watchlist))
