"""Watchlist persistence: ordered list of owner/name strings under one key."""

import logging
from typing import List

from repowatch.store.kv_store import KeyValueStore

WATCHLIST_KEY = "repos"

LOG = logging.getLogger("repowatch.store.watchlist")


class WatchlistStorage:
    """get/set of the full watchlist. Uniqueness is the caller's concern."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def get(self) -> List[str]:
        value = self._store.get(WATCHLIST_KEY)
        if value is None:
            return []
        if not isinstance(value, list):
            LOG.warning("Watchlist in %s is not a list; ignoring it", self._store.path)
            return []
        return [str(v) for v in value if isinstance(v, str)]

    def set(self, repos: List[str]) -> None:
        self._store.set(WATCHLIST_KEY, list(repos))
        self._store.save()
