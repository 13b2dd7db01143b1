"""Local persistence: watchlist and encrypted token, one YAML file each."""

from pathlib import Path

from repowatch.store.kv_store import KeyValueStore
from repowatch.store.credentials import SecretStorage
from repowatch.store.watchlist import WatchlistStorage

__all__ = [
    "KeyValueStore",
    "SecretStorage",
    "WatchlistStorage",
    "open_secret_storage",
    "open_watchlist_storage",
]


def open_watchlist_storage(path: Path) -> WatchlistStorage:
    return WatchlistStorage(KeyValueStore(path))


def open_secret_storage(path: Path) -> SecretStorage:
    return SecretStorage(KeyValueStore(path))
