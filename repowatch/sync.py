"""Resolve the watchlist into dashboard cards.

Each watched repository is fetched independently (metadata and open-PR count
in parallel); one failing entry never aborts the others. A failed entry is
kept as a placeholder card with error=True so it stays visible and can be
refreshed. Cards are identified by full_name: placeholder ids are random.
"""

import logging
import random
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Sequence

from repowatch.adapters.base import GitPlatformAdapter
from repowatch.models import DashboardRepo
from repowatch.utils import parse_full_name, split_full_name_lenient

FAILED_LOAD_MESSAGE = "Failed to load repository data. Check connection or permissions."

LOG = logging.getLogger("repowatch.sync")


def placeholder(full_name: str, message: str = FAILED_LOAD_MESSAGE) -> DashboardRepo:
    """Card for an entry whose fetch failed."""
    owner, name = split_full_name_lenient(full_name)
    return DashboardRepo(
        # negative so it can never clash with a real repository id
        id=-random.randint(1, 2**31),
        name=name,
        full_name=full_name,
        owner={"login": owner, "avatar_url": ""},
        html_url=f"https://github.com/{full_name}",
        description=message,
        stargazers_count=0,
        forks_count=0,
        open_issues_count=0,
        pull_requests_count=0,
        loading=False,
        error=True,
    )


def replace_entry(
    repos: Sequence[DashboardRepo],
    full_name: str,
    updated: DashboardRepo | None,
) -> List[DashboardRepo]:
    """New list with only full_name's card replaced.

    updated=None marks the existing card as failed but keeps its fields.
    """
    result = []
    for repo in repos:
        if repo.full_name != full_name:
            result.append(repo)
        elif updated is not None:
            result.append(updated)
        else:
            result.append(repo.model_copy(update={"loading": False, "error": True}))
    return result


def filter_repos(repos: Iterable[DashboardRepo], term: str) -> List[DashboardRepo]:
    """Case-insensitive substring match on owner/name."""
    needle = term.strip().lower()
    return [r for r in repos if needle in r.full_name.lower()]


def can_open(repo: DashboardRepo) -> bool:
    """Detail view is only available for cards that loaded."""
    return not repo.error


class RepositorySync:
    """Fetches dashboard cards through the platform adapter."""

    def __init__(self, adapter: GitPlatformAdapter, max_workers: int = 8) -> None:
        self._adapter = adapter
        self._max_workers = max_workers

    def fetch_summary(self, full_name: str) -> DashboardRepo:
        """Repository metadata and open-PR count, fetched concurrently."""
        owner, name = parse_full_name(full_name)
        with ThreadPoolExecutor(max_workers=2) as executor:
            repo_future = executor.submit(self._adapter.get_repo, owner, name)
            count_future = executor.submit(self._adapter.count_open_pull_requests, owner, name)
            repo = repo_future.result()
            count = count_future.result()
        return DashboardRepo(
            **repo.model_dump(),
            pull_requests_count=count,
            loading=False,
            error=False,
        )

    def try_fetch(self, full_name: str) -> DashboardRepo | None:
        """fetch_summary, or None (logged) if anything fails."""
        try:
            return self.fetch_summary(full_name)
        except Exception as e:
            LOG.warning("Failed to load %s: %s", full_name, e)
            return None

    def _fetch_or_placeholder(self, full_name: str) -> DashboardRepo:
        summary = self.try_fetch(full_name)
        return summary if summary is not None else placeholder(full_name)

    def load_all(self, watchlist: Sequence[str]) -> List[DashboardRepo]:
        """One card per entry, in watchlist order, once every fetch has settled."""
        if not watchlist:
            return []
        workers = min(self._max_workers, len(watchlist))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            return list(executor.map(self._fetch_or_placeholder, watchlist))

    def refresh_one(self, repos: Sequence[DashboardRepo], full_name: str) -> List[DashboardRepo]:
        """Re-fetch one card; the others are returned untouched."""
        return replace_entry(repos, full_name, self.try_fetch(full_name))


class Dashboard:
    """Dashboard view state: cards, loading flag and the filter term.

    A reload superseded by a newer one, or finishing after discard(), does
    not overwrite the cards.
    """

    def __init__(self, sync: RepositorySync) -> None:
        self._sync = sync
        self._lock = threading.Lock()
        self._generation = 0
        self._discarded = False
        self.repos: List[DashboardRepo] = []
        self.loading = False
        self.search_term = ""

    @property
    def visible(self) -> List[DashboardRepo]:
        return filter_repos(self.repos, self.search_term)

    def get(self, full_name: str) -> DashboardRepo | None:
        for repo in self.repos:
            if repo.full_name == full_name:
                return repo
        return None

    def reload(self, watchlist: Sequence[str]) -> bool:
        """Rebuild all cards. Returns False if the result was dropped."""
        with self._lock:
            self._generation += 1
            generation = self._generation
            self.loading = True
        results = self._sync.load_all(list(watchlist))
        with self._lock:
            if self._discarded or generation != self._generation:
                LOG.debug("Dropping stale dashboard load (generation %s)", generation)
                return False
            self.repos = results
            self.loading = False
        return True

    def refresh(self, full_name: str) -> bool:
        """Refresh one card in place. True if the fetch succeeded and was applied."""
        if self.get(full_name) is None:
            LOG.debug("No card for %s; nothing to refresh", full_name)
            return False
        with self._lock:
            self.repos = [
                r.model_copy(update={"loading": True, "error": False}) if r.full_name == full_name else r
                for r in self.repos
            ]
        updated = self._sync.try_fetch(full_name)
        with self._lock:
            if self._discarded:
                LOG.debug("Dropping refresh of %s after discard", full_name)
                return False
            self.repos = replace_entry(self.repos, full_name, updated)
        return updated is not None

    def discard(self) -> None:
        with self._lock:
            self._discarded = True
