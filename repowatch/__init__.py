"""repowatch - watchlist dashboard and pull request triage for GitHub."""

__version__ = "0.1.0"
