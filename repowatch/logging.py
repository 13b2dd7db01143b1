"""Logging for the repowatch CLI.

Command output goes to stdout; log records always go to stderr so they never
mix with it. Levels:
- ERROR: failed loads, merges and closes
- WARNING: swallowed failures (branch deletion, unreadable token, bad files)
- INFO: login/logout, watchlist changes, merges and closes
- DEBUG: every API call (-v / --verbose)

Configure via config.yaml (logging.level, logging.format) or env
(LOGGING_LEVEL, LOGGING_FORMAT). --verbose wins over both.
"""

import logging
import sys

from repowatch.config import LoggingConfig

LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Chatty third-party loggers; only shown with --verbose
QUIET_LOGGERS = ("urllib3",)


def _resolve_level(level: str) -> int:
    """Map level name to logging constant; unknown names mean WARNING."""
    return LEVELS.get(level.upper().strip(), logging.WARNING)


class RepowatchLogging:
    """Configures the root logger for one CLI run."""

    def __init__(self, config: LoggingConfig, verbose: bool = False) -> None:
        self._verbose = verbose
        self._level = logging.DEBUG if verbose else _resolve_level(config.level)
        self._format = config.format or DEFAULT_FORMAT

    @property
    def level(self) -> int:
        return self._level

    def setup(self) -> None:
        """Send records to stderr at the configured level."""
        logging.basicConfig(
            level=self._level,
            format=self._format,
            stream=sys.stderr,
            force=True,
        )
        quiet_level = logging.DEBUG if self._verbose else max(self._level, logging.WARNING)
        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(quiet_level)
