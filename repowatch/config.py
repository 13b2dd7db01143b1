"""Configuration loading from YAML and environment.

The GitHub token may come from the config file, the GITHUB_TOKEN env var or
a file named by GITHUB_TOKEN_FILE (Docker secrets). A token entered through
`repowatch login` is stored encrypted in the data directory instead.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _read_secret(env_key: str, file_env_key: str) -> str | None:
    """Read secret from env var or from file path in env (e.g. Docker
    secrets)."""
    value = _current_env.get(env_key)
    if value:
        return value.strip()
    file_path = _current_env.get(file_env_key)
    if file_path:
        return Path(file_path).read_text().strip()
    return None


# Injected by load_config so properties can read env/file
_current_env: dict[str, str] = {}


class GitHubConfig(BaseSettings):
    """GitHub API settings."""

    model_config = SettingsConfigDict(env_prefix="GITHUB_", extra="ignore")

    token: str | None = Field(default=None, description="PAT used by `login` when none is given")
    api_url: str = Field(default="https://api.github.com", description="API base URL")
    timeout: int = Field(default=30, ge=1, description="HTTP timeout in seconds")


class StorageConfig(BaseSettings):
    """Where the watchlist and the encrypted token are kept."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_", extra="ignore")

    data_dir: str = Field(default="~/.repowatch", description="Directory for persisted state")
    watchlist_file: str = Field(default="watchlist.yaml", description="Watchlist file name")
    secrets_file: str = Field(default="secrets.yaml", description="Encrypted token file name")

    @property
    def watchlist_path(self) -> Path:
        return Path(self.data_dir).expanduser() / self.watchlist_file

    @property
    def secrets_path(self) -> Path:
        return Path(self.data_dir).expanduser() / self.secrets_file


class SyncConfig(BaseSettings):
    """Dashboard fan-out settings."""

    model_config = SettingsConfigDict(env_prefix="SYNC_", extra="ignore")

    max_workers: int = Field(default=8, ge=1, le=64, description="Parallel repository fetches")


class TriageConfig(BaseSettings):
    """Pull request detail view settings."""

    model_config = SettingsConfigDict(env_prefix="TRIAGE_", extra="ignore")

    notice_seconds: float = Field(default=5.0, gt=0, description="Lifetime of success/error notices")


class LoggingConfig(BaseSettings):
    """Logging settings."""

    model_config = SettingsConfigDict(env_prefix="LOGGING_", extra="ignore")

    level: str = Field(default="WARNING", description="Log level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format",
    )


class AppConfig(BaseSettings):
    """Root application config from YAML + env."""

    model_config = SettingsConfigDict(extra="ignore")

    github: GitHubConfig = Field(default_factory=GitHubConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    triage: TriageConfig = Field(default_factory=TriageConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def github_token_resolved(self) -> str | None:
        """Resolve GitHub token from config, env or Docker secret file."""
        t = self.github.token
        if t and not t.startswith("${") and not t.startswith("$"):
            return t
        return _read_secret("GITHUB_TOKEN", "GITHUB_TOKEN_FILE")


def _substitute_env(value: Any) -> Any:
    """Replace ${VAR} and $VAR in strings with os.environ."""
    if isinstance(value, str):
        if value.startswith("${") and value.endswith("}"):
            key = value[2:-1].strip()
            return _current_env.get(key, value)
        if value.startswith("$") and not value.startswith("${"):
            key = value[1:].strip()
            return _current_env.get(key, value)
        return value
    if isinstance(value, dict):
        return {k: _substitute_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_substitute_env(v) for v in value]
    return value


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load config from YAML file and environment.

    Missing file means defaults (plus LOGGING_*, STORAGE_* ... env vars).
    """
    global _current_env
    import os

    _current_env = dict(os.environ)

    path = config_path or Path("config.yaml")
    if not path.is_file():
        return AppConfig()

    raw = yaml.safe_load(path.read_text()) or {}
    raw = _substitute_env(raw)

    return AppConfig(
        github=GitHubConfig(**(raw.get("github") or {})),
        storage=StorageConfig(**(raw.get("storage") or {})),
        sync=SyncConfig(**(raw.get("sync") or {})),
        triage=TriageConfig(**(raw.get("triage") or {})),
        logging=LoggingConfig(**(raw.get("logging") or {})),
    )
