"""Key/value store persisted as one YAML mapping per file.

The file is read lazily on first access and cached; set/delete change the
cache and save() writes the whole mapping back.
"""

import logging
from pathlib import Path
from typing import Any

import yaml

LOG = logging.getLogger("repowatch.store.kv_store")


class KeyValueStore:
    """YAML-file backed mapping (one handle per file)."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._data: dict[str, Any] | None = None

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> None:
        """Read the file into the cache. Missing or invalid file means empty."""
        data: dict[str, Any] = {}
        if self._path.is_file():
            try:
                raw = yaml.safe_load(self._path.read_text(encoding="utf-8"))
                if isinstance(raw, dict):
                    data = raw
                elif raw is not None:
                    LOG.warning("Ignoring %s: top level is not a mapping", self._path)
            except (OSError, yaml.YAMLError) as e:
                LOG.warning("Failed to load %s: %s", self._path, e)
        self._data = data

    def _mapping(self) -> dict[str, Any]:
        if self._data is None:
            self.load()
        assert self._data is not None
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        return self._mapping().get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._mapping()[key] = value

    def delete(self, key: str) -> bool:
        """Remove key; returns False if it was not present."""
        return self._mapping().pop(key, None) is not None

    def save(self) -> Path:
        """Write the cached mapping to disk. Creates dir if needed."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        raw = yaml.dump(
            self._mapping(),
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False,
            width=1000,
        )
        self._path.write_text(raw, encoding="utf-8")
        LOG.debug("Saved %s", self._path)
        return self._path
