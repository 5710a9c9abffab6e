"""Progress persistence: the small key/value record moonstone depends on.

The engine only ever stores one value, under "<prefix>.version", but the
stores are plain string maps so several engines (different prefixes) can
share one file.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path

import orjson

from moonstone.exceptions import ProgressStoreError

logger = logging.getLogger(__name__)


class ProgressStore(ABC):
    """Abstract string key/value store."""

    @abstractmethod
    def get_string(self, key: str) -> str | None:
        """Return the stored value, or None if the key was never set."""

    @abstractmethod
    def set_string(self, key: str, value: str) -> None:
        """Durably store a value."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Forget a key. Missing keys are ignored."""


class InMemoryProgressStore(ProgressStore):
    """Dict-backed store. Nothing survives the process."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})

    def get_string(self, key: str) -> str | None:
        return self._values.get(key)

    def set_string(self, key: str, value: str) -> None:
        self._values[key] = value

    def delete(self, key: str) -> None:
        self._values.pop(key, None)

    def as_dict(self) -> dict[str, str]:
        return dict(self._values)


class JsonFileProgressStore(ProgressStore):
    """Stores values as a flat JSON object on disk.

    Format: {"<prefix>.version": "1.2.0", ...}. Every change writes a
    sibling ".tmp" file and renames it over the target, so a crash leaves
    either the old file or the new one, never a truncated one.
    """

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def get_string(self, key: str) -> str | None:
        return self._load().get(key)

    def set_string(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def delete(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)

    def _load(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            raw = orjson.loads(self._path.read_bytes())
        except (OSError, orjson.JSONDecodeError) as e:
            raise ProgressStoreError(f"Cannot read progress file {self._path}: {e}") from e
        if not isinstance(raw, dict):
            raise ProgressStoreError(
                f"Progress file {self._path} must hold a JSON object, got {type(raw).__name__}"
            )
        return {str(k): str(v) for k, v in raw.items()}

    def _save(self, data: dict[str, str]) -> None:
        # Write beside the target and rename over it, so readers never see a partial file
        tmp = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_bytes(orjson.dumps(data, option=orjson.OPT_INDENT_2))
            tmp.replace(self._path)
        except OSError as e:
            raise ProgressStoreError(f"Cannot write progress file {self._path}: {e}") from e
        logger.debug("Progress saved to %s", self._path)
