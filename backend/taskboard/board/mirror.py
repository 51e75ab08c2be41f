"""Best-effort durable mirror of board data.

Keeps the last known task and custom-field lists per project so a board can
still open when the store is unreachable. It is a fallback cache, never the
source of truth: every failure is logged and reported as a miss.
"""

import re
from pathlib import Path
from typing import Any, Optional, Protocol

import orjson
import structlog

logger = structlog.get_logger()

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def tasks_key(project_id: str) -> str:
    return f"project-{project_id}-tasks"


def custom_fields_key(project_id: str) -> str:
    return f"project-{project_id}-custom-fields"


class Mirror(Protocol):
    """Opaque key/value blob storage."""

    def load(self, key: str) -> Optional[Any]: ...

    def save(self, key: str, value: Any) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryMirror:
    """Mirror kept in process memory (tests, ephemeral sessions)."""

    def __init__(self) -> None:
        self._blobs: dict[str, bytes] = {}

    def load(self, key: str) -> Optional[Any]:
        blob = self._blobs.get(key)
        if blob is None:
            return None
        return orjson.loads(blob)

    def save(self, key: str, value: Any) -> None:
        try:
            self._blobs[key] = orjson.dumps(value)
        except TypeError as e:
            logger.warning("mirror_save_failed", key=key, error=str(e))

    def remove(self, key: str) -> None:
        self._blobs.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._blobs)


class FileMirror:
    """One JSON file per key under ``directory``."""

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{_UNSAFE_KEY_CHARS.sub('_', key)}.json"

    def load(self, key: str) -> Optional[Any]:
        path = self._path(key)
        try:
            return orjson.loads(path.read_bytes())
        except FileNotFoundError:
            return None
        except (OSError, orjson.JSONDecodeError) as e:
            logger.warning("mirror_load_failed", key=key, error=str(e))
            return None

    def save(self, key: str, value: Any) -> None:
        path = self._path(key)
        tmp = path.with_suffix(".tmp")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            tmp.write_bytes(orjson.dumps(value))
            tmp.replace(path)
        except (OSError, TypeError) as e:
            logger.warning("mirror_save_failed", key=key, error=str(e))

    def remove(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as e:
            logger.warning("mirror_remove_failed", key=key, error=str(e))
