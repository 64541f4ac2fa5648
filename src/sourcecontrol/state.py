"""Local persisted state for source-control bindings.

One JSON document per binding name. The ``id`` field is the binding's
canonical key; the remaining fields are the last known shadow copy.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path

from .models import SourceControlState

logger = logging.getLogger(__name__)

VALID_STATE_NAME_PATTERN = r"^[a-z0-9][a-z0-9._-]{0,62}$"
STATE_FILE_SUFFIX = ".json"


class StateError(Exception):
    """Raised when persisted state cannot be read or written."""

    pass


class StateStore:
    """Directory-backed store of ``SourceControlState`` documents."""

    def __init__(self, directory: Path) -> None:
        self._directory = directory

    @property
    def directory(self) -> Path:
        return self._directory

    def _path(self, name: str) -> Path:
        if not re.match(VALID_STATE_NAME_PATTERN, name):
            raise StateError(f"Invalid binding name {name!r}: must match {VALID_STATE_NAME_PATTERN}")
        return self._directory / f"{name}{STATE_FILE_SUFFIX}"

    def load(self, name: str) -> SourceControlState | None:
        path = self._path(name)
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise StateError(f"Failed to read state {path}: {e}") from e
        if not isinstance(data, dict):
            raise StateError(f"State file must contain a JSON object: {path}")
        return SourceControlState.from_dict(data)

    def save(self, name: str, state: SourceControlState) -> None:
        path = self._path(name)
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            # Write-then-rename so a crash never leaves a truncated document
            tmp_path = path.with_suffix(".tmp")
            tmp_path.write_text(json.dumps(state.to_dict(), indent=2, sort_keys=True), encoding="utf-8")
            tmp_path.replace(path)
        except OSError as e:
            raise StateError(f"Failed to write state {path}: {e}") from e
        logger.debug("Saved state for '%s' to %s", name, path)

    def delete(self, name: str) -> bool:
        """Remove a binding's state. Returns False if there was none."""
        path = self._path(name)
        if not path.exists():
            return False
        try:
            path.unlink()
        except OSError as e:
            raise StateError(f"Failed to delete state {path}: {e}") from e
        return True

    def names(self) -> list[str]:
        if not self._directory.is_dir():
            return []
        return sorted(p.stem for p in self._directory.glob(f"*{STATE_FILE_SUFFIX}"))
