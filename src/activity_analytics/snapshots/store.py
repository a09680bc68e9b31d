"""
Result snapshot stores.

A snapshot is the last computed payload for one (subject, analysis kind,
filter hash) key. Stores only upsert and read back; there is no expiry.
"""

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..exceptions import SnapshotStoreError

logger = logging.getLogger(__name__)


class SnapshotKey(BaseModel):
    """Identity of a cached analysis result."""

    model_config = ConfigDict(frozen=True)

    subject_id: str
    kind: str
    filter_hash: str


class SnapshotEntry(BaseModel):
    """A stored analysis payload."""

    key: SnapshotKey
    payload: dict[str, Any]
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class SnapshotStore(Protocol):
    """Protocol for snapshot stores."""

    def upsert(self, key: SnapshotKey, payload: dict[str, Any]) -> SnapshotEntry:
        """Create or replace the entry for key."""
        ...

    def get(self, key: SnapshotKey) -> SnapshotEntry | None:
        """Return the entry for key, if any."""
        ...


class InMemorySnapshotStore:
    """Dict-backed store, mainly for tests and one-shot runs."""

    def __init__(self):
        self._entries: dict[SnapshotKey, SnapshotEntry] = {}

    def upsert(self, key: SnapshotKey, payload: dict[str, Any]) -> SnapshotEntry:
        entry = SnapshotEntry(key=key, payload=payload)
        self._entries[key] = entry
        return entry

    def get(self, key: SnapshotKey) -> SnapshotEntry | None:
        return self._entries.get(key)

    def __len__(self) -> int:
        return len(self._entries)


class JsonFileSnapshotStore:
    """
    Stores one JSON document per key under a root directory.

    Layout is ``<root>/<subject_id>/<kind>/<filter_hash>.json``. Writes go to a
    temporary file in the same directory and are moved into place with
    ``os.replace`` so readers never see a partial document.
    """

    def __init__(self, root: Path):
        """
        Initialize the store.

        Args:
            root: Directory holding snapshot files; created on first write
        """
        self.root = Path(root)
        self.logger = logging.getLogger(__name__)

    def path_for(self, key: SnapshotKey) -> Path:
        """File path of the entry for key."""
        return self.root / key.subject_id / key.kind / f"{key.filter_hash}.json"

    def upsert(self, key: SnapshotKey, payload: dict[str, Any]) -> SnapshotEntry:
        """
        Create or replace the entry for key.

        Raises:
            SnapshotStoreError: If the file cannot be written
        """
        entry = SnapshotEntry(key=key, payload=payload)
        path = self.path_for(key)

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=path.parent, prefix=f".{key.filter_hash}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(entry.model_dump_json())
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except (OSError, TypeError, ValueError) as e:
            raise SnapshotStoreError(f"Failed to write snapshot {path}: {e}") from e

        self.logger.debug(f"Stored snapshot {path}")
        return entry

    def get(self, key: SnapshotKey) -> SnapshotEntry | None:
        """
        Read the entry for key.

        Raises:
            SnapshotStoreError: If the file exists but cannot be parsed
        """
        path = self.path_for(key)
        if not path.exists():
            return None

        try:
            return SnapshotEntry.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValidationError, json.JSONDecodeError) as e:
            raise SnapshotStoreError(f"Failed to read snapshot {path}: {e}") from e
