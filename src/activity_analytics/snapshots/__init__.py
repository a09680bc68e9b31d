"""
Result snapshot cache.

- hashing: Canonical filter hashing
- store: In-memory and JSON-file snapshot stores
"""

from .hashing import canonical_filter_hash, canonical_json, canonicalize
from .store import (
    InMemorySnapshotStore,
    JsonFileSnapshotStore,
    SnapshotEntry,
    SnapshotKey,
    SnapshotStore,
)

__all__ = [
    "InMemorySnapshotStore",
    "JsonFileSnapshotStore",
    "SnapshotEntry",
    "SnapshotKey",
    "SnapshotStore",
    "canonical_filter_hash",
    "canonical_json",
    "canonicalize",
]
