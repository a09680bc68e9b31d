"""
Canonical hashing of filter and query objects.

Two objects that differ only in key order or in keys holding ``None`` hash to
the same digest, so they share one snapshot entry.
"""

import hashlib
import json
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel


def _iso_instant(moment: datetime) -> str:
    """UTC ISO-8601 with millisecond precision and a Z suffix."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    utc = moment.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def canonicalize(obj: Any) -> Any:
    """
    Convert an object into a JSON-ready structure that is stable under reordering.

    - datetimes become UTC ISO-8601 strings (naive values are taken as UTC)
    - dates become ``YYYY-MM-DD``
    - enums become their value
    - pydantic models are dumped to dicts (by alias) first
    - lists and tuples are canonicalized element-wise
    - dicts lose their ``None``-valued keys and are sorted by key
    """
    if isinstance(obj, BaseModel):
        return canonicalize(obj.model_dump(by_alias=True))
    if isinstance(obj, datetime):
        return _iso_instant(obj)
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return canonicalize(obj.value)
    if isinstance(obj, dict):
        return {
            str(key): canonicalize(obj[key])
            for key in sorted(obj, key=str)
            if obj[key] is not None
        }
    if isinstance(obj, (list, tuple)):
        return [canonicalize(item) for item in obj]
    return obj


def canonical_json(obj: Any) -> str:
    """Compact JSON text of the canonical form."""
    return json.dumps(canonicalize(obj), separators=(",", ":"), ensure_ascii=False)


def canonical_filter_hash(obj: Any) -> str:
    """SHA-256 hex digest of the canonical JSON of obj."""
    return hashlib.sha256(canonical_json(obj).encode("utf-8")).hexdigest()
