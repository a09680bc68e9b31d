"""
Numeric helpers and the selector record shared by all metric tables.

Every extractor returns either a finite float or ``None``; ``None`` values are
excluded from aggregation rather than counted as zero.
"""

import math
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..models import Aggregation, SessionRecord

if TYPE_CHECKING:
    from .selectors import ExtractionContext


def clamp(value: float, lower: float, upper: float) -> float:
    """Limit value to the closed interval [lower, upper]."""
    return max(lower, min(upper, value))


def round2(value: float) -> float:
    """Round half away from zero to two decimals (positive inputs)."""
    return math.floor(value * 100 + 0.5) / 100


def is_finite_positive(value: float | None) -> bool:
    """True for a real number that is finite and strictly positive."""
    return value is not None and math.isfinite(value) and value > 0


def finite_or_none(value: float | None) -> float | None:
    """Pass finite numbers through, map None/NaN/inf to None."""
    if value is None:
        return None
    value = float(value)
    return value if math.isfinite(value) else None


Extractor = Callable[[SessionRecord, "ExtractionContext"], float | None]


@dataclass(frozen=True)
class MetricSelector:
    """A value extractor paired with its aggregation mode."""

    select: Extractor
    aggregation: Aggregation = Aggregation.SUM
