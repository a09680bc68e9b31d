"""
Metrics calculation modules.

This package contains per-session metric logic:
- base: Numeric helpers and the selector record
- run_dynamics: Stride length, ground contact time and vertical oscillation
- calories: Calorie estimation for sessions without a recorded value
- load: Per-session training charge
- selectors: Metric registries for time series, distributions, pivots and
  correlations
"""

from .base import MetricSelector, clamp, finite_or_none, is_finite_positive, round2
from .calories import CalorieEstimator
from .load import average_speed_or_default, compute_charge
from .run_dynamics import (
    RunDynamicsCache,
    RunDynamicsEstimator,
    apply_run_dynamics,
    cadence_to_steps_per_minute,
    collect_backfills,
    is_run_like,
    resolve_run_dynamics,
)
from .selectors import (
    CORRELATION_SELECTORS,
    DISTRIBUTION_SELECTORS,
    PIVOT_SELECTORS,
    TIME_SERIES_SELECTORS,
    ExtractionContext,
    parse_metric,
    parse_metrics,
)

__all__ = [
    "CalorieEstimator",
    "ExtractionContext",
    "MetricSelector",
    "RunDynamicsCache",
    "RunDynamicsEstimator",
    "apply_run_dynamics",
    "collect_backfills",
    "resolve_run_dynamics",
    "average_speed_or_default",
    "cadence_to_steps_per_minute",
    "clamp",
    "compute_charge",
    "finite_or_none",
    "is_finite_positive",
    "is_run_like",
    "parse_metric",
    "parse_metrics",
    "round2",
    "CORRELATION_SELECTORS",
    "DISTRIBUTION_SELECTORS",
    "PIVOT_SELECTORS",
    "TIME_SERIES_SELECTORS",
]
