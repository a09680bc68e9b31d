"""
Analysis layer for building aggregate payloads from session collections.

This package contains the aggregation engine (time series, distributions,
pivots), the correlation engine, the training-load model and the summarizer.
"""

from .aggregation import (
    AggregationEngine,
    build_distribution,
    build_pivot,
    build_timeseries,
)
from .correlation import (
    CorrelationEngine,
    build_correlations,
    pearson,
    rank_average,
    spearman,
)
from .load_model import TrainingLoadModel, build_load_model
from .summarizer import ActivitySummarizer

__all__ = [
    "ActivitySummarizer",
    "AggregationEngine",
    "CorrelationEngine",
    "TrainingLoadModel",
    "build_correlations",
    "build_distribution",
    "build_load_model",
    "build_pivot",
    "build_timeseries",
    "pearson",
    "rank_average",
    "spearman",
]
