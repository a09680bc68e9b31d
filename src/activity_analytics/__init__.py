"""Activity Analytics - an analytics and training-load engine for training sessions."""

__version__ = "0.3.0"

from . import (
    analysis,
    constants,
    data,
    exceptions,
    metrics,
    models,
    services,
    snapshots,
)
from .analysis import (
    ActivitySummarizer,
    AggregationEngine,
    CorrelationEngine,
    TrainingLoadModel,
    build_correlations,
    build_distribution,
    build_load_model,
    build_pivot,
    build_timeseries,
)
from .data import SessionDataLoader, SessionFilters, SessionRepository
from .metrics import (
    CalorieEstimator,
    RunDynamicsEstimator,
    collect_backfills,
    resolve_run_dynamics,
)
from .models import (
    PhysiologicalProfile,
    RunDynamicsBackfill,
    RunDynamicsValues,
    SessionRecord,
)
from .services import AnalyticsService
from .settings import Settings, load_settings
from .snapshots import (
    InMemorySnapshotStore,
    JsonFileSnapshotStore,
    canonical_filter_hash,
)


def get_version() -> str:
    """Get the current version of activity_analytics."""
    return __version__


def get_package_info() -> dict[str, str]:
    """Get package information including name and version."""
    return {
        "name": "activity-analytics",
        "version": __version__,
        "description": "Analytics and training-load engine for training sessions",
    }


__all__ = [
    # Version & Info
    "get_version",
    "get_package_info",
    # Models
    "PhysiologicalProfile",
    "RunDynamicsBackfill",
    "RunDynamicsValues",
    "SessionRecord",
    # Settings
    "Settings",
    "load_settings",
    # Estimators
    "CalorieEstimator",
    "RunDynamicsEstimator",
    "collect_backfills",
    "resolve_run_dynamics",
    # Data Layer
    "SessionDataLoader",
    "SessionFilters",
    "SessionRepository",
    # Analysis Layer
    "ActivitySummarizer",
    "AggregationEngine",
    "CorrelationEngine",
    "TrainingLoadModel",
    "build_correlations",
    "build_distribution",
    "build_load_model",
    "build_pivot",
    "build_timeseries",
    # Snapshots
    "InMemorySnapshotStore",
    "JsonFileSnapshotStore",
    "canonical_filter_hash",
    # Services
    "AnalyticsService",
    # Modules
    "analysis",
    "constants",
    "data",
    "exceptions",
    "metrics",
    "models",
    "services",
    "snapshots",
]
