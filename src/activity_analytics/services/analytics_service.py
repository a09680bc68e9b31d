"""
High-level service for answering analytics requests.

Every request follows the same flow:

1. fetch the subject's filtered sessions from the repository
2. fill in estimated calories
3. plan run-dynamics backfills and write them as one batch
4. merge the resolved triples into the sessions
5. apply calorie bounds (calories may have been estimated in step 2)
6. build the payload
7. upsert the payload as a snapshot keyed by the canonical query hash

Steps 3 and 7 are fire-and-forget: a failed write is logged and the computed
payload is still returned.
"""

import logging
from collections.abc import Callable, Iterable
from typing import Any

from pydantic import BaseModel

from ..analysis import (
    ActivitySummarizer,
    AggregationEngine,
    CorrelationEngine,
    TrainingLoadModel,
)
from ..data import SessionFilters
from ..data.repository import RepositoryProtocol
from ..exceptions import ActivityAnalyticsError
from ..metrics import CalorieEstimator, RunDynamicsEstimator, apply_run_dynamics
from ..models import (
    CorrelationMethod,
    CorrelationPayload,
    DistributionMetric,
    DistributionPayload,
    LoadModelPayload,
    PhysiologicalProfile,
    PivotMetric,
    PivotPayload,
    PivotRow,
    SessionRecord,
    SummaryPayload,
    TimeBucket,
    TimeSeriesMetric,
    TimeSeriesPayload,
)
from ..settings import Settings
from ..snapshots import InMemorySnapshotStore, SnapshotKey, SnapshotStore
from ..snapshots.hashing import canonical_filter_hash

logger = logging.getLogger(__name__)

ProfileLookup = Callable[[str], PhysiologicalProfile | None]


class AnalyticsService:
    """
    Coordinates session retrieval, enrichment, analysis and snapshotting.

    One method per analysis kind; each returns the payload model.
    """

    def __init__(
        self,
        repository: RepositoryProtocol,
        settings: Settings | None = None,
        snapshot_store: SnapshotStore | None = None,
        profile_lookup: ProfileLookup | None = None,
    ):
        """
        Initialize the analytics service.

        Args:
            repository: Source of subject-scoped sessions
            settings: Application settings
            snapshot_store: Destination of computed payloads
            profile_lookup: Maps a subject ID to its physiology; the settings
                profile is used when absent or when it returns None
        """
        self.settings = settings if settings is not None else Settings()
        self.repository = repository
        self.snapshot_store = (
            snapshot_store if snapshot_store is not None else InMemorySnapshotStore()
        )
        self.profile_lookup = profile_lookup
        self.logger = logging.getLogger(__name__)

        self.calorie_estimator = CalorieEstimator()
        self.run_dynamics = RunDynamicsEstimator()
        self.aggregation = AggregationEngine(self.settings)
        self.correlation = CorrelationEngine(self.settings)
        self.load_model = TrainingLoadModel(self.settings)
        self.summarizer = ActivitySummarizer()

    def get_profile(self, subject_id: str) -> PhysiologicalProfile:
        if self.profile_lookup is not None:
            profile = self.profile_lookup(subject_id)
            if profile is not None:
                return profile
        return self.settings.profile

    def get_sessions(
        self, subject_id: str, filters: SessionFilters | None = None
    ) -> list[SessionRecord]:
        """
        Fetch and enrich a subject's sessions.

        Args:
            subject_id: Owner of the sessions
            filters: Query constraints, including calorie bounds

        Returns:
            Sessions with calories and resolved run dynamics filled in
        """
        filters = filters or SessionFilters()
        profile = self.get_profile(subject_id)

        sessions = self.repository.get_sessions(subject_id, filters)
        sessions = self.calorie_estimator.with_estimated_calories(sessions, profile)

        backfills = self.run_dynamics.collect_backfills(sessions)
        if backfills:
            try:
                self.repository.apply_backfills(backfills)
            except ActivityAnalyticsError as e:
                self.logger.warning(f"Run-dynamics backfill failed: {e}")
        sessions = apply_run_dynamics(sessions, backfills)

        return filters.apply_calorie_bounds(sessions)

    def summary(
        self, subject_id: str, filters: SessionFilters | None = None
    ) -> SummaryPayload:
        """Headline totals and per-sport breakdown."""
        filters = filters or SessionFilters()
        sessions = self.get_sessions(subject_id, filters)
        payload = self.summarizer.summarize(sessions)
        return self._finish(subject_id, "summary", filters, {}, payload)

    def timeseries(
        self,
        subject_id: str,
        metric: TimeSeriesMetric | str = TimeSeriesMetric.DISTANCE,
        bucket: TimeBucket | str = TimeBucket.WEEK,
        filters: SessionFilters | None = None,
    ) -> TimeSeriesPayload:
        """Bucketed time series of one metric."""
        filters = filters or SessionFilters()
        sessions = self.get_sessions(subject_id, filters)
        payload = self.aggregation.build_timeseries(sessions, metric, bucket)
        params = {"metric": metric, "bucket": bucket}
        return self._finish(subject_id, "timeseries", filters, params, payload)

    def distribution(
        self,
        subject_id: str,
        metric: DistributionMetric | str = DistributionMetric.DISTANCE,
        bins: int | None = None,
        filters: SessionFilters | None = None,
    ) -> DistributionPayload:
        """Histogram of one metric."""
        filters = filters or SessionFilters()
        sessions = self.get_sessions(subject_id, filters)
        payload = self.aggregation.build_distribution(sessions, metric, bins)
        params = {"metric": metric, "bins": bins}
        return self._finish(subject_id, "distribution", filters, params, payload)

    def pivot(
        self,
        subject_id: str,
        row: PivotRow | str = PivotRow.TYPE,
        metrics: Iterable[PivotMetric | str] = (),
        filters: SessionFilters | None = None,
    ) -> PivotPayload:
        """Pivot table by sport type, week or month."""
        filters = filters or SessionFilters()
        metrics = list(metrics)
        sessions = self.get_sessions(subject_id, filters)
        payload = self.aggregation.build_pivot(sessions, row, metrics)
        params = {"row": row, "metrics": metrics}
        return self._finish(subject_id, "pivot", filters, params, payload)

    def correlations(
        self,
        subject_id: str,
        variables: Iterable[str] = (),
        method: CorrelationMethod | str = CorrelationMethod.PEARSON,
        scatter_x: str | None = None,
        scatter_y: str | None = None,
        scatter_color: str | None = None,
        filters: SessionFilters | None = None,
    ) -> CorrelationPayload:
        """Correlation matrix and scatter plot."""
        filters = filters or SessionFilters()
        variables = list(variables)
        sessions = self.get_sessions(subject_id, filters)
        payload = self.correlation.build_correlations(
            sessions,
            variables,
            method,
            hr_max=self.get_profile(subject_id).hr_max,
            scatter_x=scatter_x,
            scatter_y=scatter_y,
            scatter_color=scatter_color,
        )
        params = {
            "vars": variables,
            "method": method,
            "scatter_x": scatter_x,
            "scatter_y": scatter_y,
            "scatter_color": scatter_color,
        }
        return self._finish(subject_id, "correlations", filters, params, payload)

    def load(
        self, subject_id: str, filters: SessionFilters | None = None
    ) -> LoadModelPayload:
        """Day-by-day CTL, ATL and TSB."""
        filters = filters or SessionFilters()
        sessions = self.get_sessions(subject_id, filters)
        payload = self.load_model.build(sessions, self.get_profile(subject_id).hr_max)
        return self._finish(subject_id, "load", filters, {}, payload)

    def snapshot_key(
        self,
        subject_id: str,
        kind: str,
        filters: SessionFilters,
        params: dict[str, Any],
    ) -> SnapshotKey:
        """Snapshot key of one request; filters and parameters are hashed together."""
        query = {**filters.model_dump(by_alias=True), **params}
        return SnapshotKey(
            subject_id=subject_id, kind=kind, filter_hash=canonical_filter_hash(query)
        )

    def _finish(
        self,
        subject_id: str,
        kind: str,
        filters: SessionFilters,
        params: dict[str, Any],
        payload: BaseModel,
    ):
        key = self.snapshot_key(subject_id, kind, filters, params)
        try:
            self.snapshot_store.upsert(
                key, payload.model_dump(mode="json", by_alias=True)
            )
        except ActivityAnalyticsError as e:
            self.logger.warning(f"Snapshot upsert failed for {kind}: {e}")
        else:
            self.logger.debug(f"Stored {kind} snapshot {key.filter_hash[:12]}")

        self.logger.info(f"Computed {kind} for subject {subject_id}")
        return payload
