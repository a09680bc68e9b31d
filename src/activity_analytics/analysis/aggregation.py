"""
Aggregation of session collections into time series, histograms and pivots.

All three builders read values through the metric registries and skip
missing or non-finite values. Buckets and bins only appear when at least one
value contributed; pivot cells are the exception and render absent data as 0.
"""

import logging
from collections.abc import Iterable, Sequence
from datetime import datetime, timedelta

import numpy as np
import pandas as pd

from ..constants import DateFormats, DefaultMetrics
from ..metrics.selectors import (
    DISTRIBUTION_SELECTORS,
    PIVOT_SELECTORS,
    TIME_SERIES_SELECTORS,
    ExtractionContext,
    parse_metric,
    parse_metrics,
)
from ..models import (
    Aggregation,
    DistributionMetric,
    DistributionPayload,
    HistogramBin,
    PivotMetric,
    PivotPayload,
    PivotRow,
    SessionRecord,
    TimeBucket,
    TimeSeriesMetric,
    TimeSeriesPayload,
    TimeSeriesPoint,
)
from ..settings import Settings

logger = logging.getLogger(__name__)


def week_start(moment: datetime) -> str:
    """Monday of the ISO week containing moment, as YYYY-MM-DD."""
    monday = moment.date() - timedelta(days=moment.weekday())
    return monday.strftime(DateFormats.DAY)


def bucket_label(moment: datetime, bucket: TimeBucket) -> str:
    """Calendar key of a subject-local instant for the given granularity."""
    if bucket == TimeBucket.DAY:
        return moment.strftime(DateFormats.DAY)
    if bucket == TimeBucket.WEEK:
        return week_start(moment)
    return moment.strftime(DateFormats.MONTH)


def pivot_row_key(session: SessionRecord, row: PivotRow) -> str:
    """Row key of a session: sport label, ISO week start or calendar month."""
    if row == PivotRow.TYPE:
        return session.sport_label
    if row == PivotRow.WEEK:
        return week_start(session.start_date_local)
    return session.start_date_local.strftime(DateFormats.MONTH)


class AggregationEngine:
    """
    Builds time series, distributions and pivot tables.

    A fresh ExtractionContext is created per call so run-dynamics resolution is
    memoized for exactly one request.
    """

    def __init__(self, settings: Settings | None = None):
        """
        Initialize the engine.

        Args:
            settings: Application settings (bin defaults and limits)
        """
        self.settings = settings if settings is not None else Settings()

    def build_timeseries(
        self,
        sessions: Sequence[SessionRecord],
        metric: TimeSeriesMetric | str,
        bucket: TimeBucket | str = TimeBucket.WEEK,
    ) -> TimeSeriesPayload:
        """
        Aggregate one metric into day, week or month buckets.

        Args:
            sessions: Sessions to aggregate
            metric: Metric name; unknown names fall back to distance
            bucket: Bucket granularity; unknown values fall back to week

        Returns:
            Series sorted ascending by bucket key
        """
        metric = parse_metric(TimeSeriesMetric, metric) or TimeSeriesMetric.DISTANCE
        bucket = parse_metric(TimeBucket, bucket) or TimeBucket.WEEK
        selector = TIME_SERIES_SELECTORS[metric]
        ctx = ExtractionContext()

        records = []
        for session in sessions:
            value = selector.select(session, ctx)
            if value is None:
                continue
            records.append((bucket_label(session.start_date_local, bucket), value))

        if not records:
            return TimeSeriesPayload(
                metric=metric, aggregation=selector.aggregation, bucket=bucket
            )

        df = pd.DataFrame(records, columns=["bucket", "value"])
        grouped = df.groupby("bucket", sort=True)["value"].agg(["sum", "count", "max"])

        if selector.aggregation == Aggregation.AVG:
            values = grouped["sum"] / grouped["count"]
        elif selector.aggregation == Aggregation.MAX:
            values = grouped["max"]
        else:
            values = grouped["sum"]

        series = [
            TimeSeriesPoint(bucket=key, value=float(values[key]), samples=int(count))
            for key, count in grouped["count"].items()
        ]

        logger.debug(
            f"Built {metric.value} series with {len(series)} {bucket.value} buckets"
        )
        return TimeSeriesPayload(
            metric=metric,
            aggregation=selector.aggregation,
            bucket=bucket,
            series=series,
        )

    def build_distribution(
        self,
        sessions: Sequence[SessionRecord],
        metric: DistributionMetric | str,
        bins: int | None = None,
    ) -> DistributionPayload:
        """
        Build an equal-width histogram of one metric.

        Args:
            sessions: Sessions to bin
            metric: Metric name; unknown names fall back to distance
            bins: Requested bin count, clamped to [1, max_bins]

        Returns:
            Non-empty bins in ascending order with sample size and range
        """
        metric = parse_metric(DistributionMetric, metric) or DistributionMetric.DISTANCE
        bin_count = self._clamp_bins(bins)
        select = DISTRIBUTION_SELECTORS[metric]
        ctx = ExtractionContext()

        collected = [select(session, ctx) for session in sessions]
        values = np.array([v for v in collected if v is not None], dtype=float)

        if values.size == 0:
            return DistributionPayload(metric=metric)

        low = float(values.min())
        high = float(values.max())

        if low == high:
            return DistributionPayload(
                metric=metric,
                bins=[HistogramBin(from_=low, to=high, count=int(values.size))],
                sample_size=int(values.size),
                min=low,
                max=high,
            )

        width = (high - low) / bin_count
        # The maximum itself lands one past the last bin; fold it back in
        indices = np.minimum(
            np.floor((values - low) / width).astype(int), bin_count - 1
        )
        counts = np.bincount(indices, minlength=bin_count)

        histogram = []
        for idx, count in enumerate(counts):
            if count == 0:
                continue
            start = low + idx * width
            end = high if idx == bin_count - 1 else start + width
            histogram.append(HistogramBin(from_=start, to=end, count=int(count)))

        return DistributionPayload(
            metric=metric,
            bins=histogram,
            sample_size=int(values.size),
            min=low,
            max=high,
        )

    def build_pivot(
        self,
        sessions: Sequence[SessionRecord],
        row: PivotRow | str = PivotRow.TYPE,
        metrics: Iterable[PivotMetric | str] = (),
    ) -> PivotPayload:
        """
        Build a table with one row per key and one cell per metric.

        Args:
            sessions: Sessions to tabulate
            row: Row kind; unknown values fall back to type
            metrics: Requested columns; duplicates and unknown names are
                dropped, an empty result falls back to the default list

        Returns:
            Rows sorted by key with zero-filled cells
        """
        row = parse_metric(PivotRow, row) or PivotRow.TYPE
        metric_list = list(dict.fromkeys(parse_metrics(PivotMetric, metrics)))
        if not metric_list:
            metric_list = parse_metrics(PivotMetric, DefaultMetrics.PIVOT)

        if not sessions:
            return PivotPayload(row=row, metrics=metric_list)

        ctx = ExtractionContext()
        data: dict[str, list] = {"key": []}
        for metric in metric_list:
            data[metric.value] = []

        for session in sessions:
            data["key"].append(pivot_row_key(session, row))
            for metric in metric_list:
                value = PIVOT_SELECTORS[metric].select(session, ctx)
                data[metric.value].append(np.nan if value is None else value)

        df = pd.DataFrame(data)
        columns = [metric.value for metric in metric_list]
        df[columns] = df[columns].astype(float)
        grouped = df.groupby("key", sort=True)[columns].agg(["sum", "count"])

        rows = []
        for key, accumulated in grouped.iterrows():
            row_data: dict[str, str | float] = {"key": str(key)}
            for metric in metric_list:
                total = accumulated[(metric.value, "sum")]
                count = accumulated[(metric.value, "count")]
                if count == 0:
                    row_data[metric.value] = 0.0
                elif PIVOT_SELECTORS[metric].aggregation == Aggregation.AVG:
                    row_data[metric.value] = float(total / count)
                else:
                    row_data[metric.value] = float(total)
            rows.append(row_data)

        return PivotPayload(row=row, metrics=metric_list, rows=rows)

    def _clamp_bins(self, bins: int | None) -> int:
        if bins is None:
            return self.settings.default_bins
        return max(1, min(self.settings.max_bins, int(bins)))


def build_timeseries(
    sessions: Sequence[SessionRecord],
    metric: TimeSeriesMetric | str,
    bucket: TimeBucket | str = TimeBucket.WEEK,
) -> TimeSeriesPayload:
    """Build a time series with default settings."""
    return AggregationEngine().build_timeseries(sessions, metric, bucket)


def build_distribution(
    sessions: Sequence[SessionRecord],
    metric: DistributionMetric | str,
    bins: int | None = None,
) -> DistributionPayload:
    """Build a histogram with default settings."""
    return AggregationEngine().build_distribution(sessions, metric, bins)


def build_pivot(
    sessions: Sequence[SessionRecord],
    row: PivotRow | str = PivotRow.TYPE,
    metrics: Iterable[PivotMetric | str] = (),
) -> PivotPayload:
    """Build a pivot table with default settings."""
    return AggregationEngine().build_pivot(sessions, row, metrics)
