"""Unit tests for time series, distribution and pivot aggregation."""

from datetime import datetime

import pytest

from activity_analytics.analysis.aggregation import (
    AggregationEngine,
    bucket_label,
    build_distribution,
    build_pivot,
    build_timeseries,
    week_start,
)
from activity_analytics.models import (
    Aggregation,
    DistributionMetric,
    PivotMetric,
    PivotRow,
    TimeBucket,
    TimeSeriesMetric,
)
from activity_analytics.settings import Settings


class TestBucketKeys:
    """Test calendar bucket labels."""

    def test_week_starts_monday(self):
        # 2024-01-07 is a Sunday
        assert week_start(datetime(2024, 1, 7, 23, 30)) == "2024-01-01"
        assert week_start(datetime(2024, 1, 8, 0, 5)) == "2024-01-08"

    def test_labels(self):
        moment = datetime(2024, 3, 14, 6, 0)
        assert bucket_label(moment, TimeBucket.DAY) == "2024-03-14"
        assert bucket_label(moment, TimeBucket.WEEK) == "2024-03-11"
        assert bucket_label(moment, TimeBucket.MONTH) == "2024-03"


class TestTimeseries:
    """Test bucketed time series."""

    def test_weekly_distance_sum(self, make_session):
        """Test that two runs in one week sum to one bucket."""
        sessions = [
            make_session(distance=5000.0, start_date_local=datetime(2024, 1, 1, 7)),
            make_session(distance=7000.0, start_date_local=datetime(2024, 1, 3, 7)),
        ]
        payload = build_timeseries(sessions, "distance", "week")

        assert payload.metric == TimeSeriesMetric.DISTANCE
        assert payload.aggregation == Aggregation.SUM
        assert len(payload.series) == 1
        assert payload.series[0].bucket == "2024-01-01"
        assert payload.series[0].value == pytest.approx(12.0)
        assert payload.series[0].samples == 2

    def test_avg_hr_skips_missing_values(self, mixed_sessions):
        """Test that sessions without heart rate are not counted."""
        payload = build_timeseries(mixed_sessions, TimeSeriesMetric.AVG_HR, "week")

        assert payload.aggregation == Aggregation.AVG
        assert [p.bucket for p in payload.series] == ["2024-01-01", "2024-01-08"]
        assert payload.series[0].value == pytest.approx(155.0)
        assert payload.series[0].samples == 2
        assert payload.series[1].value == pytest.approx(155.0)

    def test_max_aggregation(self, mixed_sessions):
        payload = build_timeseries(mixed_sessions, "maxSpeed", "month")

        assert payload.aggregation == Aggregation.MAX
        assert payload.series[0].value == pytest.approx(4.5 * 3.6)

    def test_buckets_sorted(self, make_session):
        sessions = [
            make_session(start_date_local=datetime(2024, 2, 10)),
            make_session(start_date_local=datetime(2024, 1, 5)),
            make_session(start_date_local=datetime(2024, 1, 20)),
        ]
        payload = build_timeseries(sessions, "count", "month")

        assert [p.bucket for p in payload.series] == ["2024-01", "2024-02"]
        assert [p.value for p in payload.series] == [2.0, 1.0]

    def test_unknown_metric_falls_back_to_distance(self, make_session):
        payload = build_timeseries([make_session()], "bogus", "nonsense")

        assert payload.metric == TimeSeriesMetric.DISTANCE
        assert payload.bucket == TimeBucket.WEEK

    def test_no_values_gives_empty_series(self, make_session):
        payload = build_timeseries([make_session()], "avgWatts", "day")
        assert payload.series == []

    def test_deterministic(self, mixed_sessions):
        first = build_timeseries(mixed_sessions, "time", "day")
        second = build_timeseries(mixed_sessions, "time", "day")
        assert first.model_dump() == second.model_dump()


class TestDistribution:
    """Test equal-width histograms."""

    @pytest.mark.parametrize("bins", [1, 2, 4, 7, 50, 100])
    def test_counts_conserved(self, make_session, bins):
        """Test that every value lands in exactly one bin."""
        distances = (0.8, 3, 5, 5, 5.2, 8, 10, 13.7, 21, 42.2)
        sessions = [make_session(distance=d * 1000.0) for d in distances]
        payload = build_distribution(sessions, "distance", bins)

        assert payload.sample_size == len(distances)
        assert sum(b.count for b in payload.bins) == len(distances)
        assert all(b.count > 0 for b in payload.bins)
        assert len(payload.bins) <= bins
        assert payload.min == pytest.approx(0.8)
        assert payload.max == pytest.approx(42.2)
        assert payload.bins[-1].to == pytest.approx(42.2)

    def test_empty_bins_omitted(self, make_session):
        sessions = [make_session(distance=d * 1000.0) for d in (1, 2, 10)]
        payload = build_distribution(sessions, "distance", 9)

        assert [b.count for b in payload.bins] == [1, 1, 1]
        assert payload.bins[0].from_ == pytest.approx(1.0)
        assert payload.bins[1].from_ == pytest.approx(2.0)

    def test_maximum_in_last_bin(self, make_session):
        sessions = [make_session(distance=d * 1000.0) for d in (0.5, 1.0)]
        payload = build_distribution(sessions, "distance", 2)

        assert [b.count for b in payload.bins] == [1, 1]

    def test_degenerate_single_bin(self, make_session):
        sessions = [make_session(distance=5000.0) for _ in range(3)]
        payload = build_distribution(sessions, DistributionMetric.DISTANCE, 10)

        assert len(payload.bins) == 1
        assert payload.bins[0].from_ == payload.bins[0].to == pytest.approx(5.0)
        assert payload.bins[0].count == 3

    def test_time_in_minutes(self, make_session):
        payload = build_distribution([make_session(moving_time=1800)], "time", 5)
        assert payload.min == pytest.approx(30.0)

    def test_no_values(self, make_session):
        payload = build_distribution([make_session()], "avgHR", 5)

        assert payload.bins == []
        assert payload.sample_size == 0
        assert payload.min is None
        assert payload.max is None

    def test_bins_clamped(self, make_session):
        sessions = [make_session(distance=d * 1000.0) for d in range(1, 300)]
        engine = AggregationEngine(Settings(max_bins=100))

        assert len(engine.build_distribution(sessions, "distance", 1000).bins) == 100
        assert len(engine.build_distribution(sessions, "distance", 0).bins) == 1

    def test_serialized_bin_uses_from_key(self, make_session):
        sessions = [make_session(distance=d * 1000.0) for d in (1, 2)]
        dumped = build_distribution(sessions, "distance", 1).model_dump(
            mode="json", by_alias=True
        )
        assert set(dumped["bins"][0]) == {"from", "to", "count"}


class TestPivot:
    """Test pivot tables."""

    def test_rows_by_type(self, mixed_sessions):
        payload = build_pivot(mixed_sessions, "type", ["distance", "count", "avgHR"])

        assert payload.row == PivotRow.TYPE
        assert [row["key"] for row in payload.rows] == ["Ride", "Run"]
        ride, run = payload.rows
        assert ride["distance"] == pytest.approx(40.0)
        assert ride["avgHR"] == 0.0
        assert run["count"] == pytest.approx(3.0)
        assert run["avgHR"] == pytest.approx(155.0)

    def test_rows_by_week(self, mixed_sessions):
        payload = build_pivot(mixed_sessions, PivotRow.WEEK, ["distance"])

        assert [row["key"] for row in payload.rows] == ["2024-01-01", "2024-01-08"]
        assert payload.rows[0]["distance"] == pytest.approx(52.0)

    def test_duplicates_and_unknown_metrics_dropped(self, mixed_sessions):
        payload = build_pivot(mixed_sessions, "month", ["elev", "bogus", "elev"])
        assert payload.metrics == [PivotMetric.ELEV]

    def test_default_metrics(self, mixed_sessions):
        payload = build_pivot(mixed_sessions, "month", ["bogus"])

        assert len(payload.metrics) == 11
        assert PivotMetric.KILOJOULES not in payload.metrics
        assert set(payload.rows[0]) == {"key", *(m.value for m in payload.metrics)}

    def test_empty_sessions(self):
        payload = build_pivot([], "type", ["distance"])
        assert payload.rows == []
