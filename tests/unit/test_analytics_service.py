"""Unit tests for the analytics service request flow."""

import logging

import pytest

from activity_analytics.data import SessionFilters, SessionRepository
from activity_analytics.exceptions import BackfillError, SnapshotStoreError
from activity_analytics.models import PhysiologicalProfile
from activity_analytics.services import AnalyticsService
from activity_analytics.snapshots import InMemorySnapshotStore


class FailingBackfillRepository(SessionRepository):
    def apply_backfills(self, backfills):
        raise BackfillError("database unavailable")


class FailingSnapshotStore(InMemorySnapshotStore):
    def upsert(self, key, payload):
        raise SnapshotStoreError("disk full")


@pytest.fixture
def sessions(make_session):
    return [
        make_session(id="a", average_cadence=80.0, kilojoules=400.0),
        make_session(id="b", average_cadence=86.0, moving_time=3600),
        make_session(id="c", type="Ride", sport_type="Ride"),
    ]


@pytest.fixture
def store():
    return InMemorySnapshotStore()


@pytest.fixture
def service(sessions, store):
    return AnalyticsService(
        SessionRepository.from_sessions(sessions), snapshot_store=store
    )


class TestGetSessions:
    """Test fetching and enrichment."""

    def test_run_like_sessions_enriched(self, service):
        sessions = service.get_sessions("athlete-1")

        assert [s.id for s in sessions] == ["a", "b"]
        assert sessions[0].calories == pytest.approx(400.0)
        assert sessions[1].calories is not None
        assert sessions[0].stride_length == pytest.approx(1.13)

    def test_backfills_written(self, service):
        service.get_sessions("athlete-1")
        stored = service.repository.get_sessions("athlete-1")

        assert all(s.stride_length is not None for s in stored)

    def test_failed_backfill_logged(self, sessions, caplog):
        repository = FailingBackfillRepository.from_sessions(sessions)
        service = AnalyticsService(repository)

        with caplog.at_level(logging.WARNING):
            enriched = service.get_sessions("athlete-1")

        assert enriched[0].ground_contact_time == pytest.approx(247.5)
        assert "backfill failed" in caplog.text

    def test_calorie_bounds_after_estimation(self, service):
        sessions = service.get_sessions("athlete-1", SessionFilters(max_calories=500))
        assert [s.id for s in sessions] == ["a"]


class TestAnalyses:
    """Test payload building and snapshotting."""

    def test_empty_injected_store_is_used(self, sessions):
        store = InMemorySnapshotStore()
        service = AnalyticsService(
            SessionRepository.from_sessions(sessions), snapshot_store=store
        )

        service.summary("athlete-1")

        assert service.snapshot_store is store
        assert len(store) == 1

    def test_summary_snapshot_stored(self, service, store):
        payload = service.summary("athlete-1")
        key = service.snapshot_key("athlete-1", "summary", SessionFilters(), {})

        assert payload.count == 2
        assert store.get(key).payload == payload.model_dump(mode="json", by_alias=True)

    def test_recompute_overwrites(self, service, store):
        service.timeseries("athlete-1", "distance", "week")
        service.timeseries("athlete-1", "distance", "week")

        assert len(store) == 1

    def test_parameters_in_snapshot_key(self, service, store):
        service.distribution("athlete-1", "distance", 5)
        service.distribution("athlete-1", "distance", 10)

        assert len(store) == 2

    def test_failed_snapshot_still_returns_payload(self, sessions, caplog):
        service = AnalyticsService(
            SessionRepository.from_sessions(sessions),
            snapshot_store=FailingSnapshotStore(),
        )

        with caplog.at_level(logging.WARNING):
            payload = service.pivot("athlete-1", "type", ["distance"])

        assert payload.rows[0]["distance"] == pytest.approx(20.0)
        assert "Snapshot upsert failed" in caplog.text

    def test_profile_lookup_supplies_hr_max(self, sessions):
        service = AnalyticsService(
            SessionRepository.from_sessions(sessions),
            profile_lookup=lambda subject_id: PhysiologicalProfile(hr_max=176),
        )
        assert service.load("athlete-1").hr_max == 176

    def test_missing_profile_uses_settings(self, service):
        assert service.load("athlete-1").hr_max == 190

    def test_correlations(self, service):
        payload = service.correlations("athlete-1", ["distance", "strideLength"])

        assert len(payload.matrix) == 4
        assert payload.scatter.n == 2
