"""Unit tests for per-session charge and the CTL/ATL/TSB model."""

from datetime import datetime

import pytest

from activity_analytics.analysis.load_model import TrainingLoadModel, build_load_model
from activity_analytics.metrics.load import average_speed_or_default, compute_charge
from activity_analytics.settings import Settings


class TestCharge:
    """Test the per-session charge fallbacks."""

    def test_suffer_score_used_verbatim(self, make_session):
        session = make_session(suffer_score=87.0, average_heartrate=150.0)
        assert compute_charge(session, 190.0, 2.5) == 87.0

    def test_heart_rate_charge(self, make_session):
        session = make_session(moving_time=3600, average_heartrate=152.0)
        assert compute_charge(session, 190.0, 2.5) == pytest.approx(60 * 0.8)

    def test_relative_speed_charge(self, make_session):
        session = make_session(moving_time=3000, average_speed=3.0)
        assert compute_charge(session, 190.0, 2.5) == pytest.approx(50 * 1.2)

    def test_relative_speed_clamped(self, make_session):
        fast = make_session(moving_time=600, average_speed=10.0)
        slow = make_session(moving_time=600, average_speed=0.1)

        assert compute_charge(fast, 190.0, 2.5) == pytest.approx(10 * 1.8)
        assert compute_charge(slow, 190.0, 2.5) == pytest.approx(10 * 0.5)

    def test_subject_average_speed(self, make_session):
        sessions = [
            make_session(average_speed=2.0),
            make_session(average_speed=4.0),
            make_session(average_speed=0.0),
        ]
        assert average_speed_or_default(sessions) == pytest.approx(3.0)
        assert average_speed_or_default([]) == pytest.approx(2.5)


class TestLoadModel:
    """Test the exponential moving averages."""

    def test_empty_input(self):
        payload = build_load_model([], 180.0)

        assert payload.series == []
        assert payload.hr_max == 180.0

    def test_seeded_with_first_day(self, make_session):
        payload = build_load_model([make_session(suffer_score=60.0)], 190.0)
        (point,) = payload.series

        assert point.date == "2024-01-01"
        assert point.charge == pytest.approx(60.0)
        assert point.ctl == pytest.approx(60.0)
        assert point.atl == pytest.approx(60.0)
        assert point.tsb == pytest.approx(0.0)

    def test_missing_days_zero_filled(self, make_session):
        sessions = [
            make_session(suffer_score=60.0, start_date_local=datetime(2024, 1, 1, 7)),
            make_session(suffer_score=30.0, start_date_local=datetime(2024, 1, 3, 7)),
        ]
        series = build_load_model(sessions, 190.0).series

        assert [p.date for p in series] == ["2024-01-01", "2024-01-02", "2024-01-03"]
        assert [p.charge for p in series] == pytest.approx([60.0, 0.0, 30.0])

        ctl2 = 60.0 * 41 / 43
        atl2 = 60.0 * 6 / 8
        assert series[1].ctl == pytest.approx(ctl2)
        assert series[1].atl == pytest.approx(atl2)
        assert series[2].ctl == pytest.approx(ctl2 + (30.0 - ctl2) * 2 / 43)
        assert series[2].atl == pytest.approx(atl2 + (30.0 - atl2) * 2 / 8)

    def test_same_day_charges_summed(self, make_session):
        sessions = [
            make_session(suffer_score=20.0, start_date_local=datetime(2024, 1, 1, 7)),
            make_session(suffer_score=25.0, start_date_local=datetime(2024, 1, 1, 18)),
        ]
        (point,) = build_load_model(sessions, 190.0).series
        assert point.charge == pytest.approx(45.0)

    def test_tsb_is_ctl_minus_atl(self, mixed_sessions):
        for point in build_load_model(mixed_sessions, 185.0).series:
            assert point.tsb == pytest.approx(point.ctl - point.atl)

    def test_averages_bounded_by_charges(self, mixed_sessions):
        series = build_load_model(mixed_sessions, 185.0).series
        charges = [p.charge for p in series]

        for point in series:
            assert min(charges) - 1e-9 <= point.ctl <= max(charges) + 1e-9
            assert min(charges) - 1e-9 <= point.atl <= max(charges) + 1e-9

    def test_custom_windows(self, make_session):
        sessions = [
            make_session(suffer_score=10.0, start_date_local=datetime(2024, 1, 1)),
            make_session(suffer_score=0.0, start_date_local=datetime(2024, 1, 2)),
        ]
        model = TrainingLoadModel(Settings(ctl_days=3, atl_days=1))
        series = model.build(sessions, 190.0).series

        assert series[1].ctl == pytest.approx(5.0)
        assert series[1].atl == pytest.approx(0.0)

    def test_default_hr_max(self, make_session):
        payload = TrainingLoadModel(Settings(default_hr_max=200)).build(
            [make_session(average_heartrate=100.0, moving_time=600)]
        )

        assert payload.hr_max == 200
        assert payload.series[0].charge == pytest.approx(5.0)

    def test_non_positive_hr_max_uses_default(self, make_session):
        sessions = [make_session(average_heartrate=95.0, moving_time=600)]
        payload = build_load_model(sessions, 0)

        assert payload.hr_max == 190
        assert payload.series[0].charge == pytest.approx(5.0)
