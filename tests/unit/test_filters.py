"""Unit tests for session filters."""

from datetime import datetime, timezone

import pytest

from activity_analytics.data.filters import SessionFilters


class TestSessionFilters:
    """Test individual constraints."""

    def test_only_run_like_sessions_pass(self, mixed_sessions):
        kept = SessionFilters().apply(mixed_sessions)
        assert [s.id for s in kept] == ["r1", "r2", "r3"]

    def test_ids_from_comma_string(self, mixed_sessions):
        filters = SessionFilters(ids=" r3, ,r1 ")

        assert filters.ids == ["r3", "r1"]
        assert [s.id for s in filters.apply(mixed_sessions)] == ["r1", "r3"]

    def test_empty_ids_do_not_filter(self):
        assert SessionFilters(ids="").ids is None

    def test_date_range_inclusive(self, mixed_sessions):
        filters = SessionFilters(
            **{
                "from": datetime(2024, 1, 3, 7, tzinfo=timezone.utc),
                "to": datetime(2024, 1, 9, 7),
            }
        )
        assert [s.id for s in filters.apply(mixed_sessions)] == ["r2", "r3"]

    def test_local_range(self, mixed_sessions):
        filters = SessionFilters(local_to=datetime(2024, 1, 2))
        assert [s.id for s in filters.apply(mixed_sessions)] == ["r1"]

    def test_type_matches_sport_type_case_insensitive(self, make_session):
        trail = make_session(type="Run", sport_type="TrailRun")

        assert SessionFilters(type="trailrun").matches(trail)
        assert SessionFilters(type="RUN").matches(trail)
        assert not SessionFilters(type="VirtualRun").matches(trail)

    def test_name_substring(self, make_session):
        session = make_session(name="Easy Morning Run")

        assert SessionFilters(q="morning").matches(session)
        assert not SessionFilters(q="tempo").matches(session)

    def test_presence_flags(self, make_session):
        with_hr = make_session(average_heartrate=140.0)
        without_hr = make_session()

        assert SessionFilters(has_hr=True).apply([with_hr, without_hr]) == [with_hr]
        assert SessionFilters(has_hr=False).apply([with_hr, without_hr]) == [
            without_hr
        ]
        assert SessionFilters(has_power=True).apply([with_hr]) == []

    @pytest.mark.parametrize(
        "bounds,expected",
        [
            ({"min_distance_km": 6}, ["r2", "r3"]),
            ({"max_distance_km": 7}, ["r1", "r2"]),
            ({"min_time_min": 35, "max_time_min": 65}, ["r2", "r3"]),
            ({"min_elev": 100}, ["r3"]),
            ({"min_avg_hr": 152, "max_avg_hr": 158}, ["r3"]),
            ({"min_avg_speed_kmh": 10.0}, ["r1", "r2", "r3"]),
            ({"max_avg_speed_kmh": 10.0}, []),
        ],
    )
    def test_range_bounds(self, mixed_sessions, bounds, expected):
        kept = SessionFilters(**bounds).apply(mixed_sessions)
        assert [s.id for s in kept] == expected

    def test_bound_on_missing_value_fails(self, make_session):
        assert not SessionFilters(min_cadence=150).matches(make_session())
        assert SessionFilters(min_cadence=150).matches(
            make_session(average_cadence=170.0)
        )

    def test_calorie_bounds_applied_separately(self, make_session):
        low = make_session(calories=300.0)
        high = make_session(calories=900.0)
        unknown = make_session()
        filters = SessionFilters(min_calories=500)

        assert filters.apply([low, high, unknown]) == [low, high, unknown]
        assert filters.apply_calorie_bounds([low, high, unknown]) == [high]

    def test_no_calorie_bounds_keeps_everything(self, make_session):
        sessions = [make_session(), make_session(calories=10.0)]
        assert SessionFilters().apply_calorie_bounds(sessions) == sessions
