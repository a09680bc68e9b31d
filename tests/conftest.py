"""
Shared pytest fixtures for Activity Analytics tests.

This module provides reusable fixtures for:
- Session records and session factories
- Settings configurations
- Temporary config files and session CSVs
"""

import itertools
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path

import pandas as pd
import pytest
import yaml

from activity_analytics.constants import CSVConstants
from activity_analytics.models import SessionRecord
from activity_analytics.settings import Settings

SessionFactory = Callable[..., SessionRecord]

# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def temp_config_file(tmp_path: Path) -> Path:
    """Create a temporary YAML config file path for testing."""
    return tmp_path / "config.yaml"


@pytest.fixture
def sample_config_dict() -> dict:
    """Provide a sample configuration dictionary."""
    return {
        "data_dir": "data",
        "activities_file": "activities.csv",
        "snapshot_dir": "snapshots",
        "default_bins": 10,
        "ctl_days": 42,
        "atl_days": 7,
        "profile": {"hr_max": 185, "weight_kg": 68.0},
    }


@pytest.fixture
def sample_config_file(temp_config_file: Path, sample_config_dict: dict) -> Path:
    """Create a temporary config file with sample data."""
    with open(temp_config_file, "w") as f:
        yaml.dump(sample_config_dict, f)
    return temp_config_file


@pytest.fixture
def settings() -> Settings:
    """Provide default settings."""
    return Settings()


# ============================================================================
# Data Fixtures - Sessions
# ============================================================================


@pytest.fixture
def make_session() -> SessionFactory:
    """
    Provide a factory for run sessions.

    Defaults describe a 10 km run at 3 m/s on 2024-01-01 with no heart rate,
    power, cadence or stored run dynamics. Keyword arguments override fields.
    """
    counter = itertools.count(1)

    def factory(**overrides) -> SessionRecord:
        number = next(counter)
        start_local = overrides.pop("start_date_local", datetime(2024, 1, 1, 7, 0))
        fields = {
            "id": f"s{number}",
            "subject_id": "athlete-1",
            "external_id": str(1000 + number),
            "name": f"Morning Run {number}",
            "type": "Run",
            "sport_type": "Run",
            "start_date": start_local.replace(tzinfo=timezone.utc),
            "start_date_local": start_local,
            "distance": 10000.0,
            "moving_time": 3300,
            "elapsed_time": 3400,
            "total_elevation_gain": 50.0,
            "average_speed": 3.0,
            "max_speed": 4.5,
        }
        fields.update(overrides)
        return SessionRecord(**fields)

    return factory


@pytest.fixture
def run_with_cadence(make_session: SessionFactory) -> SessionRecord:
    """Run at 3.0 m/s with a per-leg cadence of 80 (160 steps/min)."""
    return make_session(id="cad", average_speed=3.0, average_cadence=80.0)


@pytest.fixture
def mixed_sessions(make_session: SessionFactory) -> list[SessionRecord]:
    """Runs and rides across two weeks with partial heart rate coverage."""
    return [
        make_session(
            id="r1",
            distance=5000.0,
            moving_time=1500,
            average_heartrate=150.0,
            start_date_local=datetime(2024, 1, 1, 7, 0),
        ),
        make_session(
            id="r2",
            distance=7000.0,
            moving_time=2100,
            average_heartrate=160.0,
            start_date_local=datetime(2024, 1, 3, 7, 0),
        ),
        make_session(
            id="b1",
            type="Ride",
            sport_type="Ride",
            distance=40000.0,
            moving_time=5400,
            average_speed=7.4,
            start_date_local=datetime(2024, 1, 4, 17, 0),
        ),
        make_session(
            id="r3",
            distance=12000.0,
            moving_time=3900,
            total_elevation_gain=120.0,
            average_heartrate=155.0,
            start_date_local=datetime(2024, 1, 9, 7, 0),
        ),
    ]


@pytest.fixture
def sessions_csv(tmp_path: Path, mixed_sessions: list[SessionRecord]) -> Path:
    """Write mixed_sessions to a ';'-separated CSV and return its path."""
    path = tmp_path / "data" / "activities.csv"
    path.parent.mkdir(parents=True)
    df = pd.DataFrame([session.model_dump() for session in mixed_sessions])
    df.to_csv(path, sep=CSVConstants.DEFAULT_SEPARATOR, index=False)
    return path


@pytest.fixture
def csv_settings(sessions_csv: Path) -> Settings:
    """Settings whose data_dir holds the sessions CSV."""
    return Settings(
        data_dir=sessions_csv.parent, activities_file=Path("activities.csv")
    )
