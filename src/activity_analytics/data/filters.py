"""
Session query filters.

Filters narrow a subject's sessions to run-like activities matching optional
date, text, presence and range constraints. Calorie bounds are kept apart:
calories are often estimated after loading, so they are checked separately
once estimation has run.
"""

import math
from collections.abc import Iterable
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..constants import TimeConstants, UnitConversions
from ..metrics.run_dynamics import is_run_like
from ..models import SessionRecord


def _as_utc(moment: datetime) -> datetime:
    """Naive instants are taken as UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def _wall_clock(moment: datetime) -> datetime:
    """Subject-local times compare as wall-clock values."""
    return moment.replace(tzinfo=None)


def _in_range(value: float | None, low: float | None, high: float | None) -> bool:
    """Bounds are inclusive; a missing value fails any bound that is set."""
    if low is None and high is None:
        return True
    if value is None or not math.isfinite(value):
        return False
    if low is not None and value < low:
        return False
    if high is not None and value > high:
        return False
    return True


def _scaled(bound: float | None, factor: float) -> float | None:
    return None if bound is None else bound * factor


def _seconds(minutes: float | None) -> int | None:
    if minutes is None:
        return None
    return math.floor(minutes * TimeConstants.SECONDS_PER_MINUTE + 0.5)


class SessionFilters(BaseModel):
    """Optional constraints on a session query; unset fields do not filter."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    from_: datetime | None = Field(None, alias="from")
    to: datetime | None = None
    local_from: datetime | None = None
    local_to: datetime | None = None
    type: str | None = None
    q: str | None = Field(None, description="Case-insensitive name substring")
    has_hr: bool | None = None
    has_power: bool | None = None
    ids: list[str] | None = None

    min_distance_km: float | None = None
    max_distance_km: float | None = None
    min_time_min: float | None = None
    max_time_min: float | None = None
    min_elev: float | None = None
    max_elev: float | None = None
    min_avg_hr: float | None = None
    max_avg_hr: float | None = None
    min_avg_speed_kmh: float | None = None
    max_avg_speed_kmh: float | None = None
    min_avg_watts: float | None = None
    max_avg_watts: float | None = None
    min_cadence: float | None = None
    max_cadence: float | None = None
    min_kilojoules: float | None = None
    max_kilojoules: float | None = None
    min_calories: float | None = None
    max_calories: float | None = None

    @field_validator("ids", mode="before")
    @classmethod
    def split_ids(cls, v: str | list[str] | None) -> list[str] | None:
        """Accept a comma-separated string; an empty list means no filter."""
        if v is None:
            return None
        if isinstance(v, str):
            v = v.split(",")
        ids = [str(item).strip() for item in v if str(item).strip()]
        return ids or None

    @field_validator("type", "q", mode="before")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if v is None or not str(v).strip():
            return None
        return str(v)

    @property
    def has_calorie_bounds(self) -> bool:
        return self.min_calories is not None or self.max_calories is not None

    def matches(self, session: SessionRecord) -> bool:
        """Check every constraint except the calorie bounds."""
        if not is_run_like(session.type, session.sport_type):
            return False

        if self.ids is not None and session.id not in self.ids:
            return False

        start = _as_utc(session.start_date)
        if self.from_ is not None and start < _as_utc(self.from_):
            return False
        if self.to is not None and start > _as_utc(self.to):
            return False

        local_start = _wall_clock(session.start_date_local)
        if self.local_from is not None and local_start < _wall_clock(self.local_from):
            return False
        if self.local_to is not None and local_start > _wall_clock(self.local_to):
            return False

        if self.type is not None:
            wanted = self.type.lower()
            if wanted not in (session.type.lower(), session.sport_type.lower()):
                return False

        if self.q is not None and self.q.lower() not in session.name.lower():
            return False

        has_hr = session.average_heartrate is not None
        if self.has_hr is not None and has_hr != self.has_hr:
            return False
        has_power = session.average_watts is not None
        if self.has_power is not None and has_power != self.has_power:
            return False

        km = UnitConversions.METERS_PER_KM
        kmh = UnitConversions.MS_TO_KMH
        checks = [
            (
                session.distance,
                _scaled(self.min_distance_km, km),
                _scaled(self.max_distance_km, km),
            ),
            (
                session.moving_time,
                _seconds(self.min_time_min),
                _seconds(self.max_time_min),
            ),
            (session.total_elevation_gain, self.min_elev, self.max_elev),
            (session.average_heartrate, self.min_avg_hr, self.max_avg_hr),
            (
                session.average_speed,
                _scaled(self.min_avg_speed_kmh, 1 / kmh),
                _scaled(self.max_avg_speed_kmh, 1 / kmh),
            ),
            (session.average_watts, self.min_avg_watts, self.max_avg_watts),
            (session.average_cadence, self.min_cadence, self.max_cadence),
            (session.kilojoules, self.min_kilojoules, self.max_kilojoules),
        ]
        return all(_in_range(value, low, high) for value, low, high in checks)

    def matches_calories(self, session: SessionRecord) -> bool:
        """Check the calorie bounds; sessions without calories fail any bound."""
        return _in_range(session.calories, self.min_calories, self.max_calories)

    def apply(self, sessions: Iterable[SessionRecord]) -> list[SessionRecord]:
        """Keep sessions passing every constraint except calories."""
        return [session for session in sessions if self.matches(session)]

    def apply_calorie_bounds(
        self, sessions: Iterable[SessionRecord]
    ) -> list[SessionRecord]:
        """Keep sessions within the calorie bounds, if any are set."""
        if not self.has_calorie_bounds:
            return list(sessions)
        return [session for session in sessions if self.matches_calories(session)]
