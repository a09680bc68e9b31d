"""
Calorie estimation for sessions without a recorded energy value.

Resolution order: recorded calories, then mechanical work (1 kJ is close to
1 kcal metabolic for endurance efforts), then average power over moving time,
then a MET table by activity family scaled by relative heart rate.
"""

import logging
from collections.abc import Iterable

from ..constants import CalorieDefaults, TimeConstants, UnitConversions
from ..models import PhysiologicalProfile, SessionRecord
from .base import clamp, is_finite_positive, round2

logger = logging.getLogger(__name__)

# (upper speed bound in km/h, MET); the last entry applies above every bound
RUN_METS: list[tuple[float, float]] = [
    (8.0, 8.3),
    (9.7, 9.8),
    (11.3, 11.0),
    (12.1, 11.8),
    (12.9, 12.3),
    (13.8, 12.8),
    (14.5, 14.5),
    (16.1, 16.0),
    (float("inf"), 19.0),
]

WALK_METS: list[tuple[float, float]] = [
    (3.2, 2.5),
    (4.8, 3.5),
    (5.6, 4.3),
    (6.4, 5.0),
    (7.2, 7.0),
    (float("inf"), 8.0),
]

RIDE_METS: list[tuple[float, float]] = [
    (16.0, 4.0),
    (19.0, 6.8),
    (22.5, 8.0),
    (25.7, 10.0),
    (30.6, 12.0),
    (35.4, 15.8),
    (float("inf"), 16.8),
]

# Families with a flat MET, matched by keyword after the speed-banded ones
FLAT_METS: list[tuple[str, float]] = [
    ("swim", 8.5),
    ("row", 7.0),
    ("ski", 7.5),
]

DEFAULT_MET = 6.0


def _met_for_speed(table: list[tuple[float, float]], speed_kmh: float) -> float:
    for upper, met in table:
        if speed_kmh < upper:
            return met
    return table[-1][1]


class CalorieEstimator:
    """Estimates energy expenditure from a session and a subject profile."""

    def estimate_met(self, session: SessionRecord) -> float:
        """Pick a MET value from the activity family and average speed."""
        combined = f"{session.sport_type} {session.type}".lower()
        speed_kmh = (
            session.average_speed * UnitConversions.MS_TO_KMH
            if session.average_speed > 0
            else 0.0
        )

        if "run" in combined:
            return _met_for_speed(RUN_METS, speed_kmh)
        if "walk" in combined or "hike" in combined:
            return _met_for_speed(WALK_METS, speed_kmh)
        if any(keyword in combined for keyword in ("ride", "cycle", "bike")):
            return _met_for_speed(RIDE_METS, speed_kmh)
        for keyword, met in FLAT_METS:
            if keyword in combined:
                return met
        return DEFAULT_MET

    def estimate(
        self, session: SessionRecord, profile: PhysiologicalProfile | None = None
    ) -> float | None:
        """
        Estimate calories for one session.

        Args:
            session: Session to estimate for
            profile: Subject physiology; weight and max HR refine the MET path

        Returns:
            Calories rounded to two decimals, or None without moving time
        """
        if is_finite_positive(session.calories):
            return round2(session.calories)

        if session.moving_time <= 0:
            return None

        if is_finite_positive(session.kilojoules):
            return round2(session.kilojoules)

        if is_finite_positive(session.average_watts):
            return round2(
                session.average_watts
                * session.moving_time
                * CalorieDefaults.KJ_PER_WATT_SECOND
            )

        profile = profile if profile is not None else PhysiologicalProfile()
        weight_kg = (
            profile.weight_kg
            if is_finite_positive(profile.weight_kg)
            else CalorieDefaults.DEFAULT_WEIGHT_KG
        )
        met = self.estimate_met(session)

        if is_finite_positive(profile.hr_max) and is_finite_positive(
            session.average_heartrate
        ):
            relative_hr = clamp(
                session.average_heartrate / profile.hr_max,
                CalorieDefaults.RELATIVE_HR_MIN,
                CalorieDefaults.RELATIVE_HR_MAX,
            )
            met *= clamp(
                relative_hr / CalorieDefaults.REFERENCE_RELATIVE_HR,
                CalorieDefaults.HR_SCALE_MIN,
                CalorieDefaults.HR_SCALE_MAX,
            )

        hours = session.moving_time / TimeConstants.SECONDS_PER_HOUR
        return round2(met * weight_kg * hours)

    def with_estimated_calories(
        self,
        sessions: Iterable[SessionRecord],
        profile: PhysiologicalProfile | None = None,
    ) -> list[SessionRecord]:
        """Return copies of sessions with the calories field filled in."""
        enriched: list[SessionRecord] = []
        for session in sessions:
            calories = self.estimate(session, profile)
            if calories is None:
                enriched.append(session)
            else:
                enriched.append(session.model_copy(update={"calories": calories}))
        return enriched
