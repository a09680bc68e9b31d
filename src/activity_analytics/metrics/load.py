"""
Per-session training charge.

Charge is a training-stress proxy in minute units: the recorded suffer score
when present, otherwise minutes scaled by relative heart rate, otherwise
minutes scaled by speed relative to the subject's average.
"""

from collections.abc import Iterable

from ..constants import TimeConstants, TrainingLoadDefaults
from ..models import SessionRecord
from .base import clamp, is_finite_positive


def average_speed_or_default(
    sessions: Iterable[SessionRecord],
    default: float = TrainingLoadDefaults.DEFAULT_AVERAGE_SPEED,
) -> float:
    """Mean average speed over sessions with a finite positive speed."""
    speeds = [s.average_speed for s in sessions if is_finite_positive(s.average_speed)]
    if not speeds:
        return default
    return sum(speeds) / len(speeds)


def compute_charge(
    session: SessionRecord, hr_max: float, subject_average_speed: float
) -> float:
    """
    Compute the training charge of one session.

    Args:
        session: Session to score
        hr_max: Subject maximum heart rate
        subject_average_speed: Mean speed across the subject's sessions (m/s)

    Returns:
        Charge in intensity-weighted minutes
    """
    if session.suffer_score is not None:
        return session.suffer_score

    moving_minutes = session.moving_time / TimeConstants.SECONDS_PER_MINUTE

    if session.average_heartrate is not None:
        return moving_minutes * (session.average_heartrate / hr_max)

    relative_speed = (
        session.average_speed / subject_average_speed
        if subject_average_speed > 0
        else 1.0
    )
    intensity = clamp(
        relative_speed,
        TrainingLoadDefaults.RELATIVE_SPEED_MIN,
        TrainingLoadDefaults.RELATIVE_SPEED_MAX,
    )
    return moving_minutes * intensity
