"""
Run-dynamics estimation and write-back planning.

Devices that do not report stride length, ground contact time or vertical
oscillation get an estimate derived from average speed and cadence. The
resolved view is either a complete triple or ``None``; persisted valid values
always win over their estimated counterpart.
"""

import logging
from collections.abc import Iterable

from ..constants import (
    ActivityKeywords,
    RunDynamicsLimits,
    TimeConstants,
    UnitConversions,
)
from ..models import RunDynamicsBackfill, RunDynamicsValues, SessionRecord
from .base import clamp, is_finite_positive, round2

logger = logging.getLogger(__name__)


def is_run_like(type_: str | None, sport_type: str | None) -> bool:
    """Classify an activity as running by keyword match on its type labels."""
    combined = f"{sport_type or ''} {type_ or ''}".lower()
    return any(keyword in combined for keyword in ActivityKeywords.RUN_LIKE)


def cadence_to_steps_per_minute(cadence: float | None) -> float | None:
    """
    Normalize reported cadence to total steps per minute.

    Some devices export running cadence per leg. Values under the threshold
    are treated as per-leg and doubled; the threshold is a heuristic that is
    not checked against device metadata.
    """
    if not is_finite_positive(cadence):
        return None
    if cadence < RunDynamicsLimits.PER_LEG_CADENCE_THRESHOLD:
        return cadence * 2
    return cadence


def _persisted(value: float | None) -> float | None:
    return round2(value) if is_finite_positive(value) else None


class RunDynamicsEstimator:
    """Estimates and resolves the biomechanical triple of run-like sessions."""

    def estimate(self, session: SessionRecord) -> RunDynamicsValues | None:
        """
        Estimate the full triple from speed and cadence.

        Args:
            session: Session to estimate for

        Returns:
            Estimated values, or None when the session is not run-like or has
            unusable speed or cadence
        """
        if not is_run_like(session.type, session.sport_type):
            return None
        if not is_finite_positive(session.average_speed):
            return None

        steps_per_minute = cadence_to_steps_per_minute(session.average_cadence)
        if steps_per_minute is None:
            return None

        limits = RunDynamicsLimits
        speed = session.average_speed

        step_time_ms = TimeConstants.MS_PER_MINUTE / steps_per_minute
        stride_length = clamp(
            speed * TimeConstants.SECONDS_PER_MINUTE / steps_per_minute,
            limits.STRIDE_LENGTH_MIN,
            limits.STRIDE_LENGTH_MAX,
        )

        # Duty factor falls with speed and rises at low cadence
        duty_from_speed = clamp(
            limits.DUTY_BASE - limits.DUTY_SPEED_SLOPE * speed,
            limits.DUTY_FROM_SPEED_MIN,
            limits.DUTY_FROM_SPEED_MAX,
        )
        cadence_adjustment = clamp(
            (limits.DUTY_CADENCE_PIVOT - steps_per_minute)
            / limits.DUTY_CADENCE_DIVISOR,
            -limits.DUTY_CADENCE_ADJUST_LIMIT,
            limits.DUTY_CADENCE_ADJUST_LIMIT,
        )
        duty_factor = clamp(
            duty_from_speed + cadence_adjustment,
            limits.DUTY_FACTOR_MIN,
            limits.DUTY_FACTOR_MAX,
        )
        ground_contact_time = clamp(
            step_time_ms * duty_factor,
            limits.GROUND_CONTACT_MIN,
            limits.GROUND_CONTACT_MAX,
        )

        vertical_oscillation = clamp(
            stride_length
            * UnitConversions.METERS_TO_CM
            * (
                limits.OSCILLATION_BASE_RATIO
                + (ground_contact_time - limits.OSCILLATION_CONTACT_PIVOT)
                / limits.OSCILLATION_CONTACT_DIVISOR
            ),
            limits.VERTICAL_OSCILLATION_MIN,
            limits.VERTICAL_OSCILLATION_MAX,
        )

        return RunDynamicsValues(
            stride_length=round2(stride_length),
            ground_contact_time=round2(ground_contact_time),
            vertical_oscillation=round2(vertical_oscillation),
        )

    def resolve(self, session: SessionRecord) -> RunDynamicsValues | None:
        """
        Merge persisted and estimated values into a complete triple.

        Args:
            session: Session to resolve

        Returns:
            Complete triple, or None when persisted values are incomplete and
            no estimate is possible
        """
        stride_length = _persisted(session.stride_length)
        ground_contact_time = _persisted(session.ground_contact_time)
        vertical_oscillation = _persisted(session.vertical_oscillation)

        if (
            stride_length is not None
            and ground_contact_time is not None
            and vertical_oscillation is not None
        ):
            return RunDynamicsValues(
                stride_length=stride_length,
                ground_contact_time=ground_contact_time,
                vertical_oscillation=vertical_oscillation,
            )

        estimated = self.estimate(session)
        if estimated is None:
            return None

        return RunDynamicsValues(
            stride_length=(
                stride_length if stride_length is not None else estimated.stride_length
            ),
            ground_contact_time=(
                ground_contact_time
                if ground_contact_time is not None
                else estimated.ground_contact_time
            ),
            vertical_oscillation=(
                vertical_oscillation
                if vertical_oscillation is not None
                else estimated.vertical_oscillation
            ),
        )

    def collect_backfills(
        self, sessions: Iterable[SessionRecord]
    ) -> list[RunDynamicsBackfill]:
        """
        Plan one-time write-backs for sessions with an incomplete stored triple.

        A session qualifies when at least one stored field is missing or
        invalid and the resolved view is complete. Each intent carries the
        whole triple so it can be written as one unit.

        Args:
            sessions: Sessions as read from storage

        Returns:
            Write intents in input order
        """
        backfills: list[RunDynamicsBackfill] = []

        for session in sessions:
            needs_persist = not (
                is_finite_positive(session.stride_length)
                and is_finite_positive(session.ground_contact_time)
                and is_finite_positive(session.vertical_oscillation)
            )
            if not needs_persist:
                continue

            resolved = self.resolve(session)
            if resolved is None:
                continue

            backfills.append(
                RunDynamicsBackfill(id=session.id, **resolved.model_dump())
            )

        logger.debug(f"Planned {len(backfills)} run-dynamics backfills")
        return backfills


class RunDynamicsCache:
    """
    Memoizes resolved run dynamics per session ID for one aggregation call.

    Create a fresh instance per request; entries are never invalidated.
    """

    def __init__(self, estimator: RunDynamicsEstimator | None = None):
        self.estimator = estimator if estimator is not None else RunDynamicsEstimator()
        self._resolved: dict[str, RunDynamicsValues | None] = {}

    def get(self, session: SessionRecord) -> RunDynamicsValues | None:
        """Resolve a session once and return the cached result afterwards."""
        if session.id not in self._resolved:
            self._resolved[session.id] = self.estimator.resolve(session)
        return self._resolved[session.id]

    def __len__(self) -> int:
        return len(self._resolved)


def apply_run_dynamics(
    sessions: Iterable[SessionRecord], backfills: Iterable[RunDynamicsBackfill]
) -> list[SessionRecord]:
    """Return sessions with backfilled triples merged in, others unchanged."""
    by_id = {backfill.id: backfill for backfill in backfills}
    merged: list[SessionRecord] = []
    for session in sessions:
        backfill = by_id.get(session.id)
        if backfill is None:
            merged.append(session)
            continue
        merged.append(
            session.model_copy(
                update={
                    "stride_length": backfill.stride_length,
                    "ground_contact_time": backfill.ground_contact_time,
                    "vertical_oscillation": backfill.vertical_oscillation,
                }
            )
        )
    return merged


def resolve_run_dynamics(session: SessionRecord) -> RunDynamicsValues | None:
    """Resolve one session with a default estimator."""
    return RunDynamicsEstimator().resolve(session)


def collect_backfills(sessions: Iterable[SessionRecord]) -> list[RunDynamicsBackfill]:
    """Plan write-backs with a default estimator."""
    return RunDynamicsEstimator().collect_backfills(sessions)
