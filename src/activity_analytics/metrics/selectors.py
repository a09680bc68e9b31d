"""
Metric selector registries.

Each analysis has its own closed table mapping a metric enum to a value
extractor and, where relevant, an aggregation mode. Unit conversions live in
the extractors: distance in km, speed in km/h, time in hours for sums and
minutes for distributions and correlations.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import TypeVar

from ..constants import TimeConstants, TrainingLoadDefaults, UnitConversions
from ..models import (
    Aggregation,
    CorrelationVar,
    DistributionMetric,
    PivotMetric,
    SessionRecord,
    TimeSeriesMetric,
)
from .base import Extractor, MetricSelector, finite_or_none
from .load import compute_charge
from .run_dynamics import RunDynamicsCache


@dataclass
class ExtractionContext:
    """Per-request state shared by extractors."""

    run_dynamics: RunDynamicsCache = field(default_factory=RunDynamicsCache)
    hr_max: float = TrainingLoadDefaults.DEFAULT_HR_MAX
    subject_average_speed: float = TrainingLoadDefaults.DEFAULT_AVERAGE_SPEED


# --- Extractors ---


def distance_km(session: SessionRecord, ctx: ExtractionContext) -> float | None:
    return finite_or_none(session.distance / UnitConversions.METERS_PER_KM)


def moving_hours(session: SessionRecord, ctx: ExtractionContext) -> float | None:
    return finite_or_none(session.moving_time / TimeConstants.SECONDS_PER_HOUR)


def moving_minutes(session: SessionRecord, ctx: ExtractionContext) -> float | None:
    return finite_or_none(session.moving_time / TimeConstants.SECONDS_PER_MINUTE)


def elevation_gain(session: SessionRecord, ctx: ExtractionContext) -> float | None:
    return finite_or_none(session.total_elevation_gain)


def one(session: SessionRecord, ctx: ExtractionContext) -> float | None:
    return 1.0


def average_heartrate(session: SessionRecord, ctx: ExtractionContext) -> float | None:
    return finite_or_none(session.average_heartrate)


def max_heartrate(session: SessionRecord, ctx: ExtractionContext) -> float | None:
    return finite_or_none(session.max_heartrate)


def average_speed_kmh(session: SessionRecord, ctx: ExtractionContext) -> float | None:
    return finite_or_none(session.average_speed * UnitConversions.MS_TO_KMH)


def max_speed_kmh(session: SessionRecord, ctx: ExtractionContext) -> float | None:
    return finite_or_none(session.max_speed * UnitConversions.MS_TO_KMH)


def average_watts(session: SessionRecord, ctx: ExtractionContext) -> float | None:
    return finite_or_none(session.average_watts)


def max_watts(session: SessionRecord, ctx: ExtractionContext) -> float | None:
    return finite_or_none(session.max_watts)


def cadence(session: SessionRecord, ctx: ExtractionContext) -> float | None:
    return finite_or_none(session.average_cadence)


def stride_length(session: SessionRecord, ctx: ExtractionContext) -> float | None:
    resolved = ctx.run_dynamics.get(session)
    return resolved.stride_length if resolved else None


def ground_contact_time(session: SessionRecord, ctx: ExtractionContext) -> float | None:
    resolved = ctx.run_dynamics.get(session)
    return resolved.ground_contact_time if resolved else None


def vertical_oscillation(
    session: SessionRecord, ctx: ExtractionContext
) -> float | None:
    resolved = ctx.run_dynamics.get(session)
    return resolved.vertical_oscillation if resolved else None


def kilojoules(session: SessionRecord, ctx: ExtractionContext) -> float | None:
    return finite_or_none(session.kilojoules)


def calories(session: SessionRecord, ctx: ExtractionContext) -> float | None:
    return finite_or_none(session.calories)


def suffer_score(session: SessionRecord, ctx: ExtractionContext) -> float | None:
    return finite_or_none(session.suffer_score)


def charge(session: SessionRecord, ctx: ExtractionContext) -> float | None:
    return finite_or_none(
        compute_charge(session, ctx.hr_max, ctx.subject_average_speed)
    )


# --- Registries ---

TIME_SERIES_SELECTORS: dict[TimeSeriesMetric, MetricSelector] = {
    TimeSeriesMetric.DISTANCE: MetricSelector(distance_km, Aggregation.SUM),
    TimeSeriesMetric.TIME: MetricSelector(moving_hours, Aggregation.SUM),
    TimeSeriesMetric.ELEV: MetricSelector(elevation_gain, Aggregation.SUM),
    TimeSeriesMetric.COUNT: MetricSelector(one, Aggregation.SUM),
    TimeSeriesMetric.AVG_HR: MetricSelector(average_heartrate, Aggregation.AVG),
    TimeSeriesMetric.MAX_HR: MetricSelector(max_heartrate, Aggregation.MAX),
    TimeSeriesMetric.AVG_SPEED: MetricSelector(average_speed_kmh, Aggregation.AVG),
    TimeSeriesMetric.MAX_SPEED: MetricSelector(max_speed_kmh, Aggregation.MAX),
    TimeSeriesMetric.AVG_WATTS: MetricSelector(average_watts, Aggregation.AVG),
    TimeSeriesMetric.MAX_WATTS: MetricSelector(max_watts, Aggregation.MAX),
    TimeSeriesMetric.CADENCE: MetricSelector(cadence, Aggregation.AVG),
    TimeSeriesMetric.STRIDE_LENGTH: MetricSelector(stride_length, Aggregation.AVG),
    TimeSeriesMetric.GROUND_CONTACT_TIME: MetricSelector(
        ground_contact_time, Aggregation.AVG
    ),
    TimeSeriesMetric.VERTICAL_OSCILLATION: MetricSelector(
        vertical_oscillation, Aggregation.AVG
    ),
    TimeSeriesMetric.KILOJOULES: MetricSelector(kilojoules, Aggregation.SUM),
    TimeSeriesMetric.CALORIES: MetricSelector(calories, Aggregation.SUM),
    TimeSeriesMetric.SUFFER_SCORE: MetricSelector(suffer_score, Aggregation.AVG),
}

DISTRIBUTION_SELECTORS: dict[DistributionMetric, Extractor] = {
    DistributionMetric.DISTANCE: distance_km,
    DistributionMetric.TIME: moving_minutes,
    DistributionMetric.ELEV: elevation_gain,
    DistributionMetric.AVG_HR: average_heartrate,
    DistributionMetric.MAX_HR: max_heartrate,
    DistributionMetric.AVG_SPEED: average_speed_kmh,
    DistributionMetric.MAX_SPEED: max_speed_kmh,
    DistributionMetric.AVG_WATTS: average_watts,
    DistributionMetric.MAX_WATTS: max_watts,
    DistributionMetric.CADENCE: cadence,
    DistributionMetric.STRIDE_LENGTH: stride_length,
    DistributionMetric.GROUND_CONTACT_TIME: ground_contact_time,
    DistributionMetric.VERTICAL_OSCILLATION: vertical_oscillation,
    DistributionMetric.KILOJOULES: kilojoules,
    DistributionMetric.CALORIES: calories,
    DistributionMetric.SUFFER_SCORE: suffer_score,
}

PIVOT_SELECTORS: dict[PivotMetric, MetricSelector] = {
    PivotMetric.DISTANCE: MetricSelector(distance_km, Aggregation.SUM),
    PivotMetric.TIME: MetricSelector(moving_hours, Aggregation.SUM),
    PivotMetric.ELEV: MetricSelector(elevation_gain, Aggregation.SUM),
    PivotMetric.COUNT: MetricSelector(one, Aggregation.SUM),
    PivotMetric.AVG_HR: MetricSelector(average_heartrate, Aggregation.AVG),
    PivotMetric.AVG_SPEED: MetricSelector(average_speed_kmh, Aggregation.AVG),
    PivotMetric.AVG_WATTS: MetricSelector(average_watts, Aggregation.AVG),
    PivotMetric.CADENCE: MetricSelector(cadence, Aggregation.AVG),
    PivotMetric.STRIDE_LENGTH: MetricSelector(stride_length, Aggregation.AVG),
    PivotMetric.GROUND_CONTACT_TIME: MetricSelector(
        ground_contact_time, Aggregation.AVG
    ),
    PivotMetric.VERTICAL_OSCILLATION: MetricSelector(
        vertical_oscillation, Aggregation.AVG
    ),
    PivotMetric.KILOJOULES: MetricSelector(kilojoules, Aggregation.SUM),
    PivotMetric.CALORIES: MetricSelector(calories, Aggregation.SUM),
    PivotMetric.SUFFER_SCORE: MetricSelector(suffer_score, Aggregation.AVG),
}

CORRELATION_SELECTORS: dict[CorrelationVar, Extractor] = {
    CorrelationVar.DISTANCE: distance_km,
    CorrelationVar.MOVING_TIME: moving_minutes,
    CorrelationVar.ELEV_GAIN: elevation_gain,
    CorrelationVar.AVG_SPEED: average_speed_kmh,
    CorrelationVar.MAX_SPEED: max_speed_kmh,
    CorrelationVar.AVG_HR: average_heartrate,
    CorrelationVar.MAX_HR: max_heartrate,
    CorrelationVar.AVG_WATTS: average_watts,
    CorrelationVar.MAX_WATTS: max_watts,
    CorrelationVar.CADENCE: cadence,
    CorrelationVar.STRIDE_LENGTH: stride_length,
    CorrelationVar.GROUND_CONTACT_TIME: ground_contact_time,
    CorrelationVar.VERTICAL_OSCILLATION: vertical_oscillation,
    CorrelationVar.SUFFER_SCORE: suffer_score,
    CorrelationVar.KILOJOULES: kilojoules,
    CorrelationVar.CALORIES: calories,
    CorrelationVar.CHARGE: charge,
}


E = TypeVar("E", bound=Enum)


def parse_metric(enum_cls: type[E], name: str | E | None) -> E | None:
    """Map a metric name to its enum member, or None when unknown."""
    if name is None:
        return None
    if isinstance(name, enum_cls):
        return name
    try:
        return enum_cls(str(name).strip())
    except ValueError:
        return None


def parse_metrics(enum_cls: type[E], names: Iterable[str | E]) -> list[E]:
    """Map names to enum members in order, silently dropping unknown ones."""
    parsed = (parse_metric(enum_cls, name) for name in names)
    return [member for member in parsed if member is not None]
