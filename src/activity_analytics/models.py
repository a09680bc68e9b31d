"""
Data models for the Activity Analytics package.

This module defines all the core data structures used throughout the application,
ensuring type safety and data validation using Pydantic models.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .constants import TrainingLoadDefaults


class Aggregation(str, Enum):
    """How per-session values of a metric are combined."""

    SUM = "sum"
    AVG = "avg"
    MAX = "max"


class TimeBucket(str, Enum):
    """Calendar granularity of a time series."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"


class PivotRow(str, Enum):
    """Row key of a pivot table."""

    MONTH = "month"
    WEEK = "week"
    TYPE = "type"


class CorrelationMethod(str, Enum):
    """Supported correlation coefficients."""

    PEARSON = "pearson"
    SPEARMAN = "spearman"


class TimeSeriesMetric(str, Enum):
    """Metrics available to time series."""

    DISTANCE = "distance"
    TIME = "time"
    ELEV = "elev"
    COUNT = "count"
    AVG_HR = "avgHR"
    MAX_HR = "maxHR"
    AVG_SPEED = "avgSpeed"
    MAX_SPEED = "maxSpeed"
    AVG_WATTS = "avgWatts"
    MAX_WATTS = "maxWatts"
    CADENCE = "cadence"
    STRIDE_LENGTH = "strideLength"
    GROUND_CONTACT_TIME = "groundContactTime"
    VERTICAL_OSCILLATION = "verticalOscillation"
    KILOJOULES = "kilojoules"
    CALORIES = "calories"
    SUFFER_SCORE = "sufferScore"


class DistributionMetric(str, Enum):
    """Metrics available to histograms."""

    DISTANCE = "distance"
    TIME = "time"
    ELEV = "elev"
    AVG_HR = "avgHR"
    MAX_HR = "maxHR"
    AVG_SPEED = "avgSpeed"
    MAX_SPEED = "maxSpeed"
    AVG_WATTS = "avgWatts"
    MAX_WATTS = "maxWatts"
    CADENCE = "cadence"
    STRIDE_LENGTH = "strideLength"
    GROUND_CONTACT_TIME = "groundContactTime"
    VERTICAL_OSCILLATION = "verticalOscillation"
    KILOJOULES = "kilojoules"
    CALORIES = "calories"
    SUFFER_SCORE = "sufferScore"


class PivotMetric(str, Enum):
    """Metrics available as pivot columns."""

    DISTANCE = "distance"
    TIME = "time"
    ELEV = "elev"
    COUNT = "count"
    AVG_HR = "avgHR"
    AVG_SPEED = "avgSpeed"
    AVG_WATTS = "avgWatts"
    CADENCE = "cadence"
    STRIDE_LENGTH = "strideLength"
    GROUND_CONTACT_TIME = "groundContactTime"
    VERTICAL_OSCILLATION = "verticalOscillation"
    KILOJOULES = "kilojoules"
    CALORIES = "calories"
    SUFFER_SCORE = "sufferScore"


class CorrelationVar(str, Enum):
    """Variables allowed in the correlation matrix and scatter plot."""

    DISTANCE = "distance"
    MOVING_TIME = "movingTime"
    ELEV_GAIN = "elevGain"
    AVG_SPEED = "avgSpeed"
    MAX_SPEED = "maxSpeed"
    AVG_HR = "avgHR"
    MAX_HR = "maxHR"
    AVG_WATTS = "avgWatts"
    MAX_WATTS = "maxWatts"
    CADENCE = "cadence"
    STRIDE_LENGTH = "strideLength"
    GROUND_CONTACT_TIME = "groundContactTime"
    VERTICAL_OSCILLATION = "verticalOscillation"
    SUFFER_SCORE = "sufferScore"
    KILOJOULES = "kilojoules"
    CALORIES = "calories"
    CHARGE = "charge"


class SessionRecord(BaseModel):
    """One completed activity as read from storage."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Unique session ID")
    subject_id: str = Field(..., description="Owner of the session")
    external_id: str | None = Field(None, description="Provider activity ID")
    name: str = Field("", description="Session title")
    type: str = Field(..., description="Primary activity type")
    sport_type: str = Field("", description="Sport sub-type")
    start_date: datetime = Field(..., description="Absolute start instant")
    start_date_local: datetime = Field(..., description="Start in subject-local time")
    timezone: str | None = Field(None, description="Subject timezone label")
    distance: float = Field(0.0, description="Distance in meters")
    moving_time: int = Field(0, description="Moving time in seconds")
    elapsed_time: int = Field(0, description="Elapsed time in seconds")
    total_elevation_gain: float = Field(0.0, description="Elevation gain in meters")
    average_speed: float = Field(0.0, description="Average speed in m/s")
    max_speed: float = Field(0.0, description="Maximum speed in m/s")
    average_heartrate: float | None = Field(None, description="Average HR in bpm")
    max_heartrate: float | None = Field(None, description="Maximum HR in bpm")
    average_watts: float | None = Field(None, description="Average power in watts")
    max_watts: float | None = Field(None, description="Maximum power in watts")
    weighted_average_watts: float | None = Field(
        None, description="Weighted average power in watts"
    )
    average_cadence: float | None = Field(
        None, description="Average cadence, per-leg or total steps/min"
    )
    kilojoules: float | None = Field(None, description="Mechanical work in kJ")
    calories: float | None = Field(None, description="Energy expenditure in kcal")
    stride_length: float | None = Field(None, description="Stride length in meters")
    ground_contact_time: float | None = Field(
        None, description="Ground contact time in ms"
    )
    vertical_oscillation: float | None = Field(
        None, description="Vertical oscillation in cm"
    )
    suffer_score: float | None = Field(None, description="Training-stress proxy")

    @property
    def sport_label(self) -> str:
        """Sport sub-type, or the primary type when the sub-type is empty."""
        return self.sport_type or self.type


class PhysiologicalProfile(BaseModel):
    """Per-subject physiology consumed by the charge and calorie formulas."""

    hr_max: float = Field(
        TrainingLoadDefaults.DEFAULT_HR_MAX, description="Maximum heart rate in bpm"
    )
    weight_kg: float | None = Field(None, description="Body weight in kg")
    age: int | None = Field(None, description="Age in years")
    height_cm: float | None = Field(None, description="Height in cm")

    @field_validator("hr_max", mode="before")
    @classmethod
    def default_hr_max(cls, v: float | None) -> float:
        """Fall back to the default maximum heart rate when absent or non-positive."""
        if v is None or (isinstance(v, (int, float)) and v <= 0):
            return TrainingLoadDefaults.DEFAULT_HR_MAX
        return v


class RunDynamicsValues(BaseModel):
    """Resolved biomechanical triple, always complete."""

    model_config = ConfigDict(frozen=True)

    stride_length: float = Field(..., description="Stride length in meters")
    ground_contact_time: float = Field(..., description="Ground contact time in ms")
    vertical_oscillation: float = Field(
        ..., description="Vertical oscillation in cm"
    )


class RunDynamicsBackfill(RunDynamicsValues):
    """Write intent for a session whose stored triple is incomplete."""

    id: str = Field(..., description="Session to update")


# --- Analysis payloads ---


class TimeSeriesPoint(BaseModel):
    """One bucket of a time series."""

    bucket: str
    value: float
    samples: int


class TimeSeriesPayload(BaseModel):
    """Time-bucketed aggregate of one metric."""

    metric: TimeSeriesMetric
    aggregation: Aggregation
    bucket: TimeBucket
    series: list[TimeSeriesPoint] = Field(default_factory=list)


class HistogramBin(BaseModel):
    """One histogram bin covering [from, to]."""

    model_config = ConfigDict(populate_by_name=True)

    from_: float = Field(..., alias="from")
    to: float
    count: int


class DistributionPayload(BaseModel):
    """Histogram of one metric."""

    metric: DistributionMetric
    bins: list[HistogramBin] = Field(default_factory=list)
    sample_size: int = 0
    min: float | None = None
    max: float | None = None


class PivotPayload(BaseModel):
    """Rows keyed by sport type, week or month with one cell per metric."""

    row: PivotRow
    metrics: list[PivotMetric]
    rows: list[dict[str, Any]] = Field(default_factory=list)


class CorrelationCell(BaseModel):
    """One cell of the correlation matrix."""

    x: CorrelationVar
    y: CorrelationVar
    value: float | None
    n: int


class ScatterPoint(BaseModel):
    """One session plotted on the scatter chart."""

    id: str
    external_id: str | None = None
    x: float
    y: float
    color: float | None = None
    label: str = ""
    date: str


class ScatterPlot(BaseModel):
    """Scatter extraction for one chosen variable pair."""

    x_var: CorrelationVar
    y_var: CorrelationVar
    color_var: CorrelationVar | None = None
    r: float | None
    n: int
    points: list[ScatterPoint] = Field(default_factory=list)


class CorrelationPayload(BaseModel):
    """Full pairwise correlation matrix plus scatter extraction."""

    method: CorrelationMethod
    vars: list[CorrelationVar]
    matrix: list[CorrelationCell] = Field(default_factory=list)
    scatter: ScatterPlot


class LoadPoint(BaseModel):
    """Training load state for one calendar day."""

    date: str
    charge: float
    ctl: float
    atl: float
    tsb: float


class LoadModelPayload(BaseModel):
    """Day-by-day chronic/acute load and balance."""

    hr_max: float
    series: list[LoadPoint] = Field(default_factory=list)


class TypeBreakdown(BaseModel):
    """Totals for one sport type."""

    type: str
    count: int
    distance: float
    time: float
    elev: float


class SummaryPayload(BaseModel):
    """Headline totals and averages over a set of sessions."""

    count: int
    total_distance_km: float
    total_moving_time_hours: float
    total_elevation_gain: float
    total_kilojoules: float
    total_calories: float
    avg_distance_km: float
    avg_elevation_per_km: float | None
    avg_heartrate: float | None
    avg_speed_kmh: float | None
    avg_watts: float | None
    avg_cadence: float | None
    hr_samples: int
    watts_samples: int
    cadence_samples: int
    by_type: list[TypeBreakdown] = Field(default_factory=list)
