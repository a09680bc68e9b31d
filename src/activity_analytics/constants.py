"""
Constants used throughout the Activity Analytics package.

This module centralizes all magic numbers and commonly used values to improve
maintainability and clarity.
"""

from typing import Final


# === Time Constants ===
class TimeConstants:
    """Time-related constants."""

    SECONDS_PER_MINUTE: Final[int] = 60
    SECONDS_PER_HOUR: Final[int] = 3600
    MS_PER_MINUTE: Final[int] = 60_000


# === Unit Conversions ===
class UnitConversions:
    """Factors for converting stored units to display units."""

    METERS_PER_KM: Final[float] = 1000.0
    MS_TO_KMH: Final[float] = 3.6  # m/s -> km/h
    METERS_TO_CM: Final[float] = 100.0


# === Run Dynamics Estimation ===
class RunDynamicsLimits:
    """Clamps and coefficients of the gait approximation."""

    # Reported cadence below this is per-leg and gets doubled
    PER_LEG_CADENCE_THRESHOLD: Final[float] = 130.0

    STRIDE_LENGTH_MIN: Final[float] = 0.5  # m
    STRIDE_LENGTH_MAX: Final[float] = 2.2  # m

    DUTY_BASE: Final[float] = 0.78
    DUTY_SPEED_SLOPE: Final[float] = 0.06  # per m/s
    DUTY_FROM_SPEED_MIN: Final[float] = 0.45
    DUTY_FROM_SPEED_MAX: Final[float] = 0.72
    DUTY_CADENCE_PIVOT: Final[float] = 175.0  # steps/min
    DUTY_CADENCE_DIVISOR: Final[float] = 220.0
    DUTY_CADENCE_ADJUST_LIMIT: Final[float] = 0.06
    DUTY_FACTOR_MIN: Final[float] = 0.42
    DUTY_FACTOR_MAX: Final[float] = 0.78

    GROUND_CONTACT_MIN: Final[float] = 120.0  # ms
    GROUND_CONTACT_MAX: Final[float] = 420.0  # ms

    OSCILLATION_BASE_RATIO: Final[float] = 0.055
    OSCILLATION_CONTACT_PIVOT: Final[float] = 200.0  # ms
    OSCILLATION_CONTACT_DIVISOR: Final[float] = 5000.0
    VERTICAL_OSCILLATION_MIN: Final[float] = 5.0  # cm
    VERTICAL_OSCILLATION_MAX: Final[float] = 14.0  # cm


# === Activity Classification ===
class ActivityKeywords:
    """Substrings used to classify activity types."""

    RUN_LIKE: Final[tuple[str, ...]] = ("run", "trail", "jog", "treadmill")


# === Training Load ===
class TrainingLoadWindows:
    """Windows for training load calculations."""

    ATL_DAYS: Final[int] = 7  # Acute Training Load (Fatigue)
    CTL_DAYS: Final[int] = 42  # Chronic Training Load (Fitness)


class TrainingLoadDefaults:
    """Fallbacks for the per-session charge."""

    DEFAULT_HR_MAX: Final[int] = 190
    DEFAULT_AVERAGE_SPEED: Final[float] = 2.5  # m/s
    RELATIVE_SPEED_MIN: Final[float] = 0.5
    RELATIVE_SPEED_MAX: Final[float] = 1.8


# === Aggregation ===
class AggregationLimits:
    """Bounds on aggregation requests."""

    DEFAULT_BINS: Final[int] = 20
    MIN_BINS: Final[int] = 1
    MAX_BINS: Final[int] = 100
    MAX_CORRELATION_VARS: Final[int] = 20
    MIN_CORRELATION_VARS: Final[int] = 2
    MIN_CORRELATION_SAMPLES: Final[int] = 2


class DefaultMetrics:
    """Fallback metric lists used when a request yields no valid names."""

    PIVOT: Final[tuple[str, ...]] = (
        "distance",
        "time",
        "elev",
        "count",
        "avgHR",
        "avgSpeed",
        "avgWatts",
        "cadence",
        "strideLength",
        "groundContactTime",
        "verticalOscillation",
    )
    CORRELATION: Final[tuple[str, ...]] = (
        "distance",
        "movingTime",
        "elevGain",
        "avgSpeed",
        "avgHR",
        "avgWatts",
        "calories",
    )


# === Calorie Estimation ===
class CalorieDefaults:
    """Constants for MET-based calorie estimation."""

    DEFAULT_WEIGHT_KG: Final[float] = 70.0
    REFERENCE_RELATIVE_HR: Final[float] = 0.72
    RELATIVE_HR_MIN: Final[float] = 0.5
    RELATIVE_HR_MAX: Final[float] = 1.05
    HR_SCALE_MIN: Final[float] = 0.8
    HR_SCALE_MAX: Final[float] = 1.25
    KJ_PER_WATT_SECOND: Final[float] = 1 / 1000


# === CSV Parsing ===
class CSVConstants:
    """Constants for CSV file parsing."""

    DEFAULT_SEPARATOR: Final[str] = ";"
    DEFAULT_ENCODING: Final[str] = "utf-8"


# === Date Formats ===
class DateFormats:
    """strftime patterns for bucket keys."""

    DAY: Final[str] = "%Y-%m-%d"
    MONTH: Final[str] = "%Y-%m"
