"""Application settings and configuration management."""

from pathlib import Path

import yaml
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import AggregationLimits, TrainingLoadDefaults, TrainingLoadWindows
from .exceptions import ConfigurationError
from .models import PhysiologicalProfile


class Settings(BaseSettings):
    """
    Application settings for Activity Analytics.

    Settings are loaded in the following order of precedence (highest to lowest):
    1. Values passed explicitly (e.g. from a YAML file via ``load_settings``)
    2. Environment variables (e.g., ACTIVITY_ANALYTICS_DATA_DIR)
    3. .env file (if found)
    4. Default values
    """

    model_config = SettingsConfigDict(
        env_prefix="ACTIVITY_ANALYTICS_",
        env_file=".env",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # --- File Paths ---
    data_dir: Path = Path("data")
    activities_file: Path = Path("activities.csv")
    snapshot_dir: Path = Path("snapshots")

    # --- Subject Profile ---
    # Used when no per-subject profile is supplied by the caller
    profile: PhysiologicalProfile = PhysiologicalProfile()

    # --- Aggregation Defaults ---
    default_bins: int = AggregationLimits.DEFAULT_BINS
    max_bins: int = AggregationLimits.MAX_BINS
    max_correlation_vars: int = AggregationLimits.MAX_CORRELATION_VARS

    # --- Training Load ---
    default_hr_max: float = TrainingLoadDefaults.DEFAULT_HR_MAX
    default_average_speed: float = TrainingLoadDefaults.DEFAULT_AVERAGE_SPEED
    atl_days: int = TrainingLoadWindows.ATL_DAYS
    ctl_days: int = TrainingLoadWindows.CTL_DAYS

    def _under_data_dir(self, path: Path) -> Path:
        path = path.expanduser()
        return path if path.is_absolute() else self.data_dir / path

    @property
    def activities_path(self) -> Path:
        """Activities CSV, resolved against data_dir when relative."""
        return self._under_data_dir(self.activities_file)

    @property
    def snapshot_path(self) -> Path:
        """Snapshot store root, resolved against data_dir when relative."""
        return self._under_data_dir(self.snapshot_dir)


def load_settings(config_file: Path | None = None) -> Settings:
    """Load settings from a YAML file, environment variables, and defaults."""
    if not config_file:
        return Settings()

    try:
        with open(config_file, encoding="utf-8") as f:
            yaml_settings = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Cannot read config file {config_file}: {e}") from e

    if not isinstance(yaml_settings, dict):
        raise ConfigurationError(f"Config file {config_file} must contain a mapping")

    # A relative data_dir is anchored at the config file location
    if "data_dir" in yaml_settings:
        data_dir = Path(yaml_settings["data_dir"]).expanduser()
        if not data_dir.is_absolute():
            data_dir = config_file.parent / data_dir
        yaml_settings["data_dir"] = str(data_dir)

    return Settings(**yaml_settings)
