"""
Data loading functionality.

Sessions are stored as a ``;``-separated CSV with one row per session and
snake_case column names matching ``SessionRecord`` fields.
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol

import numpy as np
import pandas as pd
from pydantic import ValidationError

from ..constants import CSVConstants
from ..exceptions import DataLoadError, InvalidDataError
from ..models import SessionRecord
from ..settings import Settings

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("id", "subject_id", "type", "start_date", "start_date_local")
ID_COLUMNS = ("id", "subject_id", "external_id")


class DataLoaderProtocol(Protocol):
    """Protocol for data loaders."""

    def load_sessions(self) -> pd.DataFrame:
        """Load the sessions DataFrame."""
        ...

    def save_sessions(self, df: pd.DataFrame) -> None:
        """Persist the sessions DataFrame."""
        ...


def _clean_value(value: Any) -> Any:
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    if isinstance(value, np.generic):
        return value.item()
    return value


def frame_to_sessions(df: pd.DataFrame) -> list[SessionRecord]:
    """
    Convert session rows to records.

    Missing cells fall back to the record defaults.

    Raises:
        InvalidDataError: If a row does not form a valid session
    """
    known = set(SessionRecord.model_fields)
    sessions: list[SessionRecord] = []

    for position, row in enumerate(df.to_dict("records")):
        data = {
            key: cleaned
            for key, value in row.items()
            if key in known and (cleaned := _clean_value(value)) is not None
        }
        try:
            sessions.append(SessionRecord.model_validate(data))
        except ValidationError as e:
            raise InvalidDataError(f"Invalid session at row {position}: {e}") from e

    return sessions


class SessionDataLoader:
    """
    Handles loading and saving of session data.

    This class encapsulates all file I/O for the sessions CSV.
    """

    def __init__(self, settings: Settings):
        """
        Initialize the data loader.

        Args:
            settings: Application settings containing data paths
        """
        self.settings = settings
        self.logger = logging.getLogger(__name__)

    @property
    def path(self) -> Path:
        return self.settings.activities_path

    def load_sessions(self) -> pd.DataFrame:
        """
        Load sessions from the CSV file.

        Returns:
            DataFrame with parsed start dates, sorted by start_date

        Raises:
            DataLoadError: If the file is missing, unreadable or lacks columns
        """
        path = self.path
        if not path.exists():
            raise DataLoadError(f"Sessions file not found: {path}")

        self.logger.info(f"Loading sessions from {path}")
        try:
            df = pd.read_csv(
                path,
                sep=CSVConstants.DEFAULT_SEPARATOR,
                encoding=CSVConstants.DEFAULT_ENCODING,
                dtype={column: str for column in ID_COLUMNS},
                keep_default_na=True,
            )
        except (OSError, ValueError, pd.errors.ParserError) as e:
            raise DataLoadError(f"Failed to load sessions: {e}") from e

        missing = [column for column in REQUIRED_COLUMNS if column not in df.columns]
        if missing:
            raise DataLoadError(f"Sessions file {path} is missing columns: {missing}")

        try:
            df["start_date"] = pd.to_datetime(df["start_date"], utc=True)
            df["start_date_local"] = pd.to_datetime(df["start_date_local"])
        except (ValueError, TypeError) as e:
            raise DataLoadError(f"Invalid start dates in {path}: {e}") from e

        df = df.sort_values("start_date", kind="stable").reset_index(drop=True)
        self.logger.info(f"Loaded {len(df)} sessions")
        return df

    def save_sessions(self, df: pd.DataFrame) -> None:
        """
        Write sessions back to the CSV file.

        The file is replaced atomically.

        Raises:
            DataLoadError: If the file cannot be written
        """
        path = self.path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding=CSVConstants.DEFAULT_ENCODING) as f:
                    df.to_csv(f, sep=CSVConstants.DEFAULT_SEPARATOR, index=False)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise DataLoadError(f"Failed to save sessions to {path}: {e}") from e

        self.logger.info(f"Saved {len(df)} sessions to {path}")
