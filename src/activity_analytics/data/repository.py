"""
Repository pattern for session data access.

This module provides a high-level interface for querying sessions and for
writing back run-dynamics backfills.
"""

import logging
from collections.abc import Iterable
from typing import Protocol

import pandas as pd

from ..exceptions import BackfillError
from ..models import RunDynamicsBackfill, SessionRecord
from ..settings import Settings
from .filters import SessionFilters
from .loader import DataLoaderProtocol, SessionDataLoader, frame_to_sessions

logger = logging.getLogger(__name__)

RUN_DYNAMICS_COLUMNS = ["stride_length", "ground_contact_time", "vertical_oscillation"]


class RepositoryProtocol(Protocol):
    """Protocol for session repositories."""

    def get_sessions(
        self, subject_id: str, filters: SessionFilters | None = None
    ) -> list[SessionRecord]:
        """Get a subject's sessions matching filters."""
        ...

    def apply_backfills(self, backfills: Iterable[RunDynamicsBackfill]) -> int:
        """Write run-dynamics triples as one batch."""
        ...


class SessionRepository:
    """
    Repository for session data access.

    Sessions are held as one DataFrame. Backfills are applied to a copy which
    replaces the held frame only once every row has been written, so readers
    never observe a partially updated triple.
    """

    def __init__(
        self,
        loader: DataLoaderProtocol | None = None,
        settings: Settings | None = None,
        persist: bool = False,
    ):
        """
        Initialize the repository.

        Args:
            loader: Data loader instance; defaults to the CSV loader
            settings: Application settings
            persist: Save the frame through the loader after each backfill
        """
        self.settings = settings if settings is not None else Settings()
        self.loader = loader if loader is not None else SessionDataLoader(self.settings)
        self.persist = persist
        self.logger = logging.getLogger(__name__)
        self._sessions_cache: pd.DataFrame | None = None

    @classmethod
    def from_sessions(cls, sessions: Iterable[SessionRecord]) -> "SessionRepository":
        """Build an in-memory repository from records."""
        return cls(loader=_StaticLoader(sessions))

    def get_all_sessions(self) -> pd.DataFrame:
        """
        Get all sessions.

        Returns:
            Copy of the held sessions frame
        """
        if self._sessions_cache is None:
            self._sessions_cache = self.loader.load_sessions()
            for column in RUN_DYNAMICS_COLUMNS:
                if column not in self._sessions_cache.columns:
                    self._sessions_cache[column] = float("nan")
        return self._sessions_cache.copy()

    def get_sessions(
        self, subject_id: str, filters: SessionFilters | None = None
    ) -> list[SessionRecord]:
        """
        Get a subject's sessions ordered by start date.

        Calorie bounds in filters are not applied here.

        Args:
            subject_id: Owner of the sessions
            filters: Query constraints; run-like only when omitted as well

        Returns:
            Matching sessions
        """
        df = self.get_all_sessions()
        subject_rows = df[df["subject_id"].astype(str) == str(subject_id)]
        sessions = frame_to_sessions(subject_rows)
        matched = (filters or SessionFilters()).apply(sessions)

        self.logger.debug(
            f"Selected {len(matched)} of {len(sessions)} sessions "
            f"for subject {subject_id}"
        )
        return matched

    def apply_backfills(self, backfills: Iterable[RunDynamicsBackfill]) -> int:
        """
        Write run-dynamics triples for several sessions as one batch.

        Args:
            backfills: Write intents

        Returns:
            Number of sessions updated

        Raises:
            BackfillError: If any target session does not exist; nothing is
                written in that case
        """
        backfills = list(backfills)
        if not backfills:
            return 0

        updated = self.get_all_sessions()
        index_by_id = pd.Series(updated.index, index=updated["id"].astype(str))

        missing = [b.id for b in backfills if b.id not in index_by_id.index]
        if missing:
            raise BackfillError(f"Cannot backfill unknown sessions: {missing}")

        for backfill in backfills:
            row = index_by_id[backfill.id]
            updated.loc[row, RUN_DYNAMICS_COLUMNS] = [
                backfill.stride_length,
                backfill.ground_contact_time,
                backfill.vertical_oscillation,
            ]

        if self.persist:
            self.loader.save_sessions(updated)

        self._sessions_cache = updated
        self.logger.info(f"Backfilled run dynamics for {len(backfills)} sessions")
        return len(backfills)


class _StaticLoader:
    """Loader serving a fixed set of records from memory."""

    def __init__(self, sessions: Iterable[SessionRecord]):
        records = [session.model_dump() for session in sessions]
        self._frame = pd.DataFrame(records, columns=list(SessionRecord.model_fields))

    def load_sessions(self) -> pd.DataFrame:
        return self._frame.copy()

    def save_sessions(self, df: pd.DataFrame) -> None:
        self._frame = df.copy()
