"""
Headline summary of a session collection.

Totals, per-session averages and a per-sport breakdown sorted by distance.
"""

import logging
from collections.abc import Sequence

import pandas as pd

from ..constants import TimeConstants, UnitConversions
from ..models import SessionRecord, SummaryPayload, TypeBreakdown

logger = logging.getLogger(__name__)


def _mean_or_none(values: pd.Series) -> float | None:
    valid = values.dropna()
    return None if valid.empty else float(valid.mean())


class ActivitySummarizer:
    """Creates summary payloads from session collections."""

    def summarize(self, sessions: Sequence[SessionRecord]) -> SummaryPayload:
        """
        Summarize sessions.

        Args:
            sessions: Sessions to summarize

        Returns:
            Summary payload; averages are None when no session has the field
        """
        df = self._to_frame(sessions)
        count = len(df)

        total_distance_km = float(df["distance"].sum()) / UnitConversions.METERS_PER_KM
        total_elevation = float(df["total_elevation_gain"].sum())

        hr = df["average_heartrate"].dropna()
        watts = df["average_watts"].dropna()
        cadence = df["average_cadence"].dropna()

        return SummaryPayload(
            count=count,
            total_distance_km=total_distance_km,
            total_moving_time_hours=(
                float(df["moving_time"].sum()) / TimeConstants.SECONDS_PER_HOUR
            ),
            total_elevation_gain=total_elevation,
            total_kilojoules=float(df["kilojoules"].fillna(0).sum()),
            total_calories=float(df["calories"].fillna(0).sum()),
            avg_distance_km=total_distance_km / count if count else 0.0,
            avg_elevation_per_km=(
                total_elevation / total_distance_km if total_distance_km else None
            ),
            avg_heartrate=_mean_or_none(hr),
            avg_speed_kmh=_mean_or_none(
                df["average_speed"] * UnitConversions.MS_TO_KMH
            ),
            avg_watts=_mean_or_none(watts),
            avg_cadence=_mean_or_none(cadence),
            hr_samples=len(hr),
            watts_samples=len(watts),
            cadence_samples=len(cadence),
            by_type=self.breakdown_by_type(df),
        )

    def breakdown_by_type(self, df: pd.DataFrame) -> list[TypeBreakdown]:
        """Per-sport totals of count, km, hours and elevation."""
        if df.empty:
            return []

        grouped = df.groupby("sport_label", sort=True).agg(
            count=("distance", "size"),
            distance=("distance", "sum"),
            time=("moving_time", "sum"),
            elev=("total_elevation_gain", "sum"),
        )
        grouped["distance"] = grouped["distance"] / UnitConversions.METERS_PER_KM
        grouped["time"] = grouped["time"] / TimeConstants.SECONDS_PER_HOUR
        grouped = grouped.sort_values("distance", ascending=False, kind="stable")

        return [
            TypeBreakdown(
                type=str(label),
                count=int(row["count"]),
                distance=float(row["distance"]),
                time=float(row["time"]),
                elev=float(row["elev"]),
            )
            for label, row in grouped.iterrows()
        ]

    @staticmethod
    def _to_frame(sessions: Sequence[SessionRecord]) -> pd.DataFrame:
        columns = [
            "distance",
            "moving_time",
            "total_elevation_gain",
            "average_speed",
            "average_heartrate",
            "average_watts",
            "average_cadence",
            "kilojoules",
            "calories",
        ]
        records = [
            {**{col: getattr(s, col) for col in columns}, "sport_label": s.sport_label}
            for s in sessions
        ]
        df = pd.DataFrame(records, columns=[*columns, "sport_label"])
        df[columns] = df[columns].astype(float)
        return df
