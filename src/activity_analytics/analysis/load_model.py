"""
Cumulative training-load model.

Daily charge is summed per subject-local calendar day, reindexed over every
day from the first to the last session (missing days carry zero charge) and
smoothed by two exponential moving averages:

- CTL (chronic): span of ctl_days, alpha = 2 / (ctl_days + 1)
- ATL (acute): span of atl_days, alpha = 2 / (atl_days + 1)
- TSB (balance) = CTL - ATL

Both averages are seeded with the first day's charge.
"""

import logging
from collections.abc import Sequence

import pandas as pd

from ..constants import DateFormats
from ..metrics.load import average_speed_or_default, compute_charge
from ..models import LoadModelPayload, LoadPoint, SessionRecord
from ..settings import Settings

logger = logging.getLogger(__name__)


class TrainingLoadModel:
    """Computes the day-by-day CTL/ATL/TSB series."""

    def __init__(self, settings: Settings | None = None):
        """
        Initialize the model.

        Args:
            settings: Application settings (EMA windows, speed fallback)
        """
        self.settings = settings if settings is not None else Settings()

    def daily_charge(
        self, sessions: Sequence[SessionRecord], hr_max: float
    ) -> pd.Series:
        """
        Sum session charges per local day over the full observed date range.

        Args:
            sessions: Sessions to score
            hr_max: Subject maximum heart rate

        Returns:
            Float series indexed by day, zero-filled between sessions
        """
        if not sessions:
            return pd.Series(dtype=float)

        subject_speed = average_speed_or_default(
            sessions, self.settings.default_average_speed
        )
        charges = pd.DataFrame(
            {
                "date": [
                    pd.Timestamp(s.start_date_local.date()) for s in sessions
                ],
                "charge": [compute_charge(s, hr_max, subject_speed) for s in sessions],
            }
        )
        per_day = charges.groupby("date")["charge"].sum()
        days = pd.date_range(per_day.index.min(), per_day.index.max(), freq="D")
        return per_day.reindex(days, fill_value=0.0).astype(float)

    def build(
        self, sessions: Sequence[SessionRecord], hr_max: float | None = None
    ) -> LoadModelPayload:
        """
        Build the training-load series.

        Args:
            sessions: Sessions to model
            hr_max: Subject maximum heart rate; non-positive or missing values
                fall back to settings

        Returns:
            One point per calendar day, empty for empty input
        """
        if hr_max is None or hr_max <= 0:
            hr_max = self.settings.default_hr_max
        daily = self.daily_charge(sessions, hr_max)

        if daily.empty:
            return LoadModelPayload(hr_max=hr_max)

        # adjust=False gives the recursive EMA seeded by the first value
        ctl = daily.ewm(span=self.settings.ctl_days, adjust=False).mean()
        atl = daily.ewm(span=self.settings.atl_days, adjust=False).mean()
        tsb = ctl - atl

        series = [
            LoadPoint(
                date=day.strftime(DateFormats.DAY),
                charge=float(daily[day]),
                ctl=float(ctl[day]),
                atl=float(atl[day]),
                tsb=float(tsb[day]),
            )
            for day in daily.index
        ]

        logger.debug(f"Built load model over {len(series)} days")
        return LoadModelPayload(hr_max=hr_max, series=series)


def build_load_model(
    sessions: Sequence[SessionRecord], hr_max: float | None = None
) -> LoadModelPayload:
    """Build the training-load series with default settings."""
    return TrainingLoadModel().build(sessions, hr_max)
