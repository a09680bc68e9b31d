"""
Pairwise correlation of session variables.

Builds an N x N Pearson or Spearman matrix where every cell only uses sessions
that define both variables, plus a scatter extraction for one chosen pair.
Degenerate inputs (fewer than two pairs, zero variance) give ``None``.
"""

import logging
from collections.abc import Callable, Iterable, Sequence

import numpy as np
import pandas as pd

from ..constants import AggregationLimits, DateFormats, DefaultMetrics
from ..metrics.load import average_speed_or_default
from ..metrics.selectors import (
    CORRELATION_SELECTORS,
    ExtractionContext,
    parse_metric,
    parse_metrics,
)
from ..models import (
    CorrelationCell,
    CorrelationMethod,
    CorrelationPayload,
    CorrelationVar,
    ScatterPlot,
    ScatterPoint,
    SessionRecord,
)
from ..settings import Settings

logger = logging.getLogger(__name__)

CorrelationFn = Callable[[Sequence[float], Sequence[float]], float | None]


def rank_average(values: Sequence[float]) -> list[float]:
    """
    Rank values from 1, giving tied values the mean of their positions.

    If k values tie at sorted positions i..j (0-based), each gets
    (i + j + 2) / 2.
    """
    return pd.Series(values, dtype=float).rank(method="average").tolist()


def pearson(x: Sequence[float], y: Sequence[float]) -> float | None:
    """Sample Pearson correlation, or None for < 2 pairs or zero variance."""
    if len(x) != len(y) or len(x) < AggregationLimits.MIN_CORRELATION_SAMPLES:
        return None

    xa = np.asarray(x, dtype=float)
    ya = np.asarray(y, dtype=float)
    if np.ptp(xa) == 0 or np.ptp(ya) == 0:
        return None

    dx = xa - xa.mean()
    dy = ya - ya.mean()
    sx = float(np.dot(dx, dx))
    sy = float(np.dot(dy, dy))
    if sx == 0 or sy == 0:
        return None

    return float(np.dot(dx, dy) / np.sqrt(sx * sy))


def spearman(x: Sequence[float], y: Sequence[float]) -> float | None:
    """Spearman rank correlation: Pearson over average ranks."""
    if len(x) != len(y) or len(x) < AggregationLimits.MIN_CORRELATION_SAMPLES:
        return None
    return pearson(rank_average(x), rank_average(y))


CORRELATION_FUNCTIONS: dict[CorrelationMethod, CorrelationFn] = {
    CorrelationMethod.PEARSON: pearson,
    CorrelationMethod.SPEARMAN: spearman,
}


class CorrelationEngine:
    """Builds correlation matrices and scatter extractions."""

    def __init__(self, settings: Settings | None = None):
        """
        Initialize the engine.

        Args:
            settings: Application settings (variable limit, speed fallback)
        """
        self.settings = settings if settings is not None else Settings()

    def select_variables(self, requested: Iterable[str]) -> list[CorrelationVar]:
        """Validate, truncate and, when too few remain, replace the variable list."""
        variables = parse_metrics(CorrelationVar, requested)[
            : self.settings.max_correlation_vars
        ]
        if len(variables) < AggregationLimits.MIN_CORRELATION_VARS:
            return parse_metrics(CorrelationVar, DefaultMetrics.CORRELATION)
        return variables

    def build_correlations(
        self,
        sessions: Sequence[SessionRecord],
        variables: Iterable[str],
        method: CorrelationMethod | str = CorrelationMethod.PEARSON,
        hr_max: float | None = None,
        scatter_x: str | None = None,
        scatter_y: str | None = None,
        scatter_color: str | None = None,
    ) -> CorrelationPayload:
        """
        Build the full correlation matrix and a scatter plot.

        Args:
            sessions: Sessions to correlate
            variables: Requested variable names
            method: pearson or spearman; unknown values fall back to pearson
            hr_max: Maximum heart rate for the charge variable
            scatter_x: Scatter x variable; defaults to the first variable
            scatter_y: Scatter y variable; defaults to the second variable
            scatter_color: Optional variable reported as point color

        Returns:
            Correlation payload with row-major matrix cells
        """
        method = parse_metric(CorrelationMethod, method) or CorrelationMethod.PEARSON
        correlate = CORRELATION_FUNCTIONS[method]
        vars_ = self.select_variables(variables)

        ctx = ExtractionContext(
            hr_max=hr_max if hr_max and hr_max > 0 else self.settings.default_hr_max,
            subject_average_speed=average_speed_or_default(
                sessions, self.settings.default_average_speed
            ),
        )

        unique_vars = list(dict.fromkeys(vars_))
        frame = pd.DataFrame(
            {var.value: self._column(sessions, var, ctx) for var in unique_vars},
            dtype=float,
        )

        matrix: list[CorrelationCell] = []
        for x_var in vars_:
            for y_var in vars_:
                if frame.empty:
                    matrix.append(CorrelationCell(x=x_var, y=y_var, value=None, n=0))
                    continue
                xs = frame[x_var.value]
                ys = frame[y_var.value]
                mask = xs.notna() & ys.notna()
                matrix.append(
                    CorrelationCell(
                        x=x_var,
                        y=y_var,
                        value=correlate(xs[mask].tolist(), ys[mask].tolist()),
                        n=int(mask.sum()),
                    )
                )

        x_var = parse_metric(CorrelationVar, scatter_x) or vars_[0]
        y_var = parse_metric(CorrelationVar, scatter_y) or vars_[1]
        color_var = parse_metric(CorrelationVar, scatter_color)
        scatter = self.build_scatter(sessions, x_var, y_var, color_var, ctx, correlate)

        logger.debug(
            f"Built {len(vars_)}x{len(vars_)} {method.value} matrix "
            f"over {len(sessions)} sessions"
        )
        return CorrelationPayload(
            method=method, vars=vars_, matrix=matrix, scatter=scatter
        )

    @staticmethod
    def _column(
        sessions: Sequence[SessionRecord], var: CorrelationVar, ctx: ExtractionContext
    ) -> list[float]:
        select = CORRELATION_SELECTORS[var]
        values = (select(session, ctx) for session in sessions)
        return [np.nan if value is None else value for value in values]

    def build_scatter(
        self,
        sessions: Sequence[SessionRecord],
        x_var: CorrelationVar,
        y_var: CorrelationVar,
        color_var: CorrelationVar | None,
        ctx: ExtractionContext,
        correlate: CorrelationFn = pearson,
    ) -> ScatterPlot:
        """
        Extract one point per session defining both x and y.

        A missing color value never excludes a point.
        """
        points: list[ScatterPoint] = []
        for session in sessions:
            x = CORRELATION_SELECTORS[x_var](session, ctx)
            y = CORRELATION_SELECTORS[y_var](session, ctx)
            if x is None or y is None:
                continue
            color = (
                CORRELATION_SELECTORS[color_var](session, ctx) if color_var else None
            )
            points.append(
                ScatterPoint(
                    id=session.id,
                    external_id=session.external_id,
                    x=x,
                    y=y,
                    color=color,
                    label=session.name,
                    date=session.start_date_local.strftime(DateFormats.DAY),
                )
            )

        r = correlate([p.x for p in points], [p.y for p in points])
        return ScatterPlot(
            x_var=x_var,
            y_var=y_var,
            color_var=color_var,
            r=r,
            n=len(points),
            points=points,
        )


def build_correlations(
    sessions: Sequence[SessionRecord],
    variables: Iterable[str],
    method: CorrelationMethod | str = CorrelationMethod.PEARSON,
    hr_max: float | None = None,
    scatter_x: str | None = None,
    scatter_y: str | None = None,
    scatter_color: str | None = None,
) -> CorrelationPayload:
    """Build correlations with default settings."""
    return CorrelationEngine().build_correlations(
        sessions, variables, method, hr_max, scatter_x, scatter_y, scatter_color
    )
