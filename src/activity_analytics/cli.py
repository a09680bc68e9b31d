"""
Command-line interface for the Activity Analytics package.

Each subcommand loads the configured sessions CSV, runs one analysis for a
subject, prints the payload as JSON and stores it in the snapshot directory.
"""

import json
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

import click
from click import Context
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .data import SessionDataLoader, SessionFilters, SessionRepository
from .exceptions import ActivityAnalyticsError
from .models import CorrelationMethod, PivotRow, TimeBucket
from .services import AnalyticsService
from .settings import load_settings
from .snapshots import JsonFileSnapshotStore

RANGE_FILTERS = (
    "distance_km",
    "time_min",
    "elev",
    "avg_hr",
    "avg_speed_kmh",
    "avg_watts",
    "cadence",
    "kilojoules",
    "calories",
)


# Configure basic logging
def configure_logging(verbose: bool = False) -> None:
    """Configure logging with appropriate level."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )


def filter_options(command: Callable) -> Callable:
    """Attach the session filter options to a command."""
    for name in reversed(RANGE_FILTERS):
        flag = name.replace("_", "-")
        command = click.option(f"--max-{flag}", type=float, default=None)(command)
        command = click.option(f"--min-{flag}", type=float, default=None)(command)

    options = [
        click.option(
            "--from", "from_", type=click.DateTime(), help="Earliest start (UTC)"
        ),
        click.option("--to", type=click.DateTime(), help="Latest start (UTC)"),
        click.option(
            "--local-from", type=click.DateTime(), help="Earliest local start"
        ),
        click.option("--local-to", type=click.DateTime(), help="Latest local start"),
        click.option("--type", "type_", help="Activity type or sport type"),
        click.option("--q", help="Name substring"),
        click.option("--has-hr/--no-hr", default=None, help="Require heart rate data"),
        click.option(
            "--has-power/--no-power", default=None, help="Require power data"
        ),
        click.option("--ids", help="Comma-separated session IDs"),
    ]
    for option in reversed(options):
        command = option(command)
    return command


def build_filters(options: dict[str, Any]) -> SessionFilters:
    """Create SessionFilters from parsed filter options."""
    data = {
        "from": options.pop("from_", None),
        "to": options.pop("to", None),
        "local_from": options.pop("local_from", None),
        "local_to": options.pop("local_to", None),
        "type": options.pop("type_", None),
        "q": options.pop("q", None),
        "has_hr": options.pop("has_hr", None),
        "has_power": options.pop("has_power", None),
        "ids": options.pop("ids", None),
    }
    for name in RANGE_FILTERS:
        data[f"min_{name}"] = options.pop(f"min_{name}", None)
        data[f"max_{name}"] = options.pop(f"max_{name}", None)
    return SessionFilters.model_validate(data)


def emit(payload: BaseModel) -> None:
    click.echo(json.dumps(payload.model_dump(mode="json", by_alias=True), indent=2))


Analysis = Callable[[AnalyticsService, SessionFilters], BaseModel]


def run_analysis(ctx: Context, analysis: Analysis, options: dict[str, Any]) -> None:
    """Run one analysis, print the payload and map errors to click.Abort."""
    logger = logging.getLogger(__name__)
    try:
        filters = build_filters(options)
        emit(analysis(ctx.obj["service"], filters))
    except PydanticValidationError as e:
        logger.error(f"Invalid filter options: {e}")
        raise click.Abort() from e
    except ActivityAnalyticsError as e:
        logger.error(f"Analysis failed: {str(e)}")
        raise click.Abort() from e


@click.group()
@click.option(
    "--config",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file",
)
@click.option(
    "--activities",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to sessions CSV file (overrides config)",
)
@click.option(
    "--subject",
    required=True,
    envvar="ACTIVITY_ANALYTICS_SUBJECT",
    help="Subject whose sessions are analyzed",
)
@click.option(
    "--persist-backfills/--no-persist-backfills",
    default=False,
    help="Write estimated run dynamics back to the sessions CSV",
)
@click.option(
    "--verbose/--quiet",
    default=False,
    help="Enable verbose output",
)
@click.pass_context
def main(
    ctx: Context,
    config: Path | None,
    activities: Path | None,
    subject: str,
    persist_backfills: bool,
    verbose: bool,
) -> None:
    """
    Analyze training sessions and print JSON payloads.

    Supports summaries, time series, distributions, pivots, correlations and
    the training-load model.
    """
    configure_logging(verbose)
    logger = logging.getLogger(__name__)

    try:
        settings = load_settings(config)
    except ActivityAnalyticsError as e:
        logger.error(f"Configuration failed: {str(e)}")
        raise click.Abort() from e

    # Override settings if paths provided
    if activities is not None:
        settings.activities_file = activities.resolve()

    repository = SessionRepository(
        loader=SessionDataLoader(settings), settings=settings, persist=persist_backfills
    )
    ctx.obj = {
        "subject": subject,
        "service": AnalyticsService(
            repository,
            settings=settings,
            snapshot_store=JsonFileSnapshotStore(settings.snapshot_path),
        ),
    }


@main.command()
@filter_options
@click.pass_context
def summary(ctx: Context, **options: Any) -> None:
    """Print totals, averages and the per-sport breakdown."""
    subject = ctx.obj["subject"]
    run_analysis(
        ctx, lambda service, filters: service.summary(subject, filters), options
    )


@main.command()
@click.option("--metric", default="distance", show_default=True, help="Metric name")
@click.option(
    "--bucket",
    type=click.Choice([b.value for b in TimeBucket]),
    default=TimeBucket.WEEK.value,
    show_default=True,
)
@filter_options
@click.pass_context
def timeseries(ctx: Context, metric: str, bucket: str, **options: Any) -> None:
    """Print one metric aggregated per day, week or month."""
    subject = ctx.obj["subject"]
    run_analysis(
        ctx,
        lambda service, filters: service.timeseries(subject, metric, bucket, filters),
        options,
    )


@main.command()
@click.option("--metric", default="distance", show_default=True, help="Metric name")
@click.option("--bins", type=int, default=None, help="Number of bins")
@filter_options
@click.pass_context
def distribution(ctx: Context, metric: str, bins: int | None, **options: Any) -> None:
    """Print an equal-width histogram of one metric."""
    subject = ctx.obj["subject"]
    run_analysis(
        ctx,
        lambda service, filters: service.distribution(subject, metric, bins, filters),
        options,
    )


@main.command()
@click.option(
    "--row",
    type=click.Choice([r.value for r in PivotRow]),
    default=PivotRow.TYPE.value,
    show_default=True,
)
@click.option("--metrics", default="", help="Comma-separated metric names")
@filter_options
@click.pass_context
def pivot(ctx: Context, row: str, metrics: str, **options: Any) -> None:
    """Print a table of metrics per sport type, week or month."""
    subject = ctx.obj["subject"]
    names = [name for name in metrics.split(",") if name]
    run_analysis(
        ctx,
        lambda service, filters: service.pivot(subject, row, names, filters),
        options,
    )


@main.command()
@click.option("--vars", "variables", default="", help="Comma-separated variables")
@click.option(
    "--method",
    type=click.Choice([m.value for m in CorrelationMethod]),
    default=CorrelationMethod.PEARSON.value,
    show_default=True,
)
@click.option("--scatter-x", default=None, help="Scatter x variable")
@click.option("--scatter-y", default=None, help="Scatter y variable")
@click.option("--scatter-color", default=None, help="Scatter color variable")
@filter_options
@click.pass_context
def correlations(
    ctx: Context,
    variables: str,
    method: str,
    scatter_x: str | None,
    scatter_y: str | None,
    scatter_color: str | None,
    **options: Any,
) -> None:
    """Print the correlation matrix and a scatter plot."""
    subject = ctx.obj["subject"]
    names = [name for name in variables.split(",") if name]
    run_analysis(
        ctx,
        lambda service, filters: service.correlations(
            subject, names, method, scatter_x, scatter_y, scatter_color, filters
        ),
        options,
    )


@main.command()
@filter_options
@click.pass_context
def load(ctx: Context, **options: Any) -> None:
    """Print the day-by-day training-load model."""
    subject = ctx.obj["subject"]
    run_analysis(ctx, lambda service, filters: service.load(subject, filters), options)


if __name__ == "__main__":
    main()
