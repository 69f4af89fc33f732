"""CLI for the pulsemetrics daily health metrics engine."""

from __future__ import annotations

import json
from datetime import date, datetime

import click

_file_argument = click.argument("file", type=click.Path(exists=True, dir_okay=False))
_config_option = click.option(
    "--config", "-c", default=None, type=click.Path(exists=True, dir_okay=False),
    help="JSON config file with 'user' and 'defaults' sections.",
)
_date_option = click.option(
    "--date", "-d", "day", default=None, type=click.DateTime(formats=["%Y-%m-%d"]),
    help="Day to compute (YYYY-MM-DD, default: today).",
)
_verbose_option = click.option("--verbose", "-v", is_flag=True, help="Report skipped input lines.")


def _context(config: str | None, day: datetime | None):
    from pulsemetrics.analytics.pipeline import DayContext
    from pulsemetrics.config import ConfigError, load_config

    target = day.date() if day is not None else date.today()
    if config is None:
        return DayContext(day=target)
    try:
        params, defaults = load_config(config)
    except ConfigError as e:
        raise click.BadParameter(str(e), param_hint="--config") from e
    return DayContext(day=target, params=params, defaults=defaults)


def _emit(payload: dict, output: str | None) -> None:
    text = json.dumps(payload, indent=2)
    if output:
        with open(output, "w") as f:
            f.write(text + "\n")
        click.echo(f"Output written to {output}")
    else:
        click.echo(text)


@click.group()
def main() -> None:
    """pulsemetrics -- daily sleep, recovery, strain and stress metrics."""


@main.command()
@_file_argument
@_config_option
@_date_option
@_verbose_option
@click.option("--output", "-o", default=None, help="Write metrics JSON to file.")
def day(file: str, config: str | None, day: datetime | None, verbose: bool, output: str | None) -> None:
    """Compute the daily metrics for one day of a sample-set file."""
    from pulsemetrics.analytics.pipeline import compute_daily_metrics
    from pulsemetrics.loader import load_sample_set

    context = _context(config, day)
    samples = load_sample_set(file, verbose)
    metrics = compute_daily_metrics(samples, context)
    _emit(metrics.to_dict(), output)


@main.command()
@_file_argument
@_date_option
@click.option("--window", "-w", default=14, show_default=True, help="Window length in days.")
@_verbose_option
def baseline(file: str, day: datetime | None, window: int, verbose: bool) -> None:
    """Compute the trailing resting-HR and HRV baseline."""
    from pulsemetrics.analytics.baseline import compute_baseline
    from pulsemetrics.analytics.bucketing import day_end
    from pulsemetrics.loader import load_sample_set
    from pulsemetrics.samples import SampleKind

    target = day.date() if day is not None else date.today()
    samples = load_sample_set(file, verbose)
    vitals = compute_baseline(
        samples.of_kind(SampleKind.HEART_RATE),
        samples.of_kind(SampleKind.HRV),
        day_end(target),
        window_days=window,
    )
    _emit({
        "date": target.isoformat(),
        "window_days": window,
        "hr_mean": round(vitals.hr_mean, 2),
        "hr_sd": round(vitals.hr_sd, 2),
        "hrv_mean": round(vitals.hrv_mean, 2),
        "hrv_sd": round(vitals.hrv_sd, 2),
        "hr_count": vitals.hr_count,
        "hrv_count": vitals.hrv_count,
    }, None)


@main.command()
@_file_argument
@_config_option
@_date_option
@click.option("--days", type=click.Choice(["14", "30"]), default="14", show_default=True,
              help="Window length.")
@_verbose_option
@click.option("--output", "-o", default=None, help="Write period JSON to file.")
def period(
    file: str,
    config: str | None,
    day: datetime | None,
    days: str,
    verbose: bool,
    output: str | None,
) -> None:
    """Aggregate daily metrics over the trailing 14 or 30 days."""
    from pulsemetrics.analytics.period import last_14_days_stats, last_30_days_stats
    from pulsemetrics.loader import load_sample_set

    context = _context(config, day)
    samples = load_sample_set(file, verbose)
    stats = last_30_days_stats(samples, context) if days == "30" else last_14_days_stats(samples, context)
    _emit(stats.to_dict(), output)


@main.command()
@_file_argument
@click.option("--start", default=None, type=click.DateTime(formats=["%Y-%m-%d"]), help="First day (inclusive).")
@click.option("--end", default=None, type=click.DateTime(formats=["%Y-%m-%d"]), help="Last day (inclusive).")
@_verbose_option
def workouts(file: str, start: datetime | None, end: datetime | None, verbose: bool) -> None:
    """List normalized workouts, most recent first."""
    from pulsemetrics.analytics.workouts import filter_workouts, sort_recent_first, summarize_workouts
    from pulsemetrics.loader import load_sample_set

    items = load_sample_set(file, verbose).workouts
    if start is not None or end is not None:
        items = filter_workouts(
            items,
            start.date() if start is not None else date.min,
            end.date() if end is not None else date.max,
        )
    items = sort_recent_first(items)
    summary = summarize_workouts(items)

    _emit({
        "count": summary.count,
        "total_minutes": summary.total_minutes,
        "total_calories": summary.total_calories,
        "by_type": summary.by_type,
        "workouts": [
            {
                "id": w.id,
                "activity_type": w.activity_type,
                "start_time": w.start_time.isoformat(),
                "duration_minutes": w.duration_minutes,
                "calories": w.calories,
            }
            for w in items
        ],
    }, None)


if __name__ == "__main__":
    main()
