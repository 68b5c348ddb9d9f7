"""
Command-line entrypoint.

Usage:
    python -m wildlife summary migration.csv
    python -m wildlife analyze migration.csv            # top animal
    python -m wildlife analyze data.csv --animal "Stork 12" --charts
    python -m wildlife analyze data.csv --all-animals --db sqlite:///wildlife.db

Engine parameters come from WILDLIFE_* environment variables / .env
(see wildlife.config.Settings); the flags below override them.
"""
import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )


def _run_summary(args: argparse.Namespace) -> int:
    from wildlife.analysis.pipeline import summarize_store
    from wildlife.ingest.movebank import load_fixes_csv

    summary = summarize_store(load_fixes_csv(args.csv))
    print(f"Records after cleaning: {summary.total_fixes} (dropped {summary.dropped_fixes})")
    print(f"Unique animals tracked: {summary.animal_count}")
    if summary.time_range:
        first, last = summary.time_range
        print(f"Time range: {first.isoformat()} → {last.isoformat()}")
    print("\nRecords per animal:")
    for animal_id, count in summary.record_counts:
        print(f"  {animal_id:<30} {count:>8}")
    print("\nDaily records per animal:")
    for animal_id, day, count in summary.daily_record_counts:
        print(f"  {animal_id:<30} {day.isoformat()} {count:>8}")
    return 0


def _write_charts(report, store, out_dir: Path) -> None:
    from wildlife.analysis.timeseries import hourly_positions
    from wildlife.reports import charts

    chart_dir = out_dir / "charts"
    chart_dir.mkdir(parents=True, exist_ok=True)

    rendered = {
        "daily_records.png": charts.make_daily_records_chart(store.daily_record_counts()),
        "speed_distribution.png": charts.make_speed_histogram(report.segments),
        "daily_distance.png": charts.make_daily_distance_chart(report.daily_distances),
    }
    for animal_id, result in report.clusters.items():
        rendered[f"clusters_{animal_id}.png"] = charts.make_cluster_chart(result)
    for animal_id, forecast in report.forecasts.items():
        history = hourly_positions(store.track(animal_id))
        rendered[f"forecast_{animal_id}.png"] = charts.make_forecast_chart(history, forecast)

    for name, (png, caption) in rendered.items():
        safe_name = "".join(c if c.isalnum() or c in "._-" else "_" for c in name)
        (chart_dir / safe_name).write_bytes(png)
        logger.info("Chart written: %s (%s)", safe_name, caption)


def _run_analyze(args: argparse.Namespace) -> int:
    from pydantic import ValidationError

    from wildlife.analysis.pipeline import build_pipeline_report
    from wildlife.config import Settings, get_settings
    from wildlife.ingest.movebank import load_fixes_csv
    from wildlife.storage.results import export_csv

    overrides = {}
    if args.clusters is not None:
        overrides["cluster_count"] = args.clusters
    if args.horizon is not None:
        overrides["forecast_horizon_hours"] = args.horizon
    try:
        settings = Settings.model_validate({**get_settings().model_dump(), **overrides})
    except ValidationError as exc:
        logger.error("Invalid options: %s", exc)
        return 1

    store = load_fixes_csv(args.csv)
    if not store.animal_ids():
        logger.error("No valid fixes in %s", args.csv)
        return 1

    try:
        report = build_pipeline_report(
            store, settings, animal_id=args.animal, all_animals=args.all_animals,
        )
    except KeyError as exc:
        logger.error("%s", exc.args[0])
        return 1

    out_dir = Path(args.out or settings.output_dir)
    export_csv(report, out_dir)

    if args.db:
        from wildlife.db.engine import get_engine
        from wildlife.storage.results import ResultStore

        ResultStore(get_engine(args.db)).save_report(report, source=str(args.csv))

    if args.charts:
        _write_charts(report, store, out_dir)

    for animal_id in report.target_animals:
        forecast = report.forecasts.get(animal_id)
        if forecast is None:
            continue
        print(f"\n{len(forecast.points)}-Hour Forecast for {animal_id}:")
        print(f"  {'hour':<27} {'pred_latitude':>14} {'pred_longitude':>15}")
        for p in forecast.points:
            print(f"  {p.hour.isoformat():<27} {p.pred_latitude:>14.6f} {p.pred_longitude:>15.6f}")

    for stage, animal_id, exc in report.errors():
        print(f"[{stage}] {animal_id}: {type(exc).__name__}: {exc}")

    print(f"\nAnalysis complete. Files saved in {out_dir}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wildlife",
        description="Wildlife GPS tracking analysis: movement, habitat zones, forecasts",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    # accepted after the subcommand too; SUPPRESS leaves a top-level --verbose intact
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--verbose", "-v", action="store_true", default=argparse.SUPPRESS, help="Debug logging",
    )

    summary = sub.add_parser("summary", parents=[common], help="Exploratory summary of a fixes CSV")
    summary.add_argument("csv", type=Path)

    analyze = sub.add_parser("analyze", parents=[common], help="Run the full analysis pipeline")
    analyze.add_argument("csv", type=Path)
    target = analyze.add_mutually_exclusive_group()
    target.add_argument("--animal", help="Cluster and forecast this animal (default: most tracked)")
    target.add_argument("--all-animals", action="store_true", help="Cluster and forecast every animal")
    analyze.add_argument("--out", help="Output directory for CSV files and charts")
    analyze.add_argument("--db", help="Also persist results to this database URL")
    analyze.add_argument("--charts", action="store_true", help="Write PNG charts")
    analyze.add_argument("--clusters", type=int, help="Number of habitat clusters")
    analyze.add_argument("--horizon", type=int, help="Forecast horizon in hours")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose)
    if args.command == "summary":
        return _run_summary(args)
    return _run_analyze(args)


if __name__ == "__main__":
    sys.exit(main())
